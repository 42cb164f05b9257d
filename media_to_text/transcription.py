"""
This module defines the `TranscriptionClient` class, which sends a single audio
file to a Whisper-compatible transcription endpoint (Groq or OpenAI) and
returns the recognized text. It relies on the `openai` library for the HTTP
call: the SDK posts the file as a multipart upload with the model, language
and response format fields and the provider key as a bearer token.
"""

from typing import Any, Protocol

import openai
from openai import OpenAI

from media_to_text.artifacts import AudioArtifact
from media_to_text.errors import FilesystemError, NetworkError, TranscriptionError
from media_to_text.logger import log_debug, log_error, log_info
from media_to_text.providers import ProviderConfig

RESPONSE_FORMAT = "json"


class _TranscriptionsAPI(Protocol):
    def create(self, **kwargs: Any) -> Any: ...


class _AudioAPI(Protocol):
    transcriptions: _TranscriptionsAPI


class OpenAIClientLike(Protocol):
    audio: _AudioAPI


def build_openai_client(provider: ProviderConfig, *, timeout_s: float | None = None) -> OpenAI:
    """
    Create an SDK client bound to the provider's base URL and key.

    SDK-level retries are disabled: a failed request fails the whole run.
    """
    return OpenAI(
        api_key=provider.credential,
        base_url=provider.base_url,
        timeout=timeout_s,
        max_retries=0,
    )


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _provider_message(exc: openai.APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict):
        message = body.get("message")
        if not message and isinstance(body.get("error"), dict):
            message = body["error"].get("message")
        if message:
            return str(message)
    reason = getattr(exc.response, "reason_phrase", None)
    return reason or str(exc)


class TranscriptionClient():
    """
    Transcribes audio files with one selected provider.

    Attributes:
        provider: The backend (name, key, base URL, model) requests go to.
        language: ISO-639-1 language sent with every request.
    """

    def __init__(
        self,
        provider: ProviderConfig,
        client: OpenAIClientLike | None = None,
        *,
        language: str = "it",
        timeout_s: float | None = None,
    ) -> None:
        self.provider = provider
        self.language = language
        self.client = client if client is not None else build_openai_client(provider, timeout_s=timeout_s)

    def transcribe(self, artifact: AudioArtifact) -> str:
        """
        Send one audio file to the provider and return its transcript text.

        Args:
            artifact: The audio file to upload.

        Returns:
            The recognized text.

        Raises:
            TranscriptionError: The provider answered with a non-success status.
            NetworkError: The request failed at the transport level or timed out.
            FilesystemError: The audio file could not be read.
        """
        log_info(f"Using {self.provider.name} ({self.provider.model_id})")
        log_debug(f"Sending {artifact.path} ({artifact.size_bytes / 1024:.2f} KB) to {self.provider.endpoint}")

        try:
            with open(artifact.path, "rb") as audio_file:
                response = self.client.audio.transcriptions.create(
                    model=self.provider.model_id,
                    file=audio_file,
                    language=self.language,
                    response_format=RESPONSE_FORMAT,
                )
        except openai.APIStatusError as e:
            message = _provider_message(e)
            log_error(f"{self.provider.name} API error: HTTP {e.status_code}: {message}")
            raise TranscriptionError(e.status_code, message) from e
        except openai.APIConnectionError as e:
            log_error(f"{self.provider.name} API unreachable: {e}")
            raise NetworkError(f"Could not reach {self.provider.endpoint}: {e}") from e
        except OSError as e:
            raise FilesystemError(f"Cannot read audio file {artifact.path}: {e}") from e

        if isinstance(response, str):
            text = response
        else:
            text = _field(response, "text")
        if text is None:
            raise TranscriptionError(None, f"{self.provider.name} response has no 'text' field")

        log_debug(f"Response received, text length: {len(text)} characters")
        return text
