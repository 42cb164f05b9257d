from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import httpx
import openai
import pytest
from openai import OpenAI

from media_to_text.artifacts import AudioArtifact
from media_to_text.errors import FilesystemError, NetworkError, TranscriptionError
from media_to_text.providers import GROQ_BASE_URL, ProviderConfig
from media_to_text.transcription import TranscriptionClient, build_openai_client

GROQ = ProviderConfig(name="Groq", credential="gsk_test", base_url=GROQ_BASE_URL, model_id="whisper-large-v3")
ENDPOINT = "https://api.groq.com/openai/v1/audio/transcriptions"


class FakeTranscriptions:
    def __init__(self, result: object) -> None:
        self.result = result
        self.calls: list[dict] = []

    def create(self, **kwargs):
        kwargs["file_content"] = kwargs["file"].read()
        self.calls.append(kwargs)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def fake_client(result: object) -> SimpleNamespace:
    return SimpleNamespace(audio=SimpleNamespace(transcriptions=FakeTranscriptions(result)))


def _artifact(tmp_path: Path) -> AudioArtifact:
    path = tmp_path / "clip.mp3"
    path.write_bytes(b"ID3fake-audio")
    return AudioArtifact.from_path(path)


def _status_error(cls: type[openai.APIStatusError], status: int, body: object) -> openai.APIStatusError:
    request = httpx.Request("POST", ENDPOINT)
    response = httpx.Response(status, request=request)
    return cls("request failed", response=response, body=body)


def test_sends_model_language_and_file(tmp_path: Path) -> None:
    client = fake_client(SimpleNamespace(text="ciao a tutti"))
    transcriber = TranscriptionClient(GROQ, client, language="it")

    assert transcriber.transcribe(_artifact(tmp_path)) == "ciao a tutti"

    call = client.audio.transcriptions.calls[0]
    assert call["model"] == "whisper-large-v3"
    assert call["language"] == "it"
    assert call["response_format"] == "json"
    assert call["file_content"] == b"ID3fake-audio"


def test_accepts_dict_and_plain_string_responses(tmp_path: Path) -> None:
    artifact = _artifact(tmp_path)

    assert TranscriptionClient(GROQ, fake_client({"text": "from dict"})).transcribe(artifact) == "from dict"
    assert TranscriptionClient(GROQ, fake_client("plain")).transcribe(artifact) == "plain"


def test_empty_text_is_returned_as_is(tmp_path: Path) -> None:
    assert TranscriptionClient(GROQ, fake_client({"text": ""})).transcribe(_artifact(tmp_path)) == ""


def test_response_without_text_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(TranscriptionError) as excinfo:
        TranscriptionClient(GROQ, fake_client({"other": 1})).transcribe(_artifact(tmp_path))

    assert excinfo.value.status is None


def test_rejected_key_maps_to_status_and_provider_message(tmp_path: Path) -> None:
    error = _status_error(openai.AuthenticationError, 401, {"message": "Invalid API Key"})
    transcriber = TranscriptionClient(GROQ, fake_client(error))

    with pytest.raises(TranscriptionError) as excinfo:
        transcriber.transcribe(_artifact(tmp_path))

    assert excinfo.value.status == 401
    assert excinfo.value.message == "Invalid API Key"
    assert "401" in str(excinfo.value)


def test_nested_error_message_is_used(tmp_path: Path) -> None:
    error = _status_error(openai.RateLimitError, 429, {"error": {"message": "Rate limit reached"}})

    with pytest.raises(TranscriptionError) as excinfo:
        TranscriptionClient(GROQ, fake_client(error)).transcribe(_artifact(tmp_path))

    assert excinfo.value.status == 429
    assert excinfo.value.message == "Rate limit reached"


def test_missing_body_falls_back_to_reason_phrase(tmp_path: Path) -> None:
    error = _status_error(openai.InternalServerError, 500, None)

    with pytest.raises(TranscriptionError) as excinfo:
        TranscriptionClient(GROQ, fake_client(error)).transcribe(_artifact(tmp_path))

    assert excinfo.value.status == 500
    assert excinfo.value.message == "Internal Server Error"


@pytest.mark.parametrize("error_cls", [openai.APIConnectionError, openai.APITimeoutError])
def test_transport_failures_map_to_network_error(tmp_path: Path, error_cls) -> None:
    error = error_cls(request=httpx.Request("POST", ENDPOINT))

    with pytest.raises(NetworkError):
        TranscriptionClient(GROQ, fake_client(error)).transcribe(_artifact(tmp_path))


def test_unreadable_file_is_a_filesystem_error(tmp_path: Path) -> None:
    artifact = AudioArtifact(path=tmp_path / "gone.mp3", size_bytes=10)
    client = fake_client("never")

    with pytest.raises(FilesystemError):
        TranscriptionClient(GROQ, client).transcribe(artifact)
    assert client.audio.transcriptions.calls == []


def test_built_sdk_client_points_at_provider_without_retries() -> None:
    client = build_openai_client(GROQ, timeout_s=42)

    assert str(client.base_url).rstrip("/") == GROQ_BASE_URL
    assert client.api_key == "gsk_test"
    assert client.max_retries == 0
    assert client.timeout == 42


def test_request_on_the_wire_carries_key_and_form_fields(tmp_path: Path) -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        captured.append(request)
        return httpx.Response(200, json={"text": "ciao a tutti"})

    sdk = OpenAI(
        api_key=GROQ.credential,
        base_url=GROQ.base_url,
        max_retries=0,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    text = TranscriptionClient(GROQ, sdk, language="it").transcribe(_artifact(tmp_path))

    assert text == "ciao a tutti"
    request = captured[0]
    assert request.method == "POST"
    assert str(request.url) == ENDPOINT
    assert request.headers["authorization"] == "Bearer gsk_test"
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="model"\r\n\r\nwhisper-large-v3' in body
    assert b'name="language"\r\n\r\nit' in body
    assert b'name="response_format"\r\n\r\njson' in body
    assert b'name="file"' in body
    assert b"ID3fake-audio" in body


def test_error_status_on_the_wire_maps_to_transcription_error(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Invalid API Key"}})

    sdk = OpenAI(
        api_key=GROQ.credential,
        base_url=GROQ.base_url,
        max_retries=0,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(TranscriptionError) as excinfo:
        TranscriptionClient(GROQ, sdk).transcribe(_artifact(tmp_path))

    assert excinfo.value.status == 401
    assert excinfo.value.message == "Invalid API Key"
