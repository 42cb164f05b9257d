from __future__ import annotations

import pytest

from media_to_text.config import Config
from media_to_text.errors import NoCredentialConfigured
from media_to_text.providers import ProviderConfig, select_provider


def test_groq_is_selected_when_only_groq_is_configured() -> None:
    provider = select_provider(Config(groq_api_key="gsk_1"))

    assert provider.name == "Groq"
    assert provider.credential == "gsk_1"
    assert provider.model_id == "whisper-large-v3"
    assert provider.endpoint == "https://api.groq.com/openai/v1/audio/transcriptions"


def test_openai_is_selected_when_only_openai_is_configured() -> None:
    provider = select_provider(Config(openai_api_key="sk-1"))

    assert provider.name == "OpenAI"
    assert provider.model_id == "whisper-1"
    assert provider.endpoint == "https://api.openai.com/v1/audio/transcriptions"


def test_first_checked_provider_wins_when_both_are_configured() -> None:
    provider = select_provider(Config(groq_api_key="gsk_1", openai_api_key="sk-1"))

    assert provider.name == "Groq"
    assert provider.credential == "gsk_1"


def test_fails_without_any_credential() -> None:
    with pytest.raises(NoCredentialConfigured):
        select_provider(Config())


def test_credential_is_hidden_from_repr() -> None:
    provider = ProviderConfig(name="Groq", credential="gsk_secret", base_url="https://x/v1", model_id="m")

    assert "gsk_secret" not in repr(provider)
