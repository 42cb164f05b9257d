from dataclasses import dataclass, field

from media_to_text.config import Config
from media_to_text.errors import NoCredentialConfigured

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
GROQ_MODEL = "whisper-large-v3"
OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_MODEL = "whisper-1"


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """A Whisper-compatible transcription backend."""

    name: str
    credential: str = field(repr=False)
    base_url: str
    model_id: str

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/audio/transcriptions"


def select_provider(config: Config) -> ProviderConfig:
    """
    Pick the transcription backend from the configured credentials.

    Groq is checked first and wins whenever its key is present; OpenAI is the
    fallback. Nothing is contacted over the network here.

    Raises:
        NoCredentialConfigured: If neither key is set.
    """
    if config.groq_api_key:
        return ProviderConfig(
            name="Groq",
            credential=config.groq_api_key,
            base_url=GROQ_BASE_URL,
            model_id=GROQ_MODEL,
        )
    if config.openai_api_key:
        return ProviderConfig(
            name="OpenAI",
            credential=config.openai_api_key,
            base_url=OPENAI_BASE_URL,
            model_id=OPENAI_MODEL,
        )
    raise NoCredentialConfigured()
