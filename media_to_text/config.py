"""
Process-wide configuration.

The configuration is read once at start-up (environment variables, optionally
seeded from a `.env` file) into an immutable `Config` that is then passed to
every component that needs it.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from media_to_text.errors import FilesystemError
from media_to_text.logger import log_error, log_info, log_success

ROOT_DIR = Path(__file__).resolve().parents[1]

DEFAULT_VIDEO_DIR = ROOT_DIR / "downloads" / "videos"
DEFAULT_AUDIO_DIR = ROOT_DIR / "downloads" / "audio"
DEFAULT_TRANSCRIPTION_DIR = ROOT_DIR / "output"
DEFAULT_LANGUAGE = "it"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 600.0
DEFAULT_PROCESS_TIMEOUT_SECONDS = 3600.0


@dataclass(frozen=True, slots=True)
class Config:
    groq_api_key: str | None = field(default=None, repr=False)
    openai_api_key: str | None = field(default=None, repr=False)
    video_dir: Path = DEFAULT_VIDEO_DIR
    audio_dir: Path = DEFAULT_AUDIO_DIR
    transcription_dir: Path = DEFAULT_TRANSCRIPTION_DIR
    keep_audio: bool = False
    keep_video: bool = False
    debug: bool = False
    language: str = DEFAULT_LANGUAGE
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    process_timeout_s: float = DEFAULT_PROCESS_TIMEOUT_SECONDS

    @property
    def has_credentials(self) -> bool:
        return bool(self.groq_api_key or self.openai_api_key)


def _flag(env: Mapping[str, str], name: str) -> bool:
    return (env.get(name) or "").strip().lower() == "true"


def _secret(env: Mapping[str, str], name: str) -> str | None:
    value = (env.get(name) or "").strip()
    return value or None


def _path(env: Mapping[str, str], name: str, default: Path) -> Path:
    value = (env.get(name) or "").strip()
    return Path(value).expanduser() if value else default


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        log_error(f"Invalid {name}: {raw}. Using {default}.")
        return default
    if value <= 0:
        log_error(f"{name} must be > 0, got {raw}. Using {default}.")
        return default
    return value


def load_config(env: Mapping[str, str] | None = None, *, dotenv: bool = True) -> Config:
    """
    Build the configuration from environment variables.

    Args:
        env: Mapping to read from. Defaults to `os.environ`, after loading a
            `.env` file when `dotenv` is True.
        dotenv: Whether to load `.env` into the process environment first.

    Returns:
        The immutable configuration.
    """
    if env is None:
        if dotenv:
            load_dotenv(override=True)
        env = os.environ

    return Config(
        groq_api_key=_secret(env, "GROQ_API_KEY"),
        openai_api_key=_secret(env, "OPENAI_API_KEY"),
        video_dir=_path(env, "VIDEO_PATH", DEFAULT_VIDEO_DIR),
        audio_dir=_path(env, "AUDIO_PATH", DEFAULT_AUDIO_DIR),
        transcription_dir=_path(env, "TRANSCRIPTION_PATH", DEFAULT_TRANSCRIPTION_DIR),
        keep_audio=_flag(env, "KEEP_AUDIO"),
        keep_video=_flag(env, "KEEP_VIDEO"),
        debug=_flag(env, "DEBUG"),
        language=(env.get("TRANSCRIPTION_LANGUAGE") or "").strip() or DEFAULT_LANGUAGE,
        request_timeout_s=_positive_float(env, "REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS),
        process_timeout_s=_positive_float(env, "PROCESS_TIMEOUT_SECONDS", DEFAULT_PROCESS_TIMEOUT_SECONDS),
    )


def _ensure_directory(path: Path, name: str) -> None:
    try:
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            log_success(f"{name}: {path} (created)")
            return
        if not path.is_dir():
            raise FilesystemError(f"{name} path is not a directory: {path}")
        if not os.access(path, os.W_OK):
            raise FilesystemError(f"{name} directory is not writable: {path}")
        log_success(f"{name}: {path}")
    except OSError as e:
        raise FilesystemError(f"Cannot create {name} directory {path}: {e}") from e


def ensure_directories(config: Config) -> None:
    """
    Create the video, audio and transcription directories if needed and check
    they are writable.

    Raises:
        FilesystemError: If any directory is unusable.
    """
    log_info("Checking storage directories...")
    for path, name in (
        (config.video_dir, "Video"),
        (config.audio_dir, "Audio"),
        (config.transcription_dir, "Transcriptions"),
    ):
        try:
            _ensure_directory(path, name)
        except FilesystemError as e:
            log_error(str(e))
            log_error("Check the paths in .env and the folder permissions.")
            raise
    log_success("All storage directories are accessible")
