import os
import re
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from media_to_text.errors import FilesystemError
from media_to_text.logger import log_success

MAX_FILENAME_LENGTH = 100
BANNER = "=" * 63


@dataclass(frozen=True, slots=True)
class MediaInfo:
    title: str
    author: str | None = None
    duration: str | None = None
    source: str | None = None


def sanitize_filename(filename: str) -> str:
    """Remove or replace characters that are invalid in filenames."""
    # Replace characters that are not alphanumeric, underscore, hyphen, or period
    sanitized = re.sub(r'[^\w\-.]', '_', filename)
    # Replace multiple consecutive underscores with a single one
    sanitized = re.sub(r'_+', '_', sanitized)
    # Remove leading/trailing underscores or periods
    sanitized = sanitized.strip('_.')
    return sanitized[:MAX_FILENAME_LENGTH]


def format_duration(seconds: float | int) -> str:
    """Format a number of seconds as M:SS, or H:MM:SS past the hour."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def file_timestamp(now: datetime) -> str:
    """ISO-like timestamp that is safe to use in a filename."""
    return now.strftime("%Y-%m-%dT%H-%M-%S")


def render_transcription(transcription: str, media_info: MediaInfo, now: datetime) -> str:
    return "\n".join(
        [
            BANNER,
            "AUDIO/VIDEO TRANSCRIPTION",
            BANNER,
            "",
            f"Title: {media_info.title}",
            f"Author/Channel: {media_info.author or 'N/A'}",
            f"Duration: {media_info.duration or 'N/A'}",
            f"Source: {media_info.source or 'N/A'}",
            f"Transcribed at: {now.strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            BANNER,
            "TRANSCRIPTION",
            BANNER,
            "",
            transcription,
            "",
            BANNER,
            "",
        ]
    )


def save_transcription(
    transcription: str,
    media_info: MediaInfo,
    output_dir: Path,
    *,
    now: datetime | None = None,
) -> Path:
    """
    Write the transcript with its header block to `output_dir`.

    Args:
        transcription: The transcript body.
        media_info: Title, author, duration and source shown in the header.
        output_dir: Directory the file is written to.
        now: Timestamp used for the filename and header. Defaults to now.

    Returns:
        Path of the written file.

    Raises:
        FilesystemError: If the file cannot be written.
    """
    now = now or datetime.now()
    base = sanitize_filename(media_info.title) or "transcription"
    output_path = Path(output_dir) / f"{base}_{file_timestamp(now)}.txt"
    content = render_transcription(transcription, media_info, now)

    try:
        _atomic_write_text(output_path, content)
    except OSError as e:
        raise FilesystemError(f"Error saving transcription to {output_path}: {e}") from e

    log_success(f"Transcription saved to {output_path}")
    return output_path


def _atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as tmp_file:
            tmp_file.write(text)
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)
