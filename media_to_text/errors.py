"""
Exception hierarchy shared by every stage of the transcription pipeline.

All errors derive from `MediaToTextError` so the command line entry point can
report them uniformly and exit with a non-zero status.
"""


class MediaToTextError(Exception):
    """Base class for user-facing pipeline failures."""


class NoCredentialConfigured(MediaToTextError):
    """Raised when neither transcription provider has an API key."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No API key configured. Set GROQ_API_KEY or OPENAI_API_KEY in the environment or .env file."
        )


class MediaFetchError(MediaToTextError):
    """Raised when a media source cannot be fetched, read or converted."""


class MediaProcessingError(MediaFetchError):
    """Raised when ffmpeg/ffprobe fail, are missing, or time out."""


class FilesystemError(MediaToTextError):
    """Raised when a required file or directory cannot be created, read or written."""


class TranscriptionError(MediaToTextError):
    """Raised when the transcription API answers with a non-success status."""

    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.message = message
        prefix = f"HTTP {status}: " if status is not None else ""
        super().__init__(f"{prefix}{message}")


class NetworkError(MediaToTextError):
    """Raised on transport-level failures (DNS, connection reset, timeout)."""


class TranscriptionCancelled(MediaToTextError):
    """Raised when a transcription run is cancelled before it completes."""
