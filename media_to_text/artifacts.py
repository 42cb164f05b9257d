from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator
from uuid import uuid4

from media_to_text.errors import FilesystemError
from media_to_text.logger import log_debug, log_warning


@dataclass(frozen=True, slots=True)
class AudioArtifact:
    path: Path
    size_bytes: int
    duration_s: float | None = None

    @classmethod
    def from_path(cls, path: Path, *, duration_s: float | None = None) -> "AudioArtifact":
        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError as e:
            raise FilesystemError(f"Cannot read audio file {path}: {e}") from e
        return cls(path=path, size_bytes=size, duration_s=duration_s)

    @property
    def size_mb(self) -> float:
        return self.size_bytes / 1024 / 1024


def new_run_id() -> str:
    """Short identifier that keeps temporary names unique per invocation."""
    return uuid4().hex[:12]


def remove_quietly(path: Path) -> bool:
    """
    Delete a file, logging instead of raising when it cannot be removed.

    Returns:
        True if the file is gone afterwards.
    """
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        log_warning(f"Could not remove temporary file {path}: {e}")
        return False
    log_debug(f"Removed temporary file {path}")
    return True


@contextmanager
def temporary_artifact(work_dir: Path, name: str) -> Iterator[Path]:
    """
    Reserve `work_dir / name` for a temporary file and delete whatever was
    written there when the block exits, on success or failure.

    Callers build `name` from a per-invocation id (see `new_run_id`) so two
    runs over the same source never share a path.
    """
    work_dir = Path(work_dir)
    try:
        work_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create working directory {work_dir}: {e}") from e

    path = work_dir / name
    try:
        yield path
    finally:
        remove_quietly(path)
