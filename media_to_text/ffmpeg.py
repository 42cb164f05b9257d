"""
Thin wrappers around the ffmpeg and ffprobe executables.

Command lines are produced by pure `build_*_cmd` helpers so they can be
checked without running anything; `FfmpegToolkit` executes them with a
deadline and turns every failure into `MediaProcessingError`.
"""

import subprocess
from os import PathLike
from pathlib import Path
from typing import Protocol, Sequence, TypeAlias

from media_to_text.errors import MediaProcessingError
from media_to_text.logger import log_debug

StrPath: TypeAlias = str | PathLike[str]

SAMPLE_RATE = 16000  # 16kHz works best for speech recognition
CHANNELS = 1
AUDIO_BITRATE = "128k"


def _path_str(value: StrPath) -> str:
    return str(Path(value))


def build_ffprobe_duration_cmd(input_path: StrPath) -> list[str]:
    return [
        "ffprobe",
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        _path_str(input_path),
    ]


def build_ffmpeg_extract_cmd(
    input_path: StrPath,
    output_path: StrPath,
    start_s: float,
    length_s: float,
) -> list[str]:
    """Build the command that cuts [start_s, start_s + length_s) into a new MP3."""
    if start_s < 0:
        raise ValueError("start_s must be >= 0")
    if length_s <= 0:
        raise ValueError("length_s must be > 0")
    return [
        "ffmpeg",
        "-y",  # Overwrite output files without asking
        "-ss", f"{start_s:.3f}",
        "-t", f"{length_s:.3f}",
        "-i", _path_str(input_path),
        "-vn",
        "-acodec", "libmp3lame",
        "-ab", AUDIO_BITRATE,
        _path_str(output_path),
    ]


def build_ffmpeg_mp3_cmd(
    input_path: StrPath,
    output_path: StrPath,
    sample_rate: int = SAMPLE_RATE,
    channels: int = CHANNELS,
) -> list[str]:
    """Build the command that normalizes any audio/video input to mono speech MP3."""
    if sample_rate <= 0:
        raise ValueError("sample_rate must be > 0")
    if channels <= 0:
        raise ValueError("channels must be > 0")
    return [
        "ffmpeg",
        "-y",
        "-i", _path_str(input_path),
        "-vn",
        "-acodec", "libmp3lame",
        "-ab", AUDIO_BITRATE,
        "-ac", str(channels),
        "-ar", str(sample_rate),
        "-f", "mp3",
        _path_str(output_path),
    ]


class MediaToolkit(Protocol):
    def probe_duration(self, path: Path) -> float:
        """Return the duration of an audio file in seconds."""

    def extract_segment(self, source: Path, dest: Path, start_s: float, length_s: float) -> None:
        """Write the given time range of `source` to `dest`."""

    def convert_to_mp3(self, source: Path, dest: Path) -> None:
        """Write a normalized mono 16kHz MP3 of `source` to `dest`."""


class FfmpegToolkit:
    """`MediaToolkit` backed by the ffmpeg/ffprobe binaries on PATH."""

    def __init__(self, timeout_s: float | None = None) -> None:
        self._timeout_s = timeout_s

    def probe_duration(self, path: Path) -> float:
        stdout = self._run(build_ffprobe_duration_cmd(path), "ffprobe failed")
        raw = stdout.strip()
        try:
            return float(raw)
        except ValueError as e:
            raise MediaProcessingError(f"Could not determine duration of {path}: {raw or 'empty output'}") from e

    def extract_segment(self, source: Path, dest: Path, start_s: float, length_s: float) -> None:
        self._run(build_ffmpeg_extract_cmd(source, dest, start_s, length_s), "ffmpeg segment extraction failed")
        if not Path(dest).is_file():
            raise MediaProcessingError(f"ffmpeg did not produce segment: {dest}")

    def convert_to_mp3(self, source: Path, dest: Path) -> None:
        self._run(build_ffmpeg_mp3_cmd(source, dest), "ffmpeg conversion failed")
        if not Path(dest).is_file():
            raise MediaProcessingError(f"ffmpeg did not produce audio: {dest}")

    def _run(self, cmd: Sequence[str], fallback_message: str) -> str:
        log_debug(f"Running: {' '.join(cmd)}")
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout_s,
            )
        except FileNotFoundError as e:
            raise MediaProcessingError(f"{cmd[0]} not found. Install ffmpeg and make sure it is on PATH.") from e
        except subprocess.TimeoutExpired as e:
            raise MediaProcessingError(f"{cmd[0]} timed out after {self._timeout_s}s") from e

        if completed.returncode != 0:
            message = completed.stderr.strip() or completed.stdout.strip() or fallback_message
            raise MediaProcessingError(f"{fallback_message}: {message}")
        return completed.stdout
