from __future__ import annotations

from pathlib import Path

import pytest

from media_to_text.artifacts import AudioArtifact
from media_to_text.config import Config
from media_to_text.errors import MediaProcessingError


class FakeToolkit:
    """Stands in for ffmpeg: writes small placeholder files and records calls."""

    def __init__(self, duration_s: float = 0.0, fail_extract_at: int | None = None) -> None:
        self.duration_s = duration_s
        self.fail_extract_at = fail_extract_at
        self.probed: list[Path] = []
        self.extracted: list[tuple[Path, Path, float, float]] = []
        self.converted: list[tuple[Path, Path]] = []

    def probe_duration(self, path: Path) -> float:
        self.probed.append(Path(path))
        return self.duration_s

    def extract_segment(self, source: Path, dest: Path, start_s: float, length_s: float) -> None:
        if self.fail_extract_at is not None and len(self.extracted) == self.fail_extract_at:
            raise MediaProcessingError("ffmpeg segment extraction failed")
        self.extracted.append((Path(source), Path(dest), start_s, length_s))
        Path(dest).write_bytes(b"ID3segment")

    def convert_to_mp3(self, source: Path, dest: Path) -> None:
        self.converted.append((Path(source), Path(dest)))
        Path(dest).write_bytes(b"ID3converted")


class FakeTranscriber:
    """Returns canned texts in order; an Exception entry is raised instead."""

    def __init__(self, responses: list[object] | None = None) -> None:
        self._responses = list(responses or ["hello world"])
        self.calls: list[AudioArtifact] = []
        self.existed_during_call: list[bool] = []

    def transcribe(self, artifact: AudioArtifact) -> str:
        self.calls.append(artifact)
        self.existed_during_call.append(artifact.path.exists())
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return str(item)


@pytest.fixture
def make_config(tmp_path: Path):
    def _make(**overrides) -> Config:
        values = {
            "groq_api_key": "gsk_test",
            "openai_api_key": None,
            "video_dir": tmp_path / "videos",
            "audio_dir": tmp_path / "audio",
            "transcription_dir": tmp_path / "output",
        }
        values.update(overrides)
        config = Config(**values)
        for path in (config.video_dir, config.audio_dir, config.transcription_dir):
            path.mkdir(parents=True, exist_ok=True)
        return config

    return _make


def write_sized_file(path: Path, size: int) -> Path:
    """Create a sparse file of exactly `size` bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fh:
        if size > 0:
            fh.seek(size - 1)
            fh.write(b"\0")
    return path
