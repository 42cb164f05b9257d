import threading
from pathlib import Path
from typing import Protocol

from media_to_text.artifacts import AudioArtifact, new_run_id, temporary_artifact
from media_to_text.chunking import DEFAULT_CHUNK_SECONDS, plan_chunks
from media_to_text.errors import TranscriptionCancelled
from media_to_text.ffmpeg import MediaToolkit
from media_to_text.logger import log_info, log_warning

# Maximum upload size accepted by the Whisper endpoints (25MB)
MAX_FILE_SIZE = 25 * 1024 * 1024
SEGMENT_SEPARATOR = " "


class Transcriber(Protocol):
    def transcribe(self, artifact: AudioArtifact) -> str:
        """Return the text recognized in one audio file."""


class AudioTranscriber:
    """
    Transcribes an audio file of any size.

    Files up to `max_file_size` are sent as they are. Larger files are cut
    into `chunk_length_s` segments which are extracted, transcribed and
    deleted one at a time, in order; the texts are joined with a space.
    """

    def __init__(
        self,
        client: Transcriber,
        toolkit: MediaToolkit,
        *,
        work_dir: Path,
        max_file_size: int = MAX_FILE_SIZE,
        chunk_length_s: float = DEFAULT_CHUNK_SECONDS,
        cancel_event: threading.Event | None = None,
    ) -> None:
        if max_file_size <= 0:
            raise ValueError("max_file_size must be > 0")
        if chunk_length_s <= 0:
            raise ValueError("chunk_length_s must be > 0")
        self._client = client
        self._toolkit = toolkit
        self._work_dir = Path(work_dir)
        self._max_file_size = max_file_size
        self._chunk_length_s = chunk_length_s
        self._cancel_event = cancel_event or threading.Event()

    def transcribe_audio(self, path: Path) -> str:
        """
        Transcribe `path`, chunking it when it is over the upload limit.

        Raises:
            FilesystemError: The file cannot be read or a segment cannot be written.
            MediaProcessingError: Probing or extracting a segment failed.
            TranscriptionError, NetworkError: A provider call failed. The
                remaining segments are not attempted and no text is returned.
            TranscriptionCancelled: The cancel event was set.
        """
        self._check_cancelled()
        artifact = AudioArtifact.from_path(Path(path))
        if artifact.size_bytes <= self._max_file_size:
            return self._client.transcribe(artifact)

        log_warning(f"Large file ({artifact.size_mb:.2f} MB), transcribing in parts...")
        duration_s = self._toolkit.probe_duration(artifact.path)
        plan = plan_chunks(duration_s, self._chunk_length_s)
        if not plan:
            log_warning("Could not determine a positive duration, sending the whole file")
            return self._client.transcribe(artifact)

        log_info(f"Splitting into {len(plan)} parts...")
        run_id = new_run_id()
        texts: list[str] = []
        for segment in plan:
            self._check_cancelled()
            name = f"{artifact.path.stem}.{run_id}.part{segment.index:03d}.mp3"
            with temporary_artifact(self._work_dir, name) as segment_path:
                self._toolkit.extract_segment(artifact.path, segment_path, segment.start_s, segment.length_s)
                log_info(f"Transcribing part {segment.index + 1}/{len(plan)}...")
                segment_artifact = AudioArtifact.from_path(segment_path, duration_s=segment.length_s)
                texts.append(self._client.transcribe(segment_artifact))

        return SEGMENT_SEPARATOR.join(texts)

    def _check_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise TranscriptionCancelled("Transcription cancelled")
