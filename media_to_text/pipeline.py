"""
End-to-end flows: get audio from a YouTube video, a direct media URL or a
local file, transcribe it, and write the transcript file.

Each flow:
1.  Selects the transcription provider before touching any media, so a
    missing API key fails fast.
2.  Produces a normalized MP3 in the audio directory under a name that is
    unique to this invocation.
3.  Transcribes it with `AudioTranscriber` (chunked when over the size limit).
4.  Writes the transcript with its header block to the transcription
    directory. Nothing is written when any earlier step fails.
5.  Deletes the working audio unless KEEP_AUDIO is set. Cleanup also runs
    when a step fails; cleanup failures are only logged.
"""

import shutil
import threading
import urllib.parse as urlparse
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeAlias

from media_to_text.artifacts import AudioArtifact, new_run_id, remove_quietly
from media_to_text.config import Config
from media_to_text.download import download_media
from media_to_text.errors import FilesystemError, MediaFetchError, TranscriptionCancelled
from media_to_text.ffmpeg import FfmpegToolkit, MediaToolkit
from media_to_text.logger import log_info, log_success
from media_to_text.output import MediaInfo, sanitize_filename, save_transcription
from media_to_text.providers import ProviderConfig, select_provider
from media_to_text.speech_to_text import AudioTranscriber, Transcriber
from media_to_text.transcription import TranscriptionClient
from media_to_text.youtube import YouTube, YtdlpYouTube

AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".ogg", ".m4a", ".flac", ".aac"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".webm", ".mkv", ".avi", ".mov"})


@dataclass(frozen=True, slots=True)
class TranscriptResult:
    text: str
    output_path: Path
    duration: str | None = None
    audio_path: Path | None = None
    video_path: Path | None = None


ClientFactory: TypeAlias = Callable[[ProviderConfig, Config], Transcriber]


def default_client_factory(provider: ProviderConfig, config: Config) -> Transcriber:
    return TranscriptionClient(provider, language=config.language, timeout_s=config.request_timeout_s)


class Pipeline:
    """Runs one transcription request for each call, using a fixed configuration."""

    def __init__(
        self,
        config: Config,
        *,
        toolkit: MediaToolkit | None = None,
        youtube: YouTube | None = None,
        client_factory: ClientFactory = default_client_factory,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.config = config
        self.toolkit = toolkit if toolkit is not None else FfmpegToolkit(timeout_s=config.process_timeout_s)
        self.youtube = youtube if youtube is not None else YtdlpYouTube(timeout_s=config.process_timeout_s)
        self._client_factory = client_factory
        self._cancel_event = cancel_event or threading.Event()

    def transcribe_youtube(self, url: str) -> TranscriptResult:
        transcriber = self._build_transcriber()

        log_info("Fetching video information...")
        try:
            info = self.youtube.get_video_info(url)
        except MediaFetchError as e:
            raise MediaFetchError(f"Could not fetch video info: {e}") from e
        log_info(f"Title: {info.title}")
        log_info(f"Channel: {info.author}")
        log_info(f"Duration: {info.duration}")

        base_name = f"{sanitize_filename(info.title) or 'youtube'}_{info.video_id}"
        video_path = None
        if self.config.keep_video:
            video_path = self.youtube.download_video(url, self.config.video_dir / f"{base_name}.mp4")

        audio_path = self.config.audio_dir / f"{base_name}.{new_run_id()}.mp3"

        def prepare_audio() -> None:
            if video_path is not None:
                log_info("Extracting audio from the downloaded video...")
                self.toolkit.convert_to_mp3(video_path, audio_path)
            else:
                self.youtube.download_audio(url, audio_path, self.toolkit)

        media_info = MediaInfo(title=info.title, author=info.author, duration=info.duration, source=url)
        return self._run(transcriber, prepare_audio, audio_path, media_info, video_path=video_path)

    def transcribe_direct_media(self, url: str) -> TranscriptResult:
        transcriber = self._build_transcriber()

        parsed = urlparse.urlparse(url)
        original_name = Path(urlparse.unquote(parsed.path)).name
        ext = (Path(original_name).suffix or ".mp3").lower()
        run_id = new_run_id()
        download_path = self.config.audio_dir / f"direct_{run_id}.download{ext}"
        audio_path = self.config.audio_dir / f"direct_{run_id}.mp3"

        def prepare_audio() -> None:
            try:
                download_media(url, download_path, timeout_s=self.config.request_timeout_s)
                if ext != ".mp3":
                    log_info("Converting to MP3...")
                    self.toolkit.convert_to_mp3(download_path, audio_path)
                else:
                    _move(download_path, audio_path)
            finally:
                remove_quietly(download_path)

        media_info = MediaInfo(
            title=original_name or "Direct media",
            author=parsed.hostname,
            source=url,
        )
        return self._run(transcriber, prepare_audio, audio_path, media_info)

    def transcribe_local_file(self, file_path: Path | str) -> TranscriptResult:
        transcriber = self._build_transcriber()

        source = Path(file_path).expanduser().resolve()
        log_info(f"Reading local file: {source}")
        if not source.is_file():
            raise MediaFetchError(f"File not found: {source}")
        ext = source.suffix.lower()
        if ext not in AUDIO_EXTENSIONS and ext not in VIDEO_EXTENSIONS:
            raise MediaFetchError(f"Unsupported format: {ext or source.name}")

        audio_path = self.config.audio_dir / f"local_{new_run_id()}.mp3"

        def prepare_audio() -> None:
            if ext == ".mp3":
                _copy(source, audio_path)
            else:
                log_info("Converting to MP3...")
                self.toolkit.convert_to_mp3(source, audio_path)

        media_info = MediaInfo(title=source.name, author="Local file", source=str(source))
        return self._run(transcriber, prepare_audio, audio_path, media_info)

    def _build_transcriber(self) -> AudioTranscriber:
        provider = select_provider(self.config)
        client = self._client_factory(provider, self.config)
        return AudioTranscriber(
            client,
            self.toolkit,
            work_dir=self.config.audio_dir,
            cancel_event=self._cancel_event,
        )

    def _run(
        self,
        transcriber: AudioTranscriber,
        prepare_audio: Callable[[], None],
        audio_path: Path,
        media_info: MediaInfo,
        *,
        video_path: Path | None = None,
    ) -> TranscriptResult:
        keep_audio = False
        try:
            prepare_audio()
            audio = AudioArtifact.from_path(audio_path)
            log_success(f"Audio ready: {audio_path} ({audio.size_mb:.2f} MB)")

            log_info("Transcribing (this may take a few minutes)...")
            text = transcriber.transcribe_audio(audio_path)
            if self._cancel_event.is_set():
                raise TranscriptionCancelled("Transcription cancelled")
            log_success("Transcription complete")

            output_path = save_transcription(text, media_info, self.config.transcription_dir)
            keep_audio = self.config.keep_audio
        finally:
            if keep_audio:
                log_info(f"Audio kept: {audio_path}")
            elif remove_quietly(audio_path):
                log_info("Temporary audio file removed")

        return TranscriptResult(
            text=text,
            output_path=output_path,
            duration=media_info.duration,
            audio_path=audio_path if keep_audio else None,
            video_path=video_path,
        )


def _copy(source: Path, dest: Path) -> None:
    try:
        shutil.copyfile(source, dest)
    except OSError as e:
        raise FilesystemError(f"Error copying {source} to {dest}: {e}") from e


def _move(source: Path, dest: Path) -> None:
    try:
        source.replace(dest)
    except OSError as e:
        raise FilesystemError(f"Error moving {source} to {dest}: {e}") from e
