import json
import re
import subprocess
import urllib.parse as urlparse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from media_to_text.artifacts import remove_quietly
from media_to_text.errors import MediaFetchError
from media_to_text.ffmpeg import MediaToolkit
from media_to_text.logger import log_bold, log_cyan, log_debug, log_info, log_success, log_warning
from media_to_text.output import format_duration

YOUTUBE_URL_RE = re.compile(
    r"^(https?://)?(www\.|m\.)?(youtube\.com/(watch\?v=|embed/|v/|shorts/)|youtu\.be/)[\w-]+"
)

# Known yt-dlp failure substrings and the hint shown to the user instead.
_ERROR_HINTS = (
    (("not available", "unavailable"), "Video not available. It may be private, removed or geo-blocked."),
    (("private",), "Private video. It cannot be downloaded."),
    (("age-restricted", "age restricted", "confirm your age"), "Age-restricted video. Try signing in to YouTube in your browser."),
)

# Leftovers of an interrupted yt-dlp download
_PARTIAL_SUFFIXES = frozenset({".part", ".ytdl"})


@dataclass(frozen=True, slots=True)
class VideoInfo:
    title: str
    author: str
    duration: str
    duration_seconds: int
    video_id: str


def is_youtube_url(url: str) -> bool:
    return YOUTUBE_URL_RE.match(url) is not None


def get_youtube_video_id(url: str | None) -> str | None:
    """Extracts the YouTube video ID from a URL."""
    if url is None:
        return None
    parsed_url = urlparse.urlparse(url if "://" in url else f"https://{url}")
    if parsed_url.hostname in ('youtu.be',):
        return parsed_url.path[1:] or None
    if parsed_url.hostname in ('www.youtube.com', 'youtube.com', 'm.youtube.com'):
        if parsed_url.path == '/watch':
            query = urlparse.parse_qs(parsed_url.query)
            return query.get('v', [None])[0]
        for prefix in ('/embed/', '/v/', '/shorts/'):
            if parsed_url.path.startswith(prefix):
                return parsed_url.path.split('/')[2] or None
    return None


def translate_ytdlp_error(message: str) -> str:
    """Prefix a raw yt-dlp error with a hint when the cause is recognised."""
    lowered = message.lower()
    for needles, hint in _ERROR_HINTS:
        if any(needle in lowered for needle in needles):
            return f"{hint} ({message})"
    return message


class YouTube(ABC):
    """
    Interface for YouTube operations.
    """

    @abstractmethod
    def get_video_info(self, url: str) -> VideoInfo:
        """
        Fetches title, author, duration and id of a video without downloading it.

        Args:
            url: YouTube URL string
        """

    @abstractmethod
    def download_audio(self, url: str, output_path: Path, toolkit: MediaToolkit) -> Path:
        """
        Downloads the audio track of a YouTube URL as normalized MP3.

        Args:
            url: YouTube URL string
            output_path: Path object representing the destination MP3 file
            toolkit: Media toolkit used to normalize the downloaded audio
        """

    @abstractmethod
    def download_video(self, url: str, output_path: Path) -> Path | None:
        """
        Downloads the full video as MP4. Returns None when the download fails.

        Args:
            url: YouTube URL string
            output_path: Path object representing the destination MP4 file
        """


class YtdlpYouTube(YouTube):
    """
    Implementation of YouTube operations using yt-dlp.
    """

    def __init__(self, timeout_s: float | None = None) -> None:
        self._timeout_s = timeout_s

    def get_video_info(self, url: str) -> VideoInfo:
        cmd = [
            'yt-dlp',
            '--dump-single-json',
            '--no-warnings',
            '--no-check-certificates',
            '--geo-bypass',
            '-f', 'bestaudio/best',
            url,
        ]
        stdout = self._run(cmd)
        try:
            info = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise MediaFetchError(f"Unexpected yt-dlp output: {e}") from e
        return parse_video_info(info)

    def download_audio(self, url: str, output_path: Path, toolkit: MediaToolkit) -> Path:
        output_path = Path(output_path)
        raw_stem = f"{output_path.stem}.raw"
        cmd = [
            'yt-dlp',
            '-f', 'bestaudio/best',  # Get best audio quality
            '--no-warnings',
            '--no-check-certificates',
            '-o', str(output_path.parent / f"{raw_stem}.%(ext)s"),
            url,
        ]
        log_info(f"Downloading audio with {log_bold(log_cyan('yt-dlp'))}...")
        try:
            self._run(cmd)
            downloaded = [
                path for path in sorted(output_path.parent.glob(f"{raw_stem}.*"))
                if path.suffix not in _PARTIAL_SUFFIXES
            ]
            if not downloaded:
                raise MediaFetchError("Audio file not found after download")

            log_info("Optimizing audio for transcription...")
            toolkit.convert_to_mp3(downloaded[0], output_path)
        finally:
            # yt-dlp leaves .part/.ytdl files behind when it fails or times out
            for path in output_path.parent.glob(f"{raw_stem}.*"):
                remove_quietly(path)

        log_success(f"Audio ready: {output_path}")
        return output_path

    def download_video(self, url: str, output_path: Path) -> Path | None:
        cmd = [
            'yt-dlp',
            '-f', 'bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best',
            '--merge-output-format', 'mp4',
            '--no-warnings',
            '--no-check-certificates',
            '-o', str(output_path),
            url,
        ]
        log_info("Downloading video with yt-dlp...")
        try:
            self._run(cmd)
        except MediaFetchError as e:
            log_warning(f"Video download failed, continuing with audio only: {e}")
            return None
        log_success(f"Video saved: {output_path}")
        return Path(output_path)

    def _run(self, cmd: list[str]) -> str:
        log_debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False, timeout=self._timeout_s)
        except FileNotFoundError as e:
            raise MediaFetchError(
                f"{log_bold(log_cyan('yt-dlp'))} not found. Please install it with: {log_cyan('pip install yt-dlp')}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise MediaFetchError(f"yt-dlp timed out after {self._timeout_s}s") from e

        if result.returncode != 0:
            message = result.stderr.strip() or result.stdout.strip() or f"yt-dlp exited with code {result.returncode}"
            raise MediaFetchError(translate_ytdlp_error(message))
        return result.stdout


def parse_video_info(info: dict) -> VideoInfo:
    """Build a `VideoInfo` from the JSON document printed by `yt-dlp --dump-single-json`."""
    try:
        seconds = int(float(info.get("duration") or 0))
    except (TypeError, ValueError):
        seconds = 0
    video_id = info.get("id")
    if not video_id:
        raise MediaFetchError("yt-dlp did not report a video id")
    return VideoInfo(
        title=info.get("title") or video_id,
        author=info.get("uploader") or info.get("channel") or "Unknown",
        duration=format_duration(seconds),
        duration_seconds=seconds,
        video_id=video_id,
    )
