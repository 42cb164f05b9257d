#!/usr/bin/env python3

"""
Transcribes audio from a YouTube video, a direct media link or a local file.

This script performs the following steps:
1.  Parses command-line arguments and loads the configuration (environment
    variables, optionally from a .env file).
2.  Checks that a GROQ_API_KEY or OPENAI_API_KEY is configured and that the
    video, audio and transcription directories are usable.
3.  Classifies the input:
    - YouTube URL (watch, youtu.be, embed, shorts): fetches the video info and
      downloads the audio with yt-dlp (and the video, when KEEP_VIDEO=true).
    - Direct link to an audio/video file: downloads it.
    - Existing local file: copies or converts it.
4.  Normalizes the audio to mono 16kHz MP3 with ffmpeg.
5.  Transcribes it with Whisper on Groq (preferred) or OpenAI. Files over
    25MB are split into 10-minute parts transcribed one after the other.
6.  Saves the transcript with a header block to the transcription directory.
7.  Removes the working audio unless KEEP_AUDIO=true.

Requires:
- Python 3.12+
- `openai`, `python-dotenv`, `colorama`, `requests`, `yt-dlp` libraries
- `ffmpeg` and `ffprobe` installed and available in the system PATH
- A GROQ_API_KEY or OPENAI_API_KEY set in a .env file or environment variables.
"""

import argparse
import dataclasses
import signal
import sys
import threading
import traceback
from pathlib import Path
from typing import Sequence

from media_to_text.config import Config, ensure_directories, load_config
from media_to_text.download import is_direct_media_url
from media_to_text.errors import MediaToTextError, TranscriptionCancelled
from media_to_text.logger import log_debug, log_error, log_info, log_link, log_success, log_warning, set_debug
from media_to_text.pipeline import Pipeline, TranscriptResult
from media_to_text.youtube import is_youtube_url

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

INPUT_FORMATS_HELP = """Accepted inputs:
  - YouTube: youtube.com/watch?v=... | youtu.be/... | youtube.com/shorts/...
  - Direct links to audio/video files (.mp3, .mp4, .wav, .ogg, .webm, .m4a, .flac, .aac, .mpeg)
  - Existing local files"""


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Transcribe audio from a YouTube video, a direct media link or a local file.",
        epilog=INPUT_FORMATS_HELP + "\n\nConfigure GROQ_API_KEY (free) or OPENAI_API_KEY in .env",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", help="YouTube URL, direct media URL or local file path.")
    parser.add_argument("-d", "--output-dir", type=Path, default=None, help="Directory to save the transcription (overrides TRANSCRIPTION_PATH).")
    parser.add_argument("--keep-audio", action="store_true", default=None, help="Keep the processed audio file (overrides KEEP_AUDIO).")
    parser.add_argument("--keep-video", action="store_true", default=None, help="Also download and keep the YouTube video (overrides KEEP_VIDEO).")
    parser.add_argument("--debug", action="store_true", default=None, help="Print debug output (overrides DEBUG).")
    return parser.parse_args(list(argv) if argv is not None else None)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Return `config` with the command-line overrides applied."""
    overrides = {}
    if args.output_dir is not None:
        overrides["transcription_dir"] = args.output_dir
    if args.keep_audio:
        overrides["keep_audio"] = True
    if args.keep_video:
        overrides["keep_video"] = True
    if args.debug:
        overrides["debug"] = True
    return dataclasses.replace(config, **overrides) if overrides else config


def classify_input(value: str) -> str | None:
    """Returns "youtube", "direct" or "local", or None if the input is not usable."""
    if is_youtube_url(value):
        return "youtube"
    if is_direct_media_url(value):
        return "direct"
    if Path(value).expanduser().exists():
        return "local"
    return None


def report(result: TranscriptResult) -> None:
    log_success("Transcription completed!")
    log_link(f"Transcription saved to: {result.output_path}")
    if result.duration:
        log_info(f"Duration: {result.duration}")
    if result.video_path:
        log_link(f"Video saved to: {result.video_path}")
    if result.audio_path:
        log_link(f"Audio saved to: {result.audio_path}")


def install_interrupt_handler(cancel_event: threading.Event):
    """
    Route Ctrl+C to `cancel_event` so a chunked transcription stops cleanly at
    the next part boundary. A second Ctrl+C aborts immediately.

    Returns:
        The previously installed SIGINT handler.
    """
    def handle_sigint(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        log_warning("Cancelling after the current step (press Ctrl+C again to abort now)...")
        cancel_event.set()

    return signal.signal(signal.SIGINT, handle_sigint)


def main(argv: Sequence[str] | None = None, *, config: Config | None = None) -> int:
    """
    Entry point. Returns the process exit status.

    Exits with a non-zero status, before any download, if no API key is
    configured, if a storage directory is unusable, or if the input is not
    recognised. Any pipeline failure is reported and also exits non-zero; no
    transcript file is written in that case.
    """
    args = parse_args(argv)
    config = apply_overrides(config if config is not None else load_config(), args)
    set_debug(config.debug)

    if not config.has_credentials:
        log_error("No API key configured")
        log_info("1. Copy .env.example to .env")
        log_info("2. Set GROQ_API_KEY (free) or OPENAI_API_KEY")
        log_link("Groq is free: sign up at https://console.groq.com")
        return EXIT_FAILURE

    kind = classify_input(args.input)
    if kind is None:
        log_error(f"Invalid input: {args.input}")
        print(INPUT_FORMATS_HELP)
        return EXIT_FAILURE

    cancel_event = threading.Event()
    pipeline = Pipeline(config, cancel_event=cancel_event)
    previous_handler = install_interrupt_handler(cancel_event)

    try:
        ensure_directories(config)
        log_info("Starting transcription...")
        if kind == "youtube":
            log_info("Detected: YouTube video")
            result = pipeline.transcribe_youtube(args.input)
        elif kind == "direct":
            log_info("Detected: direct media link")
            result = pipeline.transcribe_direct_media(args.input)
        else:
            log_info("Detected: local file")
            result = pipeline.transcribe_local_file(args.input)
    except (KeyboardInterrupt, TranscriptionCancelled):
        cancel_event.set()
        log_error("Interrupted")
        return EXIT_INTERRUPTED
    except MediaToTextError as e:
        if cancel_event.is_set():
            # Ctrl+C also reaches ffmpeg/yt-dlp, which then fail
            log_error("Interrupted")
            return EXIT_INTERRUPTED
        log_error(f"Transcription failed: {e}")
        log_debug(traceback.format_exc())
        return EXIT_FAILURE
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)

    report(result)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
