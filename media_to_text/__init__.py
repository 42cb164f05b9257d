"""Transcribe YouTube videos, direct media links and local files to text."""

__version__ = "1.0.0"
