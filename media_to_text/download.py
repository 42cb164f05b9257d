import re
from pathlib import Path

import requests

from media_to_text.errors import FilesystemError, MediaFetchError
from media_to_text.logger import log_debug, log_info, log_success

DIRECT_MEDIA_URL_RE = re.compile(
    r"^https?://.+\.(mp3|mp4|wav|ogg|webm|m4a|flac|aac|mpeg)(\?.*)?$",
    re.IGNORECASE,
)
DOWNLOAD_CHUNK_SIZE = 1024 * 1024


def is_direct_media_url(url: str) -> bool:
    return DIRECT_MEDIA_URL_RE.match(url) is not None


def download_media(url: str, dest: Path, *, timeout_s: float | None = None) -> Path:
    """
    Stream a direct media URL to disk.

    Args:
        url: HTTP(S) URL of an audio/video file.
        dest: Destination file path.
        timeout_s: Connect/read deadline for the request.

    Returns:
        The destination path.

    Raises:
        MediaFetchError: On transport failures or a non-success status.
        FilesystemError: If the destination cannot be written.
    """
    dest = Path(dest)
    log_info(f"Downloading {url}...")
    try:
        with requests.get(url, stream=True, timeout=timeout_s) as response:
            if not response.ok:
                raise MediaFetchError(f"HTTP {response.status_code}: {response.reason}")
            try:
                with dest.open("wb") as fh:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
            except OSError as e:
                raise FilesystemError(f"Cannot write {dest}: {e}") from e
    except requests.RequestException as e:
        raise MediaFetchError(f"Could not download {url}: {e}") from e

    size_mb = dest.stat().st_size / 1024 / 1024
    log_debug(f"Downloaded {size_mb:.2f} MB to {dest}")
    log_success(f"Download complete ({size_mb:.2f} MB)")
    return dest
