"""
Video downloader module for the relay bot.

Streams media to a uniquely named file in transient storage. The file
belongs to one pipeline execution, which deletes it when done.
"""

import asyncio
import logging
import os
import secrets
import tempfile
import time
from pathlib import Path
from typing import Optional

import aiohttp

from video_pipeline.errors import DownloadFailed
from video_pipeline.constants import DESKTOP_USER_AGENT

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 60  # seconds
CHUNK_SIZE = 16384
DEFAULT_DOWNLOAD_DIR = Path(tempfile.gettempdir()) / "tiktok_relay"


def transient_filename() -> str:
    """Timestamp plus random suffix, unique across concurrent executions."""
    return f"tiktok_{int(time.time() * 1000)}_{secrets.token_hex(4)}.mp4"


def remove_file(path: Optional[Path]) -> None:
    """Best-effort delete; failures are logged, never raised."""
    if path is None:
        return
    try:
        os.remove(path)
        logger.info(f"[DOWNLOAD] Removed transient file {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[DOWNLOAD] Could not remove transient file {path}: {e}")


class Downloader:
    """Streams media URLs to local files."""

    def __init__(self, session: aiohttp.ClientSession, download_dir: Path = DEFAULT_DOWNLOAD_DIR):
        self.session = session
        self.download_dir = Path(download_dir)

    async def download(self, media_url: str) -> Path:
        """
        Download media_url into transient storage.

        Returns:
            Path of the written file

        Raises:
            DownloadFailed: network, HTTP, timeout or storage error; the partial file is removed
        """
        path = self.download_dir / transient_filename()
        logger.info(f"[DOWNLOAD] Starting download from {media_url[:100]} -> {path.name}")

        downloaded = 0
        try:
            self.download_dir.mkdir(parents=True, exist_ok=True)
            async with self.session.get(
                media_url,
                headers={"User-Agent": DESKTOP_USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=DOWNLOAD_TIMEOUT),
            ) as resp:
                resp.raise_for_status()
                with open(path, 'wb') as f:
                    async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                        f.write(chunk)
                        downloaded += len(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"[DOWNLOAD] ✗ Error downloading video: {type(e).__name__}: {e}")
            remove_file(path)
            raise DownloadFailed(f"{type(e).__name__}: {e}") from e
        except BaseException:
            # Cancelled mid-stream: the caller never receives the path
            remove_file(path)
            raise

        if downloaded == 0:
            remove_file(path)
            raise DownloadFailed("Empty response body")

        logger.info(f"[DOWNLOAD] ✓ Downloaded {downloaded} bytes ({downloaded / (1024 * 1024):.2f}MB)")
        return path
