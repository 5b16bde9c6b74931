"""
Media size verification.

A HEAD probe reads the declared Content-Length before anything is
downloaded. The probe is advisory: when it fails the media is accepted
unverified and the chat platform enforces the real limit on upload.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

logger = logging.getLogger(__name__)

# Telegram Bot API upload ceiling
MAX_UPLOAD_SIZE = 50 * 1024 * 1024  # 50MB in bytes
VERIFY_TIMEOUT = 10  # seconds
MAX_REDIRECTS = 5


@dataclass(frozen=True)
class Verdict:
    accepted: bool
    size_mb: Optional[float] = None
    verified: bool = True


class MediaVerifier:
    """HEAD-checks media URLs against the upload ceiling."""

    def __init__(self, session: aiohttp.ClientSession, max_size: int = MAX_UPLOAD_SIZE):
        self.session = session
        self.max_size = max_size

    async def verify(self, media_url: str) -> Verdict:
        try:
            async with self.session.head(
                media_url,
                allow_redirects=True,
                max_redirects=MAX_REDIRECTS,
                timeout=aiohttp.ClientTimeout(total=VERIFY_TIMEOUT),
            ) as resp:
                content_length = resp.headers.get('Content-Length')
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"[VERIFY] HEAD probe failed, accepting unverified: {type(e).__name__}: {e}")
            return Verdict(accepted=True, verified=False)

        if not content_length:
            logger.warning("[VERIFY] No Content-Length header, accepting unverified")
            return Verdict(accepted=True, verified=False)

        try:
            size = int(content_length)
        except ValueError:
            logger.warning(f"[VERIFY] Bad Content-Length {content_length!r}, accepting unverified")
            return Verdict(accepted=True, verified=False)

        size_mb = size / (1024 * 1024)
        if size > self.max_size:
            logger.info(f"[VERIFY] ✗ Media too large: {size_mb:.2f}MB (max {self.max_size / (1024 * 1024):.0f}MB)")
            return Verdict(accepted=False, size_mb=size_mb)

        logger.info(f"[VERIFY] ✓ Media size {size_mb:.2f}MB accepted")
        return Verdict(accepted=True, size_mb=size_mb)
