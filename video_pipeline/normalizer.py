"""
Short-link normalization.

vm./vt. style links are resolved to their long canonical form with one
redirect-following GET. Failures never propagate: the input is returned.
"""

import logging
import re
from typing import Optional

import aiohttp

from video_pipeline.constants import DESKTOP_USER_AGENT

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5
NORMALIZE_TIMEOUT = 10  # seconds

SCHEME_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')


def ensure_scheme(url: str) -> str:
    """Links pasted without a scheme are treated as https."""
    if SCHEME_PATTERN.match(url):
        return url
    return f"https://{url}"


class UrlNormalizer:
    """Resolves redirect-style short links through the shared HTTP session."""

    def __init__(self, session: aiohttp.ClientSession, short_link_pattern: Optional[str] = None):
        self.session = session
        self.short_link_pattern = re.compile(short_link_pattern) if short_link_pattern else None

    async def normalize(self, url: str) -> str:
        """
        Return the canonical long-form URL for url.

        Args:
            url: Link as matched in the message

        Returns:
            Final redirect location for short links, url itself otherwise
            or when resolution fails
        """
        url = ensure_scheme(url)
        if self.short_link_pattern is None or not self.short_link_pattern.search(url):
            return url

        try:
            async with self.session.get(
                url,
                allow_redirects=True,
                max_redirects=MAX_REDIRECTS,
                headers={"User-Agent": DESKTOP_USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=NORMALIZE_TIMEOUT),
            ) as resp:
                final_url = str(resp.url)
        except Exception as e:
            logger.warning(f"[NORMALIZE] Could not resolve {url}: {type(e).__name__}: {e}")
            return url

        logger.info(f"[NORMALIZE] {url} -> {final_url}")
        return final_url or url
