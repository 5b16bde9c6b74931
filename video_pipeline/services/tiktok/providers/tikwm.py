"""
TikWM Provider
JSON POST to www.tikwm.com/api/, free and usually the most reliable
"""

import logging
from typing import Any

import aiohttp

from video_pipeline.errors import ProviderNoData
from video_pipeline.services import ProviderResult
from video_pipeline.services.tiktok import TikTokProvider, DESKTOP_USER_AGENT

logger = logging.getLogger(__name__)


class TikWMProvider(TikTokProvider):
    """Provider using the public TikWM API."""

    PROVIDER_NAME = "TIKWM"
    DEFAULT_PRIORITY = 95

    API_URL = "https://www.tikwm.com/api/"
    BASE_URL = "https://www.tikwm.com"

    def __init__(self):
        super().__init__("TikWM")

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> ProviderResult:
        logger.info(f"[{self.name}] POST {self.API_URL} url={url}")
        async with session.post(
            self.API_URL,
            json={"url": url, "hd": 1},
            headers={"User-Agent": DESKTOP_USER_AGENT},
            timeout=self.client_timeout(),
        ) as resp:
            if resp.status != 200:
                raise ProviderNoData(f"{self.name} returned HTTP {resp.status}")
            payload = await resp.json(content_type=None)

        return self.parse_response(payload)

    def parse_response(self, payload: Any) -> ProviderResult:
        """
        Response structure:
        {"code": 0, "msg": "success", "data": {"play": "...", "hdplay": "...",
         "title": "...", "author": {"nickname": "..."}}}
        """
        if not isinstance(payload, dict) or payload.get('code') != 0:
            msg = payload.get('msg') if isinstance(payload, dict) else None
            raise ProviderNoData(f"{self.name} API error: {msg or 'unexpected payload'}")

        data = payload.get('data') or {}
        media_url = data.get('play') or data.get('hdplay')
        if not media_url:
            logger.error(f"[{self.name}] ✗ No 'play' URL in data, keys: {list(data.keys())}")
            raise ProviderNoData(f"{self.name} response has no play URL")

        # TikWM sometimes hands back host-relative paths
        if media_url.startswith('/'):
            media_url = f"{self.BASE_URL}{media_url}"

        author = data.get('author') or {}
        logger.info(f"[{self.name}] ✓ Extracted video URL: {media_url[:100]}")
        return ProviderResult(
            media_url=media_url,
            title=data.get('title'),
            author=author.get('nickname') if isinstance(author, dict) else None,
        )
