"""
Tiklydown Provider
JSON GET to api.tiklydown.eu.org with the video link as a query parameter
"""

import logging
from typing import Any

import aiohttp

from video_pipeline.errors import ProviderNoData
from video_pipeline.services import ProviderResult
from video_pipeline.services.tiktok import TikTokProvider, DESKTOP_USER_AGENT

logger = logging.getLogger(__name__)


class TiklydownProvider(TikTokProvider):
    """Provider using the Tiklydown download API."""

    PROVIDER_NAME = "TIKLYDOWN"
    DEFAULT_PRIORITY = 75

    API_URL = "https://api.tiklydown.eu.org/api/download"

    def __init__(self):
        super().__init__("Tiklydown")

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> ProviderResult:
        logger.info(f"[{self.name}] GET {self.API_URL} url={url}")
        async with session.get(
            self.API_URL,
            params={"url": url},
            headers={"User-Agent": DESKTOP_USER_AGENT, "Accept": "application/json"},
            timeout=self.client_timeout(),
        ) as resp:
            if resp.status != 200:
                raise ProviderNoData(f"{self.name} returned HTTP {resp.status}")
            payload = await resp.json(content_type=None)

        return self.parse_response(payload)

    def parse_response(self, payload: Any) -> ProviderResult:
        # {"title": "...", "author": {"name": "..."}, "video": {"noWatermark": "..."}}
        if not isinstance(payload, dict):
            raise ProviderNoData(f"{self.name} returned unexpected payload")

        video = payload.get('video') or {}
        media_url = video.get('noWatermark')
        if not media_url:
            raise ProviderNoData(f"{self.name} response has no noWatermark URL")

        author = payload.get('author') or {}
        logger.info(f"[{self.name}] ✓ Extracted video URL: {media_url[:100]}")
        return ProviderResult(
            media_url=media_url,
            title=payload.get('title'),
            author=author.get('name') if isinstance(author, dict) else None,
        )
