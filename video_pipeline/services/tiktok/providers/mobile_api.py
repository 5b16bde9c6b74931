"""
TikTok Mobile API Provider
Emulates the TikTok Android app's feed endpoint to read the raw play address
"""

import logging
import time
import uuid
from typing import Any

import aiohttp

from video_pipeline.errors import ProviderNoData
from video_pipeline.services import ProviderResult
from video_pipeline.services.tiktok import TikTokProvider, extract_video_id

logger = logging.getLogger(__name__)

MOBILE_USER_AGENT = (
    "com.zhiliaoapp.musically/2023501030 (Linux; U; Android 13; en_US; Pixel 7; "
    "Build/TQ3A.230805.001; Cronet/58.0.2991.0)"
)


class TikTokMobileAPIProvider(TikTokProvider):
    """Last-resort provider talking to the app API directly."""

    PROVIDER_NAME = "TIKTOK_MOBILE"
    DEFAULT_PRIORITY = 65

    API_URL = "https://api22-normal-c-alisg.tiktokv.com/aweme/v1/feed/"

    def __init__(self):
        super().__init__("TikTok-Mobile")

    def build_params(self, aweme_id: str) -> dict:
        """Query string the app sends; device ids are random per call."""
        return {
            "aweme_id": aweme_id,
            "iid": str(7_000_000_000_000_000_000 + uuid.uuid4().int % 10**18),
            "device_id": str(7_000_000_000_000_000_000 + uuid.uuid4().int % 10**18),
            "version_code": "350103",
            "app_name": "musical_ly",
            "app_version": "35.1.3",
            "channel": "googleplay",
            "device_platform": "android",
            "device_type": "Pixel 7",
            "os_version": "13",
            "aid": "1233",
            "ts": str(int(time.time())),
        }

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> ProviderResult:
        aweme_id = extract_video_id(url)
        if not aweme_id:
            raise ProviderNoData(f"{self.name} could not find a video id in {url}")

        logger.info(f"[{self.name}] GET feed for aweme_id={aweme_id}")
        async with session.get(
            self.API_URL,
            params=self.build_params(aweme_id),
            headers={"User-Agent": MOBILE_USER_AGENT, "Accept": "application/json"},
            timeout=self.client_timeout(),
        ) as resp:
            if resp.status != 200:
                raise ProviderNoData(f"{self.name} returned HTTP {resp.status}")
            payload = await resp.json(content_type=None)

        return self.parse_response(payload, aweme_id)

    def parse_response(self, payload: Any, aweme_id: str) -> ProviderResult:
        # The feed endpoint returns neighbouring videos too; pick the requested one
        awemes = payload.get('aweme_list') if isinstance(payload, dict) else None
        for aweme in awemes or []:
            if str(aweme.get('aweme_id')) != aweme_id:
                continue

            url_list = ((aweme.get('video') or {}).get('play_addr') or {}).get('url_list') or []
            if not url_list:
                break

            author = aweme.get('author') or {}
            logger.info(f"[{self.name}] ✓ Extracted video URL: {url_list[0][:100]}")
            return ProviderResult(
                media_url=url_list[0],
                title=aweme.get('desc'),
                author=author.get('nickname'),
            )

        raise ProviderNoData(f"{self.name} feed did not contain video {aweme_id}")
