"""
TikTok Service
Handles TikTok video links (full video URLs, short links and share links)
"""

import re
from typing import Optional

import aiohttp

from video_pipeline.constants import DESKTOP_USER_AGENT
from video_pipeline.services import BaseService, BaseProvider

VIDEO_ID_PATTERN = re.compile(r'/(?:video|v)/(\d+)')


def extract_video_id(url: str) -> Optional[str]:
    """Return the numeric video id from a canonical TikTok URL, if present."""
    match = VIDEO_ID_PATTERN.search(url or "")
    return match.group(1) if match else None


class TikTokProvider(BaseProvider):
    """Base class for TikTok video providers."""

    def client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.TIMEOUT)


class TikTokService(BaseService):
    """Service for relaying TikTok videos without watermark."""

    SERVICE_NAME = "TIKTOK"
    URL_PATTERN = (
        r'(?:https?://)?(?:(?:www|m)\.)?tiktok\.com/'
        r'(?:@[\w.-]+/video/\d+|t/[\w-]+|share/video/\d+|v/\d+)[^\s]*'
        r'|(?:https?://)?(?:vm|vt)\.tiktok\.com/[\w-]+/?'
    )
    SHORT_LINK_PATTERN = r'(?:vm|vt)\.tiktok\.com/|tiktok\.com/t/'
    DEFAULT_PRIORITY = 70
    PROVIDER_BASE_CLASS = TikTokProvider


__all__ = ['TikTokProvider', 'TikTokService', 'extract_video_id', 'DESKTOP_USER_AGENT']
