"""
SSSTik Provider
Form-encoded POST to ssstik.io and HTML scraping of the "without watermark" link
"""

import logging
import re
from typing import Optional

import aiohttp
from bs4 import BeautifulSoup

from video_pipeline.errors import ProviderNoData
from video_pipeline.services import ProviderResult
from video_pipeline.services.tiktok import TikTokProvider, DESKTOP_USER_AGENT

logger = logging.getLogger(__name__)

TT_TOKEN_PATTERN = re.compile(r"""s_tt\s*=\s*['"]([^'"]+)['"]""")


class SSSTikProvider(TikTokProvider):
    """Provider scraping ssstik.io."""

    PROVIDER_NAME = "SSSTIK"
    DEFAULT_PRIORITY = 85

    HOME_URL = "https://ssstik.io/en"
    API_URL = "https://ssstik.io/abc"

    def __init__(self):
        super().__init__("SSSTik")

    async def _fetch_token(self, session: aiohttp.ClientSession) -> str:
        """The form needs a short-lived `tt` token embedded in the home page."""
        async with session.get(
            self.HOME_URL,
            headers={"User-Agent": DESKTOP_USER_AGENT},
            timeout=self.client_timeout(),
        ) as resp:
            if resp.status != 200:
                raise ProviderNoData(f"{self.name} home page returned HTTP {resp.status}")
            html = await resp.text()

        match = TT_TOKEN_PATTERN.search(html)
        if not match:
            raise ProviderNoData(f"{self.name} token not found on home page")
        return match.group(1)

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> ProviderResult:
        token = await self._fetch_token(session)
        logger.info(f"[{self.name}] POST {self.API_URL} url={url}")

        async with session.post(
            self.API_URL,
            params={"url": "dl"},
            data={"id": url, "locale": "en", "tt": token},
            headers={
                "User-Agent": DESKTOP_USER_AGENT,
                "Origin": "https://ssstik.io",
                "Referer": self.HOME_URL,
                "HX-Request": "true",
            },
            timeout=self.client_timeout(),
        ) as resp:
            if resp.status != 200:
                raise ProviderNoData(f"{self.name} returned HTTP {resp.status}")
            html = await resp.text()

        return self.parse_html(html)

    def parse_html(self, html: str) -> ProviderResult:
        soup = BeautifulSoup(html, "html.parser")

        media_url: Optional[str] = None
        for anchor in soup.find_all("a", href=True):
            label = anchor.get_text(" ", strip=True).lower()
            if "without watermark" in label or "no watermark" in label:
                media_url = anchor["href"]
                break

        if not media_url:
            raise ProviderNoData(f"{self.name} page has no watermark-free link")

        title_tag = soup.find("p", class_="maintext")
        author_tag = soup.find("h2")
        logger.info(f"[{self.name}] ✓ Extracted video URL: {media_url[:100]}")
        return ProviderResult(
            media_url=media_url,
            title=title_tag.get_text(strip=True) if title_tag else None,
            author=author_tag.get_text(strip=True) if author_tag else None,
        )
