import asyncio
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import aiohttp

from tests.fakes import FakeResponse, FakeSession
from video_pipeline.normalizer import UrlNormalizer, ensure_scheme
from video_pipeline.services.tiktok import TikTokService


class NormalizerTests(unittest.IsolatedAsyncioTestCase):
    async def test_short_link_follows_redirects(self) -> None:
        session = FakeSession(lambda method, url, kwargs: FakeResponse(
            url="https://www.tiktok.com/@user/video/123?_r=1"
        ))
        normalizer = UrlNormalizer(session, TikTokService.SHORT_LINK_PATTERN)

        result = await normalizer.normalize("https://vt.tiktok.com/ABC123/")

        self.assertEqual(result, "https://www.tiktok.com/@user/video/123?_r=1")
        method, url, kwargs = session.calls[0]
        self.assertEqual(method, "GET")
        self.assertTrue(kwargs["allow_redirects"])
        self.assertEqual(kwargs["max_redirects"], 5)
        self.assertEqual(kwargs["timeout"].total, 10)

    async def test_failure_returns_original(self) -> None:
        for error in (aiohttp.ClientConnectionError("down"), asyncio.TimeoutError(), RuntimeError("boom")):
            session = FakeSession(lambda method, url, kwargs, error=error: error)
            normalizer = UrlNormalizer(session, TikTokService.SHORT_LINK_PATTERN)
            self.assertEqual(
                await normalizer.normalize("https://vm.tiktok.com/XYZ/"),
                "https://vm.tiktok.com/XYZ/",
            )

    async def test_long_links_pass_through_without_requests(self) -> None:
        session = FakeSession()
        normalizer = UrlNormalizer(session, TikTokService.SHORT_LINK_PATTERN)

        url = "https://www.tiktok.com/@user/video/123"
        self.assertEqual(await normalizer.normalize(url), url)
        self.assertEqual(session.calls, [])

    async def test_scheme_is_added(self) -> None:
        session = FakeSession(lambda method, url, kwargs: FakeResponse(url="https://www.tiktok.com/@u/video/9"))
        normalizer = UrlNormalizer(session, TikTokService.SHORT_LINK_PATTERN)

        self.assertEqual(await normalizer.normalize("vt.tiktok.com/ABC"), "https://www.tiktok.com/@u/video/9")
        self.assertEqual(session.calls[0][1], "https://vt.tiktok.com/ABC")

    def test_ensure_scheme(self) -> None:
        self.assertEqual(ensure_scheme("http://x.y"), "http://x.y")
        self.assertEqual(ensure_scheme("x.y/z"), "https://x.y/z")


if __name__ == "__main__":
    unittest.main()
