import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from video_pipeline.router import ServiceRouter
from video_pipeline.services.tiktok import TikTokService, extract_video_id


class LinkMatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = TikTokService()
        self.router = ServiceRouter([self.service])

    def test_short_link_is_matched_verbatim(self) -> None:
        url = self.service.extract_url("check this out https://vt.tiktok.com/ABC123/")
        self.assertEqual(url, "https://vt.tiktok.com/ABC123/")

    def test_vm_short_link(self) -> None:
        self.assertEqual(
            self.service.extract_url("https://vm.tiktok.com/ZMabc-12 lol"),
            "https://vm.tiktok.com/ZMabc-12",
        )

    def test_profile_video_path_with_query(self) -> None:
        text = "look https://www.tiktok.com/@some.user_1/video/7301234567890123456?is_from_webapp=1 wow"
        self.assertEqual(
            self.service.extract_url(text),
            "https://www.tiktok.com/@some.user_1/video/7301234567890123456?is_from_webapp=1",
        )

    def test_share_and_short_code_paths(self) -> None:
        self.assertEqual(
            self.service.extract_url("https://m.tiktok.com/share/video/123456"),
            "https://m.tiktok.com/share/video/123456",
        )
        self.assertEqual(
            self.service.extract_url("https://www.tiktok.com/t/ZT8abcd/"),
            "https://www.tiktok.com/t/ZT8abcd/",
        )

    def test_link_without_scheme(self) -> None:
        self.assertEqual(self.service.extract_url("vt.tiktok.com/XYZ"), "vt.tiktok.com/XYZ")

    def test_first_occurrence_wins(self) -> None:
        text = "https://vt.tiktok.com/FIRST/ and https://vt.tiktok.com/SECOND/"
        self.assertEqual(self.service.extract_url(text), "https://vt.tiktok.com/FIRST/")

    def test_no_match(self) -> None:
        self.assertIsNone(self.service.extract_url("hello there"))
        self.assertIsNone(self.service.extract_url("https://www.youtube.com/watch?v=abc"))
        self.assertIsNone(self.service.extract_url("https://www.tiktok.com/explore"))
        self.assertIsNone(self.service.extract_url(""))

    def test_router_returns_service_and_url(self) -> None:
        link = self.router.match("please https://vt.tiktok.com/ABC123/")
        self.assertIsNotNone(link)
        self.assertIs(link.service, self.service)
        self.assertEqual(link.url, "https://vt.tiktok.com/ABC123/")
        self.assertIsNone(self.router.match("no links here"))
        self.assertIs(self.router.service_for_url(link.url), self.service)

    def test_router_requires_services(self) -> None:
        with self.assertRaises(ValueError):
            ServiceRouter([])

    def test_extract_video_id(self) -> None:
        self.assertEqual(extract_video_id("https://www.tiktok.com/@u/video/123?x=1"), "123")
        self.assertIsNone(extract_video_id("https://vt.tiktok.com/ABC/"))


if __name__ == "__main__":
    unittest.main()
