import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from video_pipeline.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class RateLimiterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = RateLimiter(window_seconds=10, max_requests=3, clock=self.clock)

    def test_three_per_window_then_reject_then_fresh_window(self) -> None:
        start = self.clock.now
        results = []
        for offset in (0, 1, 2, 3):
            self.clock.now = start + offset
            results.append(self.limiter.admit(42))
        self.assertEqual(results, [True, True, True, False])

        self.clock.now = start + 11
        self.assertTrue(self.limiter.admit(42))
        self.assertEqual(self.limiter.windows[42].request_count, 1)

    def test_users_are_independent(self) -> None:
        for _ in range(3):
            self.assertTrue(self.limiter.admit(1))
        self.assertFalse(self.limiter.admit(1))
        self.assertTrue(self.limiter.admit(2))

    def test_boundary_is_inclusive_of_reset_time(self) -> None:
        start = self.clock.now
        for _ in range(3):
            self.limiter.admit(5)
        self.clock.now = start + 10
        self.assertFalse(self.limiter.admit(5))
        self.clock.now = start + 10.001
        self.assertTrue(self.limiter.admit(5))

    def test_retry_after(self) -> None:
        self.assertEqual(self.limiter.retry_after(9), 0.0)
        self.limiter.admit(9)
        self.clock.now += 4
        self.assertAlmostEqual(self.limiter.retry_after(9), 6.0)

    def test_windows_are_kept_for_every_user(self) -> None:
        for user_id in range(100):
            self.limiter.admit(user_id)
        self.assertEqual(len(self.limiter.windows), 100)


if __name__ == "__main__":
    unittest.main()
