"""
In-memory moderation and usage statistics.

Holds the ban list, per-user usage counters and aggregate counters for the
lifetime of the process. Nothing is persisted; a restart resets everything.
All callers run on the bot's event loop, so no locking is needed.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


@dataclass
class UserStatsEntry:
    display_name: str
    download_count: int = 0
    last_used: float = 0.0


@dataclass(frozen=True)
class AggregateStats:
    total_requests: int
    successful_downloads: int
    failed_downloads: int


class ModerationStore:
    """
    Ban list plus usage counters.

    Args:
        admin_id: Identity that can never be banned (None if no admin configured)
        clock: Wall-clock source, injectable for tests
    """

    def __init__(self, admin_id: Optional[int] = None, clock: Callable[[], float] = time.time):
        self.admin_id = admin_id
        self.clock = clock
        self.banned: Set[int] = set()
        self.users: Dict[int, UserStatsEntry] = {}
        self.total_requests = 0
        self.successful_downloads = 0
        self.failed_downloads = 0
        self.started_at = clock()

    def ban(self, user_id: int) -> bool:
        """
        Ban a user.

        Returns:
            False if user_id is the admin (ban refused), True otherwise
        """
        if self.admin_id is not None and user_id == self.admin_id:
            logger.warning(f"[ADMIN] Refusing to ban admin {user_id}")
            return False
        self.banned.add(user_id)
        logger.info(f"[ADMIN] Banned user {user_id}")
        return True

    def unban(self, user_id: int) -> bool:
        """Returns True if the user was banned before."""
        if user_id not in self.banned:
            return False
        self.banned.discard(user_id)
        logger.info(f"[ADMIN] Unbanned user {user_id}")
        return True

    def is_banned(self, user_id: int) -> bool:
        return user_id in self.banned

    def record_attempt(self, user_id: int, username: str) -> None:
        """Count an admitted request and refresh the user's entry."""
        self.total_requests += 1
        entry = self.users.get(user_id)
        if entry is None:
            entry = UserStatsEntry(display_name=username)
            self.users[user_id] = entry
        entry.display_name = username or entry.display_name
        entry.download_count += 1
        entry.last_used = self.clock()

    def record_outcome(self, success: bool) -> None:
        if success:
            self.successful_downloads += 1
        else:
            self.failed_downloads += 1

    def snapshot(self) -> AggregateStats:
        return AggregateStats(
            total_requests=self.total_requests,
            successful_downloads=self.successful_downloads,
            failed_downloads=self.failed_downloads,
        )

    def known_user_ids(self) -> List[int]:
        return list(self.users.keys())

    def top_users(self, limit: int = 50) -> List[tuple]:
        """(user_id, entry) pairs ordered by download count, most active first."""
        ranked = sorted(
            self.users.items(),
            key=lambda item: (item[1].download_count, item[1].last_used),
            reverse=True,
        )
        return ranked[:limit]

    def uptime(self) -> float:
        return self.clock() - self.started_at
