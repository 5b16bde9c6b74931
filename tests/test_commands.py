import asyncio
import sys
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from telegram.error import RetryAfter

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from admin_pipeline.commands import load_commands_from_env, parse_command, parse_user_id
from admin_pipeline.commands.stats import format_uptime
from admin_pipeline.handler import PERMISSION_DENIED_TEXT, CommandRouterHandler
from admin_pipeline.moderation_store import ModerationStore
from tests.fakes import make_chat, make_context, make_message
from video_pipeline.request import Request
from video_pipeline.scheduler import QueueSnapshot

ADMIN_ID = 1


def make_queue(waiting=(), running=()):
    queue = MagicMock()
    queue.snapshot.return_value = QueueSnapshot(
        waiting=list(waiting), running=list(running), max_concurrent=3
    )
    return queue


def replies(message):
    return [call.args[0] for call in message.reply_text.await_args_list]


class ParseCommandTests(unittest.TestCase):
    def test_parse(self) -> None:
        self.assertEqual(parse_command("/stats"), ("stats", ""))
        self.assertEqual(parse_command("/Ban@tiktok_relay_bot 123 "), ("ban", "123"))
        self.assertEqual(parse_command("/broadcast hello  world"), ("broadcast", "hello  world"))
        self.assertIsNone(parse_command("hello"))
        self.assertIsNone(parse_command("/"))
        self.assertIsNone(parse_command(None))

    def test_parse_user_id(self) -> None:
        self.assertEqual(parse_user_id("123 extra"), 123)
        self.assertIsNone(parse_user_id("abc"))
        self.assertIsNone(parse_user_id(""))

    def test_format_uptime(self) -> None:
        self.assertEqual(format_uptime(65), "1m 5s")
        self.assertEqual(format_uptime(3 * 3600 + 120), "3h 2m")
        self.assertEqual(format_uptime(2 * 86400 + 3600), "2d 1h 0m")

    def test_all_commands_discovered(self) -> None:
        names = [c.COMMAND for c in load_commands_from_env()]
        self.assertEqual(names, ["ban", "broadcast", "queue", "start", "stats", "unban", "users"])


class CommandRouterTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.store = ModerationStore(admin_id=ADMIN_ID)
        self.chat = make_chat()
        self.queue = make_queue()
        self.handler = CommandRouterHandler(
            store=self.store,
            queue=self.queue,
            chat=self.chat,
            admin_id=ADMIN_ID,
            bot_username="@tiktok_relay_bot",
        )

    async def send(self, text: str, user_id: int = ADMIN_ID):
        message = make_message(text, user_id=user_id)
        ctx = make_context(message)
        if await self.handler.should_process(ctx):
            await self.handler.process(ctx)
        return message, ctx

    async def test_non_admin_is_denied(self) -> None:
        message, ctx = await self.send("/stats", user_id=42)
        self.assertEqual(replies(message), [PERMISSION_DENIED_TEXT])
        self.assertFalse(ctx.should_continue)

    async def test_start_is_open_to_everyone(self) -> None:
        message, _ = await self.send("/start", user_id=42)
        text = replies(message)[0]
        self.assertIn("TikTok", text)
        self.assertIn("/start", text)
        self.assertNotIn("/ban", text)

    async def test_unknown_command_falls_through(self) -> None:
        message, ctx = await self.send("/dance")
        self.assertTrue(ctx.should_continue)
        message.reply_text.assert_not_awaited()

    async def test_ban_and_unban(self) -> None:
        message, _ = await self.send("/ban 42")
        self.assertTrue(self.store.is_banned(42))
        self.assertIn("42", replies(message)[0])

        await self.send("/unban 42")
        self.assertFalse(self.store.is_banned(42))

    async def test_ban_admin_is_refused(self) -> None:
        message, _ = await self.send(f"/ban {ADMIN_ID}")
        self.assertFalse(self.store.is_banned(ADMIN_ID))
        self.assertIn("cannot be banned", replies(message)[0])

    async def test_ban_without_id_shows_usage(self) -> None:
        message, _ = await self.send("/ban nobody")
        self.assertEqual(replies(message), ["Usage: /ban <user_id>"])

    def broadcast_command(self):
        return next(c for c in self.handler.commands if c.COMMAND == "broadcast")

    async def finish_broadcasts(self) -> None:
        await asyncio.wait_for(asyncio.gather(*self.broadcast_command().pending), timeout=1)

    async def test_broadcast_counts_deliveries(self) -> None:
        for user_id in (10, 20, 30):
            self.store.record_attempt(user_id, f"user{user_id}")

        async def send_message(chat_id, text, **kwargs):
            if chat_id == 20:
                raise RuntimeError("Forbidden: bot was blocked by the user")
            return 1

        self.chat.send_message = AsyncMock(side_effect=send_message)
        message, _ = await self.send("/broadcast Maintenance tonight")
        await self.finish_broadcasts()

        self.assertEqual(self.chat.send_message.await_count, 3)
        self.assertIn("3 users", replies(message)[0])
        self.assertIn("2/3", replies(message)[-1])

    async def test_broadcast_does_not_block_the_handler(self) -> None:
        self.store.record_attempt(10, "user10")
        release = asyncio.Event()

        async def send_message(chat_id, text, **kwargs):
            await release.wait()
            return 1

        self.chat.send_message = AsyncMock(side_effect=send_message)
        message, _ = await self.send("/broadcast hi")

        self.assertEqual(len(self.broadcast_command().pending), 1)
        self.assertEqual(len(replies(message)), 1)

        release.set()
        await self.finish_broadcasts()
        self.assertIn("1/1", replies(message)[-1])

    async def test_broadcast_waits_out_flood_limit(self) -> None:
        for user_id in (10, 20):
            self.store.record_attempt(user_id, f"user{user_id}")
        flooded = []

        async def send_message(chat_id, text, **kwargs):
            if chat_id == 10 and not flooded:
                flooded.append(chat_id)
                raise RetryAfter(0)
            return 1

        self.chat.send_message = AsyncMock(side_effect=send_message)
        message, _ = await self.send("/broadcast hi")
        await self.finish_broadcasts()

        self.assertEqual(self.chat.send_message.await_count, 3)
        self.assertIn("2/2", replies(message)[-1])

    async def test_broadcast_without_text_shows_usage(self) -> None:
        message, _ = await self.send("/broadcast")
        self.assertEqual(replies(message), ["Usage: /broadcast <text>"])
        self.assertEqual(self.broadcast_command().pending, set())

    async def test_stats(self) -> None:
        self.store.record_attempt(10, "user10")
        self.store.record_outcome(True)
        message, _ = await self.send("/stats")

        text = replies(message)[0]
        self.assertIn("Total requests: 1", text)
        self.assertIn("Successful: 1", text)
        self.assertIn("Failed: 0", text)

    async def test_users_lists_by_activity(self) -> None:
        self.store.record_attempt(10, "@quiet")
        self.store.record_attempt(20, "@busy")
        self.store.record_attempt(20, "@busy")
        message, _ = await self.send("/users")

        text = replies(message)[0]
        self.assertLess(text.index("@busy"), text.index("@quiet"))

    async def test_users_reply_fits_one_message(self) -> None:
        for user_id in range(1000, 1050):
            self.store.record_attempt(user_id, f"Some Very Long Display Name Of User {user_id} Example")
        self.store.record_attempt(1000, "Some Very Long Display Name Of User 1000 Example")
        message, _ = await self.send("/users")

        text = replies(message)[0]
        self.assertLessEqual(len(text), 4096)
        self.assertIn("1000", text)
        self.assertRegex(text.splitlines()[-1], r"^\.\.\. and \d+ more$")

    async def test_queue_lists_requests(self) -> None:
        request = Request(chat_id=1, user_id=77, username="@waiter", source_url="u", message_id=3)
        self.handler.queue = make_queue(waiting=[request])
        message, _ = await self.send("/queue")

        text = replies(message)[0]
        self.assertIn("1 waiting", text)
        self.assertIn("@waiter", text)

    async def test_command_error_is_reported(self) -> None:
        self.handler.queue = MagicMock()
        self.handler.queue.snapshot.side_effect = RuntimeError("queue gone")
        message, _ = await self.send("/queue")
        self.assertIn("failed", replies(message)[0])


if __name__ == "__main__":
    unittest.main()
