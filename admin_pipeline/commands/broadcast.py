"""/broadcast - message every known user."""

import asyncio
import logging
from typing import List, Set

from telegram.error import RetryAfter

from . import BaseCommand, CommandContext

logger = logging.getLogger(__name__)

# Flood-control waits honoured per recipient before counting it as failed
MAX_FLOOD_RETRIES = 2


def retry_delay(error: RetryAfter) -> float:
    """RetryAfter.retry_after is an int or a timedelta depending on the library version."""
    delay = error.retry_after
    if hasattr(delay, 'total_seconds'):
        return delay.total_seconds()
    return float(delay)


class BroadcastCommand(BaseCommand):
    """
    Sends the text to every known user in a background task so the
    update handler returns immediately and new links keep being admitted.
    """

    COMMAND = "broadcast"
    DESCRIPTION = "send a message to every user"
    USAGE = "/broadcast <text>"

    def __init__(self):
        self.pending: Set[asyncio.Task] = set()

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await self.reply_usage(ctx)
            return

        recipients = ctx.store.known_user_ids()
        await ctx.reply(f"📢 Broadcasting to {len(recipients)} users...")

        task = asyncio.create_task(self._deliver_all(ctx, recipients))
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    async def _deliver_all(self, ctx: CommandContext, recipients: List[int]) -> None:
        delivered = 0
        for user_id in recipients:
            if await self._deliver(ctx, user_id):
                delivered += 1

        logger.info(f"[ADMIN] Broadcast delivered to {delivered}/{len(recipients)} users")
        try:
            await ctx.reply(f"📢 Broadcast delivered to {delivered}/{len(recipients)} users.")
        except Exception as e:
            logger.error(f"[ADMIN] Could not report broadcast result: {type(e).__name__}: {e}")

    async def _deliver(self, ctx: CommandContext, user_id: int) -> bool:
        for attempt in range(MAX_FLOOD_RETRIES + 1):
            try:
                await ctx.chat.send_message(user_id, ctx.args)
                return True
            except RetryAfter as e:
                if attempt >= MAX_FLOOD_RETRIES:
                    logger.warning(f"[ADMIN] Broadcast to {user_id} still flood-limited, giving up")
                    return False
                delay = retry_delay(e)
                logger.info(f"[ADMIN] Flood limit hit, waiting {delay:.0f}s before retrying {user_id}")
                await asyncio.sleep(delay)
            except Exception as e:
                logger.warning(f"[ADMIN] Broadcast to {user_id} failed: {type(e).__name__}: {e}")
                return False
        return False
