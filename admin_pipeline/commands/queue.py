"""/queue - what is waiting and running right now."""

import time

from . import BaseCommand, CommandContext

PREVIEW_LIMIT = 10


class QueueCommand(BaseCommand):
    COMMAND = "queue"
    DESCRIPTION = "show the download queue"

    async def execute(self, ctx: CommandContext) -> None:
        snapshot = ctx.queue.snapshot()
        now = time.time()

        lines = [
            f"📥 Queue: {len(snapshot.waiting)} waiting, "
            f"{len(snapshot.running)}/{snapshot.max_concurrent} running"
        ]
        for request in snapshot.running:
            lines.append(f"▶️ {request.username} ({request.user_id}) {int(now - request.enqueued_at)}s")
        for i, request in enumerate(snapshot.waiting[:PREVIEW_LIMIT], 1):
            lines.append(f"{i}. {request.username} ({request.user_id}) waiting {int(now - request.enqueued_at)}s")
        if len(snapshot.waiting) > PREVIEW_LIMIT:
            lines.append(f"... and {len(snapshot.waiting) - PREVIEW_LIMIT} more")
        await ctx.reply("\n".join(lines))
