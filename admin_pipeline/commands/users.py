"""/users - most active users."""

import time

from . import BaseCommand, CommandContext

USERS_LIMIT = 50

# Telegram rejects messages longer than 4096 characters
MAX_MESSAGE_LENGTH = 4096
OVERFLOW_RESERVE = 40


class UsersCommand(BaseCommand):
    COMMAND = "users"
    DESCRIPTION = "list users by download count"

    async def execute(self, ctx: CommandContext) -> None:
        top = ctx.store.top_users(USERS_LIMIT)
        if not top:
            await ctx.reply("No users yet.")
            return

        lines = [f"👥 Users ({len(ctx.store.users)} total, top {len(top)}):"]
        length = len(lines[0])
        for i, (user_id, entry) in enumerate(top, 1):
            last_used = time.strftime("%Y-%m-%d %H:%M", time.localtime(entry.last_used))
            banned = " 🚫" if ctx.store.is_banned(user_id) else ""
            line = f"{i}. {entry.display_name} ({user_id}) - {entry.download_count} req, last {last_used}{banned}"

            if length + 1 + len(line) > MAX_MESSAGE_LENGTH - OVERFLOW_RESERVE:
                lines.append(f"... and {len(top) - i + 1} more")
                break
            lines.append(line)
            length += 1 + len(line)

        await ctx.reply("\n".join(lines))
