"""/stats - aggregate usage counters."""

from . import BaseCommand, CommandContext


def format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {seconds}s"


class StatsCommand(BaseCommand):
    COMMAND = "stats"
    DESCRIPTION = "usage statistics"

    async def execute(self, ctx: CommandContext) -> None:
        stats = ctx.store.snapshot()
        queue = ctx.queue.snapshot()
        await ctx.reply(
            "📊 Bot statistics\n"
            f"Users: {len(ctx.store.users)}\n"
            f"Banned: {len(ctx.store.banned)}\n"
            f"Total requests: {stats.total_requests}\n"
            f"Successful: {stats.successful_downloads}\n"
            f"Failed: {stats.failed_downloads}\n"
            f"Queue: {len(queue.waiting)} waiting, {len(queue.running)}/{queue.max_concurrent} running\n"
            f"Uptime: {format_uptime(ctx.store.uptime())}"
        )
