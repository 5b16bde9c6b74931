"""/start - greeting and command list."""

from . import BaseCommand, CommandContext


class StartCommand(BaseCommand):
    """Help text, available to everyone."""

    COMMAND = "start"
    DESCRIPTION = "show this help"
    ADMIN_ONLY = False

    async def execute(self, ctx: CommandContext) -> None:
        lines = [
            "😺 Meow! Send me a TikTok link and I'll bring the video back without watermark.",
            "",
            "Supported: tiktok.com/@user/video/..., vm.tiktok.com/..., vt.tiktok.com/...",
        ]

        is_admin = ctx.admin_id is not None and ctx.message.from_user.id == ctx.admin_id
        visible = [c for c in ctx.commands if is_admin or not c.ADMIN_ONLY]
        if visible:
            lines.append("")
            lines.append("Commands:")
            for command in visible:
                usage = command.USAGE or f"/{command.COMMAND}"
                lines.append(f"{usage} - {command.DESCRIPTION}")

        lines.append("")
        lines.append(ctx.bot_username)
        await ctx.reply("\n".join(lines))
