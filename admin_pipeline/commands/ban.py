"""/ban and /unban."""

from . import BaseCommand, CommandContext, parse_user_id


class BanCommand(BaseCommand):
    COMMAND = "ban"
    DESCRIPTION = "ban a user"
    USAGE = "/ban <user_id>"

    async def execute(self, ctx: CommandContext) -> None:
        user_id = parse_user_id(ctx.args)
        if user_id is None:
            await self.reply_usage(ctx)
            return

        if not ctx.store.ban(user_id):
            await ctx.reply("⚠️ The admin cannot be banned.")
            return
        await ctx.reply(f"🚫 User {user_id} banned.")


class UnbanCommand(BaseCommand):
    COMMAND = "unban"
    DESCRIPTION = "lift a ban"
    USAGE = "/unban <user_id>"

    async def execute(self, ctx: CommandContext) -> None:
        user_id = parse_user_id(ctx.args)
        if user_id is None:
            await self.reply_usage(ctx)
            return

        if ctx.store.unban(user_id):
            await ctx.reply(f"✅ User {user_id} unbanned.")
        else:
            await ctx.reply(f"User {user_id} was not banned.")
