"""Command router pipeline handler."""
import logging
from typing import List, Optional

from pipeline import PipelineHandler, PipelineContext
from .commands import BaseCommand, CommandContext, load_commands_from_env, parse_command
from .moderation_store import ModerationStore

logger = logging.getLogger(__name__)

PERMISSION_DENIED_TEXT = "⛔ Meow! Only the bot admin can use this command."


class CommandRouterHandler(PipelineHandler):
    """
    Dispatches slash commands to command classes.

    Informational commands run for anyone; restricted ones only for the
    configured admin. Unknown commands fall through to the next handler.
    """

    HANDLER_NAME = "ADMIN_COMMANDS"
    DEFAULT_PRIORITY = 90

    def __init__(
        self,
        store: ModerationStore,
        queue,
        chat,
        admin_id: Optional[int],
        bot_username: str,
        commands: Optional[List[BaseCommand]] = None,
    ):
        super().__init__("CommandRouterHandler")
        self.store = store
        self.queue = queue
        self.chat = chat
        self.admin_id = admin_id
        self.bot_username = bot_username
        self.commands = commands if commands is not None else load_commands_from_env()
        self._by_name = {command.COMMAND: command for command in self.commands}

    def is_admin(self, user_id: Optional[int]) -> bool:
        return self.admin_id is not None and user_id == self.admin_id

    async def should_process(self, ctx: PipelineContext) -> bool:
        parsed = parse_command(ctx.message_text)
        if parsed is None or parsed[0] not in self._by_name:
            return False
        ctx.data['command'] = parsed
        return True

    async def process(self, ctx: PipelineContext) -> None:
        name, args = ctx.data['command']
        command = self._by_name[name]
        message = ctx.message
        ctx.stop()

        if command.ADMIN_ONLY and not self.is_admin(ctx.user_id):
            logger.info(f"[ADMIN] Denied /{name} for user {ctx.user_id}")
            await message.reply_text(PERMISSION_DENIED_TEXT)
            return

        logger.info(f"[ADMIN] /{name} from user {ctx.user_id}")
        command_ctx = CommandContext(
            message=message,
            args=args,
            store=self.store,
            queue=self.queue,
            chat=self.chat,
            admin_id=self.admin_id,
            bot_username=self.bot_username,
            commands=self.commands,
        )
        try:
            await command.execute(command_ctx)
        except Exception as e:
            logger.error(f"[ADMIN] /{name} failed: {type(e).__name__}: {e}", exc_info=True)
            await message.reply_text(f"😿 /{name} failed: {e}")
