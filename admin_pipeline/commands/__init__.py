"""
Command system for the admin pipeline.
Auto-discovery of slash-command classes from this folder.
"""

import importlib
import inspect
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Type

from admin_pipeline.moderation_store import ModerationStore

logger = logging.getLogger(__name__)


@dataclass
class CommandContext:
    """
    Everything a command needs to run.

    Attributes:
        message: Telegram Message that carried the command
        args: Text after the command token (stripped, may be empty)
        store: Moderation and stats store
        queue: AdmissionQueue for introspection
        chat: Chat client for messages to other chats (broadcast)
        admin_id: Configured admin identity, or None
        bot_username: Signature used in replies
        commands: All loaded commands, for help output
    """
    message: Any
    args: str
    store: ModerationStore
    queue: Any
    chat: Any
    admin_id: Optional[int]
    bot_username: str
    commands: List["BaseCommand"] = field(default_factory=list)

    async def reply(self, text: str, parse_mode: Optional[str] = None) -> None:
        await self.message.reply_text(text, parse_mode=parse_mode)


class BaseCommand(ABC):
    """Base class for all slash commands."""

    # Subclasses should define these
    COMMAND = None          # token without slash, e.g. "stats"
    DESCRIPTION = ""        # one line for /start help
    ADMIN_ONLY = True       # restricted to the configured admin
    USAGE = None            # shown when arguments are missing or invalid

    @abstractmethod
    async def execute(self, ctx: CommandContext) -> None:
        """Run the command and reply in ctx.message's chat."""
        pass

    async def reply_usage(self, ctx: CommandContext) -> None:
        await ctx.reply(f"Usage: {self.USAGE or '/' + self.COMMAND}")

    def __str__(self) -> str:
        return f"/{self.COMMAND}"


def parse_command(text: Optional[str]) -> Optional[tuple]:
    """
    Split "/cmd@bot some args" into ("cmd", "some args").

    Returns:
        (command, args) tuple, or None if text is not a command
    """
    if not text:
        return None
    text = text.strip()
    if not text.startswith("/") or len(text) < 2:
        return None

    parts = text[1:].split(maxsplit=1)
    if not parts:
        return None
    token = parts[0].split("@", 1)[0].lower()
    args = parts[1].strip() if len(parts) > 1 else ""
    if not token:
        return None
    return token, args


def parse_user_id(args: str) -> Optional[int]:
    """First argument as a numeric user id, or None."""
    parts = args.split()
    if not parts:
        return None
    try:
        return int(parts[0])
    except ValueError:
        return None


def discover_commands() -> List[Type[BaseCommand]]:
    """
    Automatically discover all command classes in commands/ folder.

    Returns:
        List of command classes (not instances)
    """
    commands = []
    current_dir = Path(__file__).parent

    for file_path in sorted(current_dir.glob("*.py")):
        if file_path.name.startswith("_"):
            continue

        module_name = file_path.stem
        try:
            module = importlib.import_module(f"admin_pipeline.commands.{module_name}")

            for name, obj in inspect.getmembers(module, inspect.isclass):
                if (issubclass(obj, BaseCommand) and
                    obj is not BaseCommand and
                    obj.__module__ == module.__name__):
                    commands.append(obj)
                    logger.debug(f"Discovered command: {obj.__name__} from {module_name}")

        except Exception as e:
            logger.error(f"Could not load command from {module_name}: {e}")

    return commands


def load_commands_from_env() -> List[BaseCommand]:
    """
    Instantiate discovered commands.

    Environment variables:
    - {COMMAND}_COMMAND_ENABLED: Set to "false" to disable (e.g. BROADCAST_COMMAND_ENABLED)

    Returns:
        Command instances ordered by command name
    """
    loaded = []

    for command_class in discover_commands():
        if not command_class.COMMAND:
            logger.warning(f"[ADMIN] Skipping {command_class.__name__} - COMMAND not defined")
            continue

        enabled_env = f"{command_class.COMMAND.upper()}_COMMAND_ENABLED"
        if os.getenv(enabled_env, "true").lower() == "false":
            logger.info(f"[ADMIN]   ⊘ Skipping /{command_class.COMMAND} (disabled via {enabled_env})")
            continue

        try:
            loaded.append(command_class())
        except Exception as e:
            logger.error(f"[ADMIN]   ✗ Failed to initialize {command_class.__name__}: {e}")

    loaded.sort(key=lambda c: c.COMMAND)
    logger.info(f"[ADMIN] Commands loaded: {[str(c) for c in loaded]}")
    return loaded


__all__ = [
    'BaseCommand',
    'CommandContext',
    'parse_command',
    'parse_user_id',
    'discover_commands',
    'load_commands_from_env',
]
