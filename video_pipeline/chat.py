"""
Chat platform adapter.

Thin wrapper over telegram.Bot exposing only the calls the relay needs,
so the pipeline and admin commands can be exercised with a fake client.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from telegram import Bot, ReplyParameters

logger = logging.getLogger(__name__)


def _reply_to(message_id: Optional[int]) -> Optional[ReplyParameters]:
    if message_id is None:
        return None
    return ReplyParameters(message_id=message_id, allow_sending_without_reply=True)


class TelegramChatClient:
    """Sends, edits and deletes messages through the Bot API."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_to: Optional[int] = None,
        parse_mode: Optional[str] = None,
    ) -> int:
        """Send a text message and return its message id."""
        message = await self.bot.send_message(
            chat_id=chat_id,
            text=text,
            reply_parameters=_reply_to(reply_to),
            parse_mode=parse_mode,
        )
        return message.message_id

    async def edit_message(self, chat_id: int, message_id: int, text: str) -> None:
        await self.bot.edit_message_text(chat_id=chat_id, message_id=message_id, text=text)

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        await self.bot.delete_message(chat_id=chat_id, message_id=message_id)

    async def send_video(
        self,
        chat_id: int,
        video: Union[Path, str],
        caption: Optional[str] = None,
        reply_to: Optional[int] = None,
    ) -> None:
        """
        Send a video attachment.

        Args:
            chat_id: Destination chat
            video: Local file path or remote URL
            caption: Optional caption
            reply_to: Message id to reply to
        """
        kwargs = dict(
            chat_id=chat_id,
            caption=caption,
            reply_parameters=_reply_to(reply_to),
            supports_streaming=True,
            read_timeout=120,
            write_timeout=120,
            connect_timeout=30,
        )
        if isinstance(video, Path):
            with open(video, 'rb') as f:
                await self.bot.send_video(video=f, **kwargs)
        else:
            await self.bot.send_video(video=video, **kwargs)
