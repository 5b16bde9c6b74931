"""
RelayPipeline - resolve, verify, download and re-upload one request.

Every execution notifies the chat first, cleans up its transient file on
every exit path and finishes by either deleting the "processing" notice or
editing it into a classified error message.
"""

import logging
import random
from pathlib import Path
from typing import Optional

import aiohttp

from video_pipeline.chat import TelegramChatClient
from video_pipeline.downloader import Downloader, remove_file
from video_pipeline.errors import RelayError, ResolutionFailed, TooLarge, UploadFailed
from video_pipeline.request import Request, RelayOutcome
from video_pipeline.router import ServiceRouter
from video_pipeline.services import ProviderResult
from video_pipeline.verifier import MediaVerifier, MAX_UPLOAD_SIZE

logger = logging.getLogger(__name__)

# Cat emojis for error messages
CAT_EMOJIS = ["😺", "😸", "😹", "😻", "😼", "😽", "🙀", "😿", "😾", "🐱"]

# Telegram caption limit is 1024 characters
MAX_CAPTION_TITLE = 800

PROCESSING_TEXT = "⏳ Meow! Fetching your video without watermark..."

ERROR_MESSAGES = {
    "resolution_failed": (
        "😿 Meow! I couldn't fetch this video. All my providers failed! "
        "The video might be private, deleted, or the link might be incorrect."
    ),
    "too_large": "😿 Meow! This video is {size_mb:g}MB, too big for my tiny paws!",
    "download_failed": "😿 Meow! The video download failed midway. Something went wrong!",
    "upload_failed": "😿 Meow! Telegram refused to take this video from me.",
    "unexpected": "😿 Oops! Something went wrong. This cat got confused!",
}

ERROR_TIP = (
    "💡 Tip: make sure the link is public and the video is under "
    f"{MAX_UPLOAD_SIZE // (1024 * 1024)}MB, then try again."
)


def get_random_cat_emoji() -> str:
    """Return a random cat emoji for error messages."""
    return random.choice(CAT_EMOJIS)


def format_error(error: Exception, bot_username: str) -> str:
    """User-facing text for a failed request. Never exposes technical details."""
    reason = error.reason if isinstance(error, RelayError) else "unexpected"
    template = ERROR_MESSAGES.get(reason, ERROR_MESSAGES["unexpected"])
    if isinstance(error, TooLarge):
        # one decimal at most, so an exact 60 MiB reads "60MB"
        text = template.format(size_mb=round(error.size_mb, 1))
    else:
        text = template
    return f"{text} {get_random_cat_emoji()}\n\n{ERROR_TIP}\n\n{bot_username}"


def format_caption(result: ProviderResult, bot_username: str) -> str:
    lines = []
    if result.title:
        title = result.title.strip()
        if len(title) > MAX_CAPTION_TITLE:
            title = title[:MAX_CAPTION_TITLE].rstrip() + "…"
        if title:
            lines.append(title)
    if result.author:
        lines.append(f"👤 {result.author}")
    lines.append(f"Downloaded by {bot_username}")
    return "\n".join(lines)


class RelayPipeline:
    """
    Fetch-and-relay for a single Request.

    Collaborators are injected so the whole flow can run against fakes.
    """

    def __init__(
        self,
        chat: TelegramChatClient,
        session: aiohttp.ClientSession,
        router: ServiceRouter,
        verifier: MediaVerifier,
        downloader: Downloader,
        bot_username: str,
    ):
        self.chat = chat
        self.session = session
        self.router = router
        self.verifier = verifier
        self.downloader = downloader
        self.bot_username = bot_username

    async def run(self, request: Request) -> RelayOutcome:
        """
        Relay one request to its chat.

        Returns:
            RelayOutcome with success flag and failure reason code
        """
        logger.info(
            f"[RELAY] START user={request.user_id} chat={request.chat_id} "
            f"msg={request.message_id} url={request.source_url}"
        )

        status_message_id: Optional[int] = None
        path: Optional[Path] = None
        result: Optional[ProviderResult] = None
        error: Optional[Exception] = None

        try:
            status_message_id = await self.chat.send_message(
                request.chat_id, PROCESSING_TEXT, reply_to=request.message_id
            )

            service = self.router.service_for_url(request.source_url)
            if service is None:
                raise ResolutionFailed(f"No service for {request.source_url}")

            result = await service.resolve(self.session, request.source_url)
            logger.info(f"[RELAY] Resolved via {result.provider_name}: {result.media_url[:100]}")

            verdict = await self.verifier.verify(result.media_url)
            if not verdict.accepted:
                raise TooLarge(verdict.size_mb)

            path = await self.downloader.download(result.media_url)

            try:
                await self.chat.send_video(
                    request.chat_id,
                    path,
                    caption=format_caption(result, self.bot_username),
                    reply_to=request.message_id,
                )
            except Exception as e:
                raise UploadFailed(f"{type(e).__name__}: {e}") from e

        except RelayError as e:
            logger.warning(f"[RELAY] ✗ Request failed ({e.reason}): {e}")
            error = e
        except Exception as e:
            logger.error(f"[RELAY] ✗ Unexpected error: {type(e).__name__}: {e}", exc_info=True)
            error = e
        finally:
            remove_file(path)

        if error is None:
            await self._clear_status(request.chat_id, status_message_id)
            logger.info(f"[RELAY] ✓ Delivered video to chat {request.chat_id}")
            return RelayOutcome(
                request=request,
                success=True,
                provider_name=result.provider_name if result else None,
            )

        await self._report_error(request, status_message_id, error)
        reason = error.reason if isinstance(error, RelayError) else "unexpected"
        return RelayOutcome(request=request, success=False, reason=reason)

    async def _clear_status(self, chat_id: int, status_message_id: Optional[int]) -> None:
        if status_message_id is None:
            return
        try:
            await self.chat.delete_message(chat_id, status_message_id)
        except Exception as e:
            logger.warning(f"[RELAY] Could not delete status message {status_message_id}: {e}")

    async def _report_error(self, request: Request, status_message_id: Optional[int], error: Exception) -> None:
        text = format_error(error, self.bot_username)
        try:
            if status_message_id is not None:
                await self.chat.edit_message(request.chat_id, status_message_id, text)
            else:
                await self.chat.send_message(request.chat_id, text, reply_to=request.message_id)
        except Exception as e:
            logger.error(f"[RELAY] Could not report error to chat {request.chat_id}: {e}")
