"""
VideoDownloadHandler - admits video links into the relay queue.

Detects a supported link, applies ban and rate-limit checks, records the
attempt and hands a Request to the AdmissionQueue. The actual relay work
runs later on the queue, so the message pipeline is never blocked.
"""

import logging

from admin_pipeline.moderation_store import ModerationStore
from pipeline import PipelineContext, PipelineHandler
from video_pipeline.rate_limiter import RateLimiter
from video_pipeline.request import Request
from video_pipeline.router import ServiceRouter
from video_pipeline.scheduler import AdmissionQueue

logger = logging.getLogger(__name__)

BANNED_TEXT = "🚫 Meow! You are not allowed to use this bot."
RATE_LIMITED_TEXT = "⏱ Slow down, meow! Too many requests. Please wait {seconds:.0f}s and try again."
QUEUED_TEXT = "🐾 The bot is busy. Your video is #{position} in line."


class VideoDownloadHandler(PipelineHandler):
    """Handler that turns matched video links into queued relay requests."""

    HANDLER_NAME = "VIDEO_DOWNLOAD"
    DEFAULT_PRIORITY = 50

    def __init__(
        self,
        router: ServiceRouter,
        store: ModerationStore,
        rate_limiter: RateLimiter,
        queue: AdmissionQueue,
    ):
        super().__init__("VideoDownloadHandler")
        self.router = router
        self.store = store
        self.rate_limiter = rate_limiter
        self.queue = queue

    async def should_process(self, ctx: PipelineContext) -> bool:
        """Only text messages from a known user."""
        return ctx.message_text is not None and ctx.user_id is not None

    async def process(self, ctx: PipelineContext) -> None:
        message = ctx.message
        link = self.router.match(ctx.message_text)
        if link is None:
            ctx.data['video_url_found'] = False
            return

        ctx.data['video_url_found'] = True
        ctx.stop()

        user_id = ctx.user_id
        if self.store.is_banned(user_id):
            logger.info(f"[VIDEO] Ignoring link from banned user {user_id}")
            ctx.data['video_error'] = 'banned'
            await message.reply_text(BANNED_TEXT)
            return

        if not self.rate_limiter.admit(user_id):
            ctx.data['video_error'] = 'rate_limited'
            await message.reply_text(
                RATE_LIMITED_TEXT.format(seconds=max(1.0, self.rate_limiter.retry_after(user_id)))
            )
            return

        request = Request(
            chat_id=message.chat_id,
            user_id=user_id,
            username=ctx.username,
            source_url=link.url,
            message_id=message.message_id,
        )
        self.store.record_attempt(user_id, request.username)

        position = self.queue.enqueue(request)
        ctx.data['queue_position'] = position
        logger.info(f"[VIDEO] Admitted {link.url} from user {user_id} (position {position})")

        if position > 0:
            await message.reply_text(QUEUED_TEXT.format(position=position))
