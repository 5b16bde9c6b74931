#!/usr/bin/env python3
"""
tiktok-relay - Telegram bot that relays TikTok videos without watermark
Watches chat messages for TikTok links, resolves a watermark-free copy through
a chain of third-party providers and re-uploads it as a reply

Requests run through a bounded-concurrency admission queue; all state is
in-memory and lives for the lifetime of the process.
"""

import os
import sys
import logging
import asyncio
from typing import Optional

import aiohttp
from dotenv import load_dotenv
from telegram import Update
from telegram.ext import Application, MessageHandler, filters, ContextTypes
from aiohttp import web

from admin_pipeline import CommandRouterHandler, ModerationStore
from bot_config import BotConfig, ConfigError, load_config
from pipeline import MessagePipeline, configure_handlers
from video_pipeline import VideoDownloadHandler
from video_pipeline.chat import TelegramChatClient
from video_pipeline.downloader import Downloader
from video_pipeline.rate_limiter import RateLimiter
from video_pipeline.relay import RelayPipeline
from video_pipeline.router import ServiceRouter
from video_pipeline.scheduler import AdmissionQueue
from video_pipeline.services import load_services_from_env
from video_pipeline.verifier import MediaVerifier

# Load environment variables early for logging configuration
load_dotenv()

# Configure logging with level from environment variable
LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING').upper()
LOG_LEVEL_MAP = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=LOG_LEVEL_MAP.get(LOG_LEVEL, logging.WARNING)
)
logger = logging.getLogger(__name__)

# Suppress verbose logging from external libraries
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)
logging.getLogger('telegram').setLevel(logging.WARNING)
logging.getLogger('telegram.ext').setLevel(logging.WARNING)
logging.getLogger('aiohttp.access').setLevel(logging.WARNING)

# Initialized in run_bot()
message_pipeline: Optional[MessagePipeline] = None
admission_queue: Optional[AdmissionQueue] = None
service_router: Optional[ServiceRouter] = None


def validate_config() -> BotConfig:
    """Load configuration or stop the process if the bot token is missing."""
    try:
        return load_config()
    except ConfigError as e:
        logger.error(f"✗ {e}")
        sys.exit(1)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Feed every incoming text message through the message pipeline."""
    if not update.message or not update.message.text:
        return

    if not message_pipeline:
        logger.error("[HANDLER] ✗ Message pipeline not initialized")
        return

    await message_pipeline.run(update, context)


async def health_check_server(port: int):
    """
    Start a keep-alive HTTP server for hosting platforms.

    Endpoints:
        GET /health  : Returns 200 OK with queue status as JSON
        GET <any>    : Returns 200 OK with a static body
    """
    logger.info("[HEALTH] Starting health check server...")

    async def handle_root(request):
        return web.Response(text="Bot is running! 😺", status=200)

    async def handle_health(request):
        snapshot = admission_queue.snapshot() if admission_queue else None
        health_data = {
            "status": "healthy",
            "service": "tiktok-relay-bot",
            "services": service_router.get_services() if service_router else [],
            "queue_waiting": len(snapshot.waiting) if snapshot else 0,
            "queue_running": len(snapshot.running) if snapshot else 0,
        }
        return web.json_response(health_data, status=200)

    app = web.Application()
    app.router.add_get('/health', handle_health)
    app.router.add_get('/{tail:.*}', handle_root)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, '0.0.0.0', port)
    await site.start()

    logger.info(f"[HEALTH] ✓ Health check server started on http://0.0.0.0:{port}")

    try:
        await asyncio.Event().wait()  # Run forever
    except asyncio.CancelledError:
        logger.info("[HEALTH] Health check server shutting down...")
        await runner.cleanup()


async def run_bot(config: BotConfig):
    """
    Run the Telegram bot with polling.

    Builds the relay components around one shared HTTP session, registers the
    message pipeline and polls for updates until cancelled.
    """
    global message_pipeline, admission_queue, service_router

    logger.info("Starting tiktok-relay bot...")

    application = Application.builder().token(config.token).build()
    session = aiohttp.ClientSession()

    service_router = ServiceRouter(load_services_from_env())
    chat = TelegramChatClient(application.bot)
    store = ModerationStore(admin_id=config.admin_id)
    relay = RelayPipeline(
        chat=chat,
        session=session,
        router=service_router,
        verifier=MediaVerifier(session),
        downloader=Downloader(session, config.download_dir),
        bot_username=config.bot_username,
    )
    admission_queue = AdmissionQueue(relay.run, store=store, max_concurrent=config.max_concurrent)
    rate_limiter = RateLimiter(
        window_seconds=config.rate_limit_window,
        max_requests=config.rate_limit_max,
    )

    message_pipeline = MessagePipeline()
    for handler in configure_handlers([
        CommandRouterHandler(
            store=store,
            queue=admission_queue,
            chat=chat,
            admin_id=config.admin_id,
            bot_username=config.bot_username,
        ),
        VideoDownloadHandler(
            router=service_router,
            store=store,
            rate_limiter=rate_limiter,
            queue=admission_queue,
        ),
    ]):
        message_pipeline.add_handler(handler)

    application.add_handler(MessageHandler(filters.TEXT, handle_message))

    if config.admin_id is None:
        logger.warning("ADMIN_ID is not set, admin commands are disabled")

    await application.initialize()
    await application.start()
    await application.updater.start_polling(allowed_updates=Update.ALL_TYPES)
    logger.info(f"Bot started! Concurrency cap: {config.max_concurrent}. Press Ctrl+C to stop.")

    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Bot shutting down...")
    finally:
        await application.updater.stop()
        await application.stop()
        await admission_queue.shutdown()
        await session.close()
        await application.shutdown()


def main() -> None:
    """
    Main entry point - runs bot and keep-alive server concurrently.

    Set ENABLE_HEALTH_CHECK=false to skip the HTTP server.
    """
    config = validate_config()

    async def run_all():
        tasks = [run_bot(config)]

        if config.enable_health_check:
            logger.info("[MAIN] Health check server enabled")
            tasks.append(health_check_server(config.port))
        else:
            logger.info("[MAIN] Health check server disabled (set ENABLE_HEALTH_CHECK=true to enable)")

        await asyncio.gather(*tasks)

    try:
        asyncio.run(run_all())
    except KeyboardInterrupt:
        logger.info("Received exit signal, shutting down...")


if __name__ == '__main__':
    main()
