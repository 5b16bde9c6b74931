"""
Pipeline architecture for message processing.

Incoming messages flow through a series of handlers sorted by priority.
Each handler can process the message and optionally stop further processing.

Usage:
    from pipeline import MessagePipeline, configure_handlers

    pipeline = MessagePipeline()
    for handler in configure_handlers([CommandRouterHandler(...), VideoDownloadHandler(...)]):
        pipeline.add_handler(handler)

    # In your Telegram message handler:
    await pipeline.run(update, context)
"""

import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from telegram import Update
from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """
    Context object that flows through the pipeline.

    Attributes:
        update: Telegram Update object
        context: Telegram callback context
        should_continue: If False, pipeline stops after current handler
        data: Shared dictionary for handlers to pass data to each other
    """
    update: Update
    context: ContextTypes.DEFAULT_TYPE
    should_continue: bool = True
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self):
        """Convenience property to access the message."""
        return self.update.message

    @property
    def message_text(self) -> Optional[str]:
        """Convenience property to access message text."""
        if self.message:
            return self.message.text
        return None

    @property
    def user_id(self) -> Optional[int]:
        if self.message and self.message.from_user:
            return self.message.from_user.id
        return None

    @property
    def username(self) -> str:
        """@username if set, otherwise the full name."""
        user = self.message.from_user if self.message else None
        if not user:
            return "Unknown"
        return f"@{user.username}" if user.username else user.full_name

    def stop(self) -> None:
        """Stop the pipeline after current handler."""
        self.should_continue = False


class PipelineHandler(ABC):
    """
    Abstract base class for pipeline handlers.

    Each handler processes the message and can optionally stop the pipeline
    by calling ctx.stop() or setting ctx.should_continue = False.

    Subclasses must implement the process() method.
    """

    # Default priority (0-100, higher runs first)
    DEFAULT_PRIORITY = 50

    # Handler name for env var generation (e.g., "VIDEO_DOWNLOAD")
    HANDLER_NAME = None

    def __init__(self, name: Optional[str] = None):
        """
        Initialize the handler.

        Args:
            name: Optional handler name for logging (defaults to class name)
        """
        self.name = name or self.__class__.__name__
        self.priority = self.DEFAULT_PRIORITY

    @abstractmethod
    async def process(self, ctx: PipelineContext) -> None:
        """
        Process the message.

        Args:
            ctx: Pipeline context containing update, message, and shared data.
                 Call ctx.stop() to prevent further handlers from running.
        """
        pass

    async def should_process(self, ctx: PipelineContext) -> bool:
        """
        Optional hook to determine if this handler should process the message.

        Default implementation always returns True.
        """
        return True


class MessagePipeline:
    """
    Manages the message processing pipeline.

    Handlers are executed in the order they were added. If any handler
    calls ctx.stop(), the pipeline stops and remaining handlers are not executed.
    """

    def __init__(self, stop_on_error: bool = True):
        """
        Initialize the pipeline.

        Args:
            stop_on_error: If True, stop pipeline when a handler raises an exception.
                          If False, log the error and continue to next handler.
        """
        self.handlers: list[PipelineHandler] = []
        self.stop_on_error = stop_on_error

    def add_handler(self, handler: PipelineHandler) -> "MessagePipeline":
        """
        Add a handler to the pipeline.

        Returns:
            Self for method chaining
        """
        self.handlers.append(handler)
        logger.debug(f"[PIPELINE] Added handler: {handler.name}")
        return self

    async def run(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> PipelineContext:
        """
        Run the pipeline for a message.

        Returns:
            The PipelineContext after all handlers have run (or pipeline stopped)
        """
        ctx = PipelineContext(update=update, context=context)

        logger.debug(f"[PIPELINE] Handlers: {[h.name for h in self.handlers]}")

        for i, handler in enumerate(self.handlers, 1):
            if not ctx.should_continue:
                logger.debug(f"[PIPELINE] Pipeline stopped before handler {i}/{len(self.handlers)}: {handler.name}")
                break

            try:
                if not await handler.should_process(ctx):
                    logger.debug(f"[PIPELINE] Handler {handler.name} skipped (should_process=False)")
                    continue
            except Exception as e:
                logger.error(f"[PIPELINE] Error in {handler.name}.should_process(): {e}")
                if self.stop_on_error:
                    break
                continue

            logger.info(f"[PIPELINE] Running handler {i}/{len(self.handlers)}: {handler.name}")
            try:
                await handler.process(ctx)
            except Exception as e:
                logger.error(f"[PIPELINE] Error in {handler.name}.process(): {e}", exc_info=True)
                if self.stop_on_error:
                    ctx.stop()
                    break

        return ctx


def configure_handlers(handlers: Iterable[PipelineHandler]) -> list[PipelineHandler]:
    """
    Apply environment overrides and sort handlers by priority.

    Environment variables (for handlers defining HANDLER_NAME):
    - {HANDLER_NAME}_PRIORITY: Override handler priority (0-100)
    - {HANDLER_NAME}_ENABLED: Set to "false" to disable handler

    Returns:
        Enabled handlers sorted by priority, highest first
    """
    configured = []

    for handler in handlers:
        handler_name = handler.HANDLER_NAME
        if handler_name:
            enabled_env = f"{handler_name}_ENABLED"
            if os.getenv(enabled_env, "true").lower() == "false":
                logger.info(f"  ⊘ Skipping {handler.name} (disabled via {enabled_env})")
                continue

            priority_str = os.getenv(f"{handler_name}_PRIORITY")
            if priority_str:
                try:
                    handler.priority = max(0, min(100, int(priority_str)))
                except ValueError:
                    logger.warning(f"  Invalid priority for {handler.name}: {priority_str}")

        configured.append(handler)
        logger.info(f"  ✓ Loaded {handler.name} (priority: {handler.priority})")

    configured.sort(key=lambda h: h.priority, reverse=True)
    return configured


__all__ = [
    'PipelineContext',
    'PipelineHandler',
    'MessagePipeline',
    'configure_handlers',
]
