"""Request and outcome records passed between the queue and the relay pipeline."""

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Request:
    """
    One admitted relay request.

    Attributes:
        chat_id: Chat the link was posted in (and where the video goes)
        user_id: Requesting user
        username: Display name used in stats and /queue
        source_url: Link exactly as matched in the message
        message_id: Originating message, replied to by the bot
        enqueued_at: Wall-clock admission time
    """
    chat_id: int
    user_id: int
    username: str
    source_url: str
    message_id: int
    enqueued_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class RelayOutcome:
    """Terminal result of one pipeline execution."""
    request: Request
    success: bool
    reason: Optional[str] = None
    provider_name: Optional[str] = None


__all__ = ['Request', 'RelayOutcome']
