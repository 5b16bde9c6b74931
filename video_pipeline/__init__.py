"""
Video relay feature module.

This module contains everything related to relaying videos:
- Link matching and service routing
- Provider chain per service (TikTok, ...)
- Size verification, download and upload
- Rate limiting and the bounded-concurrency admission queue
- Pipeline handler for Telegram integration
"""

from video_pipeline.handler import VideoDownloadHandler

# For extending with new services
from video_pipeline.services import BaseService, BaseProvider, ProviderResult

__all__ = [
    'VideoDownloadHandler',
    'BaseService',
    'BaseProvider',
    'ProviderResult',
]
