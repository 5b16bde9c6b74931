#!/usr/bin/env python3
"""
Service Router for the relay bot
Finds the first supported video link in a message and the service that owns it
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from video_pipeline.services import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkMatch:
    """A supported link found in message text."""
    url: str
    service: BaseService


class ServiceRouter:
    """
    Routes video URLs to the service that recognizes them.

    Services are checked in priority order; the first one whose pattern
    matches the text claims the link.
    """

    def __init__(self, services: List[BaseService]):
        """
        Initialize service router.

        Args:
            services: List of service instances in priority order
        """
        if not services:
            raise ValueError("At least one service must be configured")

        self.services = services
        logger.info(f"ServiceRouter initialized with {len(services)} service(s): {[s.SERVICE_NAME for s in services]}")

    def match(self, text: str) -> Optional[LinkMatch]:
        """
        Extract the first supported link from text.

        Args:
            text: Raw message text

        Returns:
            LinkMatch with the verbatim matched substring, or None
        """
        if not text:
            return None

        for service in self.services:
            url = service.extract_url(text)
            if url:
                logger.info(f"[ROUTER] ✓ URL matched service {service.SERVICE_NAME}: {url}")
                return LinkMatch(url=url, service=service)

        logger.debug(f"[ROUTER] No service matched text: {text[:200]}")
        return None

    def service_for_url(self, url: str) -> Optional[BaseService]:
        """Return the service whose pattern matches url."""
        for service in self.services:
            if service.matches_url(url):
                return service
        return None

    def get_services(self) -> List[str]:
        """
        Get list of configured service names.

        Returns:
            List of service names in priority order
        """
        return [service.SERVICE_NAME for service in self.services]
