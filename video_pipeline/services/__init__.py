"""
Video Services Auto-Discovery System
Each service owns a URL pattern and an ordered chain of extraction providers
"""

import os
import re
import importlib
import inspect
import logging
from dataclasses import dataclass
from typing import List, Type, Optional
from pathlib import Path

import aiohttp

from video_pipeline.errors import ProviderNoData, ResolutionFailed
from video_pipeline.normalizer import UrlNormalizer
from video_pipeline.retry import retry_async, DEFAULT_ATTEMPTS, DEFAULT_BASE_DELAY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderResult:
    """Direct media URL plus whatever metadata the provider returned."""
    media_url: str
    title: Optional[str] = None
    author: Optional[str] = None
    provider_name: Optional[str] = None


class BaseProvider:
    """Base class for all video providers."""

    # Subclasses should define PROVIDER_NAME for auto-generation of env vars
    PROVIDER_NAME = None

    # Default priority if not specified in environment (0-100, higher = tried first)
    DEFAULT_PRIORITY = 50

    # Per-request timeout in seconds
    TIMEOUT = 15

    def __init__(self, name: str):
        self.name = name
        self.priority = self.DEFAULT_PRIORITY

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> ProviderResult:
        """
        Turn a canonical video link into a direct media URL.

        Args:
            session: Shared HTTP session
            url: Canonical (normalized) video URL

        Returns:
            ProviderResult with a non-empty media_url

        Raises:
            ProviderNoData: response did not contain a usable media URL
            aiohttp.ClientError / asyncio.TimeoutError: transport failures
        """
        raise NotImplementedError("Subclass must implement fetch()")

    def __str__(self) -> str:
        return self.name


class BaseService:
    """Base class for all video services."""

    # Subclasses MUST define these
    SERVICE_NAME = None           # e.g., "TIKTOK"
    URL_PATTERN = None            # Regex for URL matching
    SHORT_LINK_PATTERN = None     # Regex for links that need a redirect hop
    DEFAULT_PRIORITY = 50         # Service priority (0-100)
    PROVIDER_BASE_CLASS = BaseProvider  # Base class for this service's providers

    def __init__(self):
        self.providers: List[BaseProvider] = []
        self.priority = self.DEFAULT_PRIORITY
        self.retry_attempts = DEFAULT_ATTEMPTS
        self.retry_base_delay = DEFAULT_BASE_DELAY
        self.sleep = None  # None means asyncio.sleep
        self._load_service_priority()

    def _load_service_priority(self):
        """Load service priority from environment variable."""
        if self.SERVICE_NAME:
            priority_env_var = f"{self.SERVICE_NAME}_PRIORITY"
            priority_str = os.getenv(priority_env_var)
            if priority_str:
                try:
                    self.priority = max(0, min(100, int(priority_str)))
                except ValueError:
                    logger.warning(f"Invalid priority for {self.SERVICE_NAME}: {priority_str}, using default")

    def matches_url(self, url: str) -> bool:
        """
        Check if URL matches this service's pattern.

        Args:
            url: URL to check

        Returns:
            True if URL matches this service
        """
        if not self.URL_PATTERN:
            return False
        return bool(re.search(self.URL_PATTERN, url))

    def extract_url(self, text: str) -> Optional[str]:
        """
        Extract first matching URL from text.

        Args:
            text: Message text to search

        Returns:
            First matching URL found (verbatim), or None
        """
        if not text or not self.URL_PATTERN:
            return None

        match = re.search(self.URL_PATTERN, text)
        return match.group(0) if match else None

    def discover_providers(self) -> List[Type[BaseProvider]]:
        """
        Automatically discover all provider classes in this service's providers folder.

        Returns:
            List of provider classes (not instances)
        """
        providers = []

        # Get the service's module directory
        service_module = inspect.getmodule(self.__class__)
        if not service_module or not service_module.__file__:
            return providers

        service_dir = Path(service_module.__file__).parent
        providers_dir = service_dir / "providers"

        if not providers_dir.exists():
            logger.warning(f"No providers folder found for {self.SERVICE_NAME}")
            return providers

        # Get all .py files in providers/ except __init__.py
        for file_path in sorted(providers_dir.glob("*.py")):
            if file_path.name.startswith("_"):
                continue

            module_name = file_path.stem
            try:
                service_package = service_module.__package__
                module = importlib.import_module(f"{service_package}.providers.{module_name}")

                # Find all classes that inherit from this service's PROVIDER_BASE_CLASS
                for name, obj in inspect.getmembers(module, inspect.isclass):
                    if (issubclass(obj, self.PROVIDER_BASE_CLASS) and
                        obj is not self.PROVIDER_BASE_CLASS and
                        obj.__module__ == module.__name__):
                        providers.append(obj)

            except Exception as e:
                logger.error(f"Could not load provider from {module_name}: {e}")

        return providers

    def load_providers_from_env(self) -> List[BaseProvider]:
        """
        Load and initialize providers, honouring environment overrides.

        Each provider defines PROVIDER_NAME which auto-generates:
        - {PROVIDER_NAME}_ENABLED (optional, "false" disables it)
        - {PROVIDER_NAME}_PRIORITY (optional, 0-100)

        Returns:
            List of initialized provider instances (sorted by priority, highest first)
        """
        provider_classes = self.discover_providers()

        if not provider_classes:
            logger.warning(f"No providers found for {self.SERVICE_NAME}")
            return []

        initialized_providers = []

        for provider_class in provider_classes:
            provider_name = provider_class.PROVIDER_NAME
            if not provider_name:
                logger.warning(f"Skipping {provider_class.__name__} - PROVIDER_NAME not defined")
                continue

            if os.getenv(f"{provider_name}_ENABLED", "true").lower() == "false":
                logger.info(f"  ⊘ Skipping {provider_class.__name__} (disabled via {provider_name}_ENABLED)")
                continue

            try:
                provider = provider_class()
            except Exception as e:
                logger.error(f"  ✗ Failed to initialize {provider_class.__name__}: {e}")
                continue

            priority_str = os.getenv(f"{provider_name}_PRIORITY")
            if priority_str:
                try:
                    provider.priority = max(0, min(100, int(priority_str)))
                except ValueError:
                    logger.warning(f"Invalid priority for {provider.name}: {priority_str}, using default")

            initialized_providers.append(provider)
            logger.info(f"  ✓ Loaded {provider.name} (priority: {provider.priority})")

        # Sort by priority (highest first)
        initialized_providers.sort(key=lambda p: p.priority, reverse=True)

        return initialized_providers

    async def resolve(self, session: aiohttp.ClientSession, url: str) -> ProviderResult:
        """
        Run the provider chain with per-provider retry.

        Providers are tried strictly in priority order; the first one that
        yields a non-empty media URL wins and later providers are never called.

        Args:
            session: Shared HTTP session
            url: Video URL as matched; short links are normalized first

        Returns:
            ProviderResult from the first successful provider

        Raises:
            ResolutionFailed: every provider exhausted its retries
        """
        url = await UrlNormalizer(session, self.SHORT_LINK_PATTERN).normalize(url)
        logger.info(f"[SERVICE:{self.SERVICE_NAME}] Starting provider fallback chain for {url}")

        if not self.providers:
            logger.warning(f"[SERVICE:{self.SERVICE_NAME}] ✗ No providers configured")
            raise ResolutionFailed(f"No providers configured for {self.SERVICE_NAME}")

        for i, provider in enumerate(self.providers, 1):
            logger.info(f"[SERVICE:{self.SERVICE_NAME}] Provider {i}/{len(self.providers)}: {provider.name}")

            async def attempt(provider=provider):
                result = await provider.fetch(session, url)
                if not result or not result.media_url:
                    raise ProviderNoData(f"{provider.name} returned no media URL")
                return result

            retry_kwargs = {}
            if self.sleep is not None:
                retry_kwargs['sleep'] = self.sleep

            try:
                result = await retry_async(
                    attempt,
                    attempts=self.retry_attempts,
                    base_delay=self.retry_base_delay,
                    label=provider.name,
                    **retry_kwargs,
                )
            except Exception as e:
                logger.warning(
                    f"[SERVICE:{self.SERVICE_NAME}] ✗ Provider {provider.name} exhausted: {type(e).__name__}: {e}"
                )
                continue

            logger.info(f"[SERVICE:{self.SERVICE_NAME}] ✓ SUCCESS with provider: {provider.name}")
            if result.provider_name is None:
                result = ProviderResult(
                    media_url=result.media_url,
                    title=result.title,
                    author=result.author,
                    provider_name=provider.name,
                )
            return result

        logger.error(f"[SERVICE:{self.SERVICE_NAME}] ✗ ALL {len(self.providers)} provider(s) FAILED")
        raise ResolutionFailed(f"All {len(self.providers)} provider(s) failed for {url}")


def discover_services() -> List[Type[BaseService]]:
    """
    Automatically discover all service classes in the services folder.

    Returns:
        List of service classes (not instances)
    """
    services = []
    current_dir = Path(__file__).parent

    for service_dir in sorted(current_dir.iterdir()):
        if not service_dir.is_dir() or service_dir.name.startswith("_"):
            continue

        init_file = service_dir / "__init__.py"
        if not init_file.exists():
            continue

        service_name = service_dir.name
        try:
            module = importlib.import_module(f"video_pipeline.services.{service_name}")

            for name, obj in inspect.getmembers(module, inspect.isclass):
                if (issubclass(obj, BaseService) and
                    obj is not BaseService and
                    obj.__module__ == module.__name__):
                    services.append(obj)

        except Exception as e:
            logger.error(f"Could not load service from {service_name}: {e}")

    return services


def load_services_from_env() -> List[BaseService]:
    """
    Load and initialize services based on environment variables.

    Each service auto-loads its own providers from its providers/ subfolder.

    Returns:
        List of initialized service instances (sorted by priority, highest first)
    """
    service_classes = discover_services()

    if not service_classes:
        raise ValueError("No services found in video_pipeline/services folder!")

    initialized_services = []

    logger.info("="*60)
    logger.info("Auto-discovering video services...")
    logger.info("="*60)

    for service_class in service_classes:
        try:
            service = service_class()

            logger.info(f"Loading providers for {service.SERVICE_NAME}...")
            service.providers = service.load_providers_from_env()

            if service.providers:
                initialized_services.append(service)
                logger.info(f"✓ Loaded service: {service.SERVICE_NAME} with {len(service.providers)} provider(s) (priority: {service.priority})")
            else:
                logger.warning(f"⚠ Service {service.SERVICE_NAME} has no providers configured, skipping")

        except Exception as e:
            logger.error(f"✗ Failed to initialize {service_class.__name__}: {e}")

    if not initialized_services:
        raise ValueError("No services could be initialized! Check your environment variables.")

    initialized_services.sort(key=lambda s: s.priority, reverse=True)

    logger.info("="*60)
    logger.info(f"Total services loaded: {len(initialized_services)}")
    logger.info("="*60)

    return initialized_services


__all__ = [
    'ProviderResult',
    'BaseProvider',
    'BaseService',
    'discover_services',
    'load_services_from_env',
]
