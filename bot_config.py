"""
Environment-sourced configuration for the relay bot.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_BOT_USERNAME = '@tiktok_relay_bot'
DEFAULT_MAX_CONCURRENT = 3
DEFAULT_PORT = 3000
DEFAULT_RATE_LIMIT_WINDOW = 10
DEFAULT_RATE_LIMIT_MAX = 3
DEFAULT_DOWNLOAD_DIR = str(Path(tempfile.gettempdir()) / "tiktok_relay")


class ConfigError(ValueError):
    """Raised when required configuration is missing."""


@dataclass(frozen=True)
class BotConfig:
    token: str
    admin_id: Optional[int] = None
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    port: int = DEFAULT_PORT
    enable_health_check: bool = True
    bot_username: str = DEFAULT_BOT_USERNAME
    download_dir: Path = Path(DEFAULT_DOWNLOAD_DIR)
    rate_limit_window: int = DEFAULT_RATE_LIMIT_WINDOW
    rate_limit_max: int = DEFAULT_RATE_LIMIT_MAX


def _int_env(env: Mapping[str, str], name: str, default: Optional[int], minimum: Optional[int] = None) -> Optional[int]:
    value = env.get(name, "").strip()
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {value!r}, using default {default}")
        return default
    if minimum is not None and parsed < minimum:
        logger.warning(f"{name}={parsed} is below {minimum}, using {minimum}")
        return minimum
    return parsed


def load_config(env: Optional[Mapping[str, str]] = None) -> BotConfig:
    """
    Build BotConfig from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Raises:
        ConfigError: TELEGRAM_BOT_TOKEN is not set
    """
    env = os.environ if env is None else env

    token = env.get('TELEGRAM_BOT_TOKEN', '').strip()
    if not token:
        raise ConfigError("TELEGRAM_BOT_TOKEN is not set in .env file")

    return BotConfig(
        token=token,
        admin_id=_int_env(env, 'ADMIN_ID', None),
        max_concurrent=_int_env(env, 'MAX_CONCURRENT', DEFAULT_MAX_CONCURRENT, minimum=1),
        port=_int_env(env, 'PORT', DEFAULT_PORT, minimum=1),
        enable_health_check=env.get('ENABLE_HEALTH_CHECK', 'true').lower() == 'true',
        bot_username=env.get('BOT_USERNAME', DEFAULT_BOT_USERNAME),
        download_dir=Path(env.get('DOWNLOAD_DIR') or DEFAULT_DOWNLOAD_DIR),
        rate_limit_window=_int_env(env, 'RATE_LIMIT_WINDOW', DEFAULT_RATE_LIMIT_WINDOW, minimum=1),
        rate_limit_max=_int_env(env, 'RATE_LIMIT_MAX', DEFAULT_RATE_LIMIT_MAX, minimum=1),
    )
