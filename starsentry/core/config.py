"""Runtime configuration for StarSentry."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from starsentry.core.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_MAX_STARS,
    DEFAULT_MAX_USERS,
    RESULT_TTL_SECONDS,
)

logger = logging.getLogger(__name__)


def _get_token_from_env() -> Optional[str]:
    """Get GitHub token from environment variables."""
    token = os.environ.get("GITHUB_TOKEN")
    if token and token.strip():
        return token.strip()
    return None


def _get_int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={value}, using {default}")
        return default
    return value


@dataclass
class StarSentryConfig:
    """
    Settings shared by the engine, the result store and the CLI.

    Attributes:
        token: GitHub personal access token, raises the API quota when set
        cache_dir: Directory for stored analysis results
        result_ttl: Seconds a stored result stays reusable
        max_stars: Default cap on stargazers collected per run
        max_users: Default cap on profiles resolved per deep run
        show_progress: Show tqdm progress bars during user lookups
    """

    token: Optional[str] = None
    cache_dir: str = DEFAULT_CACHE_DIR
    result_ttl: int = RESULT_TTL_SECONDS
    max_stars: int = DEFAULT_MAX_STARS
    max_users: int = DEFAULT_MAX_USERS
    show_progress: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "StarSentryConfig":
        """Build a config from environment variables; non-None overrides win."""
        config = cls(
            token=_get_token_from_env(),
            cache_dir=os.environ.get("STARSENTRY_CACHE_DIR") or DEFAULT_CACHE_DIR,
            max_stars=_get_int_from_env("STARSENTRY_MAX_STARS", DEFAULT_MAX_STARS),
            max_users=_get_int_from_env("STARSENTRY_MAX_USERS", DEFAULT_MAX_USERS),
        )
        for key, value in overrides.items():
            if key not in cls.__dataclass_fields__:
                raise TypeError(f"Unknown config option: {key}")
            if value is not None:
                setattr(config, key, value)
        return config
