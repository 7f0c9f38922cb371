"""Lead store configuration.

Loaded from environment variables. Remote backend settings are optional:
without them the store runs on the in-process backend.
"""

import logging
import os
from dataclasses import dataclass

from lead_store.schemas import DEFAULT_AGENT_NAME, LEAD_TTL_SECONDS

logger = logging.getLogger("lead-handoff-config")

DEFAULT_TIMEOUT_SECONDS: float = 5.0


def _positive_number(key: str, default: float, cast: type) -> float:
    """Read a positive number from env, warning and falling back on bad input."""
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"{key}={raw!r} is not a valid number, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{key}={raw!r} must be positive, using {default}")
        return default
    return value


@dataclass
class LeadStoreConfig:
    """Configuration for the lead store and its handlers."""

    redis_url: str = ""
    upstash_rest_url: str = ""
    upstash_rest_token: str = ""
    ttl_seconds: int = LEAD_TTL_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    agent_name: str = DEFAULT_AGENT_NAME

    @classmethod
    def from_env(cls) -> "LeadStoreConfig":
        """Load store config from environment variables."""
        redis_url = os.getenv("REDIS_URL", "")
        upstash_rest_url = os.getenv("UPSTASH_REDIS_REST_URL", "")
        upstash_rest_token = os.getenv("UPSTASH_REDIS_REST_TOKEN", "")

        if upstash_rest_url and not upstash_rest_token:
            logger.warning("UPSTASH_REDIS_REST_URL set without UPSTASH_REDIS_REST_TOKEN")

        return cls(
            redis_url=redis_url,
            upstash_rest_url=upstash_rest_url,
            upstash_rest_token=upstash_rest_token,
            ttl_seconds=int(_positive_number("LEAD_TTL_SEC", LEAD_TTL_SECONDS, int)),
            timeout_seconds=_positive_number(
                "STORE_TIMEOUT_SEC", DEFAULT_TIMEOUT_SECONDS, float
            ),
            agent_name=os.getenv("AGENT_NAME", "") or DEFAULT_AGENT_NAME,
        )

    @property
    def has_redis(self) -> bool:
        return bool(self.redis_url)

    @property
    def has_upstash_rest(self) -> bool:
        return bool(self.upstash_rest_url and self.upstash_rest_token)

    def is_remote(self) -> bool:
        """Check if any remote backend is configured."""
        return self.has_redis or self.has_upstash_rest
