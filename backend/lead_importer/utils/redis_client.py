"""Helper function to create asyncio Redis clients with SSL support for hosted providers."""

from __future__ import annotations

import ssl
from typing import Any

from redis.asyncio import Redis


def create_redis_client(url: str, **kwargs: Any) -> Redis:
    """Create an asyncio Redis client with proper SSL configuration.

    Args:
        url: Redis connection URL (redis:// or rediss://)
        **kwargs: Additional arguments (decode_responses, socket_connect_timeout, etc.)
    """
    # Upstash only accepts TLS connections
    if ".upstash.io" in url and url.startswith("redis://"):
        url = url.replace("redis://", "rediss://", 1)

    if url.startswith("rediss://"):
        kwargs.setdefault("ssl_cert_reqs", ssl.CERT_NONE)

    return Redis.from_url(url, **kwargs)
