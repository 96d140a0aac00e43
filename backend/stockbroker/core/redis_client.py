"""Process-wide connection to the key-value store holding accounts and profiles."""
import logging

from redis.asyncio import Redis

from stockbroker.core.config import settings

logger = logging.getLogger(__name__)

_client: Redis | None = None


def create_client(url: str | None = None) -> Redis:
    # Every store call is bounded by REDIS_SOCKET_TIMEOUT
    return Redis.from_url(
        url or settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        health_check_interval=settings.REDIS_HEALTH_CHECK_INTERVAL,
    )


async def get_redis() -> Redis:
    global _client
    if _client is None:
        logger.info("Opening key-value store client for %s", settings.REDIS_URL)
        _client = create_client()
    return _client


async def close_redis() -> None:
    global _client
    if _client is None:
        return
    client, _client = _client, None
    await client.aclose()
    logger.info("Key-value store client closed")
