from stockbroker.core import redis_client
from stockbroker.core.config import settings


def test_client_uses_configured_timeouts():
    client = redis_client.create_client("redis://example.invalid:6380/2")
    kwargs = client.connection_pool.connection_kwargs

    assert kwargs["host"] == "example.invalid"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 2
    assert kwargs["socket_timeout"] == settings.REDIS_SOCKET_TIMEOUT
    assert kwargs["socket_connect_timeout"] == settings.REDIS_SOCKET_TIMEOUT
    assert kwargs["decode_responses"] is True


async def test_shared_client_is_reused_until_closed():
    first = await redis_client.get_redis()
    assert await redis_client.get_redis() is first

    await redis_client.close_redis()
    second = await redis_client.get_redis()
    assert second is not first

    await redis_client.close_redis()
    # Closing twice is harmless
    await redis_client.close_redis()
