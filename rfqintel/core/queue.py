import os

from arq.connections import ArqRedis, RedisSettings, create_pool


def get_redis_settings(url: str | None = None) -> RedisSettings:
    """Get Redis settings from the given URL or the environment."""
    return RedisSettings.from_dsn(
        url or os.environ.get("REDIS_URL", "redis://localhost:6379")
    )


async def get_queue(url: str | None = None) -> ArqRedis:
    """Create a connection pool to the Redis queue."""
    return await create_pool(get_redis_settings(url))
