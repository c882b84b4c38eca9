"""Redis client construction for the routing table."""

import logging

import redis.asyncio as redis_async

logger = logging.getLogger(__name__)


def create_redis_client(redis_url: str, timeout: float = 5.0,
                        max_connections: int = 10) -> redis_async.Redis:
    """Create an async Redis client backed by a bounded connection pool.

    Every command or transaction borrows a connection from the pool and
    returns it when done, on success and on failure.

    Args:
        redis_url: Redis connection URL (redis://host:port/db or unix:///path)
        timeout: Socket connect and read timeout in seconds
        max_connections: Pool size

    Returns:
        Async Redis client with decoded (str) responses
    """
    pool = redis_async.ConnectionPool.from_url(
        redis_url,
        decode_responses=True,
        max_connections=max_connections,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )
    logger.info(f"Redis pool created for {_mask(redis_url)} (max_connections={max_connections})")
    return redis_async.Redis(connection_pool=pool)


def _mask(redis_url: str) -> str:
    """Hide the password part of a Redis URL for logging."""
    if '@' not in redis_url:
        return redis_url
    scheme, _, rest = redis_url.partition('://')
    return f"{scheme}://****@{rest.split('@')[-1]}"
