"""Hipache routing table stored in Redis.

Key layout, as read by Hipache:

    frontend:<hostname>  list: [<hostname>, http://localhost:<port>, ...]
    <container id>       list: [<hostname>:<port>, ...]   (route history)

The first element of a frontend list is the virtual host identity written
by ``init_hostname``; the rest are live backends. The route history is the
reverse index used to undo a container's routes when it stops.
"""

import logging
from typing import Iterable, List, Tuple

import redis.asyncio as redis_async
from redis.exceptions import RedisError

from ..exceptions import MalformedHistoryError, StoreError

logger = logging.getLogger(__name__)


def frontend_key(hostname: str) -> str:
    return f"frontend:{hostname}"


def backend_url(public_port: str) -> str:
    return f"http://localhost:{public_port}"


def history_entry(hostname: str, public_port: str) -> str:
    return f"{hostname}:{public_port}"


def parse_history_entry(container_id: str, entry: str) -> Tuple[str, str]:
    """Split ``hostname:port`` into its two parts.

    Hipache frontends may carry a port (``a.example.com:8080``), so the
    split is on the last colon; the public port never contains one.

    Raises:
        MalformedHistoryError: Unless both parts are present and the port is numeric
    """
    hostname, sep, public_port = entry.rpartition(":")
    if not sep or not hostname or not public_port.isdigit():
        raise MalformedHistoryError(container_id, entry)
    return hostname, public_port


class RouteStore:
    """Transactional operations on the Hipache frontend lists."""

    def __init__(self, redis_client: redis_async.Redis):
        self.redis = redis_client

    async def ping(self):
        """Check that Redis is reachable.

        Raises:
            StoreError: If the server cannot be reached
        """
        try:
            await self.redis.ping()
        except RedisError as e:
            raise StoreError(f"Redis is unreachable: {e}") from e

    async def init_hostname(self, hostname: str):
        """Reset the frontend for ``hostname`` to just its identity element.

        Routes left over from a previous run are discarded.
        """
        key = frontend_key(hostname)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                pipe.rpush(key, hostname)
                await pipe.execute()
        except RedisError as e:
            raise StoreError(f"Could not init frontend {key}: {e}") from e
        logger.info(f"Initialized frontend {key}")

    async def add_route(self, container_id: str, hostname: str, public_port: str):
        """Register one backend for ``hostname`` and record it in the history."""
        await self.add_routes(container_id, [hostname], public_port)

    async def add_routes(self, container_id: str, hostnames: Iterable[str], public_port: str):
        """Register a backend under several hostnames in one MULTI/EXEC.

        Each frontend append is paired with its history append; either all
        of them land or none do.

        Raises:
            StoreError: If the transaction fails
        """
        hostnames = list(hostnames)
        if not hostnames:
            return
        target = backend_url(public_port)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                for hostname in hostnames:
                    pipe.rpush(frontend_key(hostname), target)
                    pipe.rpush(container_id, history_entry(hostname, public_port))
                await pipe.execute()
        except RedisError as e:
            raise StoreError(
                f"Could not add routes for {container_id[:12]} ({', '.join(hostnames)}): {e}"
            ) from e
        for hostname in hostnames:
            logger.info(f"Added route {hostname} -> {target} for container {container_id[:12]}")

    async def remove_route(self, hostname: str, public_port: str) -> bool:
        """Remove the first occurrence of the backend for ``public_port``.

        Returns:
            True if a backend was removed, False if there was none
        """
        key = frontend_key(hostname)
        target = backend_url(public_port)
        try:
            removed = await self.redis.lrem(key, 1, target)
        except RedisError as e:
            raise StoreError(f"Could not remove {target} from {key}: {e}") from e

        if removed:
            logger.info(f"Removed route {hostname} -> {target}")
        else:
            logger.debug(f"No route {hostname} -> {target} to remove")
        return bool(removed)

    async def fetch_route_history(self, container_id: str) -> List[Tuple[str, str]]:
        """Return every ``(hostname, public_port)`` recorded for a container.

        Raises:
            StoreError: If Redis cannot be read
            MalformedHistoryError: If an entry is not ``hostname:port``
        """
        try:
            entries = await self.redis.lrange(container_id, 0, -1)
        except RedisError as e:
            raise StoreError(f"Could not read route history for {container_id[:12]}: {e}") from e
        return [parse_history_entry(container_id, entry) for entry in entries]

    async def discard_route_history(self, container_id: str):
        """Drop a container's route history once its routes are gone."""
        try:
            await self.redis.delete(container_id)
        except RedisError as e:
            raise StoreError(f"Could not delete route history for {container_id[:12]}: {e}") from e

    async def close(self):
        """Close the client and disconnect its pool."""
        await self.redis.aclose(close_connection_pool=True)
