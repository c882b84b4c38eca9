"""Routing table storage in Redis."""

from .redis_clients import create_redis_client
from .route_store import RouteStore

__all__ = ['RouteStore', 'create_redis_client']
