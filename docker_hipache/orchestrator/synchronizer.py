"""Route synchronizer: applies container lifecycle events to the routing table.

Per container this is a two-state machine:

    unregistered --start (rule matches)--> registered --stop--> unregistered

Events are handled strictly one after another in arrival order, so a
container's stop can never overtake its start.

Error policy:
    InspectError           the event is skipped, processing continues
    MalformedHistoryError  the container's stop is skipped, processing continues
    StoreError             propagated, the caller aborts
    StreamError            propagated from the event source, the caller aborts
"""

import logging
from typing import AsyncIterable

from ..docker.inspector import ContainerInspector
from ..docker.models import ContainerSnapshot, EventStatus, LifecycleEvent
from ..exceptions import InspectError, MalformedHistoryError
from ..proxy.routes import RoutingConfig
from ..storage.route_store import RouteStore

logger = logging.getLogger(__name__)


class RouteSynchronizer:
    """Keeps Hipache frontends in sync with running containers."""

    def __init__(self, routing: RoutingConfig, store: RouteStore, inspector: ContainerInspector):
        self.routing = routing
        self.store = store
        self.inspector = inspector

    async def initialize_routes(self):
        """Reset the frontend of every configured hostname (clean slate on boot)."""
        for hostname in self.routing.hostnames():
            await self.store.init_hostname(hostname)
        logger.info(f"Initialized {len(self.routing.hostnames())} frontends for {len(self.routing)} images")

    async def run(self, events: AsyncIterable[LifecycleEvent]) -> int:
        """Consume events until the stream ends.

        Returns:
            Number of events consumed

        Raises:
            StreamError: If the event source fails
            StoreError: If the routing table cannot be updated
        """
        count = 0
        async for event in events:
            count += 1
            logger.debug(f"New event received: {event.status.value} {event.container_id[:12]} ({event.image})")
            await self.handle_event(event)
        logger.info("Event stream complete, shutting down")
        return count

    async def handle_event(self, event: LifecycleEvent):
        if event.status is EventStatus.START:
            await self.handle_start(event)
        elif event.status is EventStatus.STOP:
            await self.handle_stop(event)

    async def handle_start(self, event: LifecycleEvent) -> int:
        """Register routes for a started container.

        Returns:
            Number of port mappings registered
        """
        if event.image and event.image not in self.routing:
            logger.debug(f"No route configured for image {event.image}, ignoring {event.container_id[:12]}")
            return 0
        try:
            container = await self.inspector.inspect(event.container_id, image=event.image or None)
        except InspectError as e:
            logger.warning(f"Skipping start event: {e}")
            return 0
        return await self.register(container)

    async def register(self, container: ContainerSnapshot) -> int:
        rule = self.routing.lookup(container.image)
        if rule is None:
            logger.debug(f"No route configured for image {container.image}, ignoring {container.id[:12]}")
            return 0

        registered = 0
        for private_port, public_port in container.tcp_ports().items():
            if private_port != rule.target_port:
                continue
            logger.debug(f"Found route for {container.image}: {private_port} -> {public_port}")
            await self.store.add_routes(container.id, rule.hostnames, public_port)
            registered += 1

        if not registered:
            logger.warning(
                f"Container {container.id[:12]} ({container.image}) does not publish "
                f"port {rule.target_port}, no route added"
            )
        return registered

    async def handle_stop(self, event: LifecycleEvent) -> int:
        """Remove every route a stopped container registered.

        Returns:
            Number of backends removed
        """
        container_id = event.container_id
        try:
            history = await self.store.fetch_route_history(container_id)
        except MalformedHistoryError as e:
            logger.error(f"Skipping stop event: {e}")
            return 0

        removed = 0
        for hostname, public_port in history:
            if await self.store.remove_route(hostname, public_port):
                removed += 1
        if history:
            await self.store.discard_route_history(container_id)
            logger.info(f"Removed {removed} of {len(history)} routes for container {container_id[:12]}")
        return removed
