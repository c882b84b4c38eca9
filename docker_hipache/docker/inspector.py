"""Container inspection through the Docker Remote API."""

import logging
from typing import Optional

import docker
from docker.errors import APIError, DockerException, NotFound
import requests
from pydantic import ValidationError

from ..exceptions import InspectError
from .client import run_blocking
from .models import ContainerSnapshot

logger = logging.getLogger(__name__)


class ContainerInspector:
    """Fetches the current network settings of a container.

    Nothing is cached: published ports only exist once the container has
    started and may change across restarts.
    """

    def __init__(self, client: docker.APIClient):
        """Initialize the inspector.

        Args:
            client: Docker API client; its timeout bounds every inspect call
        """
        self.client = client

    async def inspect(self, container_id: str, image: Optional[str] = None) -> ContainerSnapshot:
        """Inspect a container.

        Args:
            container_id: Container to inspect
            image: Image name from the triggering event, if known

        Returns:
            Snapshot of the container's network settings

        Raises:
            InspectError: If the API is unreachable, answers with an error
                status, or returns a body of the wrong shape
        """
        try:
            payload = await run_blocking(self.client.inspect_container, container_id)
        except NotFound as e:
            raise InspectError(container_id, f"no such container: {e.explanation or e}") from e
        except APIError as e:
            raise InspectError(container_id, f"invalid status code from api: {e.status_code}") from e
        except (requests.exceptions.RequestException, DockerException) as e:
            raise InspectError(container_id, f"request failed: {e}") from e
        except ValueError as e:
            raise InspectError(container_id, f"invalid JSON body: {e}") from e

        if not isinstance(payload, dict):
            raise InspectError(container_id, f"expected a JSON object, got {type(payload).__name__}")

        try:
            snapshot = ContainerSnapshot.from_inspect(container_id, payload, image=image)
        except ValidationError as e:
            raise InspectError(container_id, f"unexpected response shape: {e}") from e

        logger.debug(
            f"Inspected {container_id[:12]}: image={snapshot.image}, "
            f"ip={snapshot.ip_address}, tcp={snapshot.tcp_ports()}"
        )
        return snapshot
