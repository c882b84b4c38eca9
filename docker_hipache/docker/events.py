"""Consumer for the Docker Remote API event stream.

``APIClient.events(decode=True)`` yields one decoded JSON object per
lifecycle event from a blocking streaming response. ``EventConsumer.events()``
pulls it one item at a time on the Docker executor and turns it into an
async iterator of ``LifecycleEvent``.
"""

import logging
from typing import AsyncIterator

import docker
from docker.errors import APIError, DockerException, StreamParseError
import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from pydantic import ValidationError

from ..exceptions import StreamError
from ..shared.python_logger_config import TRACE
from .client import run_blocking
from .models import LifecycleEvent

logger = logging.getLogger(__name__)

_END = object()


class EventConsumer:
    """Opens the /events stream and yields lifecycle events."""

    def __init__(self, client: docker.APIClient):
        self.client = client

    async def events(self) -> AsyncIterator[LifecycleEvent]:
        """Yield events until the runtime closes the stream.

        Each call opens a new connection; an exhausted or failed iterator
        cannot be resumed.

        Raises:
            StreamError: On transport failure, an error status or a malformed frame
        """
        try:
            stream = await run_blocking(self.client.events, decode=True)
        except (APIError, requests.exceptions.RequestException, DockerException) as e:
            raise StreamError(f"Could not open event stream: {e}") from e
        logger.info(f"Listening for events on {self.client.base_url}")

        try:
            while True:
                try:
                    value = await run_blocking(next, stream, _END)
                except StreamParseError as e:
                    raise StreamError(f"Malformed event frame: {e}") from e
                except (requests.exceptions.RequestException, Urllib3HTTPError, DockerException, OSError) as e:
                    raise StreamError(f"Event stream failed: {e}") from e
                if value is _END:
                    break
                yield self._to_event(value)
        finally:
            # Unblocks a reader thread still waiting on the socket
            close = getattr(stream, "close", None)
            if close is not None:
                close()

    @staticmethod
    def _to_event(value) -> LifecycleEvent:
        logger.log(TRACE, f"Event frame: {value}")
        if not isinstance(value, dict):
            raise StreamError(f"Expected an event object, got {type(value).__name__}")
        try:
            return LifecycleEvent.model_validate(value)
        except ValidationError as e:
            raise StreamError(f"Invalid event frame: {e}") from e
