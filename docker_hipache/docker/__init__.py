"""Docker Remote API: event stream, inspection and models."""

from .client import create_docker_client
from .events import EventConsumer
from .inspector import ContainerInspector
from .models import ContainerSnapshot, EventStatus, LifecycleEvent

__all__ = [
    'ContainerInspector',
    'ContainerSnapshot',
    'EventConsumer',
    'EventStatus',
    'LifecycleEvent',
    'create_docker_client',
]
