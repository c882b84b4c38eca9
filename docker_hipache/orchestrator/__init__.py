"""Event-driven route synchronization."""

from .synchronizer import RouteSynchronizer

__all__ = ['RouteSynchronizer']
