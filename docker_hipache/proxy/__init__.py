"""Routing rules for the Hipache frontends."""

from .routes import RoutingConfig, RoutingRule

__all__ = ['RoutingConfig', 'RoutingRule']
