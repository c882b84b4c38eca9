"""Static routing rules keyed by container image."""

import logging
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class RoutingRule(BaseModel):
    """Hostnames an image is published under and the private port it must expose."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hostnames: Tuple[str, ...] = Field(..., alias="hostname", description="Public hostnames")
    target_port: str = Field(..., alias="port", description="Private port that must be exposed")

    @field_validator('hostnames', mode='before')
    @classmethod
    def single_hostname_as_list(cls, v):
        """Accept a bare string as a one-element hostname list."""
        if isinstance(v, str):
            return [v]
        return v

    @field_validator('hostnames')
    @classmethod
    def validate_hostnames(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if not v:
            raise ValueError("At least one hostname is required")
        cleaned = tuple(h.strip() for h in v)
        if any(not h for h in cleaned):
            raise ValueError("Hostnames cannot be empty")
        return cleaned

    @field_validator('target_port', mode='before')
    @classmethod
    def validate_target_port(cls, v) -> str:
        # TOML allows port = 80 as well as port = "80"
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Target port cannot be empty")
        return v.strip()


class RoutingConfig:
    """Read-only mapping from image name to RoutingRule."""

    def __init__(self, routes: Optional[Mapping[str, RoutingRule]] = None):
        self._routes: Dict[str, RoutingRule] = dict(routes or {})

    @classmethod
    def from_dict(cls, raw: Mapping[str, Mapping]) -> "RoutingConfig":
        """Build from the ``[routes.<image>]`` tables of the configuration file."""
        return cls({image: RoutingRule.model_validate(rule) for image, rule in raw.items()})

    def lookup(self, image: str) -> Optional[RoutingRule]:
        """Return the rule for ``image``, or None if the image is unmanaged."""
        return self._routes.get(image)

    def hostnames(self) -> List[str]:
        """All configured hostnames, in configuration order, without duplicates."""
        seen: Dict[str, None] = {}
        for rule in self._routes.values():
            for hostname in rule.hostnames:
                seen.setdefault(hostname, None)
        return list(seen)

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, image: object) -> bool:
        return image in self._routes
