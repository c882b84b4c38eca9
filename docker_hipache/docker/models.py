"""Docker event and container models."""

from typing import Any, Dict, List, Optional
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class EventStatus(str, Enum):
    """Container lifecycle states the synchronizer reacts to."""
    START = "start"
    STOP = "stop"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "EventStatus":
        # die, create, destroy, kill, ... are all uninteresting
        if isinstance(value, str):
            value = value.lower()
            if value in (cls.START.value, cls.STOP.value):
                return cls(value)
        return cls.OTHER


class LifecycleEvent(BaseModel):
    """One message from the /events stream."""
    model_config = ConfigDict(frozen=True, extra='ignore', populate_by_name=True)

    container_id: str = Field("", alias="id")
    status: EventStatus = Field(EventStatus.OTHER)
    image: str = Field("", alias="from")

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, EventStatus):
            return v
        return EventStatus.parse(v)

    @field_validator('container_id', 'image', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return "" if v is None else v


class PortBinding(BaseModel):
    model_config = ConfigDict(extra='ignore')

    host_ip: Optional[str] = Field(None, alias="HostIp")
    host_port: str = Field(..., alias="HostPort")


class NetworkSettings(BaseModel):
    """The subset of ``NetworkSettings`` in an inspect response we rely on."""
    model_config = ConfigDict(extra='ignore')

    ip_address: str = Field("", validation_alias=AliasChoices("IpAddress", "IPAddress"))
    # Legacy API: {"Tcp": {"80": "49001"}}
    port_mapping: Optional[Dict[str, Optional[Dict[str, str]]]] = Field(None, alias="PortMapping")
    # Current API: {"80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "49001"}]}
    ports: Optional[Dict[str, Optional[List[PortBinding]]]] = Field(None, alias="Ports")

    def tcp_ports(self) -> Dict[str, str]:
        """Private to public tcp port mapping, empty if nothing is published."""
        for proto, mapping in (self.port_mapping or {}).items():
            if proto.lower() == "tcp" and mapping:
                return dict(mapping)

        out: Dict[str, str] = {}
        for key, bindings in (self.ports or {}).items():
            private_port, _, proto = key.partition("/")
            if (proto or "tcp").lower() != "tcp" or not bindings:
                continue
            out[private_port] = bindings[0].host_port
        return out


class ContainerConfig(BaseModel):
    model_config = ConfigDict(extra='ignore')

    hostname: str = Field("", alias="Hostname")
    image: str = Field("", alias="Image")


class InspectResponse(BaseModel):
    """Shape of GET /containers/{id}/json."""
    model_config = ConfigDict(extra='ignore')

    id: str = Field("", alias="Id")
    image: str = Field("", alias="Image")
    config: Optional[ContainerConfig] = Field(None, alias="Config")
    network_settings: Optional[NetworkSettings] = Field(None, alias="NetworkSettings")


class ContainerSnapshot(BaseModel):
    """Network facts about a container at the moment it was inspected."""
    model_config = ConfigDict(frozen=True)

    id: str
    image: str
    hostname: str = ""
    ip_address: str = ""
    port_mappings: Dict[str, Dict[str, str]] = Field(default_factory=dict)

    @classmethod
    def from_inspect(cls, container_id: str, payload: Dict[str, Any],
                     image: Optional[str] = None) -> "ContainerSnapshot":
        """Build a snapshot from a raw inspect payload.

        Args:
            container_id: Id the container was looked up by
            payload: Decoded JSON body
            image: Image name from the triggering event; wins over the
                (possibly digest-only) image reported by inspect

        Raises:
            pydantic.ValidationError: If the payload has the wrong shape
        """
        response = InspectResponse.model_validate(payload)
        settings = response.network_settings or NetworkSettings()
        config = response.config or ContainerConfig()
        return cls(
            id=response.id or container_id,
            image=image or config.image or response.image,
            hostname=config.hostname,
            ip_address=settings.ip_address,
            port_mappings={"tcp": settings.tcp_ports()},
        )

    def tcp_ports(self) -> Dict[str, str]:
        return self.port_mappings.get("tcp", {})
