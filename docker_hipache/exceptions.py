"""Error kinds raised by the route synchronization engine."""


class DockerHipacheError(Exception):
    """Base class for all docker-hipache errors."""
    pass


class ConfigError(DockerHipacheError):
    """Raised when the configuration file cannot be loaded or is invalid."""
    pass


class StreamError(DockerHipacheError):
    """Raised when the runtime event stream becomes unusable."""
    pass


class InspectError(DockerHipacheError):
    """Raised when container metadata cannot be fetched or decoded."""

    def __init__(self, container_id: str, message: str):
        super().__init__(f"Could not inspect container {container_id}: {message}")
        self.container_id = container_id


class StoreError(DockerHipacheError):
    """Raised when the routing table in Redis is unreachable or a transaction fails."""
    pass


class MalformedHistoryError(DockerHipacheError):
    """Raised when a route history entry cannot be split into hostname and port."""

    def __init__(self, container_id: str, entry: str):
        super().__init__(f"Invalid route history entry for {container_id}: {entry!r}")
        self.container_id = container_id
        self.entry = entry
