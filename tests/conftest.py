"""Pytest configuration and in-memory doubles for Redis and the Docker API."""

from typing import Callable, Dict, Iterable, List, Optional

from docker.errors import NotFound
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from docker_hipache.docker.inspector import ContainerInspector
from docker_hipache.orchestrator.synchronizer import RouteSynchronizer
from docker_hipache.proxy.routes import RoutingConfig, RoutingRule
from docker_hipache.storage.route_store import RouteStore

DOCKER_API = "http://docker.test:4243"


class FakeRedis:
    """Async Redis double implementing the list commands the store uses.

    ``fail_on_exec`` makes the next transaction fail at EXEC without
    applying any queued command. ``fail_commands`` makes the named direct
    commands raise a connection error.
    """

    def __init__(self):
        self.lists: Dict[str, List[str]] = {}
        self.mutations: List[tuple] = []
        self.fail_on_exec = False
        self.fail_commands = set()
        self.closed = False

    def _check(self, name: str):
        if name in self.fail_commands:
            raise RedisConnectionError(f"Connection refused ({name})")

    def _apply(self, name: str, *args):
        self.mutations.append((name,) + args)
        if name == "delete":
            removed = 0
            for key in args:
                removed += int(self.lists.pop(key, None) is not None)
            return removed
        if name == "rpush":
            key, *values = args
            self.lists.setdefault(key, []).extend(values)
            return len(self.lists[key])
        if name == "lrem":
            key, count, value = args
            items = self.lists.get(key, [])
            removed = 0
            for i, item in enumerate(items):
                if item == value:
                    del items[i]
                    removed = 1
                    break
            if key in self.lists and not items:
                del self.lists[key]
            return removed
        raise NotImplementedError(name)

    async def ping(self):
        self._check("ping")
        return True

    async def lrange(self, key: str, start: int, end: int):
        self._check("lrange")
        return list(self.lists.get(key, []))

    async def lrem(self, key: str, count: int, value: str):
        self._check("lrem")
        return self._apply("lrem", key, count, value)

    async def rpush(self, key: str, *values: str):
        self._check("rpush")
        return self._apply("rpush", key, *values)

    async def delete(self, *keys: str):
        self._check("delete")
        return self._apply("delete", *keys)

    def pipeline(self, transaction: bool = True):
        return FakePipeline(self)

    async def aclose(self, close_connection_pool: Optional[bool] = None):
        self.closed = True


class FakePipeline:
    """MULTI/EXEC: queued commands apply together at execute(), or not at all."""

    def __init__(self, redis: FakeRedis):
        self.redis = redis
        self.queue: List[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.queue = []

    def delete(self, *keys):
        self.queue.append(("delete",) + keys)
        return self

    def rpush(self, key, *values):
        self.queue.append(("rpush", key) + values)
        return self

    async def execute(self):
        if self.redis.fail_on_exec:
            self.redis.fail_on_exec = False
            self.queue = []
            raise RedisConnectionError("Connection lost during EXEC")
        results = [self.redis._apply(*command) for command in self.queue]
        self.queue = []
        return results


class FakeEventStream:
    """Blocking iterator standing in for the SDK's CancellableStream.

    Exception instances among ``items`` are raised when reached.
    """

    def __init__(self, items: Iterable):
        self._items = iter(items)
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        item = next(self._items)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class FakeDockerClient:
    """Stands in for ``docker.APIClient``.

    ``inspect_container`` serves ``containers`` by id, or defers to
    ``inspect_handler`` when one is set. ``events`` builds a new stream from
    ``stream_factory`` on every call, or raises ``open_error``.
    """

    base_url = DOCKER_API

    def __init__(self, containers: Optional[Dict[str, dict]] = None,
                 inspect_handler: Optional[Callable[[str], dict]] = None,
                 stream_factory: Optional[Callable[[], Iterable]] = None,
                 open_error: Optional[Exception] = None):
        self.containers = containers if containers is not None else {}
        self.inspect_handler = inspect_handler
        self.stream_factory = stream_factory or (lambda: [])
        self.open_error = open_error
        self.inspected: List[str] = []
        self.streams: List[FakeEventStream] = []
        self.closed = False

    def inspect_container(self, container: str):
        self.inspected.append(container)
        if self.inspect_handler is not None:
            return self.inspect_handler(container)
        if container not in self.containers:
            raise NotFound(f"No such container: {container}")
        return self.containers[container]

    def events(self, decode: Optional[bool] = None, **kwargs):
        assert decode is True
        if self.open_error is not None:
            raise self.open_error
        stream = FakeEventStream(self.stream_factory())
        self.streams.append(stream)
        return stream

    def close(self):
        self.closed = True


def inspect_payload(container_id: str, tcp: Dict[str, str], ip: str = "172.17.0.2",
                    image: str = "sha256:abc") -> dict:
    """Legacy-API inspect body with a PortMapping.Tcp table."""
    return {
        "Id": container_id,
        "Image": image,
        "Config": {"Hostname": container_id[:12], "Image": image},
        "NetworkSettings": {
            "IpAddress": ip,
            "PortMapping": {"Tcp": tcp, "Udp": {}},
        },
    }


def event_frame(container_id: str, status: str, image: str) -> dict:
    """One decoded /events message."""
    return {"id": container_id, "status": status, "from": image}


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis) -> RouteStore:
    return RouteStore(fake_redis)


@pytest.fixture
def routing() -> RoutingConfig:
    return RoutingConfig({
        "web": RoutingRule(hostname=["a.example.com"], port="80"),
        "api": RoutingRule(hostname=["api.example.com", "api2.example.com"], port="8080"),
    })


@pytest.fixture
def containers() -> Dict[str, dict]:
    """Inspect payloads by container id; tests add entries as needed."""
    return {}


@pytest.fixture
def docker_client(containers) -> FakeDockerClient:
    return FakeDockerClient(containers)


@pytest.fixture
def inspector(docker_client) -> ContainerInspector:
    return ContainerInspector(docker_client)


@pytest.fixture
def synchronizer(routing, store, inspector) -> RouteSynchronizer:
    return RouteSynchronizer(routing, store, inspector)
