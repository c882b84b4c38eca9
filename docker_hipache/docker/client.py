"""Docker Remote API client construction and thread offloading.

The Docker SDK is blocking; its calls run on a small dedicated executor so
the event loop stays free.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial

import docker

logger = logging.getLogger(__name__)

# One thread waits on the event stream, one serves inspect calls
executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="docker-api")


def create_docker_client(docker_api: str, timeout: float = 10.0) -> docker.APIClient:
    """Create a low-level Docker API client.

    Args:
        docker_api: Base URL of the Docker Remote API (http://, tcp:// or unix://)
        timeout: Default request timeout in seconds; the event stream overrides
            it with no timeout

    Returns:
        Docker APIClient (no connection is made until the first request)
    """
    client = docker.APIClient(base_url=docker_api, timeout=timeout)
    logger.info(f"Docker API client created for {docker_api}")
    return client


async def run_blocking(func, *args, **kwargs):
    """Run a blocking Docker SDK call on the Docker executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, partial(func, *args, **kwargs))
