"""Main entry point for docker-hipache."""

import asyncio
from contextlib import aclosing
import logging
import sys
from typing import Optional

import click

from .docker.client import create_docker_client
from .docker.events import EventConsumer
from .docker.inspector import ContainerInspector
from .exceptions import ConfigError, StoreError, StreamError
from .orchestrator.synchronizer import RouteSynchronizer
from .shared.config import Config, Settings, load_settings
from .shared.python_logger_config import setup_python_logging, silence_noisy_loggers
from .storage.redis_clients import create_redis_client
from .storage.route_store import RouteStore

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_CONFIG = 2


async def run_sync(settings: Settings) -> int:
    """Initialize frontends and process events until the stream ends.

    Returns:
        Number of events processed

    Raises:
        StoreError: If the routing table cannot be updated
        StreamError: If the event stream fails
    """
    redis_client = create_redis_client(
        settings.get_redis_url(),
        timeout=Config.REDIS_TIMEOUT,
        max_connections=Config.REDIS_MAX_CONNECTIONS,
    )
    store = RouteStore(redis_client)
    docker_client = create_docker_client(settings.docker_api, timeout=Config.INSPECT_TIMEOUT)
    inspector = ContainerInspector(docker_client)
    consumer = EventConsumer(docker_client)
    synchronizer = RouteSynchronizer(settings.routing_config(), store, inspector)

    try:
        await store.ping()
        await synchronizer.initialize_routes()
        async with aclosing(consumer.events()) as events:
            return await synchronizer.run(events)
    finally:
        docker_client.close()
        await store.close()


@click.command()
@click.option('-conf', '--conf', 'conf_path', type=click.Path(dir_okay=False),
              default=None, help='Path to the toml config file')
@click.option('--log-level', default=None,
              help='Logging level (TRACE, DEBUG, INFO, WARNING, ERROR)')
def cli(conf_path: Optional[str], log_level: Optional[str]):
    """Register Docker containers as Hipache backends in Redis."""
    setup_python_logging(log_level or Config.LOG_LEVEL)
    silence_noisy_loggers()

    try:
        Config.validate()
        settings = load_settings(conf_path)
    except ConfigError as e:
        logger.critical(f"Could not load config: {e}")
        sys.exit(EXIT_CONFIG)

    try:
        asyncio.run(run_sync(settings))
    except StreamError as e:
        logger.critical(f"Event stream failed: {e}")
        sys.exit(EXIT_FAILURE)
    except StoreError as e:
        logger.critical(f"Routing table update failed: {e}")
        sys.exit(EXIT_FAILURE)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


def main():
    cli()


if __name__ == '__main__':
    main()
