#!/usr/bin/env python3
"""
nodedrain - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Publishes the LifecycleTransitions
4. Runs the SLM and registration servers on their Unix sockets

All business logic is in the modules, following black box principles.
"""

import asyncio
import logging
import os
import signal
import sys
from contextlib import asynccontextmanager
from typing import List

import click
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from kubernetes.config import ConfigException

from nodedrain import __version__
from nodedrain.config.provider import ConfigProvider, EnvConfigProvider
from nodedrain.logging_config import configure_logging
from nodedrain.modules.api.registration import create_registration_router
from nodedrain.modules.api.transitions import create_transition_router
from nodedrain.modules.cluster import ClusterError, ClusterFactory, ClusterModule
from nodedrain.modules.eviction import EvictionCoordinator
from nodedrain.modules.nodes import NodeStateModule
from nodedrain.modules.progress import ProgressStore
from nodedrain.modules.registration import RegistrationFailedError, RegistrationModule
from nodedrain.modules.transitions import (
    TransitionService,
    UnsupportedTransitionError,
    build_definitions,
    publish_definitions,
)

logger = logging.getLogger("nodedrain")


# Error handlers


async def unsupported_transition_handler(request: Request, exc: UnsupportedTransitionError):
    """Unknown condition labels are protocol errors, not retryable failures."""
    logger.error(f"Protocol error: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def registration_failed_handler(request: Request, exc: RegistrationFailedError):
    """Handle a failed kubelet registration."""
    return JSONResponse(status_code=500, content={"error": str(exc)})


# Application factories


def create_slm_app(
    service: TransitionService,
    progress: ProgressStore,
    eviction: EvictionCoordinator,
) -> FastAPI:
    """Build the app served on the SLM socket."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"SLM server ready for node {service.node_name}")
        yield
        logger.info("Shutting down SLM server...")
        await eviction.shutdown()

    app = FastAPI(
        title="nodedrain",
        description="Server-side node drain driver",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(create_transition_router(service, progress, eviction))
    app.add_exception_handler(UnsupportedTransitionError, unsupported_transition_handler)
    return app


def create_registration_app(registration: RegistrationModule) -> FastAPI:
    """Build the app served on the plugin registration socket."""
    app = FastAPI(title="nodedrain registration", version=__version__)
    app.include_router(create_registration_router(registration))
    app.add_exception_handler(RegistrationFailedError, registration_failed_handler)
    return app


def build_service(config_provider: ConfigProvider, cluster: ClusterModule) -> TransitionService:
    """Wire the driver modules together."""
    driver_config = config_provider.get_driver_config()

    progress = ProgressStore()
    eviction = EvictionCoordinator(
        cluster,
        progress,
        grace_period=driver_config.grace_period_override,
        eviction_timeout=driver_config.eviction_timeout,
    )
    return TransitionService(
        cluster=cluster,
        nodes=NodeStateModule(cluster),
        eviction=eviction,
        progress=progress,
        node_name=driver_config.node_name,
    )


def prepare_socket(socket_path: str) -> None:
    """Create the socket's directory and remove a stale socket file."""
    os.makedirs(os.path.dirname(socket_path), mode=0o750, exist_ok=True)
    try:
        os.remove(socket_path)
    except FileNotFoundError:
        pass


async def run_driver(config_provider: ConfigProvider, cluster: ClusterModule) -> int:
    """
    Publish transitions and serve both sockets until shutdown.

    Returns:
        Process exit code (non-zero if the kubelet rejected the plugin)

    Raises:
        ClusterError: LifecycleTransitions could not be published
    """
    driver_config = config_provider.get_driver_config()
    plugin_config = config_provider.get_plugin_config()

    await publish_definitions(cluster, build_definitions(driver_config.driver_name, driver_config.sla))

    service = build_service(config_provider, cluster)

    servers: List[uvicorn.Server] = []
    failures: List[str] = []

    def on_registration_failure(error: str) -> None:
        failures.append(error)
        for server in servers:
            server.should_exit = True

    registration = RegistrationModule(
        driver_name=driver_config.driver_name,
        endpoint=plugin_config.endpoint,
        on_failure=on_registration_failure,
    )

    prepare_socket(plugin_config.endpoint)
    prepare_socket(plugin_config.registration_socket)

    servers.append(
        uvicorn.Server(
            uvicorn.Config(
                create_slm_app(service, service.progress, service.eviction),
                uds=plugin_config.endpoint,
                log_config=None,
            )
        )
    )
    servers.append(
        uvicorn.Server(
            uvicorn.Config(
                create_registration_app(registration),
                uds=plugin_config.registration_socket,
                log_config=None,
            )
        )
    )

    logger.info(
        f"Drain driver started: driver={driver_config.driver_name} node={driver_config.node_name} "
        f"endpoint={plugin_config.endpoint} registration={plugin_config.registration_socket}"
    )
    await asyncio.gather(*(server.serve() for server in servers))

    if failures:
        logger.error(f"Exiting after failed registration: {failures[-1]}")
        return 1
    return 0


# Command line


@click.group()
@click.version_option(__version__, prog_name="nodedrain")
def cli():
    """SLM driver that implements server-side node drain."""


@cli.command("kubelet-plugin")
@click.option("--node-name", default=None, help="Name of this node (required).")
@click.option("--driver-name", default=None, help="SLM driver name.")
@click.option("--kubeconfig", default=None, help="Path to kubeconfig. Uses in-cluster config if empty.")
@click.option("--eviction-timeout", default=None, help="Timeout for individual pod evictions (e.g. 30s).")
@click.option(
    "--grace-period",
    type=int,
    default=None,
    help="Override for pod termination grace period (-1 = use pod's own).",
)
@click.option("--sla", default=None, help="SLA duration advertised for completing the drain (e.g. 5m).")
@click.option("--request-timeout", default=None, help="Default timeout for Kubernetes API calls (e.g. 30s).")
@click.option(
    "--plugin-registration-path",
    "registration_dir",
    default=None,
    help="Kubelet plugin registration directory.",
)
@click.option("--datadir", "plugins_dir", default=None, help="Kubelet plugins base directory.")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR).")
def kubelet_plugin(**options):
    """Run as a kubelet SLM plugin for node drain."""
    load_dotenv()
    config_provider = EnvConfigProvider(overrides=options)
    configure_logging(config_provider.get_logging_config().level)

    try:
        config_provider.get_driver_config()
    except ValueError as e:
        raise click.UsageError(str(e))

    try:
        cluster = ClusterFactory.build(config_provider)
    except (ConfigException, OSError) as e:
        raise click.ClickException(f"create Kubernetes client: {e}")

    # uvicorn re-raises the captured signal once its servers have stopped;
    # make SIGTERM end up as KeyboardInterrupt like SIGINT does
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    try:
        code = asyncio.run(run_driver(config_provider, cluster))
    except ClusterError as e:
        raise click.ClickException(f"publish LifecycleTransitions: {e}")
    except OSError as e:
        raise click.ClickException(f"prepare plugin sockets: {e}")
    except KeyboardInterrupt:
        logger.info("Received signal, shut down")
        code = 0

    sys.exit(code)


def main():
    cli()


if __name__ == "__main__":
    main()
