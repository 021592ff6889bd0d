"""Lifespan management for the gateway application.

Builds the resources every request handler shares (session store, archive
allocator, artifact store, sandbox client), starts the expired-token sweeper
and tears everything down again on shutdown.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from gateway.archive import ArchiveAllocator, ArtifactStore
from gateway.config import Settings, get_settings
from gateway.sandbox import SandboxClient
from gateway.sessions import SessionStore, run_sweeper

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    session_store: SessionStore | None = None
    allocator: ArchiveAllocator | None = None
    artifact_store: ArtifactStore | None = None
    sandbox_client: SandboxClient | None = None
    stop_event: asyncio.Event | None = None
    background_tasks: list[asyncio.Task] = field(default_factory=list)


def init_sandbox_client(settings: Settings) -> SandboxClient:
    return SandboxClient(
        base_url=settings.sandbox.base_url,
        execution_timeout_ms=settings.sandbox.execution_timeout_ms,
        request_timeout_sec=settings.sandbox.request_timeout_sec,
        health_timeout_sec=settings.sandbox.health_timeout_sec,
    )


async def setup_resources(
    settings: Settings | None = None,
    enable_sweeper: bool = True,
) -> LifespanResources:
    """Set up all shared resources.

    Args:
        settings: Settings to build from; defaults to the cached settings.
        enable_sweeper: Whether to start the expired-token sweep task.

    Returns:
        LifespanResources containing all initialized resources.
    """
    settings = settings or get_settings()
    resources = LifespanResources()

    resources.session_store = SessionStore(ttl_sec=settings.admin.token_ttl_sec)

    runs_dir = settings.archive.resolved_dir
    resources.allocator = ArchiveAllocator(runs_dir, settings.archive.tz)
    resources.artifact_store = ArtifactStore(runs_dir, settings.archive.tz)
    resources.sandbox_client = init_sandbox_client(settings)

    if not settings.admin.configured:
        logger.warning("ADMIN_PASSWORD_HASH is not set; admin login is disabled")

    if enable_sweeper:
        resources.stop_event = asyncio.Event()
        resources.background_tasks.append(
            asyncio.create_task(
                run_sweeper(
                    resources.session_store,
                    settings.admin.sweep_interval_sec,
                    resources.stop_event,
                ),
                name="session-sweeper",
            )
        )

    logger.info("Gateway resources ready (runs_dir=%s, sandbox=%s)", runs_dir, settings.sandbox.base_url)
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    """Clean up all resources on shutdown.

    Args:
        resources: The resources to clean up.
    """
    if resources.background_tasks and resources.stop_event:
        resources.stop_event.set()
        try:
            await asyncio.wait_for(
                asyncio.gather(*resources.background_tasks, return_exceptions=True),
                timeout=5,
            )
        except asyncio.TimeoutError:
            for t in resources.background_tasks:
                t.cancel()
        resources.background_tasks.clear()

    if resources.sandbox_client:
        resources.sandbox_client.close()

    resources.session_store = None
    resources.allocator = None
    resources.artifact_store = None
    resources.sandbox_client = None
