"""FastAPI application entry point."""

from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from loguru import logger

from cdnproxy.application.cache import MemoryCache
from cdnproxy.application.ports import RecordStore, RefreshClient
from cdnproxy.application.resolver import TieredResolver
from cdnproxy.application.stats import ProxyStats
from cdnproxy.application.use_cases import ResolveAttachmentUseCase
from cdnproxy.domain.expiry import utcnow
from cdnproxy.infrastructure import Settings, get_settings
from cdnproxy.infrastructure.discord import DiscordRefreshClient
from cdnproxy.infrastructure.heartbeat import Heartbeat
from cdnproxy.infrastructure.stores import s3_store_from_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Tiers: {', '.join(t.value for t in app.state.resolver.tiers)}")

    if not settings.token:
        logger.warning("DISCORD_TOKEN is not configured; every proxy request will be rejected")

    heartbeat: Heartbeat | None = None
    if settings.proxy_public_url:
        heartbeat = Heartbeat(settings.proxy_public_url, settings.heartbeat_interval_seconds)
        heartbeat.start()

    yield

    logger.info("Shutting down...")
    if heartbeat is not None:
        await heartbeat.stop()
    refresh_client = app.state.refresh_client
    if isinstance(refresh_client, DiscordRefreshClient):
        await refresh_client.aclose()
    logger.info("Shutdown complete")


def create_app(
    settings: Settings | None = None,
    refresh_client: RefreshClient | None = None,
    store: RecordStore | None = None,
    memory: MemoryCache | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators default to the ones described by ``settings``; tests pass
    their own.
    """
    settings = settings or get_settings()
    memory = memory if memory is not None else MemoryCache()
    if refresh_client is None:
        refresh_client = DiscordRefreshClient(
            token=settings.token,
            base_url=settings.discord_api_base,
            timeout=settings.upstream_timeout_seconds,
        )
    if store is None:
        store = s3_store_from_settings(settings)

    resolver = TieredResolver.build(
        memory=memory,
        client=refresh_client,
        store=store,
        key_scheme=settings.cache_key_scheme,
        clock=clock,
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Redirects Discord CDN attachment links to freshly signed URLs",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.memory = memory
    app.state.resolver = resolver
    app.state.refresh_client = refresh_client
    app.state.resolve_use_case = ResolveAttachmentUseCase(
        resolver=resolver,
        memory=memory,
        token=settings.token,
        allowed_channels=settings.allowed_channels,
        public_url=settings.proxy_public_url,
        stats=ProxyStats(),
    )

    from cdnproxy.infrastructure.http.proxy import router as proxy_router

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Basic health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.app_version,
        }

    app.include_router(proxy_router)

    return app
