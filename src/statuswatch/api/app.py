"""FastAPI application factory for StatusWatch."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statuswatch import __version__
from statuswatch.api.routes import config, status, stream
from statuswatch.config.loader import apply_env_overrides, load_config
from statuswatch.config.models import AppConfig
from statuswatch.config.store import JsonConfigStore
from statuswatch.events.websocket import WebSocketHub
from statuswatch.monitor.service import StatusMonitor


def create_app(config_override: AppConfig | None = None, monitor: StatusMonitor | None = None) -> FastAPI:
    if config_override is not None:
        app_config = config_override
    else:
        try:
            app_config = load_config()
        except (FileNotFoundError, ValueError):
            # No .statuswatch.yaml: run on defaults
            app_config = apply_env_overrides(AppConfig())

    if monitor is None:
        monitor = StatusMonitor(JsonConfigStore(app_config.services_file))
    hub = WebSocketHub()
    monitor.publisher.add_subscriber(hub)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await monitor.start()
        try:
            yield
        finally:
            await monitor.shutdown()

    app = FastAPI(
        title=app_config.name,
        version=__version__,
        description="Real-time health dashboard for HTTP services",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = app_config
    app.state.monitor = monitor
    app.state.hub = hub

    @app.get("/health", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(status.router, prefix="/api")
    app.include_router(config.router, prefix="/api")
    app.include_router(stream.router)

    return app


app = create_app()
