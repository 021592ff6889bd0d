import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gateway.config import Settings, get_settings
from gateway.controllers.admin import router as admin_router
from gateway.controllers.execute import router as execute_router
from gateway.controllers.health import router as health_router
from gateway.controllers.runs import router as runs_router
from gateway.errors import register_exception_handlers
from gateway.lifespan import cleanup_resources, setup_resources
from gateway.middleware import HTTPLogMiddleware

logger = logging.getLogger("gateway")


def create_app(settings: Settings | None = None, enable_sweeper: bool = True) -> FastAPI:
    """Build a gateway application with its own session store and archive handles."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        resources = await setup_resources(settings, enable_sweeper=enable_sweeper)
        app.state.resources = resources
        try:
            yield
        finally:
            await cleanup_resources(resources)
            app.state.resources = None

    app = FastAPI(title="Code Runs Gateway", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.resources = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
    )

    if settings.debug.request:
        logging.getLogger("gateway.http").setLevel(logging.DEBUG)
        app.add_middleware(HTTPLogMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(execute_router)
    app.include_router(admin_router)
    app.include_router(runs_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    logger.info("Gateway starting on %s:%s", settings.server.host, settings.server.port)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    run()
