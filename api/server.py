"""FastAPI server for the Shopify ⇄ HGI middleware.

Main entry point for the API server.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.dependencies import ServiceContainer
from api.routes import health, webhooks
from core.config import Settings
from core.errors import SignatureError, SyncError
from core.observability.logging import configure_logging, get_logger


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    container: ServiceContainer = app.state.container

    # Startup
    await container.start()
    logger.info("Shopify-HGI middleware starting up...")

    yield

    # Shutdown
    await container.stop()
    logger.info("Shopify-HGI middleware shutting down...")


async def signature_error_handler(request: Request, exc: SignatureError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"status": "error", "error": "Invalid HMAC"})


async def sync_error_handler(request: Request, exc: SyncError) -> JSONResponse:
    # 5xx makes Shopify redeliver the webhook later.
    return JSONResponse(
        status_code=500,
        content={"status": "error", "error": type(exc).__name__, "detail": exc.message},
    )


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted
        container: Prebuilt components (tests pass fakes here)
    """
    if container is None:
        settings = settings or Settings.from_env()
        container = ServiceContainer.from_settings(settings)

    configure_logging(
        level=container.settings.log_level_value,
        json_format=container.settings.log_json,
    )

    app = FastAPI(
        title="Shopify HGI Sync",
        description="Webhook middleware syncing Shopify products and orders with the HGI ERP",
        version=health.VERSION,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_exception_handler(SignatureError, signature_error_handler)
    app.add_exception_handler(SyncError, sync_error_handler)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(webhooks.router, prefix="/webhook", tags=["Webhooks"])

    return app


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
