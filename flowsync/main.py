"""
flowsync - Sync Server

FastAPI application receiving capture-hook events and writing the file
representation (workflow JSON files and the credential manifest).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flowsync import __version__
from flowsync.config import Settings, get_settings
from flowsync.core.exceptions import WebhookAuthError
from flowsync.models.contracts.webhooks import WebhookError
from flowsync.routers import health_router, webhooks_router
from flowsync.services.credential_schema import CredentialSchemaClient
from flowsync.services.manifest import ManifestStore
from flowsync.services.manifest_reconciler import CredentialManifestReconciler
from flowsync.services.workflow_files import WorkflowFileStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Suppress noisy third-party loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Logs the listening address, endpoints and auth mode on startup and
    closes the schema client on shutdown.
    """
    settings: Settings = app.state.settings
    logging.getLogger("flowsync").setLevel(settings.log_level.upper())

    logger.info(f"Starting flowsync sync server on {settings.host}:{settings.port}")
    logger.info(f"Workflows directory: {settings.workflows_dir}")
    logger.info(f"Credential manifest: {settings.manifest_path}")
    for route in webhooks_router.routes:
        logger.info(f"  POST {route.path}")
    logger.info("  GET  /health")
    if settings.auth_enabled:
        logger.info("Webhook authentication enabled (x-webhook-secret)")
    else:
        logger.warning("No webhook secret configured - webhook endpoints are UNAUTHENTICATED")

    yield

    logger.info("Shutting down flowsync sync server...")
    await app.state.schema_client.aclose()
    logger.info("flowsync sync server shutdown complete")


async def webhook_auth_handler(request: Request, exc: WebhookAuthError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed payloads with 400 before any I/O."""
    logger.warning(f"Invalid payload on {request.url.path}: {len(exc.errors())} errors")
    detail = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    body = WebhookError(error="invalid payload", detail=detail)
    return JSONResponse(status_code=400, content=body.model_dump())


def create_app(
    settings: Settings | None = None,
    schema_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
        schema_transport: Optional httpx transport for the schema client

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="flowsync",
        description="Workflow and credential sync server",
        version=__version__,
        lifespan=lifespan,
    )

    schema_client = CredentialSchemaClient(settings, transport=schema_transport)
    app.state.settings = settings
    app.state.schema_client = schema_client
    app.state.workflow_store = WorkflowFileStore(settings.base_dir)
    app.state.manifest_reconciler = CredentialManifestReconciler(
        ManifestStore(settings.manifest_path), schema_client
    )

    app.add_exception_handler(WebhookAuthError, webhook_auth_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Register routers
    app.include_router(health_router)
    app.include_router(webhooks_router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "flowsync.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


# Create app instance
app = create_app()


if __name__ == "__main__":
    run()
