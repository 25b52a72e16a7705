# FastAPI Routers
from flowsync.routers.health import router as health_router
from flowsync.routers.webhooks import router as webhooks_router

__all__ = [
    "health_router",
    "webhooks_router",
]
