from fastapi import FastAPI

from .auth import router as auth_router
from .devices import router as devices_router
from .notifications import router as notifications_router
from .realtime import router as realtime_router
from .webhooks import router as webhooks_router


def register_routes(app: FastAPI) -> None:
    """Registra todos los routers de la API en la aplicación FastAPI."""

    app.include_router(auth_router)
    app.include_router(notifications_router)
    app.include_router(devices_router)
    app.include_router(webhooks_router)
    app.include_router(realtime_router)
