import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.infrastructure.database import engine, initialize_database
from app.infrastructure.notifications import RealtimeGateway
from app.infrastructure.push import FirebasePushSender, PushSender
from app.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Inicializa la base de datos al arrancar y libera los recursos al cerrar."""

    initialize_database()
    yield
    engine.dispose()


def create_app(
    *,
    realtime_gateway: RealtimeGateway | None = None,
    push_sender: PushSender | None = None,
) -> FastAPI:
    """Construye la aplicación FastAPI.

    El gateway en tiempo real y el emisor de push se crean una sola vez aquí
    y se comparten con cada petición mediante ``app.state``.
    """

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(title="Telehealth Notifications API", lifespan=lifespan)
    app.state.realtime_gateway = (
        realtime_gateway if realtime_gateway is not None else RealtimeGateway()
    )
    app.state.push_sender = (
        push_sender if push_sender is not None else FirebasePushSender.from_settings(settings)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
