"""Webhooks entrantes de Stream Chat."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import NotificationDispatcher
from app.application.use_cases.webhooks import (
    StreamEvent,
    StreamWebhookIngestor,
    verify_signature,
)
from app.config import Settings, get_settings
from app.infrastructure.database import get_db
from app.interfaces.api.dependencies import get_notification_dispatcher
from app.interfaces.api.schemas import WebhookAck
from app.utils import now_in_app_timezone

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = logging.getLogger(__name__)


def _parse_body(body: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(body or b"null")
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="El cuerpo no es un JSON válido"
        ) from exc
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="El cuerpo debe ser un objeto JSON"
        )
    return payload


@router.post("/stream", response_model=WebhookAck)
async def receive_stream_webhook(
    request: Request,
    x_signature: str | None = Header(default=None),
    x_signature_timestamp: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Verifica una entrega de Stream Chat y la reparte entre los miembros afectados.

    La firma cubre el cuerpo sin procesar, por eso se comprueba antes de
    parsearlo. El trabajo con la base de datos corre en el threadpool.
    """

    body = await request.body()
    if not verify_signature(
        body,
        signature=x_signature,
        timestamp=x_signature_timestamp,
        secret=settings.stream_webhook_secret,
        allow_unsigned=settings.stream_webhook_allow_unsigned,
    ):
        logger.warning(
            "Webhook de Stream rechazado por firma inválida desde %s",
            request.client.host if request.client else "unknown",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Firma de webhook inválida"
        )

    event = StreamEvent.from_payload(_parse_body(body))
    ingestor = StreamWebhookIngestor(
        db, dispatcher, preview_length=settings.notification_preview_length
    )
    try:
        created = await run_in_threadpool(ingestor.handle, event)
    except Exception as exc:
        logger.exception("No se pudo procesar el evento de webhook de Stream '%s'", event.type)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No se pudo procesar el webhook",
        ) from exc

    return WebhookAck(success=True, notifications_created=created)


@router.post("/stream/test")
async def receive_test_webhook(request: Request) -> dict[str, Any]:
    """Registra y confirma cualquier payload; sirve para probar la conexión desde Stream."""

    body = await request.body()
    logger.info("Webhook de prueba recibido (%s bytes)", len(body))
    return {
        "success": True,
        "message": "Test webhook received successfully",
        "timestamp": now_in_app_timezone().isoformat(),
    }


@router.get("/health")
def webhook_health() -> dict[str, Any]:
    return {
        "success": True,
        "message": "Stream webhook service is running",
        "timestamp": now_in_app_timezone().isoformat(),
        "endpoints": {
            "webhook": "/webhooks/stream",
            "test": "/webhooks/stream/test",
            "health": "/webhooks/health",
        },
    }
