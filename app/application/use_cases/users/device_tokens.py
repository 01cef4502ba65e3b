"""Use cases for registering the device that receives mobile pushes."""

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.infrastructure.repositories import UserRepository

logger = logging.getLogger(__name__)


def register_device_token(
    session: Session,
    user_id: int,
    *,
    token: str,
    device_info: dict[str, Any] | None = None,
) -> None:
    """Store ``token`` as the user's push target, replacing any previous one."""

    token = (token or "").strip()
    if not token:
        raise ValueError("El token FCM es obligatorio")
    if not UserRepository(session).set_fcm_token(user_id, token, device_info=device_info):
        raise ValueError("Usuario no encontrado")
    logger.info("Token FCM registrado para el usuario %s", user_id)


def remove_device_token(session: Session, user_id: int) -> bool:
    removed = UserRepository(session).clear_fcm_token(user_id)
    if removed:
        logger.info("Token FCM eliminado para el usuario %s", user_id)
    return removed
