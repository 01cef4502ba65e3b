"""Rutas para registrar el dispositivo que recibe las notificaciones push."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.application.use_cases.users import register_device_token, remove_device_token
from app.domain.entities import User
from app.infrastructure.database import get_db
from app.interfaces.api.dependencies import get_current_active_user
from app.interfaces.api.schemas import DeviceTokenRegister, DeviceTokenResponse

router = APIRouter(prefix="/devices", tags=["devices"])


@router.post("/fcm-token", response_model=DeviceTokenResponse)
def register_fcm_token(
    payload: DeviceTokenRegister,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Guarda el token FCM del usuario y reemplaza el dispositivo registrado antes."""

    try:
        register_device_token(
            db, current_user.id, token=payload.fcm_token, device_info=payload.device_info
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DeviceTokenResponse(success=True, message="Token FCM registrado")


@router.delete("/fcm-token", response_model=DeviceTokenResponse)
def delete_fcm_token(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    removed = remove_device_token(db, current_user.id)
    message = "Token FCM eliminado" if removed else "No hay token FCM registrado"
    return DeviceTokenResponse(success=True, message=message)
