"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import NotificationDispatcher
from app.domain.entities import User
from app.infrastructure.database import get_db
from app.infrastructure.notifications import RealtimeGateway
from app.infrastructure.push import PushSender
from app.infrastructure.repositories import UserRepository
from app.infrastructure.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_exception(detail: str = "Credenciales inválidas") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Obtiene el usuario autenticado a partir del token.

    Lo usan tanto las dependencias REST como el handshake del websocket, de
    modo que ambos transportes aceptan las mismas credenciales.
    """

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _credentials_exception() from exc

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise _credentials_exception() from exc

    user = UserRepository(db).get(user_id)
    if user is None:
        raise _credentials_exception("Usuario no encontrado")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    return resolve_current_user(token, db)


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user is active."""

    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Usuario inactivo",
        )
    return current_user


def get_realtime_gateway(request: Request) -> RealtimeGateway:
    """Return the gateway built once at application start."""

    return request.app.state.realtime_gateway


def get_push_sender(request: Request) -> PushSender | None:
    return getattr(request.app.state, "push_sender", None)


def get_notification_dispatcher(
    db: Session = Depends(get_db),
    gateway: RealtimeGateway = Depends(get_realtime_gateway),
    push_sender: PushSender | None = Depends(get_push_sender),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, gateway, push_sender)
