"""Rutas para consultar y crear notificaciones."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationDispatcher,
    RecipientNotFoundError,
    build_assignment_intent,
    build_call_intent,
    build_generic_intent,
    build_message_intent,
    build_system_intent,
    list_notifications as list_notifications_uc,
)
from app.config import get_settings
from app.domain.entities import Notification, NotificationCounts, NotificationIntent, User
from app.infrastructure.database import get_db
from app.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_dispatcher,
)
from app.interfaces.api.schemas import (
    AssignmentNotificationCreate,
    CallNotificationCreate,
    MessageNotificationCreate,
    NotificationCountsRead,
    NotificationCreate,
    NotificationPageRead,
    NotificationRead,
    SystemNotificationCreate,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _to_read_model(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        recipient_id=notification.recipient_id,
        sender_id=notification.sender_id,
        type=notification.kind,
        title=notification.title,
        message=notification.message,
        data=notification.data or {},
        read=notification.read,
        created_at=notification.created_at,
        read_at=notification.read_at,
    )


def _to_counts_model(counts: NotificationCounts) -> NotificationCountsRead:
    return NotificationCountsRead(
        unread_count=counts.unread_count, total_count=counts.total_count
    )


def _dispatch(dispatcher: NotificationDispatcher, intent: NotificationIntent) -> NotificationRead:
    try:
        notification = dispatcher.dispatch(intent)
    except RecipientNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_read_model(notification)


@router.get("", response_model=NotificationPageRead)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Devuelve las notificaciones del usuario autenticado, de la más reciente a la más antigua."""

    result = list_notifications_uc(db, current_user.id, page=page, limit=limit)
    return NotificationPageRead(
        data=[_to_read_model(notification) for notification in result.items],
        page=result.page,
        limit=result.limit,
        unread_count=result.counts.unread_count,
        total_count=result.counts.total_count,
    )


@router.patch("/read-all", response_model=NotificationCountsRead)
def mark_all_notifications_read(
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    current_user: User = Depends(get_current_active_user),
):
    return _to_counts_model(dispatcher.mark_all_as_read(current_user.id))


@router.patch("/{notification_id}/read", response_model=NotificationCountsRead)
def mark_notification_read(
    notification_id: int,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    current_user: User = Depends(get_current_active_user),
):
    """Marca una notificación como leída.

    Si el id no existe, pertenece a otro usuario o ya estaba leída, los
    contadores no cambian y la petición responde igual.
    """

    return _to_counts_model(dispatcher.mark_as_read(current_user.id, notification_id))


@router.post("", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: NotificationCreate,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    current_user: User = Depends(get_current_active_user),
):
    try:
        intent = build_generic_intent(
            kind=payload.type,
            recipient_id=payload.recipient_id,
            sender_id=current_user.id,
            title=payload.title,
            message=payload.message,
            data=payload.data,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _dispatch(dispatcher, intent)


@router.post("/message", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_message_notification(
    payload: MessageNotificationCreate,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    current_user: User = Depends(get_current_active_user),
):
    """Avisa a un miembro de la conversación de un mensaje enviado por el usuario."""

    intent = build_message_intent(
        recipient_id=payload.recipient_id,
        sender_id=current_user.id,
        sender_name=current_user.name,
        text=payload.content,
        conversation_id=payload.conversation_id,
        message_id=payload.message_id,
        preview_length=get_settings().notification_preview_length,
    )
    return _dispatch(dispatcher, intent)


@router.post("/system", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_system_notification(
    payload: SystemNotificationCreate,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    current_user: User = Depends(get_current_active_user),
):
    intent = build_system_intent(
        recipient_id=payload.recipient_id,
        sender_id=current_user.id,
        title=payload.title,
        message=payload.message,
        data=payload.data,
    )
    return _dispatch(dispatcher, intent)


@router.post("/call", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_call_notification(
    payload: CallNotificationCreate,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    current_user: User = Depends(get_current_active_user),
):
    """Hace sonar la llamada en el destinatario; el push sale con prioridad alta."""

    intent = build_call_intent(
        recipient_id=payload.recipient_id,
        caller=current_user.public_profile(),
        call_id=payload.channel_name,
        call_type=payload.call_type,
    )
    return _dispatch(dispatcher, intent)


@router.post("/assignment", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_assignment_notification(
    payload: AssignmentNotificationCreate,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    current_user: User = Depends(get_current_active_user),
):
    intent = build_assignment_intent(
        recipient_id=payload.recipient_id,
        sender_id=current_user.id,
        sender_name=current_user.name,
        assignment_type=payload.assignment_type,
        assignment_id=payload.assignment_id,
        title=payload.title,
        message=payload.message,
    )
    return _dispatch(dispatcher, intent)
