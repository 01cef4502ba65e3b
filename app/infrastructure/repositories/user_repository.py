"""Persistence layer for user data."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session, joinedload

from app.domain.entities import Role, User
from app.infrastructure.models import UserModel
from app.utils import ensure_app_naive_datetime, ensure_app_timezone


class UserRepository:
    """Provide the user operations needed by the notification pipeline."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self._get_model(id=user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        model = self._get_model(email=email)
        return self._to_entity(model) if model else None

    def get_map_by_ids(self, user_ids: Sequence[int]) -> dict[int, User]:
        if not user_ids:
            return {}

        unique_ids = {int(user_id) for user_id in user_ids}
        query = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.id.in_(unique_ids))
        )
        return {model.id: self._to_entity(model) for model in query.all()}

    def create(self, user: User) -> User:
        model = UserModel(
            role_id=user.role.id,
            name=user.name,
            email=user.email,
            password=user.password,
            avatar_url=user.avatar_url,
            is_active=user.is_active,
            fcm_token=user.fcm_token,
            device_info=user.device_info or None,
            is_online=False,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def set_fcm_token(
        self, user_id: int, token: str, *, device_info: dict[str, Any] | None = None
    ) -> bool:
        model = self._get_model(id=user_id)
        if model is None:
            return False
        model.fcm_token = token
        model.device_info = device_info or None
        self.session.commit()
        return True

    def clear_fcm_token(self, user_id: int, *, only_if: str | None = None) -> bool:
        """Remove the stored device token.

        With ``only_if`` the token is cleared only while it still equals that
        value, so a token re-registered in the meantime survives.
        """

        query = self.session.query(UserModel).filter(UserModel.id == user_id)
        if only_if is not None:
            query = query.filter(UserModel.fcm_token == only_if)
        updated = query.update(
            {UserModel.fcm_token: None, UserModel.device_info: None},
            synchronize_session=False,
        )
        self.session.commit()
        return bool(updated)

    def set_presence(
        self, user_id: int, *, is_online: bool, last_seen: datetime | None = None
    ) -> None:
        values: dict[Any, Any] = {UserModel.is_online: is_online}
        if last_seen is not None:
            values[UserModel.last_seen] = ensure_app_naive_datetime(last_seen)
        self.session.query(UserModel).filter(UserModel.id == user_id).update(
            values, synchronize_session=False
        )
        self.session.commit()

    def _get_model(self, **filters) -> UserModel | None:
        return (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter_by(**filters)
            .first()
        )

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        if model.role is None:
            msg = f"User {model.id} has no role"
            raise ValueError(msg)
        return User(
            id=model.id,
            role=Role(id=model.role.id, name=model.role.name, alias=model.role.alias),
            name=model.name,
            email=model.email,
            password=model.password,
            avatar_url=model.avatar_url,
            is_active=model.is_active,
            fcm_token=model.fcm_token,
            device_info=model.device_info or {},
            is_online=bool(model.is_online),
            last_seen=ensure_app_timezone(model.last_seen),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["UserRepository"]
