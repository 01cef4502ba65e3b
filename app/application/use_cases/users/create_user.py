"""Use case for creating users."""

from sqlalchemy.orm import Session

from app.domain.entities import ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT, User
from app.infrastructure.repositories import RoleRepository, UserRepository
from app.infrastructure.security import get_password_hash

ALLOWED_ROLES = (ROLE_PATIENT, ROLE_DOCTOR, ROLE_ADMIN)


def create_user(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    role: str = ROLE_PATIENT,
    avatar_url: str | None = None,
) -> User:
    """Create a new user ensuring unique email addresses."""

    role_alias = role.lower()
    if role_alias not in ALLOWED_ROLES:
        raise ValueError(f"Rol '{role}' no permitido")

    repository = UserRepository(session)
    if repository.get_by_email(email):
        raise ValueError("El correo electrónico ya está registrado")

    role_entity = RoleRepository(session).get_or_create(role_alias)
    return repository.create(
        User(
            id=None,
            role=role_entity,
            name=name,
            email=email,
            password=get_password_hash(password),
            avatar_url=avatar_url,
        )
    )
