"""SQLAlchemy model for user roles."""

from sqlalchemy import Column, Integer, String

from app.infrastructure.database import Base


class RoleModel(Base):
    """Portal role (patient, doctor or admin) referenced by users."""

    __tablename__ = "role"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    alias = Column(String(50), nullable=False, unique=True)


__all__ = ["RoleModel"]
