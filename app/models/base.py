"""SQLAlchemy declarative Base shared by all ORM models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; Alembic reads Base.metadata for autogenerate."""
