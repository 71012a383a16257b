"""Base models and mixins for database models"""

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, declared_attr
from sqlalchemy.sql import func


# Create declarative base
class Base(DeclarativeBase):
    pass


class TimestampedModel:
    """Mixin for adding created_at and updated_at timestamps"""

    @declared_attr
    def created_at(cls):
        return Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            index=True
        )

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now()
        )


class VersionedModel:
    """Optimistic concurrency counter, bumped by compare-and-set updates"""

    @declared_attr
    def version(cls):
        return Column(
            Integer,
            nullable=False,
            default=1
        )


class BaseModel(Base):
    """Abstract base model with common functionality"""

    __abstract__ = True

    def __repr__(self):
        class_name = self.__class__.__name__
        attributes = []

        for column in self.__table__.columns:
            if column.primary_key:
                value = getattr(self, column.name)
                attributes.append(f"{column.name}={value!r}")

        return f"<{class_name}({', '.join(attributes)})>"


__all__ = [
    'Base',
    'BaseModel',
    'TimestampedModel',
    'VersionedModel',
]
