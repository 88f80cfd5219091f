"""Declarative base and mixins for the SQLAlchemy models."""

from seedfarm.core.database.base import Base, IdMixin, TimestampMixin

__all__ = ["Base", "IdMixin", "TimestampMixin"]
