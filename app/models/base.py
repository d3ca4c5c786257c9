# =============================================================================
# NOTEASE INTAKE - SQLAlchemy ORM base
# =============================================================================

"""
Declarative base and mixins shared by the submission tables.

Layout:
- app/models/base.py        → Base class and mixins
- app/models/submission.py  → ContactMessage, WriterApplication, GenericRequest
"""

from uuid import uuid4

from sqlalchemy import Column, DateTime, Uuid, func
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()


class CreatedAtMixin:
    """Server-side creation timestamp. Submissions are never updated."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now()
    )


class UUIDMixin:
    """UUID primary key, generated client-side so it works on any backend."""

    @declared_attr
    def id(cls):
        return Column(
            Uuid(as_uuid=True),
            primary_key=True,
            default=uuid4,
            nullable=False
        )
