from __future__ import annotations

import logging
from typing import Any, Dict, Type
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import PersistenceError
from app.db.session import Database
from app.forms.fields import FormKind
from app.models import Base, ContactMessage, GenericRequest, WriterApplication

logger = logging.getLogger(__name__)

MODEL_BY_KIND: Dict[FormKind, Type[Base]] = {
    FormKind.CONTACT: ContactMessage,
    FormKind.WRITER_APPLICATION: WriterApplication,
    FormKind.GENERIC_REQUEST: GenericRequest,
}


class SubmissionStore:
    """Insert-only access to the submission tables."""

    def __init__(self, database: Database):
        self.database = database

    def build_record(self, kind: FormKind, values: Dict[str, Any]) -> Base:
        model = MODEL_BY_KIND[kind]
        return model(**values)

    def add(self, record: Base) -> UUID:
        """Persist one record in its own transaction and return its id.

        Blocking; callers on the event loop run it in a worker thread.
        """
        try:
            with self.database.session() as db:
                db.add(record)
                db.commit()
                return record.id
        except SQLAlchemyError as exc:
            logger.error(
                "Insert into %s failed: %s",
                record.__tablename__,
                exc,
                extra={"event_name": "submission_insert_failed"},
            )
            raise PersistenceError() from exc

    def count(self, kind: FormKind) -> int:
        with self.database.session() as db:
            return db.query(MODEL_BY_KIND[kind]).count()
