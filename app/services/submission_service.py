"""
Submission handling shared by every intake form.

One handler serves all FormKinds. For a single submission the steps run in
a fixed order, each with its own failure branch:

    normalize payload -> required fields -> field rules -> file write
        -> persist -> notify (bounded, best effort) -> outcome

The insert is bounded inside the store (statement and lock timeouts on the
connection), so its own result is the definitive outcome. A record is only
announced after it is stored, and a file is kept only when its record is.
Notification problems are logged and never change the client-visible outcome.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple, Type
from uuid import UUID

from fastapi import status
from pydantic import ValidationError

from app.core.errors import (
    ErrorKind,
    FieldValidationError,
    InvalidPayloadError,
    PersistenceError,
    SubmissionError,
    UploadError,
)
from app.forms.fields import FieldKind, FormKind, FormSpec
from app.forms.registry import FormRegistry
from app.forms.validator import UploadedFile, validate_form
from app.schemas.submission import SubmissionPayload, build_payload_model
from app.services.notification_service import Notifier, build_notification
from app.services.submission_store import SubmissionStore
from app.services.upload_service import LocalFileSink, StoredFile, check_upload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionOutcome:
    """The single terminal result of one submission attempt."""

    success: bool
    message: str
    status_code: int
    error_kind: Optional[ErrorKind] = None
    record_id: Optional[UUID] = None
    stored_file: Optional[str] = None
    notified: bool = False

    @classmethod
    def ok(
        cls,
        message: str,
        record_id: UUID,
        stored_file: Optional[str] = None,
        notified: bool = False,
    ) -> "SubmissionOutcome":
        return cls(
            success=True,
            message=message,
            status_code=status.HTTP_200_OK,
            record_id=record_id,
            stored_file=stored_file,
            notified=notified,
        )

    @classmethod
    def fail(cls, error: SubmissionError) -> "SubmissionOutcome":
        return cls(
            success=False,
            message=error.public_message,
            status_code=error.status_code,
            error_kind=error.kind,
        )

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.record_id is not None:
            body["id"] = str(self.record_id)
        return body


class SubmissionHandler:
    """Validate, store and announce submissions for any registered FormKind."""

    def __init__(
        self,
        store: SubmissionStore,
        notifier: Notifier,
        sink: LocalFileSink,
        registry: FormRegistry,
        notification_timeout: float = 10.0,
        project_name: str = "NoteEase",
    ):
        self.store = store
        self.notifier = notifier
        self.sink = sink
        self.registry = registry
        self.notification_timeout = notification_timeout
        self.project_name = project_name
        self._payload_models: Dict[FormKind, Type[SubmissionPayload]] = {
            kind: build_payload_model(form) for kind, form in registry.items()
        }

    def form(self, kind: FormKind) -> FormSpec:
        return self.registry[kind]

    async def handle(
        self,
        kind: FormKind,
        payload: Any,
        attached_file: Optional[UploadedFile] = None,
    ) -> SubmissionOutcome:
        form = self.form(kind)
        stored: Optional[StoredFile] = None
        upload_note: Optional[str] = None
        try:
            values = self._normalize(form, payload)
            self._require(form, values, attached_file)
            self._validate(form, values)

            if attached_file is not None:
                stored, upload_note = await self._store_upload(form, attached_file)

            record_values = self._record_values(form, values, stored)
            record_id = await self._persist(kind, record_values)
        except SubmissionError as exc:
            self._log_failure(kind, exc)
            if stored is not None:
                await self._discard_upload(stored)
            return SubmissionOutcome.fail(exc)

        logger.info(
            "AUDIT: Submission stored kind=%s id=%s has_file=%s",
            kind.value,
            record_id,
            stored is not None,
            extra={"event_name": "submission_stored", "form_kind": kind.value},
        )

        notified = await self._notify(form, record_values, record_id)

        message = form.success_message
        if upload_note:
            message = f"{message}. {upload_note}"
        return SubmissionOutcome.ok(
            message,
            record_id=record_id,
            stored_file=stored.stored_name if stored else None,
            notified=notified,
        )

    # ------------------------------------------------------------------
    # Boundary checks
    # ------------------------------------------------------------------

    def _normalize(self, form: FormSpec, payload: Any) -> Dict[str, str]:
        try:
            parsed = self._payload_models[form.kind].model_validate(payload)
        except ValidationError as exc:
            raise InvalidPayloadError(_payload_error_message(form, exc)) from exc
        values: Dict[str, str] = {}
        for spec in form.text_fields:
            raw = getattr(parsed, spec.key)
            values[spec.key] = "" if raw is None else str(raw)
        return values

    @staticmethod
    def _require(
        form: FormSpec, values: Mapping[str, str], attached_file: Optional[UploadedFile]
    ) -> None:
        missing = [
            spec.key
            for spec in form.text_fields
            if spec.required and not values.get(spec.key)
        ]
        file_spec = form.file_field
        if file_spec is not None and file_spec.required and attached_file is None:
            missing.append(file_spec.key)
        if missing:
            raise InvalidPayloadError(f"Missing required fields: {', '.join(missing)}")

    @staticmethod
    def _validate(form: FormSpec, values: Mapping[str, str]) -> None:
        result = validate_form(form.text_fields, values)
        if result.valid:
            return
        first = result.result_for(result.first_invalid_field)
        raise FieldValidationError(first.message, field_key=first.field_key)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    async def _store_upload(
        self, form: FormSpec, upload: UploadedFile
    ) -> Tuple[Optional[StoredFile], Optional[str]]:
        spec = form.file_field
        if spec is None:
            raise InvalidPayloadError("This form does not accept file uploads")

        try:
            check_upload(spec, upload)
        except UploadError as exc:
            if spec.required:
                raise
            logger.info(
                "Optional upload rejected field=%s reason=%s",
                spec.key,
                exc.public_message,
                extra={"event_name": "upload_rejected", "form_kind": form.kind.value},
            )
            return None, f"The attached file was not accepted: {exc.public_message}"

        try:
            return await self.sink.save(upload), None
        except OSError as exc:
            logger.error(
                "Upload write failed field=%s: %s",
                spec.key,
                exc,
                extra={"event_name": "upload_write_failed"},
            )
            raise PersistenceError("Server error while saving your file.") from exc

    @staticmethod
    def _record_values(
        form: FormSpec, values: Mapping[str, str], stored: Optional[StoredFile]
    ) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        for spec in form.fields:
            if spec.is_file:
                record[spec.key] = stored.stored_name if stored else None
                continue
            raw = values.get(spec.key)
            if not raw:
                record[spec.key] = None
            elif spec.kind is FieldKind.NUMBER:
                record[spec.key] = int(float(raw)) if spec.integer else Decimal(raw)
            elif spec.kind is FieldKind.DATE:
                record[spec.key] = date.fromisoformat(raw)
            else:
                record[spec.key] = raw
        return record

    async def _persist(self, kind: FormKind, record_values: Dict[str, Any]) -> UUID:
        record = self.store.build_record(kind, record_values)
        try:
            return await asyncio.to_thread(self.store.add, record)
        except PersistenceError:
            raise
        except Exception as exc:
            logger.exception("Unexpected persistence failure kind=%s", kind.value)
            raise PersistenceError() from exc

    async def _discard_upload(self, stored: StoredFile) -> None:
        try:
            await self.sink.discard(stored.stored_name)
        except OSError as exc:
            logger.error(
                "Orphaned upload could not be removed name=%s: %s",
                stored.stored_name,
                exc,
                extra={"event_name": "upload_discard_failed"},
            )

    async def _notify(
        self, form: FormSpec, record_values: Mapping[str, Any], record_id: UUID
    ) -> bool:
        notification = build_notification(
            form, record_values, record_id, project_name=self.project_name
        )
        try:
            await asyncio.wait_for(
                self.notifier.deliver(notification), timeout=self.notification_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Notification timed out channel=%s id=%s",
                self.notifier.channel,
                record_id,
                extra={"event_name": "notification_failed", "form_kind": form.kind.value},
            )
            return False
        except Exception as exc:
            logger.warning(
                "Notification failed channel=%s id=%s error=%s",
                self.notifier.channel,
                record_id,
                exc,
                extra={"event_name": "notification_failed", "form_kind": form.kind.value},
            )
            return False

        logger.info(
            "Notification delivered channel=%s id=%s",
            self.notifier.channel,
            record_id,
            extra={"event_name": "notification_sent", "form_kind": form.kind.value},
        )
        return True

    @staticmethod
    def _log_failure(kind: FormKind, exc: SubmissionError) -> None:
        extra = {"event_name": "submission_rejected", "form_kind": kind.value, "error_kind": exc.kind.value}
        if isinstance(exc, PersistenceError):
            logger.error("Submission failed kind=%s: %r", kind.value, exc, extra=extra)
        else:
            # Client-correctable, not a server fault
            logger.info(
                "Submission rejected kind=%s reason=%s",
                kind.value,
                exc.public_message,
                extra=extra,
            )


def _payload_error_message(form: FormSpec, exc: ValidationError) -> str:
    error = exc.errors()[0]
    loc = error["loc"]
    if error["type"] == "model_type":
        return "Request body must be a JSON object"
    if not loc:
        return error["msg"]
    raw_key = str(loc[0])
    if error["type"] == "extra_forbidden":
        return f"Unexpected field: {raw_key}"
    spec = form.get_field(form.resolve_key(raw_key) or "")
    if spec is not None and spec.is_file:
        return f"{spec.display_name} must be sent as a file upload"
    return f"Invalid value for field: {raw_key}"
