"""Canonical FieldSpec sets, one per FormKind."""
from __future__ import annotations

from typing import Dict, Iterable, Mapping

from app.forms.fields import DEFAULT_FILE_EXTENSIONS, FieldKind, FieldSpec, FormKind, FormSpec

MAX_MESSAGE_LENGTH = 5000

FormRegistry = Mapping[FormKind, FormSpec]


def build_registry(
    contact_email_required: bool = False,
    allowed_extensions: Iterable[str] = DEFAULT_FILE_EXTENSIONS,
    max_upload_bytes: int | None = 2 * 1024 * 1024,
) -> Dict[FormKind, FormSpec]:
    """Build the process-wide form definitions from deployment settings."""
    extensions = tuple(allowed_extensions)

    def name() -> FieldSpec:
        return FieldSpec("name", FieldKind.PLAIN_TEXT, required=True, label="Name")

    def upload(key: str, label: str, aliases=()) -> FieldSpec:
        return FieldSpec(
            key,
            FieldKind.FILE_UPLOAD,
            label=label,
            allowed_extensions=extensions,
            max_bytes=max_upload_bytes,
            aliases=tuple(aliases),
        )

    contact = FormSpec(
        kind=FormKind.CONTACT,
        table="contact_messages",
        title="Contact",
        success_message="Message sent successfully",
        fields=(
            name(),
            FieldSpec(
                "email", FieldKind.EMAIL, required=contact_email_required, label="Email"
            ),
            FieldSpec(
                "message",
                FieldKind.TEXT_AREA,
                required=True,
                label="Message",
                max_length=MAX_MESSAGE_LENGTH,
            ),
        ),
    )

    writer = FormSpec(
        kind=FormKind.WRITER_APPLICATION,
        table="writer_applications",
        title="Writer Application",
        success_message="Writer application submitted successfully",
        fields=(
            name(),
            FieldSpec("email", FieldKind.EMAIL, label="Email"),
            FieldSpec("phone", FieldKind.PHONE, required=True, label="Phone"),
            FieldSpec(
                "education",
                FieldKind.PLAIN_TEXT,
                required=True,
                label="Education",
                max_length=200,
                aliases=("qualification",),
            ),
            FieldSpec(
                "motivation",
                FieldKind.TEXT_AREA,
                required=True,
                label="Motivation",
                max_length=MAX_MESSAGE_LENGTH,
                aliases=("experience",),
            ),
            FieldSpec(
                "sample_link",
                FieldKind.URL,
                label="Sample link",
                max_length=500,
            ),
            upload("writing_sample", "Writing sample", aliases=("resume",)),
        ),
    )

    request = FormSpec(
        kind=FormKind.GENERIC_REQUEST,
        table="generic_requests",
        title="Request",
        success_message="Request submitted successfully",
        fields=(
            name(),
            FieldSpec("phone", FieldKind.PHONE, required=True, label="Phone"),
            FieldSpec("email", FieldKind.EMAIL, label="Email"),
            FieldSpec(
                "address", FieldKind.PLAIN_TEXT, required=True, label="Address", max_length=255
            ),
            FieldSpec("topic", FieldKind.PLAIN_TEXT, label="Topic", max_length=120),
            FieldSpec(
                "message",
                FieldKind.TEXT_AREA,
                required=True,
                label="Message",
                max_length=MAX_MESSAGE_LENGTH,
                aliases=("instructions",),
            ),
            FieldSpec(
                "pages",
                FieldKind.NUMBER,
                label="Pages",
                integer=True,
                min_value=1,
                max_value=500,
            ),
            FieldSpec(
                "budget", FieldKind.NUMBER, label="Budget", min_value=0, max_value=1_000_000
            ),
            FieldSpec("deadline", FieldKind.DATE, label="Deadline", allow_past=False),
            upload("attachment", "Attachment"),
        ),
    )

    return {spec.kind: spec for spec in (contact, writer, request)}
