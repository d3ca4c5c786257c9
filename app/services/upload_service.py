"""
Upload handling for submission attachments.

Files are validated against the form's FieldSpec, then written once into a
flat directory under a generated name:

    <epoch milliseconds>-<16 random hex chars><original extension>

The client filename is never used as a path component.
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Callable, Optional

from fastapi import UploadFile, status

from app.core.errors import UploadError
from app.forms.fields import FieldSpec
from app.forms.validator import UploadedFile, ValidationCode, validate_field

logger = logging.getLogger(__name__)

RANDOM_SUFFIX_BYTES = 8


@dataclass
class StoredFile:
    """Result of writing one upload into the sink."""

    stored_name: str
    original_name: str
    size_bytes: int
    sha256: str


def generate_stored_name(
    original_filename: str,
    clock: Callable[[], float] = time.time,
) -> str:
    """Collision-resistant name: timestamp + random suffix + original extension."""
    extension = PurePath(original_filename).suffix.lower()
    millis = int(clock() * 1000)
    return f"{millis}-{secrets.token_hex(RANDOM_SUFFIX_BYTES)}{extension}"


def check_upload(spec: FieldSpec, upload: UploadedFile) -> None:
    """Raise UploadError when the file breaks the field's type or size rule."""
    result = validate_field(spec, upload)
    if result.valid:
        return
    status_code = (
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        if result.code is ValidationCode.FILE_TOO_LARGE
        else status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    raise UploadError(result.message, status_code=status_code)


async def read_upload(upload: UploadFile, max_bytes: Optional[int]) -> UploadedFile:
    """Read a multipart file, stopping one byte past the limit."""
    if max_bytes is None:
        content = await upload.read()
    else:
        content = await upload.read(max_bytes + 1)
    return UploadedFile(
        filename=upload.filename or "",
        content=content,
        content_type=upload.content_type,
    )


class LocalFileSink:
    """Write-once blob sink backed by a local directory."""

    def __init__(self, directory: str | Path, clock: Callable[[], float] = time.time):
        self.directory = Path(directory)
        self._clock = clock

    def _write(self, stored_name: str, content: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # "xb" refuses to overwrite an existing blob
        with open(self.directory / stored_name, "xb") as fh:
            fh.write(content)

    async def save(self, upload: UploadedFile) -> StoredFile:
        while True:
            stored_name = generate_stored_name(upload.filename, clock=self._clock)
            try:
                await asyncio.to_thread(self._write, stored_name, upload.content)
                break
            except FileExistsError:
                logger.warning("Generated upload name already taken, retrying: %s", stored_name)

        stored = StoredFile(
            stored_name=stored_name,
            original_name=upload.filename,
            size_bytes=upload.size,
            sha256=hashlib.sha256(upload.content).hexdigest(),
        )
        logger.info(
            "Upload stored name=%s size=%s sha256=%s",
            stored.stored_name,
            stored.size_bytes,
            stored.sha256,
            extra={"event_name": "upload_stored"},
        )
        return stored

    async def discard(self, stored_name: str) -> None:
        """Remove a blob whose submission was not stored."""
        await asyncio.to_thread((self.directory / stored_name).unlink, missing_ok=True)
        logger.info(
            "Upload discarded name=%s",
            stored_name,
            extra={"event_name": "upload_discarded"},
        )
