"""
Public form submission endpoints.

Contact, writer application and generic request forms share one handler.
Bodies may be JSON objects or HTML form posts; files only arrive through
multipart/form-data.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from app.api.deps import get_submission_handler
from app.core.errors import InvalidPayloadError
from app.core.rate_limiter import check_submission_rate_limit
from app.forms.fields import FormKind, FormSpec
from app.forms.validator import UploadedFile
from app.schemas.submission import SUBMISSION_ERROR_RESPONSES, SubmissionResponse
from app.services.submission_service import SubmissionHandler
from app.services.upload_service import read_upload

router = APIRouter()

# First path is canonical; the rest are kept for older front-end builds
SUBMISSION_ROUTES: Dict[FormKind, Tuple[str, ...]] = {
    FormKind.CONTACT: ("/contact",),
    FormKind.WRITER_APPLICATION: ("/writer", "/writer-application"),
    FormKind.GENERIC_REQUEST: ("/request", "/order", "/generic-request"),
}

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidPayloadError("Request body is not valid JSON") from exc


async def _read_form(
    request: Request, form: FormSpec
) -> Tuple[Dict[str, Any], Optional[UploadedFile]]:
    parts: Dict[str, List[Any]] = {}
    attached: Optional[UploadedFile] = None
    file_spec = form.file_field

    form_data = await request.form()
    try:
        for key, value in form_data.multi_items():
            if isinstance(value, UploadFile):
                if not value.filename:
                    # Browsers send an empty part for an untouched file input
                    continue
                if file_spec is not None and form.resolve_key(key) == file_spec.key:
                    if attached is not None:
                        raise InvalidPayloadError("Only one file may be uploaded")
                    attached = await read_upload(value, file_spec.max_bytes)
                    continue
            parts.setdefault(key, []).append(value)
    finally:
        await form_data.close()

    # A repeated key stays a list and fails the payload model
    payload = {key: values[0] if len(values) == 1 else values for key, values in parts.items()}
    return payload, attached


async def read_submission(
    request: Request, form: FormSpec
) -> Tuple[Any, Optional[UploadedFile]]:
    """Decode the request body into a raw payload plus an optional file.

    The payload's shape is checked by the form's pydantic model in the handler.
    """
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/json"):
        return await _read_json(request), None
    if content_type.startswith(FORM_CONTENT_TYPES):
        return await _read_form(request, form)
    raise InvalidPayloadError("Unsupported content type")


def _submission_endpoint(kind: FormKind):
    async def submit(
        request: Request,
        handler: SubmissionHandler = Depends(get_submission_handler),
    ) -> JSONResponse:
        form = handler.form(kind)
        payload, attached = await read_submission(request, form)
        outcome = await handler.handle(kind, payload, attached)
        return JSONResponse(status_code=outcome.status_code, content=outcome.to_body())

    submit.__name__ = f"submit_{kind.value}"
    return submit


for _kind, _paths in SUBMISSION_ROUTES.items():
    for _index, _path in enumerate(_paths):
        router.add_api_route(
            _path,
            _submission_endpoint(_kind),
            methods=["POST"],
            response_model=SubmissionResponse,
            responses=SUBMISSION_ERROR_RESPONSES,
            dependencies=[Depends(check_submission_rate_limit)],
            summary=f"Submit the {_kind.value} form",
            include_in_schema=_index == 0,
            name=f"submit_{_kind.value}" if _index == 0 else f"submit_{_kind.value}_{_index}",
        )
