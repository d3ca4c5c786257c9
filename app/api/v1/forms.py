"""Form definitions published for the static front-end."""
from typing import List

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_form_registry
from app.api.v1.submissions import SUBMISSION_ROUTES
from app.forms.fields import FormKind, FormSpec
from app.forms.registry import FormRegistry
from app.schemas.submission import FormSchemaResponse

router = APIRouter()


def _describe(request: Request, form: FormSpec) -> FormSchemaResponse:
    settings = request.app.state.settings
    return FormSchemaResponse(
        kind=form.kind.value,
        title=form.title,
        endpoint=f"{settings.API_PREFIX}{SUBMISSION_ROUTES[form.kind][0]}",
        confirmation_seconds=settings.CONFIRMATION_DISPLAY_SECONDS,
        fields=[spec.to_dict() for spec in form.fields],
    )


@router.get("/forms", response_model=List[FormSchemaResponse], summary="List form definitions")
async def list_forms(
    request: Request, registry: FormRegistry = Depends(get_form_registry)
) -> List[FormSchemaResponse]:
    return [_describe(request, form) for form in registry.values()]


@router.get(
    "/forms/{kind}",
    response_model=FormSchemaResponse,
    summary="Get one form definition",
    description="Field kinds, required flags and constraints for client-side validation.",
)
async def get_form(
    kind: FormKind,
    request: Request,
    registry: FormRegistry = Depends(get_form_registry),
) -> FormSchemaResponse:
    return _describe(request, registry[kind])
