from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    create_model,
    model_validator,
)
from pydantic_core import PydanticCustomError

from app.forms.fields import FormSpec

# JSON numbers are accepted for number fields; booleans, lists and objects are not
FieldValue = Optional[Union[StrictStr, StrictInt, StrictFloat]]
# Files only arrive as multipart parts; an untouched file input may post ""
EmptyFileValue = Optional[Literal[""]]


class SubmissionPayload(BaseModel):
    """Base for the per-form request body models built by build_payload_model."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def one_key_per_field(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for name, field in cls.model_fields.items():
                choices = getattr(field.validation_alias, "choices", None) or [name]
                given = [key for key in choices if key in data]
                if len(given) > 1:
                    raise PydanticCustomError(
                        "duplicate_field",
                        "Field given more than once: {field}",
                        {"field": name},
                    )
        return data


def build_payload_model(form: FormSpec) -> Type[SubmissionPayload]:
    """Request body model for one form: canonical keys plus their aliases."""
    definitions: Dict[str, Any] = {}
    for spec in form.fields:
        annotation = EmptyFileValue if spec.is_file else FieldValue
        definitions[spec.key] = (
            annotation,
            Field(None, validation_alias=AliasChoices(spec.key, *spec.aliases)),
        )
    model_name = "".join(part.capitalize() for part in form.kind.name.split("_"))
    return create_model(
        f"{model_name}Payload", __base__=SubmissionPayload, **definitions
    )


class SubmissionResponse(BaseModel):
    success: bool
    message: str
    id: Optional[str] = Field(None, description="Identifier of the stored record")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "Message sent successfully",
                "id": "3f0c6a52-4f0e-4a53-9a39-2b8f3c1f7d11",
            }
        }
    }


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class FormSchemaResponse(BaseModel):
    """Field rules a static front-end needs to validate before submitting."""

    kind: str
    title: str
    endpoint: str
    confirmation_seconds: int = Field(
        ..., description="How long the success confirmation stays visible"
    )
    fields: List[Dict[str, Any]]


SUBMISSION_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or unexpected fields"},
    413: {"model": ErrorResponse, "description": "Uploaded file too large"},
    422: {"model": ErrorResponse, "description": "Field or upload failed validation"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Submission could not be stored"},
}
