from app.forms.fields import FieldKind, FieldSpec, FormKind, FormSpec
from app.forms.registry import FormRegistry, build_registry
from app.forms.validator import (
    FormValidationResult,
    UploadedFile,
    ValidationCode,
    ValidationResult,
    sanitize_phone_input,
    validate_field,
    validate_form,
)

__all__ = [
    "FieldKind",
    "FieldSpec",
    "FormKind",
    "FormRegistry",
    "FormSpec",
    "FormValidationResult",
    "UploadedFile",
    "ValidationCode",
    "ValidationResult",
    "build_registry",
    "sanitize_phone_input",
    "validate_field",
    "validate_form",
]
