"""
Field validation rules for the intake forms.

Every rule is pure: the same FieldSpec and value always produce the same
ValidationResult, so the static front-end and the API can run identical
checks. A field reports only its first failing rule; a form reports every
field.
"""
from __future__ import annotations

import enum
import math
import re
import string
from dataclasses import dataclass
from datetime import date
from pathlib import PurePath
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from app.forms.fields import FieldKind, FieldSpec

NAME_PATTERN = re.compile(r"[A-Za-z\s'\-]{2,50}")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"[6-9]\d{9}", re.ASCII)
PINCODE_PATTERN = re.compile(r"[1-9]\d{5}", re.ASCII)
URL_PATTERN = re.compile(r"https?://[^\s/$.?#][^\s]*", re.IGNORECASE)
USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_]{4,20}")
NUMBER_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)

PASSWORD_MIN_LENGTH = 8
PASSWORD_SYMBOLS = "@$!%*?&"
TEXT_AREA_MIN_LENGTH = 10
PHONE_DIGITS = 10


class ValidationCode(str, enum.Enum):
    OK = "ok"
    MISSING_REQUIRED = "missing_required"
    INVALID_FORMAT = "invalid_format"
    OUT_OF_RANGE = "out_of_range"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    INVALID_CHOICE = "invalid_choice"
    DATE_IN_PAST = "date_in_past"
    INVALID_FILE_TYPE = "invalid_file_type"
    FILE_TOO_LARGE = "file_too_large"


@dataclass(frozen=True)
class UploadedFile:
    """A file value as received from a multipart form."""

    filename: str
    content: bytes = b""
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return PurePath(self.filename).suffix.lower().lstrip(".")


@dataclass(frozen=True)
class ValidationResult:
    field_key: str
    valid: bool
    message: Optional[str] = None
    code: ValidationCode = ValidationCode.OK
    cleared: bool = False

    @classmethod
    def ok(cls, field_key: str) -> "ValidationResult":
        return cls(field_key=field_key, valid=True)

    @classmethod
    def fail(
        cls,
        field_key: str,
        code: ValidationCode,
        message: str,
        cleared: bool = False,
    ) -> "ValidationResult":
        return cls(
            field_key=field_key, valid=False, message=message, code=code, cleared=cleared
        )


@dataclass(frozen=True)
class FormValidationResult:
    valid: bool
    field_results: Tuple[ValidationResult, ...]

    @property
    def errors(self) -> Dict[str, str]:
        """Inline error message per invalid field, in form order."""
        return {r.field_key: r.message or "" for r in self.field_results if not r.valid}

    @property
    def first_invalid_field(self) -> Optional[str]:
        """Key of the field that should receive focus, if any."""
        return next((r.field_key for r in self.field_results if not r.valid), None)

    def result_for(self, key: str) -> Optional[ValidationResult]:
        return next((r for r in self.field_results if r.field_key == key), None)


def sanitize_phone_input(raw: Optional[str]) -> str:
    """Keep digits only and cap at 10, as a phone input does while typing."""
    if not raw:
        return ""
    return re.sub(r"\D", "", raw, flags=re.ASCII)[:PHONE_DIGITS]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, UploadedFile):
        return value.filename or ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return str(value).strip()


def _is_name_key(key: str) -> bool:
    return key.lower().endswith("name")


def _check_plain_text(spec: FieldSpec, text: str, value: Any, today: date):
    if spec.pattern and not re.fullmatch(spec.pattern, text):
        return ValidationResult.fail(
            spec.key,
            ValidationCode.INVALID_FORMAT,
            spec.pattern_message or f"{spec.display_name} format is invalid",
        )
    if _is_name_key(spec.key) and not NAME_PATTERN.fullmatch(text):
        return ValidationResult.fail(
            spec.key,
            ValidationCode.INVALID_FORMAT,
            f"{spec.display_name} must be 2-50 letters, spaces, apostrophes or hyphens",
        )
    return None


def _pattern_check(pattern: re.Pattern, message: str):
    def _check(spec: FieldSpec, text: str, value: Any, today: date):
        if not pattern.fullmatch(text):
            return ValidationResult.fail(spec.key, ValidationCode.INVALID_FORMAT, message)
        return None

    return _check


def _check_password(spec: FieldSpec, text: str, value: Any, today: date):
    rules = (
        (len(text) >= PASSWORD_MIN_LENGTH, f"Password must be at least {PASSWORD_MIN_LENGTH} characters"),
        (any(c in string.ascii_lowercase for c in text), "Password must contain a lowercase letter"),
        (any(c in string.ascii_uppercase for c in text), "Password must contain an uppercase letter"),
        (any(c in string.digits for c in text), "Password must contain a digit"),
        (
            any(c in PASSWORD_SYMBOLS for c in text),
            f"Password must contain one of {PASSWORD_SYMBOLS}",
        ),
    )
    for passed, message in rules:
        if not passed:
            code = ValidationCode.TOO_SHORT if len(text) < PASSWORD_MIN_LENGTH else ValidationCode.INVALID_FORMAT
            return ValidationResult.fail(spec.key, code, message)
    return None


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _check_number(spec: FieldSpec, text: str, value: Any, today: date):
    number = float(text) if NUMBER_PATTERN.fullmatch(text) else math.nan
    if not math.isfinite(number):
        return ValidationResult.fail(
            spec.key, ValidationCode.INVALID_FORMAT, f"{spec.display_name} must be a number"
        )
    if spec.integer and not number.is_integer():
        return ValidationResult.fail(
            spec.key, ValidationCode.INVALID_FORMAT, f"{spec.display_name} must be a whole number"
        )
    if spec.min_value is not None and number < spec.min_value:
        return ValidationResult.fail(
            spec.key,
            ValidationCode.OUT_OF_RANGE,
            f"{spec.display_name} must be at least {_format_bound(spec.min_value)}",
        )
    if spec.max_value is not None and number > spec.max_value:
        return ValidationResult.fail(
            spec.key,
            ValidationCode.OUT_OF_RANGE,
            f"{spec.display_name} must be at most {_format_bound(spec.max_value)}",
        )
    return None


def _check_date(spec: FieldSpec, text: str, value: Any, today: date):
    try:
        parsed = date.fromisoformat(text)
    except ValueError:
        return ValidationResult.fail(
            spec.key, ValidationCode.INVALID_FORMAT, "Enter a valid date (YYYY-MM-DD)"
        )
    if not spec.allow_past and parsed < today:
        return ValidationResult.fail(
            spec.key, ValidationCode.DATE_IN_PAST, f"{spec.display_name} cannot be in the past"
        )
    return None


def _check_file(spec: FieldSpec, text: str, value: Any, today: date):
    extension = PurePath(text).suffix.lower().lstrip(".")
    allowed = tuple(ext.lower().lstrip(".") for ext in spec.allowed_extensions)
    if extension not in allowed:
        return ValidationResult.fail(
            spec.key,
            ValidationCode.INVALID_FILE_TYPE,
            f"Only {', '.join(allowed).upper()} files are allowed",
            cleared=True,
        )
    if spec.max_bytes is not None and isinstance(value, UploadedFile) and value.size > spec.max_bytes:
        limit_mb = spec.max_bytes / (1024 * 1024)
        return ValidationResult.fail(
            spec.key,
            ValidationCode.FILE_TOO_LARGE,
            f"File must be {limit_mb:g}MB or smaller",
            cleared=True,
        )
    return None


def _check_select(spec: FieldSpec, text: str, value: Any, today: date):
    if spec.choices and text not in spec.choices:
        return ValidationResult.fail(
            spec.key, ValidationCode.INVALID_CHOICE, f"Select a valid {spec.display_name.lower()}"
        )
    return None


def _check_text_area(spec: FieldSpec, text: str, value: Any, today: date):
    if spec.required and len(text) < TEXT_AREA_MIN_LENGTH:
        return ValidationResult.fail(
            spec.key,
            ValidationCode.TOO_SHORT,
            f"{spec.display_name} must be at least {TEXT_AREA_MIN_LENGTH} characters",
        )
    return None


_Check = Callable[[FieldSpec, str, Any, date], Optional[ValidationResult]]

_KIND_CHECKS: Dict[FieldKind, _Check] = {
    FieldKind.PLAIN_TEXT: _check_plain_text,
    FieldKind.EMAIL: _pattern_check(EMAIL_PATTERN, "Enter a valid email address"),
    FieldKind.PHONE: _pattern_check(
        PHONE_PATTERN, "Enter a valid 10-digit mobile number starting with 6, 7, 8 or 9"
    ),
    FieldKind.PASSWORD: _check_password,
    FieldKind.PINCODE: _pattern_check(PINCODE_PATTERN, "Enter a valid 6-digit pincode"),
    FieldKind.URL: _pattern_check(
        URL_PATTERN, "Enter a valid URL starting with http:// or https://"
    ),
    FieldKind.USERNAME: _pattern_check(
        USERNAME_PATTERN, "Username must be 4-20 letters, digits or underscores"
    ),
    FieldKind.NUMBER: _check_number,
    FieldKind.DATE: _check_date,
    FieldKind.FILE_UPLOAD: _check_file,
    FieldKind.SELECT: _check_select,
    FieldKind.TEXT_AREA: _check_text_area,
}


def _check_length(spec: FieldSpec, text: str) -> Optional[ValidationResult]:
    if spec.min_length is not None and len(text) < spec.min_length:
        return ValidationResult.fail(
            spec.key,
            ValidationCode.TOO_SHORT,
            f"{spec.display_name} must be at least {spec.min_length} characters",
        )
    if spec.max_length is not None and len(text) > spec.max_length:
        return ValidationResult.fail(
            spec.key,
            ValidationCode.TOO_LONG,
            f"{spec.display_name} must be at most {spec.max_length} characters",
        )
    return None


def validate_field(
    spec: FieldSpec, value: Any, today: Optional[date] = None
) -> ValidationResult:
    """Validate one value against its FieldSpec, stopping at the first failure."""
    text = _as_text(value)

    if not text:
        if spec.required:
            return ValidationResult.fail(
                spec.key,
                ValidationCode.MISSING_REQUIRED,
                f"{spec.display_name} is required",
            )
        return ValidationResult.ok(spec.key)

    check = _KIND_CHECKS[spec.kind]
    failure = check(spec, text, value, today or date.today())
    if failure is None:
        failure = _check_length(spec, text)
    return failure or ValidationResult.ok(spec.key)


def validate_form(
    fields: Iterable[FieldSpec],
    values: Mapping[str, Any],
    today: Optional[date] = None,
) -> FormValidationResult:
    """Validate every field; the form is valid only if all fields are."""
    today = today or date.today()
    results = tuple(validate_field(spec, values.get(spec.key), today) for spec in fields)
    return FormValidationResult(
        valid=all(result.valid for result in results), field_results=results
    )
