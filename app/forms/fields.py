"""
Field and form descriptors shared by the validator, the submission handler
and the public form-schema endpoint.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

DEFAULT_FILE_EXTENSIONS: Tuple[str, ...] = ("pdf", "doc", "docx", "txt")


class FormKind(str, enum.Enum):
    CONTACT = "contact"
    WRITER_APPLICATION = "writer"
    GENERIC_REQUEST = "request"


class FieldKind(str, enum.Enum):
    PLAIN_TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    PASSWORD = "password"
    PINCODE = "pincode"
    URL = "url"
    USERNAME = "username"
    NUMBER = "number"
    DATE = "date"
    FILE_UPLOAD = "file"
    SELECT = "select"
    TEXT_AREA = "textarea"


TEXT_KINDS = frozenset(kind for kind in FieldKind if kind is not FieldKind.FILE_UPLOAD)


@dataclass(frozen=True)
class FieldSpec:
    """Static descriptor for one form field."""

    key: str
    kind: FieldKind
    required: bool = False
    label: Optional[str] = None
    pattern: Optional[str] = None
    pattern_message: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    integer: bool = False
    allow_past: bool = True
    allowed_extensions: Tuple[str, ...] = DEFAULT_FILE_EXTENSIONS
    max_bytes: Optional[int] = None
    choices: Optional[Tuple[str, ...]] = None
    aliases: Tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return self.label or self.key.replace("_", " ").capitalize()

    @property
    def is_file(self) -> bool:
        return self.kind is FieldKind.FILE_UPLOAD

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "key": self.key,
            "kind": self.kind.value,
            "required": self.required,
            "label": self.display_name,
        }
        constraints = {
            "pattern": self.pattern,
            "min_length": self.min_length,
            "max_length": self.max_length,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "choices": list(self.choices) if self.choices else None,
            "max_bytes": self.max_bytes,
        }
        if self.integer:
            constraints["integer"] = True
        if not self.allow_past:
            constraints["allow_past"] = False
        if self.is_file:
            constraints["allowed_extensions"] = list(self.allowed_extensions)
        data["constraints"] = {k: v for k, v in constraints.items() if v is not None}
        if self.aliases:
            data["aliases"] = list(self.aliases)
        return data


@dataclass(frozen=True)
class FormSpec:
    """The FieldSpec set and persistence target for one FormKind."""

    kind: FormKind
    fields: Tuple[FieldSpec, ...]
    table: str
    title: str
    success_message: str
    _by_key: Dict[str, FieldSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_key", {spec.key: spec for spec in self.fields})

    def get_field(self, key: str) -> Optional[FieldSpec]:
        return self._by_key.get(key)

    @property
    def text_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(spec for spec in self.fields if not spec.is_file)

    @property
    def file_field(self) -> Optional[FieldSpec]:
        return next((spec for spec in self.fields if spec.is_file), None)

    @property
    def required_keys(self) -> Tuple[str, ...]:
        return tuple(spec.key for spec in self.fields if spec.required)

    def resolve_key(self, incoming: str) -> Optional[str]:
        """Map a payload key (canonical or alias) to its canonical field key."""
        if incoming in self._by_key:
            return incoming
        for spec in self.fields:
            if incoming in spec.aliases:
                return spec.key
        return None
