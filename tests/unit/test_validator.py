"""Field rule tests for every FieldKind."""
from datetime import date

import pytest

from app.forms.fields import FieldKind, FieldSpec
from app.forms.validator import (
    UploadedFile,
    ValidationCode,
    sanitize_phone_input,
    validate_field,
    validate_form,
)

TODAY = date(2026, 3, 10)


def _spec(kind, key="value", **kwargs):
    return FieldSpec(key, kind, **kwargs)


class TestRequired:
    def test_required_empty_reports_label(self):
        result = validate_field(_spec(FieldKind.PLAIN_TEXT, "topic", required=True), "")
        assert not result.valid
        assert result.code is ValidationCode.MISSING_REQUIRED
        assert result.message == "Topic is required"

    def test_whitespace_only_counts_as_empty(self):
        result = validate_field(_spec(FieldKind.EMAIL, "email", required=True), "   ")
        assert result.code is ValidationCode.MISSING_REQUIRED

    @pytest.mark.parametrize("kind", list(FieldKind))
    def test_optional_empty_is_valid_for_every_kind(self, kind):
        assert validate_field(_spec(kind), None).valid
        assert validate_field(_spec(kind), "").valid


class TestName:
    @pytest.mark.parametrize("value", ["Jo", "Mary-Jane O'Neil", "Anne Marie"])
    def test_valid_names(self, value):
        assert validate_field(_spec(FieldKind.PLAIN_TEXT, "name", required=True), value).valid

    @pytest.mark.parametrize("value", ["J", "R2D2", "x" * 51, "Anna!"])
    def test_invalid_names(self, value):
        result = validate_field(_spec(FieldKind.PLAIN_TEXT, "full_name"), value)
        assert not result.valid
        assert result.code is ValidationCode.INVALID_FORMAT

    def test_name_rule_only_for_name_keys(self):
        assert validate_field(_spec(FieldKind.PLAIN_TEXT, "education"), "B.Sc (Hons) 2019").valid


class TestEmail:
    @pytest.mark.parametrize("value", ["a@b.co", "first.last+tag@sub.example.org"])
    def test_valid(self, value):
        assert validate_field(_spec(FieldKind.EMAIL), value).valid

    @pytest.mark.parametrize("value", ["plain", "a@b", "a b@c.de", "@b.co"])
    def test_invalid(self, value):
        result = validate_field(_spec(FieldKind.EMAIL), value)
        assert result.code is ValidationCode.INVALID_FORMAT
        assert result.message == "Enter a valid email address"


class TestPhone:
    def test_valid_indian_mobile(self):
        assert validate_field(_spec(FieldKind.PHONE), "9876543210").valid

    @pytest.mark.parametrize(
        "value", ["1234567890", "5876543210", "98765432", "987654321", "98765432101", "98765x3210"]
    )
    def test_invalid(self, value):
        assert not validate_field(_spec(FieldKind.PHONE), value).valid

    def test_sanitize_keeps_digits_and_caps_at_ten(self):
        assert sanitize_phone_input("+91 98765-43210") == "9198765432"
        assert sanitize_phone_input("98a76") == "9876"
        assert sanitize_phone_input(None) == ""

    @pytest.mark.parametrize(
        "value",
        [
            "9\u0967\u0968\u0969\u096a\u096b\u096c\u096d\u096e\u096f",  # Devanagari
            "98765\uff14\uff13\uff12\uff11\uff10",  # fullwidth
        ],
    )
    def test_non_ascii_digits_rejected(self, value):
        assert not validate_field(_spec(FieldKind.PHONE), value).valid

    def test_sanitize_drops_non_ascii_digits(self):
        assert sanitize_phone_input("98\u0967\u096876543210") == "9876543210"


class TestPincodeUsernameUrl:
    def test_pincode(self):
        assert validate_field(_spec(FieldKind.PINCODE), "560001").valid
        assert not validate_field(_spec(FieldKind.PINCODE), "060001").valid
        assert not validate_field(_spec(FieldKind.PINCODE), "56001").valid
        assert not validate_field(_spec(FieldKind.PINCODE), "1\u0968\u0969\u096a\u096b\u096c").valid

    def test_username(self):
        assert validate_field(_spec(FieldKind.USERNAME), "writer_01").valid
        assert not validate_field(_spec(FieldKind.USERNAME), "abc").valid
        assert not validate_field(_spec(FieldKind.USERNAME), "bad-name").valid

    def test_url(self):
        assert validate_field(_spec(FieldKind.URL), "https://example.com/a?b=1").valid
        assert not validate_field(_spec(FieldKind.URL), "ftp://example.com").valid
        assert not validate_field(_spec(FieldKind.URL), "example.com").valid


class TestPassword:
    def test_strong_password(self):
        assert validate_field(_spec(FieldKind.PASSWORD), "Secret1!").valid

    @pytest.mark.parametrize(
        "value,fragment",
        [
            ("Sh0rt!", "at least 8"),
            ("UPPER123!", "lowercase"),
            ("lower123!", "uppercase"),
            ("NoDigits!", "digit"),
            ("NoSymbol1", "one of"),
            ("\u00e9\u00e8\u00e0UPPER1!", "lowercase"),
            ("Pass\u0967word!", "digit"),
        ],
    )
    def test_first_failing_rule_is_reported(self, value, fragment):
        result = validate_field(_spec(FieldKind.PASSWORD), value)
        assert not result.valid
        assert fragment in result.message


class TestNumber:
    def test_range(self):
        spec = _spec(FieldKind.NUMBER, "pages", min_value=1, max_value=500, integer=True)
        assert validate_field(spec, "20").valid
        assert validate_field(spec, 20).valid
        assert validate_field(spec, "0").code is ValidationCode.OUT_OF_RANGE
        assert validate_field(spec, "501").message == "Pages must be at most 500"

    def test_integer_rejects_fraction(self):
        spec = _spec(FieldKind.NUMBER, "pages", integer=True)
        assert validate_field(spec, "2.5").code is ValidationCode.INVALID_FORMAT

    @pytest.mark.parametrize("value", ["abc", "nan", "inf", "1e999", "12,5", "1\u0968"])
    def test_non_finite_or_garbage(self, value):
        result = validate_field(_spec(FieldKind.NUMBER), value)
        assert result.code is ValidationCode.INVALID_FORMAT


class TestDate:
    def test_past_rejected_when_disallowed(self):
        spec = _spec(FieldKind.DATE, "deadline", allow_past=False)
        result = validate_field(spec, "2026-03-09", today=TODAY)
        assert result.code is ValidationCode.DATE_IN_PAST
        assert validate_field(spec, "2026-03-10", today=TODAY).valid

    def test_past_allowed_by_default(self):
        assert validate_field(_spec(FieldKind.DATE), "2001-01-01", today=TODAY).valid

    def test_malformed(self):
        result = validate_field(_spec(FieldKind.DATE), "10/03/2026", today=TODAY)
        assert result.code is ValidationCode.INVALID_FORMAT


class TestFileUpload:
    def test_allowed_extension_case_insensitive(self):
        spec = _spec(FieldKind.FILE_UPLOAD, "attachment")
        assert validate_field(spec, UploadedFile("Brief.PDF", b"%PDF")).valid

    def test_disallowed_extension_clears_input(self):
        spec = _spec(FieldKind.FILE_UPLOAD, "attachment")
        result = validate_field(spec, UploadedFile("photo.png", b"png"))
        assert result.code is ValidationCode.INVALID_FILE_TYPE
        assert result.cleared is True
        assert result.message == "Only PDF, DOC, DOCX, TXT files are allowed"

    def test_too_large_clears_input(self):
        spec = _spec(FieldKind.FILE_UPLOAD, "attachment", max_bytes=4)
        result = validate_field(spec, UploadedFile("notes.txt", b"12345"))
        assert result.code is ValidationCode.FILE_TOO_LARGE
        assert result.cleared is True

    def test_size_exactly_at_limit_passes(self):
        spec = _spec(FieldKind.FILE_UPLOAD, "attachment", max_bytes=5)
        assert validate_field(spec, UploadedFile("notes.txt", b"12345")).valid


class TestSelectAndTextArea:
    def test_select(self):
        spec = _spec(FieldKind.SELECT, "service", choices=("editing", "writing"))
        assert validate_field(spec, "editing").valid
        assert validate_field(spec, "tutoring").code is ValidationCode.INVALID_CHOICE

    def test_required_text_area_minimum(self):
        spec = _spec(FieldKind.TEXT_AREA, "message", required=True)
        assert validate_field(spec, "too short").code is ValidationCode.TOO_SHORT
        assert validate_field(spec, "long enough").valid

    def test_max_length(self):
        spec = _spec(FieldKind.TEXT_AREA, "message", max_length=12)
        assert validate_field(spec, "x" * 13).code is ValidationCode.TOO_LONG


class TestValidateForm:
    FIELDS = (
        FieldSpec("name", FieldKind.PLAIN_TEXT, required=True, label="Name"),
        FieldSpec("email", FieldKind.EMAIL, label="Email"),
        FieldSpec("phone", FieldKind.PHONE, required=True, label="Phone"),
    )

    def test_every_field_is_checked(self):
        result = validate_form(self.FIELDS, {"name": "A", "email": "bad", "phone": ""})
        assert not result.valid
        assert list(result.errors) == ["name", "email", "phone"]
        assert result.first_invalid_field == "name"

    def test_valid_form(self):
        result = validate_form(self.FIELDS, {"name": "Asha", "phone": "9876543210"})
        assert result.valid
        assert result.errors == {}
        assert result.first_invalid_field is None

    def test_same_input_same_result(self):
        values = {"name": "Asha", "email": "x@", "phone": "9876543210"}
        assert validate_form(self.FIELDS, values, TODAY) == validate_form(self.FIELDS, values, TODAY)

    def test_one_invalid_field_among_ten_makes_form_invalid(self):
        fields = tuple(
            FieldSpec(f"line_{i}", FieldKind.PLAIN_TEXT, required=True) for i in range(10)
        ) + (FieldSpec("phone", FieldKind.PHONE, required=True),)
        values = {f"line_{i}": "filled" for i in range(10)}
        values["phone"] = "1234567890"

        result = validate_form(fields, values)

        assert not result.valid
        assert result.errors == {"phone": result.result_for("phone").message}
