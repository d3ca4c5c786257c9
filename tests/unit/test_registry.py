from app.forms.fields import FieldKind, FormKind
from app.forms.registry import build_registry


def test_every_form_kind_is_registered(registry):
    assert set(registry) == set(FormKind)
    assert {form.table for form in registry.values()} == {
        "contact_messages",
        "writer_applications",
        "generic_requests",
    }


def test_contact_fields(registry):
    contact = registry[FormKind.CONTACT]
    assert [spec.key for spec in contact.fields] == ["name", "email", "message"]
    assert contact.required_keys == ("name", "message")
    assert contact.file_field is None


def test_contact_email_can_be_required():
    contact = build_registry(contact_email_required=True)[FormKind.CONTACT]
    assert "email" in contact.required_keys


def test_writer_aliases_resolve_to_canonical_keys(registry):
    writer = registry[FormKind.WRITER_APPLICATION]
    assert writer.resolve_key("qualification") == "education"
    assert writer.resolve_key("experience") == "motivation"
    assert writer.resolve_key("resume") == "writing_sample"
    assert writer.resolve_key("phone") == "phone"
    assert writer.resolve_key("favourite_colour") is None


def test_request_form_has_typed_fields(registry):
    request = registry[FormKind.GENERIC_REQUEST]
    assert request.required_keys == ("name", "phone", "address", "message")
    assert request.get_field("pages").kind is FieldKind.NUMBER
    assert request.get_field("pages").integer
    assert request.get_field("deadline").allow_past is False
    assert request.file_field.key == "attachment"


def test_upload_settings_flow_into_file_fields():
    registry = build_registry(allowed_extensions=["pdf"], max_upload_bytes=1024)
    attachment = registry[FormKind.GENERIC_REQUEST].file_field
    assert attachment.allowed_extensions == ("pdf",)
    assert attachment.max_bytes == 1024


def test_field_schema_is_json_ready(registry):
    described = registry[FormKind.GENERIC_REQUEST].get_field("pages").to_dict()
    assert described == {
        "key": "pages",
        "kind": "number",
        "required": False,
        "label": "Pages",
        "constraints": {"min_value": 1, "max_value": 500, "integer": True},
    }
