"""Tests for the CORS policy on the public form endpoints."""
import pytest

from app.forms.fields import FormKind


class TestCorsPolicy:
    """Verify CORS middleware uses explicit origins/methods/headers, not wildcards."""

    def test_preflight_allowed_origin(self, client):
        resp = client.request(
            "OPTIONS",
            "/api/contact",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert resp.status_code in (200, 204), f"Preflight failed: {resp.status_code}"
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
        allow_methods = resp.headers.get("access-control-allow-methods", "")
        assert "POST" in allow_methods
        assert "*" not in allow_methods

    def test_preflight_does_not_reach_handler(self, client, notifier, record_count):
        client.request(
            "OPTIONS",
            "/api/request",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert record_count(FormKind.GENERIC_REQUEST) == 0
        assert notifier.sent == []

    def test_preflight_unknown_origin_rejected(self, client):
        resp = client.request(
            "OPTIONS",
            "/api/contact",
            headers={
                "Origin": "https://evil.example",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert resp.status_code == 400
        assert "access-control-allow-origin" not in resp.headers

    @pytest.mark.parametrize("method", ["PUT", "DELETE", "PATCH"])
    def test_preflight_disallowed_method(self, client, method):
        resp = client.request(
            "OPTIONS",
            "/api/contact",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": method,
            },
        )
        assert resp.status_code == 400

    def test_simple_post_exposes_request_id(self, client, contact_payload):
        resp = client.post(
            "/api/contact",
            json=contact_payload,
            headers={"Origin": "http://localhost:3000"},
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert "x-request-id" in resp.headers.get("access-control-expose-headers", "").lower()
