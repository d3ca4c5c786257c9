def test_form_definition(client):
    response = client.get("/api/forms/request")

    assert response.status_code == 200
    body = response.json()
    assert body["kind"] == "request"
    assert body["endpoint"] == "/api/request"
    assert body["confirmation_seconds"] == 4
    keys = [field["key"] for field in body["fields"]]
    assert keys[:4] == ["name", "phone", "email", "address"]
    attachment = next(field for field in body["fields"] if field["key"] == "attachment")
    assert attachment["kind"] == "file"
    assert attachment["constraints"]["allowed_extensions"] == ["pdf", "doc", "docx", "txt"]


def test_list_forms(client):
    response = client.get("/api/forms")

    assert response.status_code == 200
    assert {form["kind"] for form in response.json()} == {"contact", "writer", "request"}


def test_unknown_form_kind(client):
    response = client.get("/api/forms/newsletter")

    assert response.status_code == 422


def test_health_reports_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"


def test_root(client):
    body = client.get("/").json()

    assert body["health"] == "/health"
    assert body["forms"] == "/api/forms"


def test_request_id_is_echoed(client):
    response = client.get("/", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_unknown_route_uses_error_contract(client):
    response = client.post("/api/newsletter", json={})

    assert response.status_code == 404
    assert response.json()["success"] is False
