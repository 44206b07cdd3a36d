"""Test the HTTP routes end to end against the scripted Docebo transport"""

import pytest
from fastapi.testclient import TestClient

from api.server import app
from bot.docebo_api import get_docebo_api
from conftest import items


@pytest.fixture
def client(api):
    app.dependency_overrides[get_docebo_api] = lambda: api
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def docebo(fake_docebo, no_delays):
    fake_docebo.route("GET", "/manage/v1/user", items({"user_id": 7, "email": "a@b.com"}))
    fake_docebo.route("GET", "/learn/v1/courses", items({"id": 5, "name": "Python"}))
    fake_docebo.route("POST", "/learn/v1/enrollments", {"data": {"enrolled": [{"user_id": 7}]}})
    return fake_docebo


def test_csv_upload_end_to_end(client, docebo):
    response = client.post("/api/chat/csv", json={
        "operation": "course_enrollment",
        "csvData": {"headers": ["email", "course"], "validRows": [["a@b.com", "Python"]]},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["csvResult"]["summary"]["total"] == 1
    assert body["data"]["csvResult"]["summary"]["successful"] == 1
    assert body["isBulkOperation"] is True
    assert "timestamp" in body


def test_csv_upload_from_raw_text(client, docebo):
    response = client.post("/api/chat/csv", json={
        "operation": "course_enrollment",
        "csvText": "email,course\na@b.com,Python\n",
    })

    assert response.status_code == 200
    assert response.json()["totalCount"] == 1


def test_csv_validation_failure_is_400(client, docebo):
    response = client.post("/api/chat/csv", json={
        "operation": "course_enrollment",
        "csvData": {"headers": ["email"], "validRows": [["not-an-email"]]},
    })

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"] == [
        "Missing required columns: course",
        "Invalid email format detected in sample rows",
    ]
    assert "• Missing required columns: course" in body["response"]
    assert docebo.requests == []


def test_csv_unknown_operation_is_400(client):
    response = client.post("/api/chat/csv", json={
        "operation": "purge",
        "csvData": {"headers": ["email"], "validRows": [["a@b.com"]]},
    })

    assert response.status_code == 400
    assert "Unknown Operation" in response.json()["response"]


def test_csv_missing_payload_is_400(client):
    response = client.post("/api/chat/csv", json={"operation": "course_enrollment"})

    assert response.status_code == 400
    assert response.json()["response"] == "❌ Missing operation or CSV data"


def test_csv_template_download(client):
    response = client.get("/api/chat/csv", params={"action": "template", "operation": "lp_enrollment"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="lp_enrollment_template.csv"'
    assert response.text.startswith("email,learning_plan,assignment_type")


def test_csv_template_unknown_operation(client):
    response = client.get("/api/chat/csv", params={"action": "template", "operation": "purge"})

    assert response.status_code == 400


def test_csv_info(client):
    body = client.get("/api/chat/csv").json()

    assert set(body["operations"]) == {"course_enrollment", "lp_enrollment", "unenrollment"}
    assert "valid_from" in body["operations"]["course_enrollment"]["validity_columns"]["alternative_names"]["start"]
    assert body["limits"]["max_rows_per_csv"] == 1000


def test_chat_message(client, docebo):
    response = client.post("/api/chat", json={"message": "Find Python courses"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["intent"] == "search_courses"
    assert body["totalCount"] == 1
    assert "Python" in body["response"]


def test_chat_pagination_fields_override_message(client, docebo):
    docebo.route("GET", "/manage/v1/user", items({"user_id": 7, "email": "a@b.com"}))
    docebo.route("GET", "/course/v1/courses/enrollments", items(
        *[{"user_id": 7, "course_id": n, "course_name": f"C{n}", "enrollment_date": f"2024-01-{n:02d}"} for n in range(1, 8)]
    ))

    response = client.post("/api/chat", json={"message": "User enrollments a@b.com", "offset": 2, "pageSize": 3})

    body = response.json()
    assert [e["course_name"] for e in body["data"]["enrollments"]] == ["C5", "C4", "C3"]
    assert body["hasMore"] is True
    assert body["loadMoreCommand"] == "Load more enrollments for a@b.com offset 5"


def test_chat_rejects_empty_message(client):
    response = client.post("/api/chat", json={"message": ""})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_chat_upstream_failure_is_500(client, fake_docebo):
    fake_docebo.route("GET", "/learn/v1/courses", (500, {"message": "boom"}))

    response = client.post("/api/chat", json={"message": "Find Python courses"})

    assert response.status_code == 500
    assert response.json()["response"].startswith("❌ **Docebo API Error**")


def test_chat_capabilities(client):
    body = client.get("/api/chat").json()

    assert len(body["intents"]) == 14
    assert body["pagination"]["defaultPageSize"] == 10


def test_missing_configuration_is_500(monkeypatch):
    monkeypatch.delenv("DOCEBO_DOMAIN")
    monkeypatch.setattr("bot.docebo_api.docebo_api", None)

    with TestClient(app) as test_client:
        response = test_client.post("/api/chat", json={"message": "help"})

    assert response.status_code == 500
    assert "Configuration Error" in response.json()["response"]


def test_root(client):
    assert client.get("/").json()["status"] == "ok"


def test_health(client, api, fake_docebo, monkeypatch):
    monkeypatch.setattr("api.server.get_docebo_api", lambda: api)

    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["components"] == {"docebo_config": "configured", "docebo_api": "healthy"}
    assert fake_docebo.token_calls == 1


def test_health_reports_auth_failure(client, api, fake_docebo, monkeypatch):
    monkeypatch.setattr("api.server.get_docebo_api", lambda: api)
    fake_docebo.token_response = (401, {"error": "invalid_grant"})

    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["components"]["docebo_api"].startswith("unhealthy")
