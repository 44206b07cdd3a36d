"""Test the Docebo API client against a scripted transport"""

import json
import time

import httpx
import pytest

from bot.docebo_api import extract_items
from config.settings import load_docebo_config
from conftest import items
from utils.error_handler import (
    ConfigError,
    DoceboAPIError,
    EnrollmentRejectedError,
    ResourceNotFoundError,
)


@pytest.mark.asyncio
async def test_token_is_reused_within_validity(api, fake_docebo):
    fake_docebo.route("GET", "/manage/v1/user", items())

    await api.api_request("/manage/v1/user")
    await api.api_request("/manage/v1/user")

    assert fake_docebo.token_calls == 1
    assert all(r.headers["Authorization"] == "Bearer token-1" for r in fake_docebo.requests)


@pytest.mark.asyncio
async def test_token_is_refetched_after_expiry(api, fake_docebo):
    fake_docebo.route("GET", "/manage/v1/user", items())

    await api.api_request("/manage/v1/user")
    api._token_expiry = time.time() - 1
    await api.api_request("/manage/v1/user")

    assert fake_docebo.token_calls == 2


@pytest.mark.asyncio
async def test_token_failure_clears_cache(api, fake_docebo):
    fake_docebo.route("GET", "/manage/v1/user", items())
    await api.api_request("/manage/v1/user")
    api._token_expiry = time.time() - 1

    fake_docebo.token_response = (401, {"error": "invalid_grant"})
    with pytest.raises(DoceboAPIError) as exc_info:
        await api.api_request("/manage/v1/user")

    assert exc_info.value.status_code == 401
    assert api._access_token is None

    fake_docebo.token_response = (200, {"access_token": "token-2", "expires_in": 3600})
    await api.api_request("/manage/v1/user")
    assert fake_docebo.requests[-1].headers["Authorization"] == "Bearer token-2"


@pytest.mark.asyncio
async def test_requests_go_to_normalized_base_url(api, fake_docebo):
    fake_docebo.route("GET", "/learn/v1/courses", items())

    await api.search_courses("python", 10)

    request = fake_docebo.requests[0]
    assert request.url.scheme == "https"
    assert request.url.host == "acme.docebosaas.com"
    assert request.url.params["search_text"] == "python"
    assert request.url.params["page_size"] == "10"


@pytest.mark.asyncio
async def test_error_status_raises_docebo_api_error(api, fake_docebo):
    fake_docebo.route("GET", "/learn/v1/courses", (500, {"message": "boom"}))

    with pytest.raises(DoceboAPIError) as exc_info:
        await api.api_request("/learn/v1/courses")

    assert exc_info.value.status_code == 500
    assert "API request failed: 500" in exc_info.value.message


@pytest.mark.asyncio
async def test_transport_error_raises_docebo_api_error(api, fake_docebo):
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    fake_docebo.route("GET", "/learn/v1/courses", unreachable)

    with pytest.raises(DoceboAPIError) as exc_info:
        await api.api_request("/learn/v1/courses")

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_empty_body_returns_empty_dict(api, fake_docebo):
    fake_docebo.route("DELETE", "/learn/v1/enrollments/courses/5/users/7", httpx.Response(204))

    assert await api.unenroll_user_from_course("7", "5") == {}


@pytest.mark.asyncio
async def test_numeric_course_identifier_tries_direct_lookup_first(api, fake_docebo):
    fake_docebo.route("GET", "/learn/v1/courses/123", {"data": {"id": 123, "name": "Python 101"}})
    fake_docebo.route("GET", "/learn/v1/courses", items({"id": 999, "name": "Other"}))

    course = await api.find_course_by_identifier("123")

    assert course["id"] == 123
    assert course["course_name"] == "Python 101"
    assert fake_docebo.calls("GET", "/learn/v1/courses") == []


@pytest.mark.asyncio
async def test_course_lookup_falls_back_to_search(api, fake_docebo):
    fake_docebo.route("GET", "/learn/v1/courses", items(
        {"id": 1, "name": "Python Basics", "code": "PY-1"},
        {"id": 2, "name": "Python Advanced", "code": "PY-2"},
    ))

    course = await api.find_course_by_identifier("py-2")

    assert course["id"] == 2
    assert fake_docebo.calls("GET", "/learn/v1/courses")[0].url.params["page_size"] == "50"


@pytest.mark.asyncio
async def test_course_lookup_prefers_exact_name_over_substring(api, fake_docebo):
    fake_docebo.route("GET", "/learn/v1/courses", items(
        {"id": 1, "name": "Excel Advanced"},
        {"id": 2, "name": "Excel"},
    ))

    assert (await api.find_course_by_identifier("excel"))["id"] == 2


@pytest.mark.asyncio
async def test_missing_course_raises_not_found(api, fake_docebo):
    fake_docebo.route("GET", "/learn/v1/courses", items())

    with pytest.raises(ResourceNotFoundError) as exc_info:
        await api.find_course_by_identifier("Nope")

    assert exc_info.value.message == "Course not found: Nope"


@pytest.mark.asyncio
async def test_learning_plan_lookup_by_name(api, fake_docebo):
    fake_docebo.route("GET", "/learningplan/v1/learningplans", items(
        {"learning_plan_id": 4, "title": "Data Science Path"},
    ))

    plan = await api.find_learning_plan_by_identifier("Data Science")

    assert plan["learning_plan_id"] == 4
    assert plan["name"] == "Data Science Path"


@pytest.mark.asyncio
async def test_enroll_in_course_body(api, fake_docebo):
    fake_docebo.route("POST", "/learn/v1/enrollments", {"data": {"enrolled": [{"user_id": 7}]}})

    await api.enroll_user_in_course("7", "5", assignment_type="mandatory", end_validity="2025-12-31")

    body = json.loads(fake_docebo.calls("POST", "/learn/v1/enrollments")[0].content)
    assert body == {
        "course_ids": ["5"],
        "user_ids": ["7"],
        "level": "3",
        "assignment_type": "mandatory",
        "date_expire_validity": "2025-12-31",
    }


@pytest.mark.asyncio
async def test_rejected_enrollment_raises(api, fake_docebo):
    fake_docebo.route("POST", "/learningplan/v1/learningplans/enrollments", {
        "data": {"enrolled": [], "errors": {"existing_enrollments": [{"user_id": 7}]}}
    })

    with pytest.raises(EnrollmentRejectedError) as exc_info:
        await api.enroll_user_in_learning_plan("7", "4")

    assert exc_info.value.reason == "existing_enrollments"
    assert "already enrolled" in exc_info.value.message


@pytest.mark.asyncio
async def test_find_user_by_email_requires_exact_match(api, fake_docebo):
    fake_docebo.route("GET", "/manage/v1/user", items(
        {"user_id": 1, "email": "john.smith@company.com"},
        {"user_id": 2, "email": "John@Company.com"},
    ))

    user = await api.find_user_by_email("john@company.com")
    assert user["user_id"] == 2

    with pytest.raises(ResourceNotFoundError):
        await api.get_user_details("nobody@company.com")


@pytest.mark.asyncio
async def test_enhanced_details_survive_manager_failure(api, fake_docebo):
    fake_docebo.route("GET", "/manage/v1/user/7", {"data": {
        "user_id": 7, "email": "a@b.com", "manager_id": 8, "field_1": "Engineer",
    }})

    details = await api.get_enhanced_user_details("7")

    assert details["id"] == "7"
    assert details["manager"] is None
    assert details["additional_fields"]["job_title"] == "Engineer"


@pytest.mark.asyncio
async def test_enhanced_details_include_manager(api, fake_docebo):
    fake_docebo.route("GET", "/manage/v1/user/7", {"data": {"user_id": 7, "email": "a@b.com", "manager_id": 8}})
    fake_docebo.route("GET", "/manage/v1/user/8", {"data": {"user_id": 8, "fullname": "Boss", "email": "boss@b.com"}})

    details = await api.get_enhanced_user_details("7")

    assert details["manager"]["fullname"] == "Boss"
    assert details["manager"]["email"] == "boss@b.com"


@pytest.mark.asyncio
async def test_enrollment_pages_are_capped(api, fake_docebo, no_delays):
    def full_page(request):
        page = int(request.url.params["page"])
        size = int(request.url.params["page_size"])
        records = [{"user_id": 7, "course_id": page * 100 + n} for n in range(size)]
        return {"data": {"items": records, "has_more_data": True}}

    fake_docebo.route("GET", "/course/v1/courses/enrollments", full_page)

    result = await api.get_enrollment_pages("course", "7", pages=10, page_size=2)

    assert len(fake_docebo.calls("GET", "/course/v1/courses/enrollments")) == 5
    assert result["pages_fetched"] == 5
    assert len(result["enrollments"]) == 10
    assert result["has_more"] is True


@pytest.mark.asyncio
async def test_enrollment_pages_stop_on_short_page(api, fake_docebo, no_delays):
    fake_docebo.route("GET", "/course/v1/courses/enrollments", items({"user_id": 7, "course_id": 1}))

    result = await api.get_enrollment_pages("course", "7", pages=3)

    assert result["pages_fetched"] == 1
    assert result["has_more"] is False


@pytest.mark.asyncio
async def test_enrollment_pages_drop_other_users(api, fake_docebo, no_delays):
    fake_docebo.route("GET", "/course/v1/courses/enrollments", items(
        {"user_id": 7, "course_id": 1},
        {"user_id": 8, "course_id": 2},
        {"course_id": 3},
    ))

    result = await api.get_enrollment_pages("course", "7")

    assert [e["course_id"] for e in result["enrollments"]] == [1, 3]


@pytest.mark.asyncio
async def test_all_enrollments_try_alternate_endpoints(api, fake_docebo, no_delays):
    fake_docebo.route("GET", "/learn/v1/enrollments", items({"user_id": 7, "course_id": 1, "course_name": "Python", "status": 1}))
    fake_docebo.route("GET", "/manage/v1/user/7/learningplans", items({"learning_plan_id": 4, "name": "Onboarding"}))

    result = await api.get_user_all_enrollments("7")

    assert result["total_courses"] == 1
    assert result["courses"][0]["enrollment_status"] == "in_progress"
    assert result["total_learning_plans"] == 1
    assert result["learning_plans"][0]["learning_plan_name"] == "Onboarding"
    assert result["success"] is True


@pytest.mark.asyncio
async def test_probe_endpoints_first_accepted_variant_wins(api, fake_docebo):
    fake_docebo.route("GET", "/course/v1/courses/enrollments", (500, {"message": "boom"}))
    fake_docebo.route("GET", "/learn/v1/enrollments", items({"user_id": 8, "course_id": 1}))
    fake_docebo.route("GET", "/manage/v1/user/7/courses", items({"user_id": 7, "course_id": 1}))

    endpoint, records = await api.probe_endpoints(
        [
            "/course/v1/courses/enrollments?user_id[]=7",
            "/learn/v1/enrollments?user_id=7",
            "/manage/v1/user/7/courses",
            "/learn/v1/users/7/courses",
        ],
        accept=lambda item: str(item["user_id"]) == "7",
    )

    assert endpoint == "/manage/v1/user/7/courses"
    assert records == [{"user_id": 7, "course_id": 1}]
    assert len(fake_docebo.requests) == 3
    assert fake_docebo.requests[0].url.params["user_id[]"] == "7"


@pytest.mark.asyncio
async def test_probe_endpoints_exhausted(api, fake_docebo):
    assert await api.probe_endpoints(["/learn/v1/users/7/courses"]) == (None, [])


def test_extract_items_shapes():
    assert extract_items({"data": {"items": [1]}}) == [1]
    assert extract_items({"data": [2]}) == [2]
    assert extract_items([3]) == [3]
    assert extract_items({"data": {}}) == []
    assert extract_items(None) == []


def test_config_reports_every_missing_variable(monkeypatch):
    monkeypatch.delenv("DOCEBO_CLIENT_ID")
    monkeypatch.setenv("DOCEBO_PASSWORD", "  ")

    with pytest.raises(ConfigError) as exc_info:
        load_docebo_config()

    assert exc_info.value.details["missing"] == ["DOCEBO_CLIENT_ID", "DOCEBO_PASSWORD"]


def test_config_base_url():
    assert load_docebo_config().base_url == "https://acme.docebosaas.com"
