"""Test Docebo payload normalization"""

from datetime import datetime, timezone

import pytest

from services import normalizers


def test_coalesce_skips_missing_and_empty_values():
    record = {"id": "", "course_id": None, "idCourse": 42}
    assert normalizers.coalesce(record, normalizers.COURSE_ID_FIELDS) == 42
    assert normalizers.coalesce({}, normalizers.COURSE_ID_FIELDS, "fallback") == "fallback"


def test_precedence_resolves_left_to_right():
    assert normalizers.course_name({"title": "Title", "course_name": "Course"}) == "Title"
    assert normalizers.course_name({"name": "Name", "title": "Title"}) == "Name"
    assert normalizers.learning_plan_name({"lp_name": "LP", "plan_name": "Plan"}) == "LP"
    assert normalizers.learning_plan_id({"id": 9, "learning_plan_id": 3}) == "3"
    assert normalizers.course_name({}) == "Unknown Course"


def test_format_user_details():
    user = normalizers.format_user_details({
        "user_id": 12,
        "email": "jane@company.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "valid": "1",
        "level": "godadmin",
        "field_5": "Sales",
    })
    assert user["id"] == "12"
    assert user["fullname"] == "Jane Doe"
    assert user["username"] == "jane@company.com"
    assert user["status"] == "Active"
    assert user["level"] == "God Admin"
    assert user["department"] == "Sales"
    assert user["timezone"] == "America/New_York"
    assert user["language"] == "English"


def test_format_user_details_requires_id_and_email():
    with pytest.raises(ValueError):
        normalizers.format_user_details({"user_id": 1})
    with pytest.raises(ValueError):
        normalizers.format_user_details({"email": "a@b.com"})


def test_user_status_values():
    assert normalizers.user_status({"status": "0"}) == "Inactive"
    assert normalizers.user_status({"status": "suspended"}) == "Suspended"
    assert normalizers.user_status({}) == "Unknown"


def test_format_manager_falls_back_to_names():
    manager = normalizers.format_manager({"first_name": "Ann", "last_name": "Lee"}, 77)
    assert manager == {"id": "77", "fullname": "Ann Lee", "email": "", "department": ""}
    assert normalizers.format_manager({}, 1)["fullname"] == "Unknown Manager"


def test_enrich_course_prefers_normalized_fields():
    course = normalizers.enrich_course({
        "idCourse": 5,
        "title": "Python 101",
        "course_code": "PY-1",
        "enrolled_users": "14",
        "date_creation": 0,
    })
    assert course["id"] == 5
    assert course["name"] == "Python 101"
    assert course["title"] == "Python 101"
    assert course["code"] == "PY-1"
    assert course["enrolled_count"] == 14
    assert course["course_type"] == "elearning"
    assert course["creation_date"] == "1970-01-01T00:00:00+00:00"


def test_course_enrollment_status_from_id_and_text():
    assert normalizers.course_enrollment_status({"status": 2}) == "completed"
    assert normalizers.course_enrollment_status({"status_id": "3"}) == "suspended"
    assert normalizers.course_enrollment_status({"enrollment_status": "In Progress"}) == "in_progress"
    assert normalizers.course_enrollment_status({}) == "unknown"


def test_format_course_enrollment():
    enrollment = normalizers.format_course_enrollment({
        "course_id": 5,
        "course_name": "Python 101",
        "status": "completed",
        "enrollment_date": "2024-02-01",
        "score_given": "87.5",
    })
    assert enrollment["type"] == "course"
    assert enrollment["course_id"] == "5"
    assert enrollment["enrollment_status"] == "completed"
    assert enrollment["progress"] == 100
    assert enrollment["score"] == 87.5


def test_format_learning_plan_enrollment_progress():
    enrollment = normalizers.format_learning_plan_enrollment({
        "learning_plan_id": 8,
        "name": "Onboarding",
        "mandatory_courses_completed_at_completion": 2,
        "mandatory_courses_total_at_completion": 4,
    })
    assert enrollment["type"] == "learning_plan"
    assert enrollment["learning_plan_name"] == "Onboarding"
    assert enrollment["enrollment_status"] == "in_progress"
    assert enrollment["progress"] == 50
    assert enrollment["completed_courses"] == 2
    assert enrollment["total_courses"] == 4


def test_parse_date_formats():
    expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert normalizers.parse_date("2024-01-01T00:00:00Z") == expected
    assert normalizers.parse_date("2024-01-01") == expected
    assert normalizers.parse_date(int(expected.timestamp())) == expected
    assert normalizers.parse_date("not a date") is None
    assert normalizers.parse_date("") is None


def test_enrollment_sort_key_newest_first_undated_last():
    enrollments = [
        {"enrollment_date": None, "course_name": "undated"},
        {"enrollment_date": "2023-01-01", "course_name": "old"},
        {"enrollment_date": "2024-06-01", "course_name": "new"},
    ]
    ordered = sorted(enrollments, key=normalizers.enrollment_sort_key)
    assert [e["course_name"] for e in ordered] == ["new", "old", "undated"]


def test_strip_html():
    assert normalizers.strip_html("<p>Hello   <b>world</b></p>") == "Hello world"
    assert normalizers.strip_html("x" * 250) == "x" * 200 + "..."
    assert normalizers.strip_html(None) == ""


def test_names_match():
    assert normalizers.names_match("Python Programming", "python")
    assert normalizers.names_match("Excel", "Excel Advanced")
    assert not normalizers.names_match("Excel", "Python")
    assert not normalizers.names_match("", "Python")
