"""
Docebo payload normalizers

Docebo returns the same concept under different field names depending on the
endpoint (and tenant version). Every lookup below goes through an explicit
precedence table: the first present, non-empty field wins.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

# Field precedence tables
USER_ID_FIELDS = ("user_id", "id")
USER_USERNAME_FIELDS = ("username", "encoded_username", "userid", "user_name")
USER_STATUS_FIELDS = ("status", "valid", "is_active", "active")
USER_LEVEL_FIELDS = ("level", "user_level", "role", "user_role")
USER_CREATED_FIELDS = ("creation_date", "register_date", "date_created", "created_at")
USER_LAST_ACCESS_FIELDS = ("last_access_date", "last_update", "last_access", "updated_at")
USER_TIMEZONE_FIELDS = ("timezone", "time_zone", "tz")
USER_LANGUAGE_FIELDS = ("language", "lang", "lang_code")
USER_DEPARTMENT_FIELDS = ("department", "field_5")
USER_MANAGER_FIELDS = ("direct_manager", "manager_id")
USER_JOB_TITLE_FIELDS = ("job_title", "field_1")
USER_EMPLOYEE_ID_FIELDS = ("employee_id", "field_2")
USER_LOCATION_FIELDS = ("location", "field_3")
USER_SUBORDINATES_FIELDS = ("subordinates_count", "active_subordinates_count")

COURSE_ID_FIELDS = ("id", "course_id", "idCourse")
COURSE_NAME_FIELDS = ("name", "title", "course_name")
COURSE_CODE_FIELDS = ("code", "course_code")
COURSE_ENROLLED_FIELDS = ("enrolled_users_count", "enrolled_users", "subscription_count")
COURSE_LANGUAGE_FIELDS = ("lang_code", "language")

LP_ID_FIELDS = ("learning_plan_id", "id", "lp_id")
LP_NAME_FIELDS = (
    "name",
    "title",
    "learning_plan_name",
    "lp_name",
    "learningplan_name",
    "plan_name",
)
LP_ENROLLED_FIELDS = ("enrolled_users_count", "total_users", "user_count")
LP_COURSES_FIELDS = ("courses_count", "total_courses")

ENROLLMENT_USER_ID_FIELDS = ("user_id", "id_user", "userId")
ENROLLMENT_COURSE_ID_FIELDS = ("course_id", "id_course")
ENROLLMENT_LP_ID_FIELDS = ("learning_plan_id", "lp_id", "id_learning_plan")
ENROLLMENT_STATUS_FIELDS = ("enrollment_status", "status")
ENROLLMENT_STATUS_ID_FIELDS = ("status_id", "enrollment_status_id")
ENROLLMENT_DATE_FIELDS = (
    "enrollment_created_at",
    "enrollment_date",
    "enroll_date_of_enrollment",
    "date_inscr",
    "enrollment_validity_begin_date",
)
ENROLLMENT_COMPLETION_FIELDS = (
    "enrollment_completion_date",
    "date_complete",
    "completion_date",
    "date_completed",
)
ENROLLMENT_VALIDITY_BEGIN_FIELDS = ("enrollment_validity_begin_datetime", "active_from")
ENROLLMENT_VALIDITY_END_FIELDS = (
    "enrollment_validity_end_datetime",
    "enrollment_validity_end_date",
    "active_until",
)
ENROLLMENT_UPDATED_FIELDS = ("enrollment_date_last_updated", "last_update")
ENROLLMENT_LEVEL_FIELDS = ("enrollment_level", "level")

USER_LEVEL_NAMES = {
    "godadmin": "God Admin",
    "powuser": "Power User",
    "power_user": "Power User",
    "admin": "Admin",
    "administrator": "Admin",
    "user": "User",
    "4": "User",
}

ENROLLMENT_STATUS_IDS = {
    "0": "not_started",
    "1": "in_progress",
    "2": "completed",
    "3": "suspended",
}

ENROLLMENT_STATUS_TEXT = {
    "completed": "completed",
    "in progress": "in_progress",
    "in_progress": "in_progress",
    "enrolled": "in_progress",
    "not started": "not_started",
    "not_started": "not_started",
    "suspended": "suspended",
}

STATUS_PROGRESS = {
    "completed": 100,
    "in_progress": 50,
}

HTML_TAG = re.compile(r"<[^>]*>")
WHITESPACE = re.compile(r"\s+")


def _present(value: Any) -> bool:
    return value is not None and value != ""


def coalesce(data: Dict[str, Any], fields: Iterable[str], default: Any = None) -> Any:
    """Return the first present, non-empty value among `fields`"""
    for field in fields:
        value = data.get(field)
        if _present(value):
            return value
    return default


def coalesce_str(data: Dict[str, Any], fields: Iterable[str], default: Optional[str] = None) -> Optional[str]:
    value = coalesce(data, fields)
    return str(value) if value is not None else default


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def epoch_to_iso(value: Any) -> Optional[str]:
    """Docebo sometimes reports creation dates as epoch seconds"""
    if not _present(value):
        return None
    if isinstance(value, (int, float)) or str(value).isdigit():
        return datetime.fromtimestamp(float(value), tz=timezone.utc).isoformat()
    return str(value)


def parse_date(value: Any) -> Optional[datetime]:
    """Parse the date formats Docebo mixes across endpoints; None when unparseable"""
    if not _present(value):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) or str(value).isdigit():
        parsed = datetime.fromtimestamp(float(value), tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def strip_html(text: Optional[str], limit: int = 200) -> str:
    """Collapse an HTML description to plain text, truncated to `limit` chars"""
    if not text:
        return ""
    clean = WHITESPACE.sub(" ", HTML_TAG.sub(" ", str(text))).strip()
    if len(clean) > limit:
        return clean[:limit] + "..."
    return clean


# Names and ids

def course_name(course: Dict[str, Any]) -> str:
    return coalesce(course, COURSE_NAME_FIELDS, "Unknown Course")


def course_id(course: Dict[str, Any]) -> Optional[str]:
    return coalesce_str(course, COURSE_ID_FIELDS)


def learning_plan_name(learning_plan: Dict[str, Any]) -> str:
    return coalesce(learning_plan, LP_NAME_FIELDS, "Unknown Learning Plan")


def learning_plan_id(learning_plan: Dict[str, Any]) -> Optional[str]:
    return coalesce_str(learning_plan, LP_ID_FIELDS)


# Users

def user_full_name(user: Dict[str, Any]) -> str:
    if user.get("fullname"):
        return user["fullname"]
    name = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    if name:
        return name
    return f"User {coalesce(user, USER_ID_FIELDS, '')}".strip()


def user_status(user: Dict[str, Any]) -> str:
    value = coalesce(user, USER_STATUS_FIELDS)
    if value in ("1", 1, True, "active"):
        return "Active"
    if value in ("0", 0, False, "inactive"):
        return "Inactive"
    if value == "suspended":
        return "Suspended"
    return "Unknown"


def user_level(user: Dict[str, Any]) -> str:
    value = str(coalesce(user, USER_LEVEL_FIELDS, ""))
    return USER_LEVEL_NAMES.get(value.lower(), "User")


def format_user_details(user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a raw Docebo user record

    Raises:
        ValueError: when the record has no id or no email
    """
    user_id = coalesce_str(user, USER_ID_FIELDS)
    email = user.get("email") or ""
    if not user_id or not email:
        raise ValueError("Missing required user data")

    return {
        "id": user_id,
        "fullname": user_full_name(user),
        "email": email,
        "username": coalesce(user, USER_USERNAME_FIELDS, email),
        "status": user_status(user),
        "level": user_level(user),
        "creation_date": coalesce(user, USER_CREATED_FIELDS, "Not available"),
        "last_access": coalesce(user, USER_LAST_ACCESS_FIELDS, "Not available"),
        "timezone": coalesce(user, USER_TIMEZONE_FIELDS, "America/New_York"),
        "language": coalesce(user, USER_LANGUAGE_FIELDS, "English"),
        "department": coalesce(user, USER_DEPARTMENT_FIELDS, "Not specified"),
        "first_name": user.get("first_name") or "",
        "last_name": user.get("last_name") or "",
        "uuid": user.get("uuid") or "",
        "is_manager": bool(user.get("is_manager")),
        "subordinates_count": _to_int(user.get("active_subordinates_count")),
        "expiration_date": user.get("expiration_date"),
        "email_validation_status": "Validated" if str(user.get("email_validation_status")) == "1" else "Not Validated",
    }


def format_manager(manager: Dict[str, Any], fallback_id: str) -> Dict[str, Any]:
    name = manager.get("fullname") or f"{manager.get('first_name') or ''} {manager.get('last_name') or ''}".strip()
    return {
        "id": coalesce_str(manager, ("user_id",), str(fallback_id)),
        "fullname": name or "Unknown Manager",
        "email": manager.get("email") or "",
        "department": coalesce(manager, USER_DEPARTMENT_FIELDS, ""),
    }


def additional_user_fields(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "job_title": coalesce(user, USER_JOB_TITLE_FIELDS, ""),
        "employee_id": coalesce(user, USER_EMPLOYEE_ID_FIELDS, ""),
        "location": coalesce(user, USER_LOCATION_FIELDS, ""),
        "direct_reports": _to_int(coalesce(user, USER_SUBORDINATES_FIELDS, 0)),
    }


# Courses and learning plans

def enrich_course(course: Dict[str, Any]) -> Dict[str, Any]:
    """Raw course payload plus normalized fields; normalized values take precedence"""
    name = course_name(course)
    cid = coalesce(course, COURSE_ID_FIELDS)
    enrolled = _to_int(coalesce(course, COURSE_ENROLLED_FIELDS, 0))
    normalized = {
        "id": cid,
        "course_id": cid,
        "name": name,
        "title": name,
        "course_name": name,
        "code": coalesce(course, COURSE_CODE_FIELDS),
        "type": course.get("course_type") or "elearning",
        "course_type": course.get("course_type") or "elearning",
        "description": course.get("description") or "",
        "creation_date": epoch_to_iso(course.get("date_creation")),
        "last_update": epoch_to_iso(course.get("date_modification")),
        "language": coalesce(course, COURSE_LANGUAGE_FIELDS),
        "enrolled_count": enrolled,
        "enrollment_count": enrolled,
        "credits": course.get("credits") or 0,
    }
    return {**course, **normalized}


def enrich_learning_plan(learning_plan: Dict[str, Any]) -> Dict[str, Any]:
    """Raw learning plan payload plus normalized fields; normalized values take precedence"""
    name = learning_plan_name(learning_plan)
    lpid = coalesce(learning_plan, LP_ID_FIELDS)
    normalized = {
        "id": lpid,
        "learning_plan_id": lpid,
        "name": name,
        "title": name,
        "learning_plan_name": name,
        "description": learning_plan.get("description") or "",
        "creation_date": epoch_to_iso(learning_plan.get("date_creation")),
        "last_update": epoch_to_iso(learning_plan.get("date_modification")),
        "enrolled_users_count": _to_int(coalesce(learning_plan, LP_ENROLLED_FIELDS, 0)),
        "courses_count": _to_int(coalesce(learning_plan, LP_COURSES_FIELDS, 0)),
    }
    return {**learning_plan, **normalized}


def learning_plan_publish_status(learning_plan: Dict[str, Any]) -> str:
    published = learning_plan.get("is_published")
    if published in (True, 1, "1"):
        return "Published"
    if published in (False, 0, "0"):
        return "Draft"
    return "Not specified"


def course_status_label(course: Dict[str, Any]) -> str:
    status = str(course.get("status") or course.get("course_status") or "").lower()
    if status in ("published", "2", "active"):
        return "Published"
    if status in ("unpublished", "0", "draft", "under_maintenance", "1"):
        return "Draft"
    return status.capitalize() if status else "Not specified"


# Enrollments

def course_enrollment_status(enrollment: Dict[str, Any]) -> str:
    """Map text status, or the numeric status id, onto the canonical status names"""
    text = coalesce(enrollment, ENROLLMENT_STATUS_FIELDS)
    if text is not None and not isinstance(text, (int, float)) and not str(text).isdigit():
        lowered = str(text).lower()
        return ENROLLMENT_STATUS_TEXT.get(lowered, lowered.replace(" ", "_"))

    status_id = coalesce(enrollment, ENROLLMENT_STATUS_ID_FIELDS, text)
    if status_id is None:
        return "unknown"
    return ENROLLMENT_STATUS_IDS.get(str(status_id), f"status_{status_id}")


def format_course_enrollment(enrollment: Dict[str, Any]) -> Dict[str, Any]:
    status = course_enrollment_status(enrollment)
    score = _to_float(enrollment.get("enrollment_score"))
    if score is None:
        score = _to_float(enrollment.get("score_given"))
    if score is None:
        score = _to_float(enrollment.get("score"))
    progress = STATUS_PROGRESS.get(status, 0)
    if _present(enrollment.get("progress")) and status != "completed":
        progress = _to_int(enrollment.get("progress"), progress)

    return {
        "type": "course",
        "course_id": coalesce_str(enrollment, ENROLLMENT_COURSE_ID_FIELDS + ("id",)),
        "course_name": coalesce(enrollment, ("course_name", "name"), "Unknown Course"),
        "course_code": coalesce(enrollment, ("course_code", "code")),
        "course_type": coalesce(enrollment, ("course_type", "type")),
        "enrollment_status": status,
        "enrollment_date": coalesce(enrollment, ENROLLMENT_DATE_FIELDS),
        "completion_date": coalesce(enrollment, ENROLLMENT_COMPLETION_FIELDS),
        "progress": progress,
        "score": score if score is not None else 0,
        "assignment_type": enrollment.get("assignment_type"),
        "enrollment_level": coalesce(enrollment, ENROLLMENT_LEVEL_FIELDS),
        "validity_begin": coalesce(enrollment, ENROLLMENT_VALIDITY_BEGIN_FIELDS),
        "validity_end": coalesce(enrollment, ENROLLMENT_VALIDITY_END_FIELDS),
        "last_updated": coalesce(enrollment, ENROLLMENT_UPDATED_FIELDS),
        "created_by": enrollment.get("enrollment_created_by"),
        "forced_score": enrollment.get("forced_score_given"),
    }


def learning_plan_enrollment_status(enrollment: Dict[str, Any]) -> str:
    completed = _to_int(enrollment.get("mandatory_courses_completed_at_completion"))
    total = _to_int(enrollment.get("mandatory_courses_total_at_completion"))
    if total > 0 and completed >= total:
        return "completed"
    if completed > 0:
        return "in_progress"
    text = enrollment.get("status")
    if _present(text) and not str(text).isdigit():
        return ENROLLMENT_STATUS_TEXT.get(str(text).lower(), "enrolled")
    return "enrolled"


def format_learning_plan_enrollment(enrollment: Dict[str, Any]) -> Dict[str, Any]:
    completed = _to_int(coalesce(enrollment, ("mandatory_courses_completed_at_completion", "completed_courses"), 0))
    total = _to_int(coalesce(enrollment, ("mandatory_courses_total_at_completion", "total_courses"), 0))
    progress = round(completed / total * 100) if total else _to_int(enrollment.get("progress"))

    return {
        "type": "learning_plan",
        "learning_plan_id": coalesce_str(enrollment, ENROLLMENT_LP_ID_FIELDS + ("id",)),
        "learning_plan_name": coalesce(enrollment, ("learning_plan_name", "name"), "Unknown Learning Plan"),
        "learning_plan_code": enrollment.get("learning_plan_code"),
        "enrollment_status": learning_plan_enrollment_status(enrollment),
        "enrollment_date": coalesce(enrollment, ENROLLMENT_DATE_FIELDS),
        "completion_date": coalesce(enrollment, ENROLLMENT_COMPLETION_FIELDS),
        "progress": progress,
        "completed_courses": completed,
        "total_courses": total,
        "assignment_type": enrollment.get("assignment_type") or "Not specified",
        "time_spent": _to_int(enrollment.get("enrollment_time_spent")),
        "validity_begin": coalesce(enrollment, ENROLLMENT_VALIDITY_BEGIN_FIELDS),
        "validity_end": coalesce(enrollment, ENROLLMENT_VALIDITY_END_FIELDS),
        "last_updated": coalesce(enrollment, ENROLLMENT_UPDATED_FIELDS),
    }


def enrollment_display_name(enrollment: Dict[str, Any]) -> str:
    if enrollment.get("type") == "learning_plan":
        return enrollment.get("learning_plan_name") or "Unknown Learning Plan"
    return enrollment.get("course_name") or "Unknown Course"


def names_match(name: str, search_term: str) -> bool:
    """Case-insensitive equality or substring in either direction"""
    if not name or not search_term:
        return False
    left, right = name.lower(), search_term.lower()
    return left == right or right in left or left in right


def enrollment_sort_key(enrollment: Dict[str, Any]):
    """Newest first; undated enrollments sort last"""
    parsed = parse_date(enrollment.get("enrollment_date"))
    if parsed is None:
        return (1, 0.0)
    return (0, -parsed.timestamp())
