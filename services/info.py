"""
Enrollment lookups and course / learning plan information handlers
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Optional

from bot.docebo_api import DoceboAPI
from config.settings import (
    ENROLLMENT_CHECK_TIMEOUT,
    ENROLLMENT_SCAN_TIMEOUT,
    ENROLLMENTS_PAGE_SIZE,
    MAX_REMOTE_PAGES,
    REMOTE_PAGE_SIZE,
    RESOLVE_SEARCH_LIMIT,
    USER_ENROLLMENTS_TIMEOUT,
)
from services import help_center, normalizers
from services.responses import chat_response, missing_information
from utils.error_handler import ResourceNotFoundError
from utils.timeouts import run_with_timeout

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    "completed": "✅",
    "in_progress": "🔄",
    "suspended": "🚫",
    "not_started": "⏸️",
}

HELP_TEXT = """🆘 **Docebo Help**

I can help you with various Docebo administration tasks:

**📚 Enrollment Management**:
• "Enroll john@company.com in course Python Programming"
• "Enroll sarah@company.com in learning plan Data Science"
• "Enroll a@company.com, b@company.com in course 123"
• "Unenroll mike@company.com from course Excel Basics"
• "Check if user@company.com is enrolled in learning plan 274"

**🔍 Search Functions**:
• "Find user mike@company.com" - Get user details
• "Find Python courses" - Search for courses
• "Find Python learning plans" - Search learning plans

**📊 Information & Status**:
• "User enrollments mike@company.com" - See all enrollments
• "Course info Python Programming" - Get course details
• "Learning plan info Data Science" - Get learning plan details

**📄 Bulk Operations**:
• Upload a CSV to /api/chat/csv for course, learning plan or unenrollment batches"""

HELP_FOOTER = """**🌐 Additional Resources**:
• [Docebo Help Center](https://help.docebo.com)

**💡 Tips**:
• Use exact email addresses for user operations
• Learning plan and course IDs (like 274) are supported
• All operations provide detailed feedback and error messages"""


def _direct_endpoints(resource_type: str, user_id: str, resource_id: str):
    if resource_type == "learning_plan":
        return [
            f"/learningplan/v1/learningplans/enrollments?user_id[]={user_id}&learning_plan_id[]={resource_id}",
            f"/learningplan/v1/learningplans/enrollments?user_id={user_id}&learning_plan_id={resource_id}",
            f"/learningplan/v1/learningplans/{resource_id}/enrollments?user_id={user_id}",
            f"/learningplan/v1/learningplans/{resource_id}/enrollments?user_id[]={user_id}",
        ]
    return [
        f"/course/v1/courses/{resource_id}/enrollments?search_text={user_id}",
        f"/course/v1/courses/enrollments?user_id[]={user_id}&course_id[]={resource_id}",
        f"/course/v1/courses/enrollments?user_id={user_id}&course_id={resource_id}",
        f"/course/v1/courses/{resource_id}/enrollments?user_id={user_id}",
    ]


def _alternative_endpoints(resource_type: str, user_id: str):
    if resource_type == "learning_plan":
        return [
            f"/learningplan/v1/learningplans/enrollments?user_id[]={user_id}",
            f"/learningplan/v1/learningplans/enrollments?user_id={user_id}",
            f"/manage/v1/user/{user_id}/learningplans",
            f"/learn/v1/users/{user_id}/learningplans",
        ]
    return [
        f"/course/v1/courses/enrollments?user_id[]={user_id}",
        f"/learn/v1/enrollments?user_id={user_id}",
        f"/manage/v1/user/{user_id}/courses",
        f"/learn/v1/users/{user_id}/courses",
    ]


def _format(resource_type: str, raw: dict) -> dict:
    if resource_type == "learning_plan":
        return normalizers.format_learning_plan_enrollment(raw)
    return normalizers.format_course_enrollment(raw)


def _resource_fields(resource_type: str):
    if resource_type == "learning_plan":
        return normalizers.ENROLLMENT_LP_ID_FIELDS
    return normalizers.ENROLLMENT_COURSE_ID_FIELDS


def _found(enrollment: dict, method: str, endpoint: Optional[str] = None, raw: Optional[dict] = None) -> dict:
    return {"found": True, "enrollment": enrollment, "method": method, "endpoint": endpoint, "raw": raw}


class InfoService:
    def __init__(self, api: DoceboAPI):
        self.api = api

    # Specific enrollment check

    async def check_specific_enrollment(self, entities: dict) -> dict:
        email = entities.get("email")
        resource_name = entities.get("resource_name")
        resource_type = entities.get("resource_type") or "course"
        check_type = entities.get("check_type") or "enrollment"
        if not email or not resource_name:
            return missing_information(
                "I need both a user email and resource name to check enrollment.",
                "Check if john@company.com is enrolled in course Python Programming",
                "Has sarah@company.com completed learning plan Data Science?",
            )

        logger.info(f"🔍 Enrollment check: {email} -> {resource_name} ({resource_type})")
        try:
            user = await self.api.get_user_details(email)
        except ResourceNotFoundError as e:
            return chat_response(
                f"❌ **Enrollment Check Failed**: {e.message}\n\n"
                "Please check:\n• User email is correct\n• User exists in the system",
                success=False,
            )

        try:
            outcome = await run_with_timeout(
                self.find_enrollment(user["id"], resource_name, resource_type),
                ENROLLMENT_CHECK_TIMEOUT,
                label="enrollment check",
            )
        except asyncio.TimeoutError:
            return timeout_response(
                f"Checking {email} against {resource_name} took longer than {ENROLLMENT_CHECK_TIMEOUT} seconds.",
                f'"User enrollments {email}" to browse enrollments page by page',
            )

        if outcome["found"]:
            return format_enrollment_found(user, outcome, resource_type, check_type)
        return format_enrollment_not_found(user, outcome, resource_name, resource_type, check_type)

    async def find_enrollment(self, user_id: str, resource_name: str, resource_type: str) -> dict:
        """
        Staged enrollment lookup; each stage runs only when the previous one found nothing

        1. direct lookup when the resource is given by numeric ID
        2. resource search, then direct lookup per matching resource
        3. scan of the user's enrollment list (bounded by ENROLLMENT_SCAN_TIMEOUT)
        4. alternative endpoint variants
        """
        if resource_name.isdigit():
            outcome = await self._check_direct(user_id, resource_name, resource_type)
            if outcome:
                return outcome

        if resource_type == "learning_plan":
            candidates = await self.api.search_learning_plans(resource_name, RESOLVE_SEARCH_LIMIT)
            get_name, get_id = normalizers.learning_plan_name, normalizers.learning_plan_id
        else:
            candidates = await self.api.search_courses(resource_name, RESOLVE_SEARCH_LIMIT)
            get_name, get_id = normalizers.course_name, normalizers.course_id
        for candidate in candidates:
            candidate_id = get_id(candidate)
            if candidate_id and normalizers.names_match(get_name(candidate), resource_name):
                outcome = await self._check_direct(user_id, candidate_id, resource_type)
                if outcome:
                    return outcome

        totals = {"courses": None, "learning_plans": None}
        try:
            everything = await run_with_timeout(
                self.api.get_user_all_enrollments(user_id),
                ENROLLMENT_SCAN_TIMEOUT,
                label="enrollment scan",
            )
        except asyncio.TimeoutError:
            everything = None
        if everything:
            totals = {"courses": everything["total_courses"], "learning_plans": everything["total_learning_plans"]}
            pool = everything["learning_plans"] if resource_type == "learning_plan" else everything["courses"]
            for enrollment in pool:
                if normalizers.names_match(normalizers.enrollment_display_name(enrollment), resource_name):
                    return _found(enrollment, "user_enrollments")

        outcome = await self._check_alternatives(user_id, resource_name, resource_type)
        if outcome:
            return outcome

        return {
            "found": False,
            "totals": totals,
            "methods": ["direct_id", "search_and_check", "user_enrollments", "alternative_endpoints"],
        }

    async def _check_direct(self, user_id: str, resource_id: str, resource_type: str) -> Optional[dict]:
        resource_fields = _resource_fields(resource_type)

        def accept(item: dict) -> bool:
            owner = normalizers.coalesce(item, normalizers.ENROLLMENT_USER_ID_FIELDS)
            resource = normalizers.coalesce(item, resource_fields)
            if str(owner) != str(user_id):
                return False
            return resource is None or str(resource) == str(resource_id)

        endpoint, items = await self.api.probe_endpoints(
            _direct_endpoints(resource_type, user_id, resource_id), accept=accept
        )
        if not items:
            return None
        logger.info(f"✓ Enrollment found via {endpoint}")
        return _found(_format(resource_type, items[0]), "direct_api", endpoint, items[0])

    async def _check_alternatives(self, user_id: str, resource_name: str, resource_type: str) -> Optional[dict]:
        resource_fields = _resource_fields(resource_type)

        def matches_id(item: dict) -> bool:
            return resource_name.isdigit() and normalizers.coalesce_str(item, resource_fields) == resource_name

        def accept(item: dict) -> bool:
            owner = normalizers.coalesce(item, normalizers.ENROLLMENT_USER_ID_FIELDS)
            if owner is not None and str(owner) != str(user_id):
                return False
            display_name = normalizers.enrollment_display_name(_format(resource_type, item))
            return matches_id(item) or normalizers.names_match(display_name, resource_name)

        endpoint, items = await self.api.probe_endpoints(
            _alternative_endpoints(resource_type, user_id), accept=accept
        )
        if not items:
            return None
        item = items[0]
        method = "alternative_endpoint_by_id" if matches_id(item) else "alternative_endpoint_by_name"
        return _found(_format(resource_type, item), method, endpoint, item)

    # User enrollments with pagination

    async def get_user_enrollments(self, entities: dict) -> dict:
        return await self._user_enrollments(entities, default_offset=0)

    async def load_more_enrollments(self, entities: dict) -> dict:
        page_size = _positive_int(entities.get("page_size"), ENROLLMENTS_PAGE_SIZE)
        return await self._user_enrollments(entities, default_offset=page_size)

    async def _user_enrollments(self, entities: dict, default_offset: int) -> dict:
        email = entities.get("email")
        user_id = entities.get("user_id")
        if not email and not user_id:
            return missing_information(
                "Please provide a user email.",
                "User enrollments mike@company.com",
            )

        page_size = _positive_int(entities.get("page_size"), ENROLLMENTS_PAGE_SIZE)
        offset = entities.get("offset")
        offset = default_offset if offset is None else max(int(offset), 0)

        try:
            if email:
                user = await self.api.get_user_details(email)
            else:
                user = await self.api.get_enhanced_user_details(user_id)
        except ResourceNotFoundError as e:
            return chat_response(
                f"❌ **User Enrollments Failed**: {e.message}\n\n"
                "Please check:\n• User email is correct and exists in the system\n"
                "• You have permission to view user enrollment data",
                success=False,
            )

        remote_pages = min(math.ceil((offset + page_size) / REMOTE_PAGE_SIZE), MAX_REMOTE_PAGES)
        logger.info(f"📚 Enrollments for {user['email']} (offset {offset}, size {page_size}, {remote_pages} remote page(s))")

        try:
            fetched = await run_with_timeout(
                self.api.get_user_all_enrollments(user["id"], remote_pages),
                USER_ENROLLMENTS_TIMEOUT,
                label="user enrollments",
            )
        except asyncio.TimeoutError:
            return timeout_response(
                f"Loading enrollments for {user['email']} took longer than {USER_ENROLLMENTS_TIMEOUT} seconds.",
                f'"Check if {user["email"]} is enrolled in course [name]" for a single enrollment',
            )

        merged = sorted(fetched["courses"] + fetched["learning_plans"], key=normalizers.enrollment_sort_key)
        total = len(merged)
        window = merged[offset:offset + page_size]
        next_offset = offset + page_size
        # Upstream "more data" is only reachable while the next window fits under the page cap
        reachable = MAX_REMOTE_PAGES * REMOTE_PAGE_SIZE
        limit_reached = fetched["has_more"] and next_offset >= reachable
        has_more = total > next_offset or (fetched["has_more"] and not limit_reached)
        remaining = max(total - next_offset, 0)
        load_more_command = f"Load more enrollments for {user['email']} offset {next_offset}" if has_more else None

        message = format_enrollment_page(
            user, fetched, window, offset, total, has_more, remaining, load_more_command, limit_reached
        )
        return chat_response(
            message,
            data={
                "user": user,
                "enrollments": window,
                "pagination": {
                    "currentOffset": offset,
                    "pageSize": page_size,
                    "totalItems": total,
                    "hasMore": has_more,
                    "remainingCount": remaining,
                    "nextOffset": next_offset,
                    "limitReached": limit_reached,
                },
                "summary": {
                    "totalCourses": fetched["total_courses"],
                    "totalLearningPlans": fetched["total_learning_plans"],
                    "totalEnrollments": total,
                },
                "loadMoreCommand": load_more_command,
            },
            totalCount=total,
            hasMore=has_more,
            loadMoreCommand=load_more_command,
        )

    # Course and learning plan info

    async def course_info(self, entities: dict) -> dict:
        identifier = entities.get("course_id") or entities.get("course_name")
        if not identifier:
            return missing_information("Please provide a course name or ID.", "Course info Python Programming")

        try:
            course = await self.api.find_course_by_identifier(identifier)
        except ResourceNotFoundError as e:
            return chat_response(
                f"❌ **Course Information Failed**: {e.message}\n\n"
                "💡 **Try**: the exact course name, its code, or its numeric ID",
                success=False,
            )

        name = normalizers.course_name(course)
        lines = [
            f"📚 **Course Information**: {name}",
            "",
            f"🆔 **Course ID**: {course.get('id') or 'Not available'}",
            f"📂 **Type**: {course.get('course_type') or 'Not specified'}",
            f"📊 **Status**: {normalizers.course_status_label(course)}",
        ]
        if course.get("code"):
            lines.append(f"🏷️ **Code**: {course['code']}")
        if course.get("language"):
            lines.append(f"🌍 **Language**: {course['language']}")
        if course.get("enrolled_count"):
            lines.append(f"👥 **Enrolled Users**: {course['enrolled_count']}")
        if course.get("description"):
            lines.append(f"📄 **Description**: {normalizers.strip_html(course['description'])}")

        return chat_response("\n".join(lines), data={"course": course, "courseName": name})

    async def learning_plan_info(self, entities: dict) -> dict:
        identifier = entities.get("learning_plan_name")
        if not identifier:
            return missing_information("Please provide a learning plan name.", "Learning plan info Data Science Program")

        try:
            plan = await self.api.find_learning_plan_by_identifier(identifier)
        except ResourceNotFoundError as e:
            return chat_response(
                f"❌ **Learning Plan Information Failed**: {e.message}\n\n"
                "💡 **Try**: the exact learning plan name, its code, or its numeric ID",
                success=False,
            )

        name = normalizers.learning_plan_name(plan)
        lines = [
            f"📋 **Learning Plan Information**: {name}",
            "",
            f"🆔 **Learning Plan ID**: {plan.get('learning_plan_id') or 'Not available'}",
            f"📊 **Status**: {normalizers.learning_plan_publish_status(plan)}",
        ]
        if plan.get("code"):
            lines.append(f"🏷️ **Code**: {plan['code']}")
        if plan.get("courses_count"):
            lines.append(f"📚 **Courses**: {plan['courses_count']}")
        if plan.get("enrolled_users_count"):
            lines.append(f"👥 **Enrolled Users**: {plan['enrolled_users_count']}")
        if plan.get("description"):
            lines.append(f"📄 **Description**: {normalizers.strip_html(plan['description'])}")

        return chat_response("\n".join(lines), data={"learningPlan": plan, "learningPlanName": name})

    async def docebo_help(self, entities: dict) -> dict:
        """Help Center articles for a specific question, or the command overview"""
        query = entities.get("query") or ""
        topic = help_center.help_topic(query)
        if len(topic) < help_center.MIN_TOPIC_LENGTH:
            return chat_response(
                f"{HELP_TEXT}\n\n{HELP_FOOTER}",
                data={"query": query, "helpType": "docebo_general"},
                helpRequest=True,
            )

        results = help_center.search_help_articles(topic)
        if not results:
            message = help_center.format_no_help_results(topic)
        else:
            message = help_center.format_help_results(topic, results)
        return chat_response(
            message,
            data={"query": query, "topic": topic, "results": results, "searchType": "docebo_help_center"},
            helpRequest=True,
        )


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def timeout_response(what: str, suggestion: str) -> dict:
    return chat_response(
        f"⏱️ **Request Timed Out**: {what}\n\n"
        "Docebo is responding slowly. You can:\n"
        f"• Try a narrower request, e.g. {suggestion}\n"
        "• Retry in a moment\n"
        "• Use the CSV bulk upload for large batches, which runs in the background of a single request",
        success=False,
        data={"timeout": True},
    )


def _days_left(value) -> Optional[int]:
    end = normalizers.parse_date(value)
    if end is None:
        return None
    return math.ceil((end - datetime.now(timezone.utc)).total_seconds() / 86400)


def format_enrollment_found(user: dict, outcome: dict, resource_type: str, check_type: str) -> dict:
    enrollment = outcome["enrollment"]
    is_plan = resource_type == "learning_plan"
    noun = "learning plan" if is_plan else "course"
    status = enrollment["enrollment_status"]

    lines = [
        f"✅ **Enrollment Found**: {user['fullname']}",
        "",
        f"{'📋' if is_plan else '📚'} **{'Learning Plan' if is_plan else 'Course'}**: "
        f"{normalizers.enrollment_display_name(enrollment)}",
    ]
    if not is_plan and enrollment.get("course_code"):
        lines.append(f"🏷️ **Course Code**: {enrollment['course_code']}")
    if not is_plan and enrollment.get("course_type"):
        lines.append(f"📂 **Course Type**: {enrollment['course_type']}")

    lines += [
        "",
        "👤 **User Details**:",
        f"• **Name**: {user['fullname']}",
        f"• **Username**: {user['username']}",
        f"• **Email**: {user['email']}",
        f"• **User Level**: {user['level']}",
        f"• **User Status**: {user['status']}",
        "",
        "📊 **Enrollment Details**:",
        f"• **Status**: {status.upper()}",
        f"• **Assignment Type**: {enrollment.get('assignment_type') or 'Not specified'}",
    ]
    if not is_plan:
        lines.append(f"• **Enrollment Level**: {enrollment.get('enrollment_level') or 'Student'}")
    if enrollment.get("enrollment_date"):
        lines.append(f"• **Enrolled**: {enrollment['enrollment_date']}")
    if enrollment.get("validity_begin"):
        lines.append(f"• **Validity Period**: {enrollment['validity_begin']} to {enrollment.get('validity_end') or 'No end date'}")
    if enrollment.get("completion_date"):
        lines.append(f"• **Completed**: {enrollment['completion_date']}")

    if is_plan:
        lines.append(
            f"• **Progress**: {enrollment.get('completed_courses', 0)}/{enrollment.get('total_courses', 0)} "
            f"courses completed ({enrollment.get('progress', 0)}%)"
        )
        if enrollment.get("time_spent"):
            lines.append(f"• **Time Spent**: {enrollment['time_spent']} minutes")
    else:
        lines.append(f"• **Progress**: {enrollment.get('progress', 0)}%")
        if enrollment.get("score"):
            forced = " (Forced)" if enrollment.get("forced_score") else ""
            lines.append(f"• **Score**: {enrollment['score']}{forced}")

    lines += ["", "🔧 **Technical Details**:", f"• **Found via**: {outcome['method']}"]
    if outcome.get("endpoint"):
        lines.append(f"• **API Endpoint**: {outcome['endpoint']}")

    if status == "completed":
        lines += ["", "🎉 **Completion Summary**:", f"This user has successfully completed this {noun}."]
    elif status == "in_progress":
        lines += ["", "📈 **Progress Summary**:", f"This user is currently working on this {noun}."]
        days = _days_left(enrollment.get("validity_end")) if not is_plan else None
        if days is not None and days > 0:
            lines.append(f"Time remaining: {days} days")
        elif days is not None and days < 0:
            lines.append(f"Expired {abs(days)} days ago")
    elif status == "not_started":
        lines += ["", "⏳ **Status Summary**:", f"This user is enrolled but has not yet started this {noun}."]

    if check_type == "completion" and status != "completed":
        lines += ["", f"⚠️ **Not Completed Yet**: the {noun} is still {status.replace('_', ' ')}."]

    return chat_response(
        "\n".join(lines),
        data={
            "user": user,
            "found": True,
            "enrollmentDetails": enrollment,
            "rawEnrollmentData": outcome.get("raw"),
            "resourceType": resource_type,
            "checkType": check_type,
            "method": outcome["method"],
            "endpoint": outcome.get("endpoint"),
        },
    )


def format_enrollment_not_found(user: dict, outcome: dict, resource_name: str, resource_type: str, check_type: str) -> dict:
    is_plan = resource_type == "learning_plan"
    label = "Learning Plan" if is_plan else "Course"
    noun = label.lower()
    totals = outcome.get("totals") or {}

    def count(value):
        return "unknown" if value is None else value

    message = (
        f"❌ **No {label} Enrollment Found**: {user['fullname']}\n\n"
        f"👤 **User**: {user['fullname']} ({user['email']})\n"
        f"{'📋' if is_plan else '📚'} **{label}**: {resource_name}\n\n"
        f"The user is not currently enrolled in this {noun}.\n\n"
        "📊 **User's Current Enrollments**:\n"
        f"• **Courses**: {count(totals.get('courses'))}\n"
        f"• **Learning Plans**: {count(totals.get('learning_plans'))}\n\n"
        "🔍 **Search Methods Used**:\n"
        f"• Direct {noun} ID lookup\n"
        f"• {label} search and enrollment check\n"
        "• User enrollment data analysis\n"
        "• Alternative API endpoints\n\n"
        "💡 **Next Steps**:\n"
        f'• "User enrollments {user["email"]}" to see all enrollments\n'
        f'• "Enroll {user["email"]} in {noun} {resource_name}" to enroll\n'
        f"• Try using the exact {noun} name or ID from Docebo"
    )
    return chat_response(
        message,
        success=False,
        data={
            "user": user,
            "found": False,
            "resourceType": resource_type,
            "checkType": check_type,
            "totalEnrollments": {
                "courses": totals.get("courses"),
                "learningPlans": totals.get("learning_plans"),
            },
            "methodsUsed": outcome.get("methods", []),
        },
    )


def format_enrollment_page(user, fetched, window, offset, total, has_more, remaining, load_more_command,
                           limit_reached=False) -> str:
    shown_to = min(offset + len(window), total)
    lines = [
        f"📚 **{user['fullname']}'s Enrollments**",
        "",
        f"👤 **User**: {user['fullname']} ({user['email']})",
        f"🆔 **User ID**: {user['id']}",
        f"📊 **Status**: {user['status']}",
        "",
        "📈 **Summary**:",
        f"• **Total Enrollments**: {total}",
        f"• **Courses**: {fetched['total_courses']}",
        f"• **Learning Plans**: {fetched['total_learning_plans']}",
    ]
    if window:
        lines.append(f"• **Showing**: {offset + 1}-{shown_to} of {total}")
        lines += ["", f"📋 **Enrollments** ({offset + 1}-{shown_to}):"]
        for index, enrollment in enumerate(window, offset + 1):
            is_course = enrollment.get("type") == "course"
            status = enrollment.get("enrollment_status") or "enrolled"
            icon = STATUS_ICONS.get(status, "📚" if is_course else "📋")
            if is_course:
                progress = f" ({enrollment['progress']}%)" if enrollment.get("progress") else ""
                if enrollment.get("score"):
                    progress += f" [Score: {enrollment['score']}]"
            else:
                progress = (
                    f" ({enrollment.get('completed_courses', 0)}/{enrollment['total_courses']} courses)"
                    if enrollment.get("total_courses") else ""
                )
            lines.append(f"{index}. {icon} **{status.upper()}** {'COURSE' if is_course else 'LEARNING PLAN'}")
            lines.append(f"   📖 {normalizers.enrollment_display_name(enrollment)}{progress}")
            if enrollment.get("enrollment_date"):
                lines.append(f"   📅 Enrolled: {enrollment['enrollment_date']}")
    elif total:
        lines += ["", f"No enrollments beyond item {total}."]

    if has_more:
        lines += [
            "",
            "🔄 **Load More Data**:",
            f"• **Remaining**: {remaining if remaining else 'more'} enrollments",
            f'💡 **To see more**: "{load_more_command}"',
        ]
    elif limit_reached:
        lines += [
            "",
            f"⚠️ **Browsing Limit Reached**: only the first {MAX_REMOTE_PAGES * REMOTE_PAGE_SIZE} course and "
            f"{MAX_REMOTE_PAGES * REMOTE_PAGE_SIZE} learning plan enrollments can be paged through in chat.",
            "💡 Check a specific enrollment instead, e.g. "
            f'"Check if {user["email"]} is enrolled in course [name]"',
        ]

    lines += [
        "",
        "🔗 **Data Sources**:",
        f"• **Pages Fetched**: {fetched['pages_fetched']}",
        f"• **Total Retrieved**: {total} enrollments",
    ]
    if not fetched["success"] and total == 0:
        lines += [
            "",
            "⚠️ **Note**: No enrollment data could be retrieved. This might be due to:",
            "• API endpoint access limitations",
            "• User has no enrollments",
            "• Network or authentication issues",
        ]
    return "\n".join(lines)
