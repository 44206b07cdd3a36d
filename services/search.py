"""User, course and learning plan search handlers"""

import asyncio
import logging

from bot.docebo_api import DoceboAPI
from config.settings import RESOURCE_SEARCH_LIMIT, USER_SEARCH_LIMIT
from services import normalizers
from services.responses import chat_response, missing_information
from utils.error_handler import DoceboAPIError, ResourceNotFoundError

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    "active": "🟢", "2": "🟢", "published": "🟢",
    "inactive": "🔴", "0": "🔴",
    "suspended": "🟡", "1": "🟡",
}

USER_STATUS_BADGES = {
    "Active": "🟢 Active",
    "Inactive": "🔴 Inactive",
    "Suspended": "🟡 Suspended",
}


class SearchService:
    def __init__(self, api: DoceboAPI):
        self.api = api

    async def search_users(self, entities: dict) -> dict:
        """Exact email gives the detailed profile with manager; anything else a short list"""
        email = entities.get("email")
        query = email or entities.get("search_term") or entities.get("user_id")
        if not query:
            return missing_information(
                "Please provide an email or search term.",
                "Find user mike@company.com",
                "Find user john smith",
            )

        logger.info(f"🔍 Searching users: '{query}'")
        users = await self.api.search_users(query, 25)
        if not users:
            return chat_response(
                f'❌ **No Users Found**: "{query}"\n\nNo users found matching your search criteria.\n\n'
                "💡 **Try**: the full email address, or part of the user's name",
                success=False,
            )

        if email:
            exact = [u for u in users if (u.get("email") or "").lower() == email.lower()]
            if len(exact) == 1:
                return await self._user_detail(exact[0])

        shown = users[:USER_SEARCH_LIMIT]
        detailed = await asyncio.gather(*(self._enhanced_or_basic(user) for user in shown))

        lines = []
        for index, user in enumerate(detailed, 1):
            badge = USER_STATUS_BADGES.get(user.get("status"), "⚪ Unknown")
            manager = user.get("manager")
            manager_line = f"👥 Manager: {manager['fullname']}" if manager else "👥 No manager assigned"
            lines.append(
                f"{index}. **{user.get('fullname') or 'No name'}** ({user.get('email') or 'No email'})\n"
                f"   🆔 ID: {user.get('id')} • {badge} • {user.get('level', 'User')}\n"
                f"   {manager_line}"
            )

        more = f"\n\n... and {len(users) - len(shown)} more users" if len(users) > len(shown) else ""
        return chat_response(
            f'👥 **User Search Results**: "{query}" ({len(users)} found)\n\n'
            + "\n\n".join(lines) + more
            + "\n\n💡 **Tip**: Search with an exact email for detailed user information including manager details.",
            data={"users": detailed, "totalCount": len(users), "query": query},
            totalCount=len(users),
        )

    async def _enhanced_or_basic(self, user: dict) -> dict:
        user_id = normalizers.coalesce(user, normalizers.USER_ID_FIELDS)
        try:
            return await self.api.get_enhanced_user_details(user_id)
        except (DoceboAPIError, ResourceNotFoundError, ValueError) as e:
            logger.warning(f"⚠️ Enhanced details unavailable for user {user_id}: {e}")
            return {
                "id": str(user_id) if user_id is not None else None,
                "fullname": normalizers.user_full_name(user),
                "email": user.get("email"),
                "status": normalizers.user_status(user),
                "level": normalizers.user_level(user),
                "manager": None,
            }

    async def _user_detail(self, user: dict) -> dict:
        details = await self.api.get_enhanced_user_details(
            normalizers.coalesce(user, normalizers.USER_ID_FIELDS)
        )
        extra = details.get("additional_fields") or {}
        lines = [
            f"👤 **User Details**: {details['fullname']}",
            "",
            f"🆔 **User ID**: {details['id']}",
            f"📧 **Email**: {details['email']}",
            f"🔑 **Username**: {details['username']}",
            f"📊 **Status**: {details['status']}",
            f"👑 **Level**: {details['level']}",
            f"🏢 **Department**: {details['department']}",
            f"🌍 **Language**: {details['language']}",
            f"🕐 **Timezone**: {details['timezone']}",
            f"📅 **Created**: {details['creation_date']}",
            f"🔄 **Last Access**: {details['last_access']}",
        ]
        if extra.get("job_title"):
            lines.append(f"💼 **Job Title**: {extra['job_title']}")
        if extra.get("location"):
            lines.append(f"📍 **Location**: {extra['location']}")

        lines += ["", "👥 **Management Structure**:"]
        manager = details.get("manager")
        if manager:
            lines.append(f"📋 **Direct Manager**: {manager['fullname']}")
            lines.append(f"📧 **Manager Email**: {manager['email']}")
        else:
            lines.append("📋 **Direct Manager**: Not assigned or not available")
        if extra.get("direct_reports"):
            lines.append(f"👥 **Direct Reports**: {extra['direct_reports']}")

        return chat_response(
            "\n".join(lines),
            data={
                "user": details,
                "totalCount": 1,
                "isDetailedView": True,
                "hasManagerInfo": manager is not None,
            },
            totalCount=1,
        )

    async def search_courses(self, entities: dict) -> dict:
        term = entities.get("search_term")
        if not term:
            return missing_information(
                "Please provide a course name or keyword.",
                "Find Python courses",
                "Search Excel training",
            )

        logger.info(f"🔍 Searching courses: '{term}'")
        courses = await self.api.search_courses(term, 25)
        if not courses:
            return no_results("Courses", term)

        lines = []
        for index, course in enumerate(courses[:RESOURCE_SEARCH_LIMIT], 1):
            status = str(course.get("status") or course.get("course_status") or "Unknown")
            icon = STATUS_ICONS.get(status.lower(), "📚")
            lines.append(
                f"{index}. {icon} **{normalizers.course_name(course)}**\n"
                f"   Type: {course.get('course_type') or course.get('type') or 'Course'}"
                f" • ID: {normalizers.course_id(course) or 'Unknown'} • Status: {status}"
            )

        return chat_response(
            f'📚 **Course Search Results**: "{term}" ({len(courses)} found)\n\n'
            + "\n\n".join(lines)
            + more_line(len(courses), "courses")
            + '\n\n💡 **Next Steps**:\n• "Course info [course name]" for details\n'
              '• "Enroll [user] in course [course name]" to enroll users',
            data={"courses": courses, "totalCount": len(courses), "query": term},
            totalCount=len(courses),
        )

    async def search_learning_plans(self, entities: dict) -> dict:
        term = entities.get("search_term")
        if not term:
            return missing_information(
                "Please provide a learning plan name or keyword.",
                "Find Python learning plans",
                "Search leadership learning paths",
            )

        logger.info(f"🔍 Searching learning plans: '{term}'")
        plans = await self.api.search_learning_plans(term, 25)
        if not plans:
            return no_results("Learning Plans", term)

        lines = []
        for index, plan in enumerate(plans[:RESOURCE_SEARCH_LIMIT], 1):
            status = str(normalizers.coalesce(plan, ("status", "learning_plan_status", "lp_status"), "Unknown"))
            icon = STATUS_ICONS.get(status.lower(), "📋")
            enrollments = normalizers.coalesce(
                plan, ("enrollment_count", "enrolled_users", "total_enrollments", "user_count"), "Unknown"
            )
            lines.append(
                f"{index}. {icon} **{normalizers.learning_plan_name(plan)}**\n"
                f"   ID: {normalizers.learning_plan_id(plan) or 'Unknown'} • Status: {status}"
                f" • Enrollments: {enrollments}"
            )

        return chat_response(
            f'📋 **Learning Plan Search Results**: "{term}" ({len(plans)} found)\n\n'
            + "\n\n".join(lines)
            + more_line(len(plans), "learning plans")
            + '\n\n💡 **Next Steps**:\n• "Learning plan info [plan name]" for details\n'
              '• "Enroll [user] in learning plan [plan name]" to enroll users',
            data={"learningPlans": plans, "totalCount": len(plans), "query": term},
            totalCount=len(plans),
        )


def more_line(total: int, noun: str) -> str:
    if total > RESOURCE_SEARCH_LIMIT:
        return f"\n\n... and {total - RESOURCE_SEARCH_LIMIT} more {noun}"
    return ""


def no_results(label: str, term: str) -> dict:
    return chat_response(
        f'❌ **No {label} Found**: "{term}"\n\nNo {label.lower()} found matching your search criteria.\n\n'
        "💡 **Try**:\n• Different keywords\n• Broader search terms\n• Check spelling",
        success=False,
    )
