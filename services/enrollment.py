"""
Single-user enrollment and unenrollment for courses and learning plans
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from bot.docebo_api import DoceboAPI
from services import normalizers
from services.responses import chat_response, missing_information
from utils.error_handler import EnrollmentRejectedError, ResourceNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceKind:
    key: str
    label: str
    icon: str
    entity: str
    data_key: str


COURSE = ResourceKind("course", "Course", "📚", "course_name", "course")
LEARNING_PLAN = ResourceKind("learning_plan", "Learning Plan", "📋", "learning_plan_name", "learningPlan")

IDENTIFICATION_TIPS = """**💡 {label} Identification Tips:**
• **By Name**: Use the exact, complete {lower} name
• **By ID**: Use the numeric ID (e.g., "190", "274")
• **By Code**: Use the {lower} code (e.g., "DS-2024", "LEAD-101")
• **Use ID for guaranteed exact matching** when dealing with similar names"""

ASSIGNMENT_TYPES = ("mandatory", "required", "recommended", "optional")


def user_summary(user: dict) -> dict:
    return {
        "id": str(normalizers.coalesce(user, normalizers.USER_ID_FIELDS, "")),
        "fullname": normalizers.user_full_name(user),
        "email": user.get("email"),
    }


class EnrollmentService:
    """Enroll and unenroll one user at a time"""

    def __init__(self, api: DoceboAPI):
        self.api = api

    async def resolve_resource(self, kind: ResourceKind, identifier: str) -> dict:
        if kind is COURSE:
            return await self.api.find_course_by_identifier(identifier)
        return await self.api.find_learning_plan_by_identifier(identifier)

    @staticmethod
    def resource_summary(kind: ResourceKind, resource: dict) -> dict:
        if kind is COURSE:
            return {
                "id": normalizers.course_id(resource),
                "name": normalizers.course_name(resource),
                "code": resource.get("code") or "N/A",
            }
        return {
            "id": normalizers.learning_plan_id(resource),
            "name": normalizers.learning_plan_name(resource),
            "code": resource.get("code") or "N/A",
        }

    async def enroll_user_in_course(self, entities: dict) -> dict:
        return await self._enroll(COURSE, entities)

    async def enroll_user_in_learning_plan(self, entities: dict) -> dict:
        return await self._enroll(LEARNING_PLAN, entities)

    async def unenroll_user_from_course(self, entities: dict) -> dict:
        return await self._unenroll(COURSE, entities)

    async def unenroll_user_from_learning_plan(self, entities: dict) -> dict:
        return await self._unenroll(LEARNING_PLAN, entities)

    async def _enroll(self, kind: ResourceKind, entities: dict) -> dict:
        email = entities.get("email")
        identifier = entities.get(kind.entity)
        lower = kind.label.lower()
        if not email or not identifier:
            return missing_information(
                f"I need both a user email and {lower} identifier.",
                f"Enroll john@company.com in {lower} Python Programming",
                f"Enroll sarah@company.com in {lower} 190",
                f"Enroll user@company.com in {lower} Data Science as mandatory from 2025-01-15 to 2025-12-31",
            )

        options = enrollment_options(entities)
        logger.info(f"🎯 Enrolling {email} in {lower} '{identifier}' {options}")

        user = await self.api.find_user_by_email(email)
        if not user:
            return user_not_found(email)

        try:
            resource = await self.resolve_resource(kind, identifier)
        except ResourceNotFoundError as e:
            return resource_not_found(kind, e, f"Enroll {email} in {lower} 190")

        summary = self.resource_summary(kind, resource)
        user_info = user_summary(user)
        try:
            if kind is COURSE:
                result = await self.api.enroll_user_in_course(user_info["id"], summary["id"], **options)
            else:
                result = await self.api.enroll_user_in_learning_plan(user_info["id"], summary["id"], **options)
        except EnrollmentRejectedError as e:
            logger.warning(f"⚠️ Enrollment of {email} in {summary['name']} rejected: {e.message}")
            return chat_response(
                f"⚠️ **Enrollment Not Completed**: {e.message}\n\n"
                f"👤 **User**: {user_info['fullname']} ({email})\n"
                f"{kind.icon} **{kind.label}**: {summary['name']}",
                success=False,
                data={"user": user_info, kind.data_key: summary, "reason": e.reason},
            )

        assignment = (options.get("assignment_type") or "").upper() or "Default (no specific assignment type)"
        lines = [
            f"✅ **{kind.label} Enrollment Successful**",
            "",
            f"👤 **User**: {user_info['fullname']} ({email})",
            f"{kind.icon} **{kind.label}**: {summary['name']}",
            f"🔗 **{kind.label} ID**: {summary['id']}",
            f"🏷️ **{kind.label} Code**: {summary['code']}",
            f"📋 **Assignment Type**: {assignment}",
            f"📅 **Enrolled**: {date.today().isoformat()}",
        ]
        if options.get("start_validity"):
            lines.append(f"📅 **Start Validity**: {options['start_validity']}")
        if options.get("end_validity"):
            lines.append(f"📅 **End Validity**: {options['end_validity']}")

        return chat_response(
            "\n".join(lines),
            data={
                "user": user_info,
                kind.data_key: summary,
                "enrollmentOptions": options,
                "enrollmentResult": result,
            },
        )

    async def _unenroll(self, kind: ResourceKind, entities: dict) -> dict:
        email = entities.get("email")
        identifier = entities.get(kind.entity)
        lower = kind.label.lower()
        if not email or not identifier:
            return missing_information(
                f"I need both a user email and {lower} identifier.",
                f"Unenroll john@company.com from {lower} Python Programming",
                f"Remove sarah@company.com from {lower} 190",
            )

        logger.info(f"🎯 Unenrolling {email} from {lower} '{identifier}'")

        user = await self.api.find_user_by_email(email)
        if not user:
            return user_not_found(email)

        try:
            resource = await self.resolve_resource(kind, identifier)
        except ResourceNotFoundError as e:
            return resource_not_found(kind, e, f"Unenroll {email} from {lower} 190")

        summary = self.resource_summary(kind, resource)
        user_info = user_summary(user)
        if kind is COURSE:
            result = await self.api.unenroll_user_from_course(user_info["id"], summary["id"])
        else:
            result = await self.api.unenroll_user_from_learning_plan(user_info["id"], summary["id"])

        return chat_response(
            f"✅ **{kind.label} Unenrollment Successful**\n\n"
            f"👤 **User**: {user_info['fullname']} ({email})\n"
            f"{kind.icon} **{kind.label}**: {summary['name']}\n"
            f"🔗 **{kind.label} ID**: {summary['id']}\n"
            f"📅 **Unenrolled**: {date.today().isoformat()}\n\n"
            f"The user no longer has access to this {lower}.",
            data={
                "user": user_info,
                kind.data_key: summary,
                "unenrollmentResult": result,
            },
        )


def enrollment_options(entities: dict) -> dict:
    assignment_type: Optional[str] = (entities.get("assignment_type") or "").lower() or None
    if assignment_type not in ASSIGNMENT_TYPES:
        assignment_type = None
    return {
        "assignment_type": assignment_type,
        "start_validity": entities.get("start_validity"),
        "end_validity": entities.get("end_validity"),
    }


def user_not_found(email: str) -> dict:
    return chat_response(
        f"❌ **User Not Found**: {email}\n\n"
        "No user found with that email address. Please verify the email is correct "
        "and the user exists in Docebo.",
        success=False,
    )


def resource_not_found(kind: ResourceKind, error: ResourceNotFoundError, example: str) -> dict:
    tips = IDENTIFICATION_TIPS.format(label=kind.label, lower=kind.label.lower())
    return chat_response(
        f"❌ **{kind.label} Not Found**: {error.identifier or error.message}\n\n{tips}\n\n"
        f'**📋 Example**: "{example}"',
        success=False,
    )
