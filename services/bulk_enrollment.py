"""Enroll several users named in one chat message into a single course or learning plan"""

import asyncio
import logging
import time

from bot.docebo_api import DoceboAPI
from config.settings import BULK_BATCH_DELAY, BULK_BATCH_SIZE
from services.enrollment import (
    COURSE,
    LEARNING_PLAN,
    EnrollmentService,
    enrollment_options,
    resource_not_found,
    user_summary,
)
from services.responses import chat_response, missing_information
from utils.error_handler import DoceboAPIError, EnrollmentRejectedError, ResourceNotFoundError

logger = logging.getLogger(__name__)

EMAILS_SHOWN = 10


class BulkEnrollmentService:
    def __init__(self, api: DoceboAPI):
        self.api = api
        self.enrollment = EnrollmentService(api)

    async def bulk_enroll_users(self, entities: dict) -> dict:
        emails = list(dict.fromkeys(entities.get("emails") or []))
        kind = LEARNING_PLAN if entities.get("resource_type") == "learning_plan" else COURSE
        identifier = entities.get(kind.entity)
        if not emails or not identifier:
            return missing_information(
                "I need a list of user emails and a course or learning plan.",
                "Enroll john@company.com, sarah@company.com in course Python Programming",
                "Enroll a@company.com and b@company.com in learning plan Data Science as mandatory",
            )

        options = enrollment_options(entities)
        logger.info(f"🎯 Bulk enrolling {len(emails)} users in {kind.key} '{identifier}'")

        try:
            resource = await self.enrollment.resolve_resource(kind, identifier)
        except ResourceNotFoundError as e:
            return resource_not_found(kind, e, f"Enroll a@company.com, b@company.com in {kind.label.lower()} 190")
        summary = self.enrollment.resource_summary(kind, resource)

        start = time.monotonic()
        successful, failed = [], []
        for index in range(0, len(emails), BULK_BATCH_SIZE):
            batch = emails[index:index + BULK_BATCH_SIZE]
            outcomes = await asyncio.gather(*(self._enroll_one(kind, summary["id"], email, options) for email in batch))
            for ok, record in outcomes:
                (successful if ok else failed).append(record)
            if index + BULK_BATCH_SIZE < len(emails):
                await asyncio.sleep(BULK_BATCH_DELAY)
        elapsed_ms = int((time.monotonic() - start) * 1000)

        lines = [
            f"📊 **Bulk {kind.label} Enrollment Results**",
            "",
            f"{kind.icon} **{kind.label}**: {summary['name']} (ID: {summary['id']})",
            f"📈 **Summary**: {len(successful)}/{len(emails)} users enrolled",
        ]
        if options.get("assignment_type"):
            lines.append(f"📋 **Assignment Type**: {options['assignment_type'].upper()}")
        if successful:
            lines += ["", f"✅ **Enrolled ({len(successful)})**:"]
            lines += [f"• {record['email']}" for record in successful[:EMAILS_SHOWN]]
            if len(successful) > EMAILS_SHOWN:
                lines.append(f"... and {len(successful) - EMAILS_SHOWN} more")
        if failed:
            lines += ["", f"❌ **Failed ({len(failed)})**:"]
            lines += [f"• {record['email']}: {record['error']}" for record in failed[:EMAILS_SHOWN]]
            if len(failed) > EMAILS_SHOWN:
                lines.append(f"... and {len(failed) - EMAILS_SHOWN} more")

        return chat_response(
            "\n".join(lines),
            success=bool(successful),
            data={
                kind.data_key: summary,
                "enrollmentOptions": options,
                "successful": successful,
                "failed": failed,
                "summary": {
                    "total": len(emails),
                    "successful": len(successful),
                    "failed": len(failed),
                    "processingTime": elapsed_ms,
                },
            },
            totalCount=len(emails),
            successCount=len(successful),
            failureCount=len(failed),
            isBulkOperation=True,
        )

    async def _enroll_one(self, kind, resource_id: str, email: str, options: dict):
        try:
            user = await self.api.find_user_by_email(email)
            if not user:
                return False, {"email": email, "error": "User not found"}
            user_id = user_summary(user)["id"]
            if kind is COURSE:
                await self.api.enroll_user_in_course(user_id, resource_id, **options)
            else:
                await self.api.enroll_user_in_learning_plan(user_id, resource_id, **options)
        except (DoceboAPIError, EnrollmentRejectedError) as e:
            logger.warning(f"⚠️ Bulk enrollment failed for {email}: {e.message}")
            return False, {"email": email, "error": e.message}
        return True, {"email": email, "userId": user_id}
