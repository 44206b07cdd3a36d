"""
CSV Bulk Enrollment Service
Validates uploaded CSV batches and enrolls / unenrolls users resource by resource
"""

import asyncio
import io
import logging
import re
import time
from collections import OrderedDict
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from bot.docebo_api import DoceboAPI
from config.settings import BULK_BATCH_DELAY, BULK_BATCH_SIZE, CSV_EMAIL_SAMPLE_SIZE, CSV_MAX_ROWS
from services import normalizers
from services.enrollment import enrollment_options
from services.responses import chat_response
from utils.error_handler import CSVValidationError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    "course_enrollment": ["email", "course"],
    "lp_enrollment": ["email", "learning_plan"],
    "unenrollment": ["email", "resource"],
}

OPERATION_NAMES = {
    "course_enrollment": "Course Enrollment",
    "lp_enrollment": "Learning Plan Enrollment",
    "unenrollment": "Unenrollment",
}

START_VALIDITY_COLUMNS = ["start_validity", "validity_start", "start_date", "valid_from"]
END_VALIDITY_COLUMNS = ["end_validity", "validity_end", "end_date", "valid_until", "expires"]

DEFAULT_ASSIGNMENT_TYPE = "required"

CSV_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CSV_TEMPLATES = {
    "course_enrollment": (
        "email,course,assignment_type,start_validity,end_validity\n"
        'john@company.com,"Python Programming",required,2025-01-01,2025-12-31\n'
        'sarah@company.com,"Data Science Basics",optional,,\n'
        'mike@company.com,"Excel Advanced",required,,\n'
    ),
    "lp_enrollment": (
        "email,learning_plan,assignment_type,start_validity,end_validity\n"
        'john@company.com,"Leadership Development",required,2025-01-01,2025-12-31\n'
        'sarah@company.com,"Technical Skills Path",optional,,\n'
        'mike@company.com,"Management Training",required,,\n'
    ),
    "unenrollment": (
        "email,resource,resource_type\n"
        'john@company.com,"Old Training Course",course\n'
        'sarah@company.com,"Outdated Learning Path",learning_plan\n'
        'mike@company.com,"Deprecated Program",course\n'
    ),
}

SUCCESS_GROUPS_SHOWN = 10
SUCCESS_EMAILS_SHOWN = 5
FAILURE_GROUPS_SHOWN = 5
FAILURE_EMAILS_SHOWN = 3


def validate_csv_structure(operation: str, csv_data: dict) -> List[str]:
    """
    Check a parsed CSV payload before any Docebo call is made

    Args:
        operation: course_enrollment, lp_enrollment or unenrollment
        csv_data: {"headers": [...], "validRows": [[...], ...]}

    Returns:
        List of error strings, empty when the CSV can be processed
    """
    headers = csv_data.get("headers") if isinstance(csv_data, dict) else None
    rows = csv_data.get("validRows") if isinstance(csv_data, dict) else None

    if not isinstance(headers, list):
        return ["Invalid CSV headers"]
    if not isinstance(rows, list):
        return ["No valid data rows found"]
    if not rows:
        return ["No valid rows to process"]
    if len(rows) > CSV_MAX_ROWS:
        return [f"Too many rows (maximum {CSV_MAX_ROWS} rows per CSV)"]

    required = REQUIRED_COLUMNS.get(operation)
    if not required:
        return [f"Unknown operation: {operation}"]

    errors = []
    header_lower = [str(h).lower().strip() for h in headers]
    missing = [column for column in required if column not in header_lower]
    if missing:
        errors.append(f"Missing required columns: {', '.join(missing)}")

    if "email" in header_lower:
        email_index = header_lower.index("email")
        for row in rows[:CSV_EMAIL_SAMPLE_SIZE]:
            email = _cell(row, email_index)
            if not email or not CSV_EMAIL.match(email):
                errors.append("Invalid email format detected in sample rows")
                break

    return errors


def generate_csv_template(operation: str) -> str:
    return CSV_TEMPLATES.get(operation, "")


def parse_csv_text(csv_text: str) -> dict:
    """Parse raw CSV text into the {headers, validRows} shape the upload widget sends"""
    try:
        df = pd.read_csv(
            io.StringIO(csv_text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError:
        raise CSVValidationError(["CSV text is empty"])
    except pd.errors.ParserError as e:
        raise CSVValidationError([f"CSV could not be parsed: {e}"])

    df = df[~(df == "").all(axis=1)]
    return {
        "headers": [str(column).strip() for column in df.columns],
        "validRows": df.values.tolist(),
    }


def _cell(row: list, index: Optional[int]) -> str:
    if index is None or index < 0 or index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def _column(header_lower: List[str], *names: str) -> Optional[int]:
    for name in names:
        if name in header_lower:
            return header_lower.index(name)
    return None


def _validity_date(value: str, email: str, column: str) -> Optional[str]:
    if not value:
        return None
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        logger.warning(f"⚠️ Ignoring invalid {column} '{value}' for {email} (expected YYYY-MM-DD)")
        return None
    return value


class CSVEnrollmentService:
    """Process CSV batches of enrollments against Docebo"""

    def __init__(self, api: DoceboAPI):
        self.api = api

    async def process(self, operation: str, csv_data: dict) -> dict:
        start = time.monotonic()
        rows = csv_data["validRows"]
        logger.info(f"🎯 Processing CSV {operation}: {len(rows)} rows")

        result = {
            "successful": [],
            "failed": [],
            "summary": {
                "total": len(rows),
                "successful": 0,
                "failed": 0,
                "operation": operation,
                "processingTime": 0,
            },
        }

        for group in self._group_rows(operation, csv_data["headers"], rows).values():
            await self._process_group(operation, group, result)

        result["summary"]["successful"] = len(result["successful"])
        result["summary"]["failed"] = len(result["failed"])
        result["summary"]["processingTime"] = int((time.monotonic() - start) * 1000)
        logger.info(
            f"✓ CSV {operation} done: {result['summary']['successful']}/{result['summary']['total']} "
            f"in {result['summary']['processingTime']}ms"
        )
        return format_csv_response(result, OPERATION_NAMES[operation])

    @staticmethod
    def _group_rows(operation: str, headers: list, rows: list) -> Dict[tuple, dict]:
        """Rows keyed by (resource_type, resource name), first-seen order"""
        header_lower = [str(h).lower().strip() for h in headers]
        email_index = _column(header_lower, "email")
        assignment_index = _column(header_lower, "assignment_type")
        start_index = _column(header_lower, *START_VALIDITY_COLUMNS)
        end_index = _column(header_lower, *END_VALIDITY_COLUMNS)
        if operation == "course_enrollment":
            resource_index = _column(header_lower, "course")
        elif operation == "lp_enrollment":
            resource_index = _column(header_lower, "learning_plan")
        else:
            resource_index = _column(header_lower, "resource")
        type_index = _column(header_lower, "resource_type")

        groups = OrderedDict()
        for row in rows:
            email = _cell(row, email_index)
            resource_name = _cell(row, resource_index)
            if operation == "course_enrollment":
                resource_type = "course"
            elif operation == "lp_enrollment":
                resource_type = "learning_plan"
            else:
                resource_type = "learning_plan" if _cell(row, type_index).lower() == "learning_plan" else "course"

            entry = {"email": email}
            if operation != "unenrollment":
                entry["options"] = enrollment_options({
                    "assignment_type": _cell(row, assignment_index) or DEFAULT_ASSIGNMENT_TYPE,
                    "start_validity": _validity_date(_cell(row, start_index), email, "start_validity"),
                    "end_validity": _validity_date(_cell(row, end_index), email, "end_validity"),
                })

            key = (resource_type, resource_name)
            group = groups.setdefault(key, {"resource_type": resource_type, "resource_name": resource_name, "users": []})
            group["users"].append(entry)
        return groups

    async def _process_group(self, operation: str, group: dict, result: dict):
        resource_type = group["resource_type"]
        resource_name = group["resource_name"]
        users = group["users"]
        label = "Course" if resource_type == "course" else "Learning plan"
        logger.info(f"📚 Processing {resource_type}: {resource_name} ({len(users)} users)")

        try:
            if not resource_name:
                raise ValueError("empty resource name")
            if resource_type == "course":
                resource = await self.api.find_course_by_identifier(resource_name)
                resource_id = normalizers.course_id(resource)
            else:
                resource = await self.api.find_learning_plan_by_identifier(resource_name)
                resource_id = normalizers.learning_plan_id(resource)
        except Exception as e:
            logger.error(f"❌ Error finding {resource_type} {resource_name}: {e}")
            for user in users:
                result["failed"].append({
                    "email": user["email"],
                    "resourceName": resource_name,
                    "error": f"{label} not found: {resource_name}",
                    "operation": operation,
                })
            return

        for index in range(0, len(users), BULK_BATCH_SIZE):
            batch = users[index:index + BULK_BATCH_SIZE]
            outcomes = await asyncio.gather(*(
                self._process_user(operation, resource_type, resource_id, resource_name, user) for user in batch
            ))
            for ok, record in outcomes:
                result["successful" if ok else "failed"].append(record)

            if index + BULK_BATCH_SIZE < len(users):
                await asyncio.sleep(BULK_BATCH_DELAY)

    async def _process_user(self, operation, resource_type, resource_id, resource_name, user):
        email = user["email"]
        try:
            found = await self.api.find_user_by_email(email) if email else None
            if not found:
                return False, {
                    "email": email,
                    "resourceName": resource_name,
                    "error": "User not found",
                    "operation": operation,
                }

            user_id = str(normalizers.coalesce(found, normalizers.USER_ID_FIELDS))
            if operation == "unenrollment":
                if resource_type == "course":
                    await self.api.unenroll_user_from_course(user_id, resource_id)
                else:
                    await self.api.unenroll_user_from_learning_plan(user_id, resource_id)
            elif resource_type == "course":
                await self.api.enroll_user_in_course(user_id, resource_id, **user["options"])
            else:
                await self.api.enroll_user_in_learning_plan(user_id, resource_id, **user["options"])
        except Exception as e:
            logger.error(f"❌ {operation} failed for {email} / {resource_name}: {e}")
            return False, {
                "email": email,
                "resourceName": resource_name,
                "error": getattr(e, "message", None) or str(e) or "Operation failed",
                "operation": operation,
            }

        logger.info(f"✅ {operation}: {email} / {resource_name}")
        return True, {
            "email": email,
            "userId": user_id,
            "resourceName": resource_name,
            "resourceId": resource_id,
            "operation": operation,
        }


def format_csv_response(result: dict, operation_name: str) -> dict:
    summary = result["summary"]
    seconds = summary["processingTime"] / 1000
    total = summary["total"]

    lines = [
        f"📊 **CSV {operation_name} Results**",
        "",
        f"📈 **Summary**: {summary['successful']}/{total} operations completed successfully",
        f"⏱️ **Processing Time**: {round(seconds)} seconds",
        f"📅 **Completed**: {datetime.now().strftime('%Y-%m-%d at %H:%M:%S')}",
        "",
    ]

    if result["successful"]:
        lines.append(f"✅ **Successful ({len(result['successful'])})**:")
        by_resource = OrderedDict()
        for record in result["successful"]:
            by_resource.setdefault(record["resourceName"], []).append(record["email"])
        for resource_name, emails in list(by_resource.items())[:SUCCESS_GROUPS_SHOWN]:
            more = f" and {len(emails) - SUCCESS_EMAILS_SHOWN} more" if len(emails) > SUCCESS_EMAILS_SHOWN else ""
            lines.append(f"📚 **{resource_name}**: {', '.join(emails[:SUCCESS_EMAILS_SHOWN])}{more}")
        if len(by_resource) > SUCCESS_GROUPS_SHOWN:
            lines.append(f"... and {len(by_resource) - SUCCESS_GROUPS_SHOWN} more resources")
        lines.append("")

    if result["failed"]:
        lines.append(f"❌ **Failed ({len(result['failed'])})**:")
        by_error = OrderedDict()
        for record in result["failed"]:
            by_error.setdefault(record["error"], []).append(record["email"])
        for error, emails in list(by_error.items())[:FAILURE_GROUPS_SHOWN]:
            more = f" and {len(emails) - FAILURE_EMAILS_SHOWN} more" if len(emails) > FAILURE_EMAILS_SHOWN else ""
            lines.append(f"🔸 **{error}**: {', '.join(emails[:FAILURE_EMAILS_SHOWN])}{more}")
        if len(by_error) > FAILURE_GROUPS_SHOWN:
            lines.append(f"... and {len(by_error) - FAILURE_GROUPS_SHOWN} more error types")
        lines.append("")

        lines += [
            "💡 **Next Steps**:",
            "• Review failed entries for data issues",
            "• Check that all resources exist in Docebo",
            "• Verify user permissions for failed operations",
            "• Re-upload corrected CSV for failed entries",
        ]
    else:
        lines += [
            "🎉 **All CSV operations completed successfully!**",
            "",
            "All users have been processed without errors.",
        ]

    rate = round(total / seconds) if seconds > 0 else total
    success_rate = round(summary["successful"] / total * 100) if total else 0
    lines += [
        "",
        "📊 **Performance Stats**:",
        f"• **Processing Rate**: {rate} operations/second",
        f"• **Success Rate**: {success_rate}%",
        f"• **Batch Size**: {BULK_BATCH_SIZE} users with {BULK_BATCH_DELAY}s pauses",
    ]

    return chat_response(
        "\n".join(lines),
        success=summary["successful"] > 0,
        data={"csvResult": result, "operationName": operation_name},
        totalCount=total,
        successCount=summary["successful"],
        failureCount=summary["failed"],
        processingTime=summary["processingTime"],
        isBulkOperation=True,
        isCSVOperation=True,
    )
