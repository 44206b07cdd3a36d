"""
CSV bulk operation endpoints
Upload processing, template download and format discovery
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from bot.docebo_api import DoceboAPI, get_docebo_api
from config.settings import BULK_BATCH_SIZE, CSV_MAX_ROWS
from services.csv_enrollment import (
    END_VALIDITY_COLUMNS,
    OPERATION_NAMES,
    REQUIRED_COLUMNS,
    START_VALIDITY_COLUMNS,
    CSVEnrollmentService,
    generate_csv_template,
    parse_csv_text,
    validate_csv_structure,
)
from utils.error_handler import CSVValidationError, error_envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat/csv", tags=["csv"])


class CSVUploadRequest(BaseModel):
    operation: Optional[str] = None
    csvData: Optional[Dict[str, Any]] = None
    csvText: Optional[str] = None


def unknown_operation(operation: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=error_envelope(
            f"❌ **Unknown Operation**: {operation}\n\n"
            "Supported operations:\n"
            "• **course_enrollment** - Enroll users in courses\n"
            "• **lp_enrollment** - Enroll users in learning plans\n"
            "• **unenrollment** - Remove users from courses/learning plans"
        ),
    )


@router.post("")
async def upload_csv(request: CSVUploadRequest, api: DoceboAPI = Depends(get_docebo_api)):
    """Validate and run a CSV batch; accepts pre-parsed csvData or raw csvText"""
    if not request.operation or (request.csvData is None and not request.csvText):
        return JSONResponse(status_code=400, content=error_envelope("❌ Missing operation or CSV data"))
    if request.operation not in REQUIRED_COLUMNS:
        return unknown_operation(request.operation)

    csv_data = request.csvData if request.csvData is not None else parse_csv_text(request.csvText)
    logger.info(f"🔄 CSV operation {request.operation} with {len(csv_data.get('validRows') or [])} rows")

    errors = validate_csv_structure(request.operation, csv_data)
    if errors:
        raise CSVValidationError(errors)

    return await CSVEnrollmentService(api).process(request.operation, csv_data)


def _operation_info(operation: str, description: str, example: str) -> dict:
    info = {
        "description": description,
        "required_columns": REQUIRED_COLUMNS[operation],
        "example": example,
    }
    if operation == "unenrollment":
        info["optional_columns"] = ["resource_type"]
        info["note"] = "Unenrollment does not use validity dates"
    else:
        info["optional_columns"] = ["assignment_type", "start_validity", "end_validity"]
        info["validity_date_formats"] = "YYYY-MM-DD (e.g., 2025-12-31)"
        info["validity_columns"] = {
            "alternative_names": {"start": START_VALIDITY_COLUMNS, "end": END_VALIDITY_COLUMNS}
        }
    return info


@router.get("")
async def csv_info(
    action: Optional[str] = Query(None, description="'template' to download a CSV template"),
    operation: Optional[str] = Query(None, description="course_enrollment, lp_enrollment or unenrollment"),
):
    """CSV template download or format discovery"""
    if action == "template" and operation:
        template = generate_csv_template(operation)
        if not template:
            return JSONResponse(status_code=400, content={"error": "Invalid operation for template generation"})
        return Response(
            content=template,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{operation}_template.csv"'},
        )

    return {
        "status": "CSV Processing API for Docebo Bulk Operations",
        "operations": {
            "course_enrollment": _operation_info(
                "course_enrollment",
                "Bulk enroll users in courses with optional validity dates",
                "john@company.com,Python Programming,required,2025-01-01,2025-12-31",
            ),
            "lp_enrollment": _operation_info(
                "lp_enrollment",
                "Bulk enroll users in learning plans with optional validity dates",
                "sarah@company.com,Leadership Development,required,2025-02-01,2025-11-30",
            ),
            "unenrollment": _operation_info(
                "unenrollment",
                "Bulk remove users from courses/learning plans",
                "mike@company.com,Old Training Course,course",
            ),
        },
        "operationNames": OPERATION_NAMES,
        "limits": {
            "max_rows_per_csv": CSV_MAX_ROWS,
            "batch_size": BULK_BATCH_SIZE,
            "supported_formats": ["CSV"],
        },
        "payloads": {
            "csvData": {"headers": ["email", "course"], "validRows": [["john@company.com", "Python Programming"]]},
            "csvText": "email,course\njohn@company.com,Python Programming",
        },
        "template_endpoints": {
            name: f"/api/chat/csv?action=template&operation={name}" for name in REQUIRED_COLUMNS
        },
    }
