"""
Chat API endpoint
Turns a free-text admin message into a Docebo operation and a chat reply
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from bot.docebo_api import DoceboAPI, get_docebo_api
from config.settings import BOT_NAME, ENROLLMENTS_PAGE_SIZE
from services.dispatcher import ChatDispatcher
from services.intent_analyzer import analyze_intent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

CAPABILITIES = {
    "enroll_user_in_course": "Enroll john@company.com in course Python Programming",
    "enroll_user_in_learning_plan": "Enroll sarah@company.com in learning plan Data Science as mandatory",
    "bulk_enroll_users": "Enroll a@company.com, b@company.com in course 190",
    "unenroll_user_from_course": "Unenroll mike@company.com from course Excel Basics",
    "unenroll_user_from_learning_plan": "Remove mike@company.com from learning plan Leadership",
    "check_specific_enrollment": "Is sarah@company.com enrolled in course Python Programming?",
    "get_user_enrollments": "User enrollments mike@company.com",
    "load_more_enrollments": "Load more enrollments for mike@company.com offset 20",
    "search_users": "Find user mike@company.com",
    "search_courses": "Find Python courses",
    "search_learning_plans": "Find leadership learning plans",
    "course_info": "Course info Python Programming",
    "learning_plan_info": "Learning plan info Data Science",
    "docebo_help": "Help with enrollments",
}


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    offset: Optional[int] = Field(None, ge=0)
    pageSize: Optional[int] = Field(None, ge=1, le=100)


@router.post("")
async def chat(request: ChatRequest, api: DoceboAPI = Depends(get_docebo_api)):
    """Analyze the message, run the matching handler and return its envelope"""
    logger.info(f"💬 Chat message: {request.message[:100]}")
    analysis = analyze_intent(request.message)

    # Explicit pagination in the body wins over values parsed from the text
    if request.offset is not None:
        analysis.entities["offset"] = request.offset
    if request.pageSize is not None:
        analysis.entities["page_size"] = request.pageSize

    result = await ChatDispatcher(api).dispatch(analysis, request.message)
    result.setdefault("confidence", analysis.confidence)
    return result


@router.get("")
async def capabilities():
    """Supported intents with an example message for each"""
    return {
        "status": f"{BOT_NAME} chat API",
        "intents": [{"intent": name, "example": example} for name, example in CAPABILITIES.items()],
        "pagination": {"defaultPageSize": ENROLLMENTS_PAGE_SIZE, "fields": ["offset", "pageSize"]},
        "csvEndpoint": "/api/chat/csv",
    }
