"""Route an analyzed intent to the handler that serves it"""

import logging
from typing import Awaitable, Callable, Dict

from bot.docebo_api import DoceboAPI
from services.bulk_enrollment import BulkEnrollmentService
from services.enrollment import EnrollmentService
from services.info import InfoService
from services.intent_analyzer import IntentAnalysis
from services.responses import chat_response
from services.search import SearchService

logger = logging.getLogger(__name__)

Handler = Callable[[dict], Awaitable[dict]]

UNKNOWN_MESSAGE = """🤔 **I'm not sure what you need**: "{message}"

Here are some things I can do:

• **Enroll**: "Enroll john@company.com in course Python Programming"
• **Unenroll**: "Unenroll mike@company.com from learning plan Data Science"
• **Check**: "Is sarah@company.com enrolled in course Excel Basics?"
• **Enrollments**: "User enrollments mike@company.com"
• **Search**: "Find user mike@company.com", "Find Python courses"
• **Info**: "Course info Python Programming"

Type "help" for the full list of commands."""


class ChatDispatcher:
    """Maps intent names to handler coroutines built around one API client"""

    def __init__(self, api: DoceboAPI):
        enrollment = EnrollmentService(api)
        search = SearchService(api)
        info = InfoService(api)
        bulk = BulkEnrollmentService(api)
        self.handlers: Dict[str, Handler] = {
            "enroll_user_in_course": enrollment.enroll_user_in_course,
            "enroll_user_in_learning_plan": enrollment.enroll_user_in_learning_plan,
            "unenroll_user_from_course": enrollment.unenroll_user_from_course,
            "unenroll_user_from_learning_plan": enrollment.unenroll_user_from_learning_plan,
            "bulk_enroll_users": bulk.bulk_enroll_users,
            "search_users": search.search_users,
            "search_courses": search.search_courses,
            "search_learning_plans": search.search_learning_plans,
            "check_specific_enrollment": info.check_specific_enrollment,
            "get_user_enrollments": info.get_user_enrollments,
            "load_more_enrollments": info.load_more_enrollments,
            "course_info": info.course_info,
            "learning_plan_info": info.learning_plan_info,
            "docebo_help": info.docebo_help,
        }

    @property
    def intents(self):
        return list(self.handlers)

    async def dispatch(self, analysis: IntentAnalysis, message: str) -> dict:
        handler = self.handlers.get(analysis.intent)
        if handler is None:
            logger.info(f"❓ No handler for message: {message[:80]}")
            return chat_response(
                UNKNOWN_MESSAGE.format(message=message.strip()[:200]),
                success=False,
                data={"intent": analysis.intent, "confidence": analysis.confidence},
            )

        logger.info(f"➡️ Dispatching {analysis.intent}")
        result = await handler(analysis.entities)
        result.setdefault("intent", analysis.intent)
        return result
