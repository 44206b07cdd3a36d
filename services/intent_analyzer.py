"""
Regex intent analyzer for Docebo chat commands.

Each intent is a rule: patterns matched against the lower-cased message, a
static confidence, an entity extractor run on the raw message, and the
entities the intent cannot do without. The strictly highest confidence wins;
ties keep the rule declared first.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

EMAIL = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
USER_ID_PATTERNS = (
    re.compile(r"(?:user\s+)?\bid[:\s]+(\d+)", re.I),
    re.compile(r"(?:user\s+)?#(\d+)", re.I),
    re.compile(r"\buser\s+(\d+)\b", re.I),
)
ASSIGNMENT_TYPE_PATTERNS = (
    re.compile(r"(?:assignment\s+type|\bas)\s+(mandatory|required|recommended|optional)\b", re.I),
    re.compile(r"(?:make\s+it|set\s+as|mark\s+as|assign\s+as)\s+(mandatory|required|recommended|optional)\b", re.I),
    re.compile(r"\b(mandatory|required|recommended|optional)\s+assignment\b", re.I),
)
START_DATE_PATTERNS = (
    re.compile(r"(?:valid\s+from|effective\s+from|active\s+from)\s+(\d{4}-\d{2}-\d{2})", re.I),
    re.compile(r"(?:start\s+(?:validity|date)|\bfrom|\bbeginning|\bstarts?|\bstarting)\s+(\d{4}-\d{2}-\d{2})", re.I),
)
END_DATE_PATTERNS = (
    re.compile(r"(?:valid\s+until|expires\s+on)\s+(\d{4}-\d{2}-\d{2})", re.I),
    re.compile(r"(?:end\s+(?:validity|date)|\bto|\buntil|\bexpires?|\bending)\s+(\d{4}-\d{2}-\d{2})", re.I),
)
OFFSET = re.compile(r"\boffset\s*[:=]?\s*(\d+)", re.I)
# Only names wrapped end to end count as quoted; inner apostrophes are part of the name
QUOTED = (
    re.compile(r'^"(.+)"$'),
    re.compile(r"^\[(.+)\]$"),
    re.compile(r"^'(.+)'$"),
)
TRAILING_FILLER = re.compile(r"\s+(?:please|now|immediately|today|asap)$", re.I)
TRAILING_PUNCTUATION = re.compile(r"[.!?]+$")
ENROLL_OPTIONS = re.compile(
    r"\s+(?:with\s+assignment|as\s+(?:mandatory|required|recommended|optional)"
    r"|(?:mandatory|required|recommended|optional)\s+assignment"
    r"|(?:valid\s+from|valid\s+until|start\s+date|end\s+date|from|starting|until|to|ending|expires?)\s+\d{4}-\d{2}-\d{2}).*$",
    re.I,
)

COURSE_WORDS = r"(?:course|training)"
LP_WORDS = r"(?:learning\s+plan|learning\s+path|lp)"
RESOURCE_WORDS = r"(course|training|learning\s+plan|learning\s+path|lp)"

UNENROLL_COURSE = re.compile(r"\b(?:unenroll|remove|drop|cancel)\s+(.+?)\s+(?:from|out\s+of)\s+" + COURSE_WORDS + r"\s+(.+)", re.I)
UNENROLL_LP = re.compile(r"\b(?:unenroll|remove|drop|cancel)\s+(.+?)\s+(?:from|out\s+of)\s+" + LP_WORDS + r"\s+(.+)", re.I)
ENROLL_COURSE = re.compile(r"\b(?:enroll|add|assign|register)\s+(.+?)\s+(?:in|into|to|for)\s+" + COURSE_WORDS + r"\s+(.+)", re.I)
ENROLL_LP = re.compile(r"\b(?:enroll|add|assign|register)\s+(.+?)\s+(?:in|into|to|for)\s+" + LP_WORDS + r"\s+(.+)", re.I)
BULK_ENROLL = re.compile(
    r"\b(?:enroll|add|assign|register)\s+(.+@.+?(?:,|\band\b).+?@.+?)\s+(?:in|into|to|for)\s+"
    + RESOURCE_WORDS + r"\s+(.+)",
    re.I,
)
CHECK_ENROLLMENT = (
    re.compile(r"\b(?:check\s+if|is)\s+(.+?)\s+(?:is\s+)?(?:enrolled|registered)\s+in\s+(?:the\s+)?" + RESOURCE_WORDS + r"\s+(.+)", re.I),
    re.compile(r"\bis\s+(.+?)\s+(?:taking|doing)\s+(?:the\s+)?" + RESOURCE_WORDS + r"\s+(.+)", re.I),
    re.compile(r"\b(?:has|did)\s+(.+?)\s+(?:completed|finished|started|complete|finish|start)\s+(?:the\s+)?" + RESOURCE_WORDS + r"\s+(.+)", re.I),
)
SEARCH_LP = (
    re.compile(r"\b(?:find|search(?:\s+for)?|look\s+for|show)\s+(.+?)\s+(?:learning\s+plans?|learning\s+paths?|lps)\b", re.I),
    re.compile(r"\b(?:learning\s+plans?|learning\s+paths?)\s+(?:about|for|on)\s+(.+)", re.I),
    re.compile(r"\b(?:find|search(?:\s+for)?)\s+(?:learning\s+plans?|learning\s+paths?|lps?)\s+(.+)", re.I),
)
SEARCH_COURSES = (
    re.compile(r"\b(?:find|search(?:\s+for)?|look\s+for)\s+(.+?)\s+(?:courses?|trainings?)\b", re.I),
    re.compile(r"\bcourses?\s+(?:about|for|on)\s+(.+)", re.I),
    re.compile(r"\b(?:find|search(?:\s+for)?)\s+(?:courses?|trainings?)\s+(.+)", re.I),
)
COURSE_INFO = (
    re.compile(r"\b" + COURSE_WORDS + r"\s+(?:info|information|details)\s+(?:for\s+|about\s+|on\s+)?(.+)", re.I),
    re.compile(r"\btell\s+me\s+about\s+(?:the\s+)?" + COURSE_WORDS + r"\s+(.+)", re.I),
    re.compile(r"\bwhat\s+is\s+(?:the\s+)?" + COURSE_WORDS + r"\s+(.+)", re.I),
    re.compile(r"\b(?:info|information|details)\s+(?:about|on|for)\s+(?:the\s+)?" + COURSE_WORDS + r"\s+(.+)", re.I),
)
LP_INFO = (
    re.compile(r"\b" + LP_WORDS + r"\s+(?:info|information|details)\s+(?:for\s+|about\s+|on\s+)?(.+)", re.I),
    re.compile(r"\btell\s+me\s+about\s+(?:the\s+)?" + LP_WORDS + r"\s+(.+)", re.I),
    re.compile(r"\bwhat\s+is\s+(?:the\s+)?" + LP_WORDS + r"\s+(.+)", re.I),
    re.compile(r"\b(?:info|information|details)\s+(?:about|on|for)\s+(?:the\s+)?" + LP_WORDS + r"\s+(.+)", re.I),
)
LOAD_MORE = (
    re.compile(r"\b(?:load|show|get|see)\s+more\s+enrollments?\b", re.I),
    re.compile(r"\bmore\s+enrollments?\s+for\b", re.I),
    re.compile(r"\bnext\s+page\s+of\s+enrollments?\b", re.I),
)
USER_ENROLLMENTS = (
    re.compile(r"\buser\s+enrollments?\b", re.I),
    re.compile(r"\b(?:show|get|list|display|view)\s+(?:all\s+)?(?:the\s+)?(?:user\s+)?enrollments?\b", re.I),
    re.compile(r"\benrollments?\s+(?:for|of)\b", re.I),
    re.compile(r"\bwhat\s+(?:courses|learning\s+plans|trainings?)\s+(?:is|are|does)\s+.+?\s+(?:taking|enrolled|doing)", re.I),
    re.compile(r"\bwhat\s+is\s+.+?\s+enrolled\s+in\b", re.I),
)
SEARCH_USERS = (
    re.compile(r"\b(?:find\s+user|search\s+user|look\s+up\s+user|lookup\s+user|user\s+info|user\s+details|who\s+is)\s+(.+)", re.I),
    re.compile(r"^\s*[^\s@]+@[^\s@]+\.[^\s@]+\s*$"),
)
HELP = (
    re.compile(r"\b(?:help|how\s+(?:do|can|to)\s+i|what\s+can\s+you\s+do|docebo\s+help|support)\b", re.I),
)


@dataclass
class IntentAnalysis:
    intent: str
    entities: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "entities": self.entities, "confidence": self.confidence}


@dataclass(frozen=True)
class IntentRule:
    intent: str
    patterns: Tuple[re.Pattern, ...]
    extract: Callable[[str], Dict[str, Any]]
    confidence: Union[float, Callable[[str], float]]
    requires: Tuple[Tuple[str, ...], ...] = ()

    def score(self, message: str) -> float:
        if callable(self.confidence):
            return self.confidence(message)
        return self.confidence

    def accepts(self, entities: Dict[str, Any]) -> bool:
        # every group needs at least one of its keys filled
        return all(any(entities.get(key) for key in group) for group in self.requires)


# Entity helpers

def extract_email(text: Optional[str]) -> Optional[str]:
    """First email address in `text`, or None"""
    if not text:
        return None
    match = EMAIL.search(text)
    return match.group(0) if match else None


def extract_emails(text: Optional[str]) -> List[str]:
    """All email addresses, lower-cased and de-duplicated in order of appearance"""
    if not text:
        return []
    seen = []
    for email in EMAIL.findall(text):
        email = email.lower()
        if email not in seen:
            seen.append(email)
    return seen


def _first_group(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)
    return None


def extract_user_id(text: str) -> Optional[str]:
    return _first_group(USER_ID_PATTERNS, text)


def extract_assignment_type(text: str) -> Optional[str]:
    value = _first_group(ASSIGNMENT_TYPE_PATTERNS, text)
    return value.lower() if value else None


def extract_start_date(text: str) -> Optional[str]:
    return _first_group(START_DATE_PATTERNS, text)


def extract_end_date(text: str) -> Optional[str]:
    return _first_group(END_DATE_PATTERNS, text)


def extract_offset(text: str) -> Optional[int]:
    value = _first_group((OFFSET,), text)
    return int(value) if value else None


def clean_name(raw: Optional[str], strip_options: bool = False) -> Optional[str]:
    """Tidy a captured resource name: enrollment options, filler words, punctuation, wrapping quotes"""
    if not raw:
        return None
    name = _unquote(raw.strip())
    if name is not None:
        return name

    name = raw.strip()
    if strip_options:
        name = ENROLL_OPTIONS.sub("", name)
    name = TRAILING_PUNCTUATION.sub("", name.strip())
    name = TRAILING_FILLER.sub("", name)
    name = TRAILING_PUNCTUATION.sub("", name.strip()).strip()

    unquoted = _unquote(name)
    if unquoted is not None:
        return unquoted
    return name or None


def _unquote(name: str) -> Optional[str]:
    for pattern in QUOTED:
        match = pattern.match(name)
        if match:
            return match.group(1).strip() or None
    return None


def _resource_type(word: str) -> str:
    word = word.lower()
    if word in ("course", "training"):
        return "course"
    return "learning_plan"


def _user_part(raw: str) -> Optional[str]:
    part = raw.strip()
    return extract_email(part) or part or None


def _enrollment_options(message: str) -> Dict[str, Any]:
    return {
        "assignment_type": extract_assignment_type(message),
        "start_validity": extract_start_date(message),
        "end_validity": extract_end_date(message),
    }


# Extractors

def _unenroll_course(message: str) -> Dict[str, Any]:
    match = UNENROLL_COURSE.search(message)
    return {
        "email": _user_part(match.group(1)) if match else extract_email(message),
        "course_name": clean_name(match.group(2)) if match else None,
        "resource_type": "course",
        "action": "unenroll",
    }


def _unenroll_learning_plan(message: str) -> Dict[str, Any]:
    match = UNENROLL_LP.search(message)
    return {
        "email": _user_part(match.group(1)) if match else extract_email(message),
        "learning_plan_name": clean_name(match.group(2)) if match else None,
        "resource_type": "learning_plan",
        "action": "unenroll",
    }


def _bulk_enroll(message: str) -> Dict[str, Any]:
    match = BULK_ENROLL.search(message)
    entities = {
        "emails": extract_emails(match.group(1) if match else message),
        "action": "enroll",
        **_enrollment_options(message),
    }
    if match:
        resource_type = _resource_type(match.group(2))
        name = clean_name(match.group(3), strip_options=True)
        entities["resource_type"] = resource_type
        entities["course_name" if resource_type == "course" else "learning_plan_name"] = name
    return entities


def _enroll_learning_plan(message: str) -> Dict[str, Any]:
    match = ENROLL_LP.search(message)
    return {
        "email": _user_part(match.group(1)) if match else extract_email(message),
        "learning_plan_name": clean_name(match.group(2), strip_options=True) if match else None,
        "resource_type": "learning_plan",
        "action": "enroll",
        **_enrollment_options(message),
    }


def _enroll_course(message: str) -> Dict[str, Any]:
    match = ENROLL_COURSE.search(message)
    return {
        "email": _user_part(match.group(1)) if match else extract_email(message),
        "course_name": clean_name(match.group(2), strip_options=True) if match else None,
        "resource_type": "course",
        "action": "enroll",
        **_enrollment_options(message),
    }


def _load_more(message: str) -> Dict[str, Any]:
    return {
        "email": extract_email(message),
        "user_id": extract_user_id(message),
        "offset": extract_offset(message),
        "load_more": True,
    }


def _check_enrollment(message: str) -> Dict[str, Any]:
    for pattern in CHECK_ENROLLMENT:
        match = pattern.search(message)
        if match:
            verb = message[match.start():match.start(2)].lower()
            check_type = "completion" if re.search(r"complet|finish", verb) else "enrollment"
            return {
                "email": _user_part(match.group(1)),
                "resource_name": clean_name(match.group(3)),
                "resource_type": _resource_type(match.group(2)),
                "check_type": check_type,
            }
    return {"email": extract_email(message), "resource_name": None, "resource_type": "course", "check_type": "enrollment"}


def _search_term(patterns) -> Callable[[str], Dict[str, Any]]:
    def extract(message: str) -> Dict[str, Any]:
        return {"search_term": clean_name(_first_group(patterns, message))}
    return extract


def _user_enrollments(message: str) -> Dict[str, Any]:
    return {
        "email": extract_email(message),
        "user_id": extract_user_id(message),
        "offset": extract_offset(message),
    }


def _course_info(message: str) -> Dict[str, Any]:
    name = clean_name(_first_group(COURSE_INFO, message))
    return {
        "course_name": name,
        "course_id": name if name and name.isdigit() else None,
    }


def _learning_plan_info(message: str) -> Dict[str, Any]:
    return {"learning_plan_name": clean_name(_first_group(LP_INFO, message))}


def _search_users(message: str) -> Dict[str, Any]:
    captured = _first_group(SEARCH_USERS[:1], message)
    term = clean_name(captured) if captured else message.strip()
    email = extract_email(term)
    return {
        "email": email,
        "search_term": term,
        "user_id": term if term and term.isdigit() else extract_user_id(message),
    }


def _help(message: str) -> Dict[str, Any]:
    return {"query": message.strip()}


def _with_email(high: float, low: float) -> Callable[[str], float]:
    def score(message: str) -> float:
        return high if extract_email(message) else low
    return score


INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule("unenroll_user_from_course", (UNENROLL_COURSE,), _unenroll_course, 0.98,
               (("email",), ("course_name",))),
    IntentRule("unenroll_user_from_learning_plan", (UNENROLL_LP,), _unenroll_learning_plan, 0.98,
               (("email",), ("learning_plan_name",))),
    IntentRule("bulk_enroll_users", (BULK_ENROLL,), _bulk_enroll, 0.96,
               (("emails",), ("course_name", "learning_plan_name"))),
    IntentRule("enroll_user_in_learning_plan", (ENROLL_LP,), _enroll_learning_plan, 0.95,
               (("email",), ("learning_plan_name",))),
    IntentRule("load_more_enrollments", LOAD_MORE, _load_more, 0.93,
               (("email", "user_id"),)),
    IntentRule("check_specific_enrollment", CHECK_ENROLLMENT, _check_enrollment, 0.92,
               (("email",), ("resource_name",))),
    IntentRule("enroll_user_in_course", (ENROLL_COURSE,), _enroll_course, 0.90,
               (("email",), ("course_name",))),
    IntentRule("search_learning_plans", SEARCH_LP, _search_term(SEARCH_LP), 0.9,
               (("search_term",),)),
    IntentRule("search_courses", SEARCH_COURSES, _search_term(SEARCH_COURSES), 0.9,
               (("search_term",),)),
    IntentRule("get_user_enrollments", USER_ENROLLMENTS, _user_enrollments, _with_email(0.89, 0.88),
               (("email", "user_id"),)),
    IntentRule("course_info", COURSE_INFO, _course_info, 0.85,
               (("course_name", "course_id"),)),
    IntentRule("learning_plan_info", LP_INFO, _learning_plan_info, 0.85,
               (("learning_plan_name",),)),
    IntentRule("search_users", SEARCH_USERS, _search_users, _with_email(0.85, 0.7),
               (("email", "search_term", "user_id"),)),
    IntentRule("docebo_help", HELP, _help, 0.6),
)


def analyze_intent(message: str, rules: Tuple[IntentRule, ...] = INTENT_RULES) -> IntentAnalysis:
    """
    Classify a chat message into an intent with extracted entities

    Patterns are tested against the lower-cased message; entities come from the
    raw message so names keep their original case.
    """
    best = IntentAnalysis(intent="unknown", entities={}, confidence=0)
    if not message or not message.strip():
        return best

    lowered = message.lower().strip()
    for rule in rules:
        if not any(pattern.search(lowered) for pattern in rule.patterns):
            continue
        confidence = rule.score(message)
        if confidence <= best.confidence:
            continue
        entities = rule.extract(message.strip())
        if rule.accepts(entities):
            best = IntentAnalysis(intent=rule.intent, entities=entities, confidence=confidence)

    logger.info(f"🎯 Intent: {best.intent} ({best.confidence})")
    return best
