"""Test chat message classification and entity extraction"""

import re

import pytest

from services.intent_analyzer import (
    IntentRule,
    analyze_intent,
    clean_name,
    extract_email,
    extract_emails,
)


@pytest.mark.parametrize("message, intent, confidence", [
    ("Enroll john@company.com in course Python Programming", "enroll_user_in_course", 0.90),
    ("Enroll sarah@company.com in learning plan Data Science", "enroll_user_in_learning_plan", 0.95),
    ("Unenroll mike@company.com from course Excel Basics", "unenroll_user_from_course", 0.98),
    ("Remove mike@company.com from learning plan Leadership", "unenroll_user_from_learning_plan", 0.98),
    ("Enroll a@x.com, b@x.com in course 190", "bulk_enroll_users", 0.96),
    ("Is sarah@company.com enrolled in course Python Programming?", "check_specific_enrollment", 0.92),
    ("User enrollments mike@company.com", "get_user_enrollments", 0.89),
    ("Load more enrollments for mike@company.com", "load_more_enrollments", 0.93),
    ("Find user mike@company.com", "search_users", 0.85),
    ("Find user john smith", "search_users", 0.7),
    ("Find Python courses", "search_courses", 0.9),
    ("Find Python learning plans", "search_learning_plans", 0.9),
    ("Course info Python Programming", "course_info", 0.85),
    ("Learning plan info Data Science", "learning_plan_info", 0.85),
    ("help", "docebo_help", 0.6),
])
def test_known_messages(message, intent, confidence):
    """Each documented phrasing maps to its intent and confidence"""
    result = analyze_intent(message)
    assert result.intent == intent
    assert result.confidence == confidence


@pytest.mark.parametrize("message", ["", "   ", "what's the weather like", "good morning"])
def test_unknown_messages(message):
    result = analyze_intent(message)
    assert result.intent == "unknown"
    assert result.entities == {}
    assert result.confidence == 0


def test_enroll_course_entities():
    result = analyze_intent("Enroll john@company.com in course Python Programming as mandatory from 2025-01-15 to 2025-12-31")
    assert result.entities["email"] == "john@company.com"
    assert result.entities["course_name"] == "Python Programming"
    assert result.entities["assignment_type"] == "mandatory"
    assert result.entities["start_validity"] == "2025-01-15"
    assert result.entities["end_validity"] == "2025-12-31"


def test_names_keep_original_case_and_drop_quotes():
    result = analyze_intent('Enroll john@company.com in course "Advanced Excel"')
    assert result.entities["course_name"] == "Advanced Excel"


@pytest.mark.parametrize("message, name", [
    ("Enroll a@b.com in course Manager's Guide to Leader's Skills", "Manager's Guide to Leader's Skills"),
    ("Enroll a@b.com in course 'Women's Leadership'", "Women's Leadership"),
    ("Enroll a@b.com in course 'Women's Leadership' as mandatory", "Women's Leadership"),
    ('Enroll a@b.com in course "Python 101" as optional please', "Python 101"),
])
def test_course_names_with_apostrophes(message, name):
    assert analyze_intent(message).entities["course_name"] == name


def test_unenroll_keeps_inner_apostrophes():
    result = analyze_intent("Remove a@b.com from learning plan Manager's Toolkit")
    assert result.entities["learning_plan_name"] == "Manager's Toolkit"


def test_bulk_enroll_entities():
    result = analyze_intent("Enroll A@x.com, b@x.com and c@x.com in learning plan Onboarding as required")
    assert result.intent == "bulk_enroll_users"
    assert result.entities["emails"] == ["a@x.com", "b@x.com", "c@x.com"]
    assert result.entities["resource_type"] == "learning_plan"
    assert result.entities["learning_plan_name"] == "Onboarding"
    assert result.entities["assignment_type"] == "required"


def test_check_enrollment_completion_type():
    result = analyze_intent("Has john@company.com completed learning plan Data Science?")
    assert result.intent == "check_specific_enrollment"
    assert result.entities == {
        "email": "john@company.com",
        "resource_name": "Data Science",
        "resource_type": "learning_plan",
        "check_type": "completion",
    }


def test_check_enrollment_type():
    result = analyze_intent("Check if sarah@company.com is enrolled in course 274")
    assert result.entities["resource_name"] == "274"
    assert result.entities["resource_type"] == "course"
    assert result.entities["check_type"] == "enrollment"


def test_load_more_offset():
    result = analyze_intent("Load more enrollments for mike@company.com offset 20")
    assert result.intent == "load_more_enrollments"
    assert result.entities["email"] == "mike@company.com"
    assert result.entities["offset"] == 20
    assert result.entities["load_more"] is True


def test_search_terms():
    assert analyze_intent("Find Python courses").entities["search_term"] == "Python"
    assert analyze_intent("Find user john smith").entities["search_term"] == "john smith"


def test_bare_email_is_a_user_search():
    result = analyze_intent("mike@company.com")
    assert result.intent == "search_users"
    assert result.entities["email"] == "mike@company.com"


def test_higher_confidence_wins_regardless_of_order():
    pattern = (re.compile(r"ping"),)
    low = IntentRule("low", pattern, lambda m: {}, 0.5)
    high = IntentRule("high", pattern, lambda m: {}, 0.8)

    assert analyze_intent("ping", rules=(low, high)).intent == "high"
    assert analyze_intent("ping", rules=(high, low)).intent == "high"


def test_equal_confidence_keeps_first_rule():
    pattern = (re.compile(r"ping"),)
    first = IntentRule("first", pattern, lambda m: {}, 0.7)
    second = IntentRule("second", pattern, lambda m: {}, 0.7)

    assert analyze_intent("ping", rules=(first, second)).intent == "first"


def test_rule_without_required_entities_is_skipped():
    pattern = (re.compile(r"ping"),)
    needs_email = IntentRule("needs_email", pattern, lambda m: {"email": None}, 0.9, (("email",),))
    fallback = IntentRule("fallback", pattern, lambda m: {}, 0.3)

    assert analyze_intent("ping", rules=(needs_email, fallback)).intent == "fallback"


def test_extract_email():
    assert extract_email("no address here") is None
    assert extract_email(None) is None
    assert extract_email("mail b@c.io and d@e.io") == "b@c.io"


def test_extract_emails_deduplicates():
    assert extract_emails("A@x.com, a@x.com; b@x.com") == ["a@x.com", "b@x.com"]


def test_clean_name():
    assert clean_name("Python Programming please.") == "Python Programming"
    assert clean_name("[Data Science]") == "Data Science"
    assert clean_name("Excel as optional", strip_options=True) == "Excel"
    assert clean_name("   ") is None
    assert clean_name("Bob's 'Advanced' Track") == "Bob's 'Advanced' Track"
    assert clean_name("'Excel' as optional", strip_options=True) == "Excel"
