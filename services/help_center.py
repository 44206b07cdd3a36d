"""
Docebo Help Center lookup
Matches a help question against the article keyword table and formats the answer
"""

import logging
import re
from typing import Dict, List
from urllib.parse import quote

from config.help_articles import (
    API_DOCS_URL,
    COMMUNITY_URL,
    CONTACT_SUPPORT_URL,
    HELP_ARTICLES,
    HELP_CENTER_URL,
    HELP_SEARCH_URL,
    VIDEO_TUTORIALS_URL,
)

logger = logging.getLogger(__name__)

MAX_HELP_RESULTS = 5
MIN_TOPIC_LENGTH = 3

HELP_PREFIX = re.compile(
    r"^(?:(?:docebo\s+)?(?:help|support)(?:\s+(?:me|with|on|about|for))*"
    r"|how\s+(?:do|can|to)\s+i"
    r"|what\s+can\s+you\s+do)\b[\s:,-]*",
    re.I,
)


def help_topic(query: str) -> str:
    """Strip the help phrasing from a message, leaving the subject"""
    topic = HELP_PREFIX.sub("", (query or "").strip())
    return topic.strip(" ?!.").strip()


def search_help_articles(topic: str, limit: int = MAX_HELP_RESULTS) -> List[Dict[str, str]]:
    """
    Find help articles for a topic

    Keywords match when either side contains the other. Without a keyword
    match, titles and snippets containing the topic are used instead.
    Table order is kept.
    """
    wanted = topic.lower()
    if not wanted:
        return []

    def article(entry: dict) -> Dict[str, str]:
        return {key: entry[key] for key in ("title", "url", "snippet", "section")}

    results = [
        article(entry) for entry in HELP_ARTICLES
        if any(keyword in wanted or wanted in keyword for keyword in entry["keywords"])
    ]
    if not results:
        results = [
            article(entry) for entry in HELP_ARTICLES
            if wanted in entry["title"].lower() or wanted in entry["snippet"].lower()
        ]
    logger.info(f"🆘 {len(results)} help article(s) for '{topic}'")
    return results[:limit]


def format_help_results(topic: str, results: List[Dict[str, str]]) -> str:
    plural = "s" if len(results) != 1 else ""
    lines = [
        "🆘 **Docebo Help Center Results**",
        "",
        f'📖 **Search Query**: "{topic}"',
        f"📄 **Found**: {len(results)} relevant article{plural}",
        "",
    ]

    sections: Dict[str, List[Dict[str, str]]] = {}
    for result in results:
        sections.setdefault(result["section"], []).append(result)

    for section, articles in sections.items():
        lines.append(f"**📚 {section}**")
        for index, result in enumerate(articles, 1):
            lines.append(f"{index}. **{result['title']}**")
            lines.append(f"   {result['snippet']}")
            lines.append(f"   🔗 [View Article]({result['url']})")
            lines.append("")

    lines += [
        "💡 **Additional Help**:",
        f"• [Docebo Help Center]({HELP_CENTER_URL}) - Browse all articles",
        f"• [Community Forum]({COMMUNITY_URL}) - Ask questions and share tips",
        f"• [API Documentation]({API_DOCS_URL}) - Technical integration guides",
        f"• [Video Tutorials]({VIDEO_TUTORIALS_URL}) - Step-by-step video guides",
        "",
        '🔍 **Refine Your Search**: Try more specific terms like "bulk enrollment CSV" or "API authentication setup"',
    ]
    return "\n".join(lines)


def format_no_help_results(topic: str) -> str:
    search_url = HELP_SEARCH_URL.format(query=quote(topic))
    return f"""🔍 **No Specific Results Found**

I couldn't find specific articles for "{topic}" in the Docebo Help Center, but here are some helpful resources:

**🌐 Search Directly**:
• [Help Center Search]({search_url}) - Search for "{topic}"
• [Browse All Articles]({HELP_CENTER_URL}/hc/en-us) - Explore all help topics

**💡 Try Different Search Terms**:
• Be more specific: "bulk user import" vs "users"
• Use common terms: "enrollment" vs "registration"
• Include context: "API authentication" vs "authentication"

**🆘 Additional Support**:
• [Community Forum]({COMMUNITY_URL}) - Ask the community
• [Contact Support]({CONTACT_SUPPORT_URL}) - Direct support"""
