"""Chat response envelope shared by every handler"""

from datetime import datetime, timezone
from typing import Any, Optional


def chat_response(response: str, success: bool = True, data: Optional[dict] = None, **extra: Any) -> dict:
    """
    Build the `{response, success, data?, timestamp, ...}` payload returned to the chat UI

    Extra keyword arguments (totalCount, hasMore, loadMoreCommand, ...) are
    copied onto the envelope as-is.
    """
    payload = {"response": response, "success": success}
    if data is not None:
        payload["data"] = data
    payload.update({key: value for key, value in extra.items() if value is not None})
    payload["timestamp"] = datetime.now(timezone.utc).isoformat()
    return payload


def missing_information(what: str, *examples: str) -> dict:
    lines = "\n".join(f'• "{example}"' for example in examples)
    label = "Example" if len(examples) == 1 else "Examples"
    return chat_response(
        f"❌ **Missing Information**: {what}\n\n**{label}**:\n{lines}",
        success=False,
    )
