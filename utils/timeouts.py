"""Race long-running Docebo calls against a deadline"""

import asyncio
import logging

logger = logging.getLogger(__name__)


async def run_with_timeout(coro, timeout: float, label: str = "operation"):
    """
    Await a coroutine for at most `timeout` seconds

    The underlying task is shielded: on timeout it keeps running in the
    background and its eventual result is discarded.

    Raises:
        asyncio.TimeoutError: when the deadline passes first
    """
    task = asyncio.ensure_future(coro)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout)
    except asyncio.TimeoutError:
        logger.warning(f"⏱️ {label} exceeded {timeout}s, continuing without it")
        task.add_done_callback(_discard_result)
        raise


def _discard_result(task: asyncio.Future):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Timed-out task finished with error: {exc}")
