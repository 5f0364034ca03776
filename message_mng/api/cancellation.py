"""
Request-scoped cancellation.

Ties outbound work to the lifetime of the inbound request so that a client
hanging up does not leave identity, project-service or database calls
running.
"""
import asyncio
import logging
from typing import Awaitable, TypeVar

from fastapi import Request

from ..domain.exceptions import RequestCancelledException

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCONNECT_POLL_INTERVAL = 0.5


async def cancel_on_disconnect(
    request: Request,
    awaitable: Awaitable[T],
    poll_interval: float = DISCONNECT_POLL_INTERVAL,
) -> T:
    """
    Await work while watching the inbound connection.

    Args:
        request: The inbound request.
        awaitable: The work to run.
        poll_interval: Seconds between disconnect checks.

    Returns:
        The work's result.

    Raises:
        RequestCancelledException: If the client disconnected first; the
            work is cancelled before this is raised.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info(f"Client disconnected, cancelling {request.method} {request.url.path}")
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                raise RequestCancelledException()
    finally:
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
