"""Deadline helper shared by every timed wait in the service."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from lookout.exceptions import DeadlineExceeded

T = TypeVar("T")


async def wait_with_deadline(
    aw: Awaitable[T],
    timeout: float,
    *,
    what: str = "operation",
) -> T:
    """Await ``aw``, cancelling it if it is still pending after ``timeout`` seconds.

    Raises:
        DeadlineExceeded: the deadline elapsed first. The awaited operation has
            been cancelled by the time this is raised.
    """
    try:
        return await asyncio.wait_for(aw, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise DeadlineExceeded(f"{what} did not complete within {timeout:.2f}s") from e
