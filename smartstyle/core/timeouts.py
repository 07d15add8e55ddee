"""
Timeout Utilities (v1.0.0)
Bounds one-shot calls to external services so a request never hangs.
"""
import asyncio
import logging
from typing import Awaitable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationTimeoutError(Exception):
    """Raised when an awaited operation exceeds its time budget."""
    def __init__(self, message: str, timeout_seconds: float):
        self.message = message
        self.timeout_seconds = timeout_seconds
        super().__init__(self.message)


async def with_timeout(
    awaitable: Awaitable[T],
    timeout_seconds: float,
    error_message: str = "Operation timed out"
) -> T:
    """
    Await `awaitable`, cancelling it after `timeout_seconds`.
    
    Raises:
        OperationTimeoutError: If the budget is exceeded
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"{error_message} ({timeout_seconds}s)")
        raise OperationTimeoutError(error_message, timeout_seconds)
