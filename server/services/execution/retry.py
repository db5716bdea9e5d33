"""Bounded fixed-delay retry for remote write operations.

Usage:
    policy = RetryPolicy.from_settings(settings)
    receipt = await with_retry(
        lambda: transfers.transfer_native(chain, recipient, amount, signer),
        policy,
        operation_name="transfer_native",
    )

The operation is a zero-argument factory returning a fresh awaitable on
every call, so each attempt re-runs the remote call from scratch (and the
collaborator fetches a new nonce).
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from core.logging import get_logger
from .exceptions import OperationFailed

logger = get_logger(__name__)

T = TypeVar("T")

# Substrings RPC nodes use when a transaction's sequence number is stale
NONCE_ERROR_MARKERS = (
    "nonce too low",
    "nonce has already been used",
    "invalid nonce",
    "replacement transaction underpriced",
)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for remote writes.

    ``max_attempts`` counts retries after the first call, so an operation
    runs at most ``max_attempts + 1`` times. The delay is flat.
    """
    max_attempts: int = 3
    delay: float = 2.0  # seconds

    @property
    def total_attempts(self) -> int:
        return self.max_attempts + 1

    def to_dict(self) -> Dict[str, Any]:
        return {"max_attempts": self.max_attempts, "delay": self.delay}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetryPolicy":
        return cls(
            max_attempts=data.get("max_attempts", 3),
            delay=data.get("delay", 2.0),
        )

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            delay=settings.retry_delay_seconds,
        )


def is_nonce_error(error: BaseException) -> bool:
    """Whether the chain rejected a transaction for a stale nonce."""
    message = str(error).lower()
    return any(marker in message for marker in NONCE_ERROR_MARKERS)


async def with_retry(operation: Callable[[], Awaitable[T]],
                     policy: Optional[RetryPolicy] = None,
                     *, operation_name: str = "operation", **log_context) -> T:
    """Run ``operation`` until it succeeds or attempts are exhausted.

    Args:
        operation: Zero-argument callable returning a new awaitable per call
        policy: Retry bound and delay; defaults to 3 retries, 2 seconds apart
        operation_name: Name used in logs and in OperationFailed
        **log_context: Extra key/values for log events (node_id, run_id...)

    Returns:
        The result of the first successful attempt

    Raises:
        OperationFailed: every attempt raised; carries the last exception
    """
    policy = policy or RetryPolicy()
    total = policy.total_attempts
    last_error: Optional[BaseException] = None

    for attempt in range(1, total + 1):
        if attempt > 1 and policy.delay > 0:
            await asyncio.sleep(policy.delay)
        try:
            result = await operation()
            if attempt > 1:
                logger.info("Operation succeeded after retry", operation=operation_name,
                            attempt=attempt, **log_context)
            return result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e
            if is_nonce_error(e):
                logger.warning("Nonce conflict, retrying with a fresh nonce",
                               operation=operation_name, attempt=attempt,
                               max_attempts=total, error=str(e), **log_context)
            else:
                logger.warning("Operation attempt failed", operation=operation_name,
                               attempt=attempt, max_attempts=total, error=str(e), **log_context)

    logger.error("Operation failed after all attempts", operation=operation_name,
                 attempts=total, error=str(last_error), **log_context)
    raise OperationFailed(operation_name, total, last_error)
