"""Exponential backoff retry for async provider calls."""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from models.request import RetryPolicy
from tools.error_classifier import is_rate_limited, is_retryable, normalize_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryHook = Callable[[int, float, Exception], None]


def compute_backoff_delay(
    base_delay_ms: float,
    rate_limited: bool,
    policy: RetryPolicy,
    jitter_ms: float = 0.0,
) -> float:
    """Delay in milliseconds before the next attempt.

    ``base * (rate_limit_multiplier if rate limited) + jitter``, capped at
    ``policy.max_delay_ms`` when a cap is configured.
    """
    delay = base_delay_ms * (policy.rate_limit_multiplier if rate_limited else 1) + jitter_ms
    if policy.max_delay_ms is not None:
        delay = min(delay, policy.max_delay_ms)
    return delay


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay_ms: int = 3000,
    *,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    jitter: Callable[[float, float], float] = random.uniform,
    on_retry: Optional[RetryHook] = None,
) -> T:
    """Run ``operation`` and retry retryable failures with exponential backoff.

    The operation is invoked at most ``max_attempts + 1`` times. Errors that
    are not retryable, and the error from the final attempt, are re-raised
    unchanged.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        max_attempts: Number of retries after the initial call.
        base_delay_ms: Delay before the first retry; multiplied after each retry.
        policy: Full retry policy. Overrides max_attempts/base_delay_ms when given.
        sleep: Awaitable sleep taking seconds (injectable for tests).
        jitter: ``uniform(a, b)``-style random source for the jitter term.
        on_retry: Called with (remaining attempts, delay ms, error) before sleeping.
    """
    if policy is None:
        policy = RetryPolicy(max_attempts=max_attempts, base_delay_ms=base_delay_ms)

    remaining = policy.max_attempts
    base = float(policy.base_delay_ms)

    while True:
        try:
            return await operation()
        except Exception as e:
            if remaining <= 0 or not is_retryable(e):
                raise

            rate_limited = is_rate_limited(e)
            delay_ms = compute_backoff_delay(
                base, rate_limited, policy, jitter(0, policy.jitter_ms) if policy.jitter_ms else 0.0
            )
            remaining -= 1
            logger.warning(
                "Operation failed (%s), retrying in %.0fms. Attempts left: %d. Error: %s",
                "rate limited" if rate_limited else "retryable",
                delay_ms,
                remaining,
                normalize_error(e)[:200],
            )
            if on_retry:
                on_retry(remaining, delay_ms, e)

            await sleep(delay_ms / 1000)
            base *= policy.backoff_multiplier
