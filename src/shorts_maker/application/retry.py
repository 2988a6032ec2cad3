"""Per-call timeouts and bounded retries for external capability calls."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from shorts_maker.config import PipelineSettings
from shorts_maker.domain.errors import TransientServiceError
from shorts_maker.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 2
    backoff_seconds: float = 1.0
    backoff_max_seconds: float = 8.0
    call_timeout_seconds: float = 90.0

    @classmethod
    def from_settings(cls, settings: PipelineSettings, *, publish: bool = False) -> "RetryPolicy":
        return cls(
            max_retries=settings.publish_max_retries if publish else settings.max_retries,
            backoff_seconds=settings.retry_backoff_seconds,
            backoff_max_seconds=settings.retry_backoff_max_seconds,
            call_timeout_seconds=settings.call_timeout_seconds,
        )


async def call_with_timeout(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    timeout: float,
    service: str = "",
) -> T:
    """Await ``fn(*args)``; a per-call timeout surfaces as a transient error."""
    try:
        return await asyncio.wait_for(fn(*args), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise TransientServiceError(f"{service or 'call'} timed out after {timeout:g}s", service) from exc


def retrying(policy: RetryPolicy) -> AsyncRetrying:
    """Retry TransientServiceError only; everything else propagates on first raise."""
    return AsyncRetrying(
        retry=retry_if_exception_type(TransientServiceError),
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_exponential(multiplier=policy.backoff_seconds, max=policy.backoff_max_seconds),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


async def call_with_retries(
    policy: RetryPolicy,
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    service: str = "",
) -> T:
    async for attempt in retrying(policy):
        with attempt:
            return await call_with_timeout(
                fn, *args, timeout=policy.call_timeout_seconds, service=service
            )
    raise AssertionError("unreachable: tenacity reraises the last error")
