"""Retrying HTTP calls to email provider APIs."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable

import httpx

from consultdesk.core.exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 4.0
    retry_statuses: frozenset[int] = field(default=DEFAULT_RETRY_STATUSES)

    def delay_for(self, attempt: int) -> float:
        """Exponential backoff with up to 50% jitter; 0 disables sleeping."""
        delay = min(self.max_delay, self.base_delay * (2**attempt))
        if delay:
            delay = delay + random.uniform(0, delay / 2)
        return delay


async def call_provider(
    provider: str,
    request_fn: Callable[[], Awaitable[httpx.Response]],
    policy: RetryPolicy | None = None,
) -> httpx.Response:
    """
    Call a provider API, retrying connection errors and retryable statuses.

    Connection errors left after the last attempt raise TransportError. A
    response is always returned otherwise, including a retryable status on
    the last attempt; the caller decides what a non-2xx means.
    """
    policy = policy or RetryPolicy()

    for attempt in range(policy.max_attempts):
        last_attempt = attempt >= policy.max_attempts - 1
        try:
            response = await request_fn()
        except httpx.TimeoutException as exc:
            if last_attempt:
                raise TransportError(f"{provider} connection timeout") from exc
            logger.warning("%s request timed out, retrying", provider)
        except httpx.HTTPError as exc:
            if last_attempt:
                raise TransportError(
                    f"{provider} connection error: {exc.__class__.__name__}"
                ) from exc
            logger.warning("%s request failed, retrying", provider, exc_info=exc)
        else:
            if response.status_code not in policy.retry_statuses or last_attempt:
                return response
            logger.warning("%s returned %s, retrying", provider, response.status_code)

        delay = policy.delay_for(attempt)
        if delay:
            await asyncio.sleep(delay)

    raise TransportError(f"{provider} request was not attempted")
