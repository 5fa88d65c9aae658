"""
BoxIT Backend — Upstream Retry Policy
======================================

What:  One tenacity policy shared by the vendor SDK wrappers
       (Cloudinary, Resend).
How:   The SDKs are synchronous, so each attempt runs in a worker thread
       via `call_with_retry`. Which exceptions count as transient is the
       caller's choice; when attempts run out tenacity raises RetryError
       and the caller converts it into UpstreamServiceError.
"""

import asyncio
import logging
from typing import Any, Callable

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.retry import retry_base

from boxit.config import Settings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def upstream_retrying(settings: Settings, retry: retry_base) -> AsyncRetrying:
    """Build a fresh retry controller for one logical upstream call."""
    return AsyncRetrying(
        retry=retry,
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_min_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


async def call_with_retry(
    settings: Settings, retry: retry_base, func: Callable[..., Any], *args: Any, **kwargs: Any
) -> Any:
    """
    Run a blocking SDK call off the event loop under the retry policy.

    Raises:
        RetryError: every attempt failed with a retryable exception
        Exception:  the first non-retryable exception, unchanged
    """
    async for attempt in upstream_retrying(settings, retry):
        with attempt:
            return await asyncio.to_thread(func, *args, **kwargs)
