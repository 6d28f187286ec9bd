"""Caller-side retry for rate-limited completion calls."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from studyplanner.services.completion_client import is_rate_limited

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_with_backoff(
    fn: Callable[[], T],
    *,
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, int], None]] = None,
) -> T:
    """
    Call ``fn`` until it succeeds, retrying only HTTP 429 responses.

    The delay doubles after every rate-limited attempt. Any other error, or a
    rate limit on the final attempt, propagates to the caller unchanged.
    """
    delay = initial_delay
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if not is_rate_limited(exc) or attempt == attempts:
                raise
            logger.info("Rate limited; retrying (%s/%s) in %.1fs", attempt, attempts, delay)
            sleep(delay)
            delay *= 2
            if on_retry:
                on_retry(attempt, attempts)
    raise RuntimeError("unreachable")  # pragma: no cover
