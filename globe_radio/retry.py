from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from functools import wraps
from typing import TypeVar


T = TypeVar("T")

logger = logging.getLogger(__name__)


def retry(
    attempts: int = 3,
    initial_delay: float = 0.25,
    backoff: float = 2.0,
    max_delay: float = 2.0,
    jitter: float = 0.1,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator with exponential backoff and jitter.

    The last exception is re-raised once ``attempts`` calls have failed.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay
            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except retry_on as exc:  # type: ignore[misc]
                    if attempt >= attempts:
                        raise
                    sleep_time = min(max_delay, delay) + random.uniform(0, jitter)
                    logger.warning(
                        "%s failed (attempt %s/%s): %s; retrying in %.2fs",
                        func.__name__,
                        attempt,
                        attempts,
                        exc,
                        sleep_time,
                    )
                    time.sleep(sleep_time)
                    delay *= backoff
            raise RuntimeError("retry loop exited unexpectedly")

        return wrapper

    return decorator
