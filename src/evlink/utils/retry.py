from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from evlink.transport.errors import CancelledError, DeadlineExceededError

T = TypeVar("T")

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay_s: float = 0.05
    max_delay_s: float = 0.25
    # only these are retried; anything else propagates on first failure
    retry_on: tuple[type[BaseException], ...] = (DeadlineExceededError,)

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")

def with_retries(fn: Callable[[], T], policy: RetryPolicy) -> T:
    last_exc: BaseException | None = None
    delay = policy.base_delay_s
    for attempt in range(1, policy.attempts + 1):
        try:
            return fn()
        except CancelledError:
            raise
        except policy.retry_on as e:
            last_exc = e
            logger.debug("attempt %d/%d failed: %s", attempt, policy.attempts, e)
            if attempt == policy.attempts:
                break
            time.sleep(delay)
            delay = min(policy.max_delay_s, delay * 2)
    assert last_exc is not None
    raise last_exc
