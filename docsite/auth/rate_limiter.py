"""Per-identifier login attempt limiting"""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_ATTEMPTS = 5
WINDOW_MS = 15 * 60 * 1000  # 15 minutes


def now_ms() -> int:
    """Current epoch time in milliseconds"""
    return int(time.time() * 1000)


@dataclass
class RateLimitRecord:
    count: int
    reset_time: int  # epoch ms


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining_attempts: int
    reset_time: Optional[int] = None

    def retry_after_seconds(self, now: Optional[int] = None) -> int:
        """Seconds until the window resets, rounded up (0 if unknown or past)"""
        if self.reset_time is None:
            return 0
        current = now if now is not None else now_ms()
        return max(0, -(-(self.reset_time - current) // 1000))


class AuthRateLimiter:
    """
    Sliding-window login attempt counter keyed by client identifier.

    One instance is owned by the running app and shared by every request,
    so all reads and writes of the record map happen under a lock.
    """

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        window_ms: int = WINDOW_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self.max_attempts = max_attempts
        self.window_ms = window_ms
        self._clock = clock
        self._attempts: Dict[str, RateLimitRecord] = {}
        self.lock = Lock()

    def check_rate_limit(self, identifier: str) -> RateLimitResult:
        """
        Consume one attempt for identifier and report whether it is allowed.

        Call exactly once per login attempt: every call counts.
        """
        with self.lock:
            now = self._clock()
            record = self._attempts.get(identifier)

            if record is None or now > record.reset_time:
                # First attempt or window expired
                self._attempts[identifier] = RateLimitRecord(count=1, reset_time=now + self.window_ms)
                return RateLimitResult(allowed=True, remaining_attempts=self.max_attempts - 1)

            if record.count >= self.max_attempts:
                logger.warning("Rate limit exceeded", identifier=identifier, reset_time=record.reset_time)
                return RateLimitResult(allowed=False, remaining_attempts=0, reset_time=record.reset_time)

            record.count += 1
            return RateLimitResult(
                allowed=True,
                remaining_attempts=self.max_attempts - record.count,
            )

    def peek(self, identifier: str) -> RateLimitResult:
        """Report the identifier's status without consuming an attempt"""
        with self.lock:
            now = self._clock()
            record = self._attempts.get(identifier)

            if record is None or now > record.reset_time:
                return RateLimitResult(allowed=True, remaining_attempts=self.max_attempts)

            remaining = max(0, self.max_attempts - record.count)
            return RateLimitResult(
                allowed=remaining > 0,
                remaining_attempts=remaining,
                reset_time=record.reset_time,
            )

    def reset(self, identifier: str) -> None:
        """Forget all attempts for identifier (successful login or admin reset)"""
        with self.lock:
            self._attempts.pop(identifier, None)

    def clear(self) -> None:
        with self.lock:
            self._attempts.clear()
