from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Tuple, Type, TypeVar

if TYPE_CHECKING:
    from confstrap.config.models import RetrySettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryAttempt:
    attempt: int
    elapsed_seconds: float
    error: BaseException
    next_delay_seconds: Optional[float]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Bounded retry around one blocking operation.

    The delay before attempt n+1 is `initial_delay * multiplier ** (n - 1)`, capped at
    `max_delay`; a multiplier of 1 gives a fixed delay. Retrying stops when
    `max_attempts` calls have been made or when the next sleep would end past
    `max_elapsed` seconds after the first call. At least one bound is required.
    """

    initial_delay: float = 0.5
    multiplier: float = 1.5
    max_delay: Optional[float] = 60.0
    max_elapsed: Optional[float] = 120.0
    max_attempts: Optional[int] = None
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        if self.max_elapsed is None and self.max_attempts is None:
            raise ValueError("RetryPolicy requires max_elapsed or max_attempts; unbounded retry is not allowed.")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got: {self.max_attempts}")
        if self.max_elapsed is not None and self.max_elapsed <= 0:
            raise ValueError(f"max_elapsed must be > 0, got: {self.max_elapsed}")
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got: {self.initial_delay}")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got: {self.multiplier}")

    @classmethod
    def exponential(
        cls,
        *,
        max_elapsed: float = 120.0,
        initial_delay: float = 0.5,
        multiplier: float = 1.5,
        max_delay: Optional[float] = 60.0,
        max_attempts: Optional[int] = None,
        **kwargs,
    ) -> "RetryPolicy":
        return cls(
            initial_delay=initial_delay,
            multiplier=multiplier,
            max_delay=max_delay,
            max_elapsed=max_elapsed,
            max_attempts=max_attempts,
            **kwargs,
        )

    @classmethod
    def fixed(cls, *, attempts: int = 10, delay: float = 10.0, **kwargs) -> "RetryPolicy":
        return cls(
            initial_delay=delay,
            multiplier=1.0,
            max_delay=None,
            max_elapsed=None,
            max_attempts=attempts,
            **kwargs,
        )

    @classmethod
    def from_settings(cls, settings: "RetrySettings", **kwargs) -> "RetryPolicy":
        if settings.strategy == "fixed":
            return cls(
                initial_delay=settings.initial_delay_seconds,
                multiplier=1.0,
                max_delay=None,
                max_elapsed=settings.max_elapsed_seconds,
                max_attempts=settings.max_attempts if settings.max_attempts is not None else 10,
                **kwargs,
            )
        return cls(
            initial_delay=settings.initial_delay_seconds,
            multiplier=settings.multiplier,
            max_delay=settings.max_delay_seconds,
            max_elapsed=settings.max_elapsed_seconds,
            max_attempts=settings.max_attempts,
            **kwargs,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed attempt number `attempt` (1-based)."""
        delay = self.initial_delay * (self.multiplier ** (attempt - 1))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def run(
        self,
        operation: Callable[[], T],
        *,
        on_retry: Optional[Callable[[RetryAttempt], None]] = None,
        description: str = "operation",
    ) -> T:
        """
        Call `operation` until it succeeds or a bound is reached.

        Every failed attempt is reported through `on_retry` (or logged). When the bounds
        are exhausted the last underlying exception is re-raised unchanged.
        """
        notify = on_retry if on_retry is not None else self._log_attempt(description)
        started = self.clock()
        attempt = 0
        while True:
            attempt += 1
            try:
                return operation()
            except self.retry_on as exc:
                elapsed = self.clock() - started
                next_delay = self._next_delay(attempt, elapsed)
                notify(
                    RetryAttempt(
                        attempt=attempt,
                        elapsed_seconds=elapsed,
                        error=exc,
                        next_delay_seconds=next_delay,
                    )
                )
                if next_delay is None:
                    raise
                self.sleep(next_delay)

    def _next_delay(self, attempt: int, elapsed: float) -> Optional[float]:
        if self.max_attempts is not None and attempt >= self.max_attempts:
            return None
        delay = self.delay_for(attempt)
        if self.max_elapsed is not None and elapsed + delay > self.max_elapsed:
            return None
        return delay

    def _log_attempt(self, description: str) -> Callable[[RetryAttempt], None]:
        max_attempts = self.max_attempts if self.max_attempts is not None else "-"

        def _log(info: RetryAttempt) -> None:
            if info.next_delay_seconds is None:
                logger.error(
                    "Giving up after failed attempt. target=%s attempt=%s/%s elapsed_seconds=%.2f error=%s",
                    description,
                    info.attempt,
                    max_attempts,
                    info.elapsed_seconds,
                    info.error,
                )
                return
            logger.warning(
                "Retrying after failed attempt. target=%s attempt=%s/%s elapsed_seconds=%.2f delay_seconds=%.2f error=%s",
                description,
                info.attempt,
                max_attempts,
                info.elapsed_seconds,
                info.next_delay_seconds,
                info.error,
            )

        return _log
