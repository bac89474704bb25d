"""Generic retry-with-backoff wrapper for fallible calls.

Usage::

    handler = RetryHandler(RetryPolicy(max_retries=3, initial_delay_ms=100))
    text = handler.execute(lambda: client.complete(prompt))

A policy with ``max_retries=N`` makes at most ``N + 1`` attempts.  Backoff
curves are small strategy objects registered by name, so a new curve only
needs a new :class:`BackoffStrategy` subclass.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BackoffStrategy(ABC):
    """Delay before the retry that follows failed attempt number ``attempt`` (0-based)."""

    name: str = ""

    @abstractmethod
    def delay_ms(self, attempt: int, initial_delay_ms: float) -> float:
        ...


class ExponentialBackoff(BackoffStrategy):
    name = "exponential"

    def delay_ms(self, attempt: int, initial_delay_ms: float) -> float:
        return initial_delay_ms * (2 ** attempt)


class LinearBackoff(BackoffStrategy):
    """Constant delay between attempts."""

    name = "linear"

    def delay_ms(self, attempt: int, initial_delay_ms: float) -> float:
        return initial_delay_ms


BACKOFF_STRATEGIES: dict[str, BackoffStrategy] = {
    s.name: s for s in (ExponentialBackoff(), LinearBackoff())
}


def get_strategy(strategy: Union[str, BackoffStrategy]) -> BackoffStrategy:
    if isinstance(strategy, BackoffStrategy):
        return strategy
    try:
        return BACKOFF_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown backoff strategy {strategy!r}. "
            f"Choose one of: {', '.join(sorted(BACKOFF_STRATEGIES))}"
        ) from None


def _always(_error: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """Stateless retry configuration, safe to share between handlers."""

    max_retries: int = 3
    initial_delay_ms: float = 1000
    max_delay_ms: float = math.inf
    strategy: Union[str, BackoffStrategy] = "exponential"
    is_retryable: Callable[[BaseException], bool] = _always
    on_retry: Optional[Callable[[BaseException, int, float], None]] = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")
        get_strategy(self.strategy)

    def delay_for(self, attempt: int) -> float:
        """Capped delay in ms after failed attempt *attempt* (0-based)."""
        raw = get_strategy(self.strategy).delay_ms(attempt, self.initial_delay_ms)
        return min(raw, self.max_delay_ms)


class RetryHandler:
    """Run callables under a :class:`RetryPolicy`.

    ``sleep`` takes seconds and defaults to :func:`time.sleep`; tests inject
    a recorder so nothing actually waits.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.policy = policy
        self._sleep = sleep

    def execute(self, fn: Callable[[], T]) -> T:
        """Call *fn* until it succeeds, re-raising its last error when out of retries."""
        attempt = 0
        while True:
            try:
                return fn()
            except Exception as error:
                if attempt >= self.policy.max_retries or not self.policy.is_retryable(error):
                    raise
                delay = self.policy.delay_for(attempt)
                if self.policy.on_retry is not None:
                    self.policy.on_retry(error, attempt + 1, delay)
                logger.debug("attempt %d failed (%s); retrying in %.0f ms", attempt + 1, error, delay)
                self._sleep(delay / 1000.0)
                attempt += 1
