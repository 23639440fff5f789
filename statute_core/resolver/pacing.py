import time
from typing import Callable

from statute_core.config import DEFAULT_RESOLVER_CONFIG


class BudgetExhausted(Exception):
    """Raised inside a traversal when no remote calls are left."""
    pass


class CallBudget:
    """Hard cap on remote calls for a single resolution."""

    def __init__(self, max_calls: int = DEFAULT_RESOLVER_CONFIG.MAX_API_CALLS):
        if max_calls < 0:
            raise ValueError("max_calls must be >= 0")
        self.max_calls = max_calls
        self.used = 0

    @property
    def remaining(self) -> int:
        return self.max_calls - self.used

    @property
    def exhausted(self) -> bool:
        return self.used >= self.max_calls

    def spend(self) -> None:
        """Reserve one call. Must be called before the call is issued."""
        if self.exhausted:
            raise BudgetExhausted(f"API call budget of {self.max_calls} exhausted")
        self.used += 1


class Pacer:
    """Pause for ``delay`` seconds after every ``every`` remote calls.

    Independent of retry backoff. Sleep is injectable so tests run without
    real delays.
    """

    def __init__(
        self,
        every: int = DEFAULT_RESOLVER_CONFIG.PACE_EVERY,
        delay: float = DEFAULT_RESOLVER_CONFIG.PACE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if every < 1:
            raise ValueError("every must be >= 1")
        self.every = every
        self.delay = delay
        self._sleep = sleep
        self.calls = 0
        self.pauses = 0

    def tick(self) -> None:
        """Record one completed remote call."""
        self.calls += 1
        if self.calls % self.every == 0 and self.delay > 0:
            self.pauses += 1
            self._sleep(self.delay)
