from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

@dataclass
class BackoffConfig:
    initial_delay: float = 1.0            # seconds
    max_delay: float = 30.0
    max_retries: int = 5

class RetryBudget:
    """
    Counts consecutive failures of the poll loop.

    Each failure within budget yields an exponential backoff delay; the
    failure after ``max_retries`` retries exhausts the budget. A success
    refills it.
    """

    def __init__(self, cfg: BackoffConfig | None = None):
        self.cfg  = cfg or BackoffConfig()
        self.log  = logging.getLogger(self.__class__.__name__)
        self.fail = 0

    @property
    def exhausted(self) -> bool:
        return self.fail > self.cfg.max_retries

    def next_delay(self) -> float:
        return min(self.cfg.initial_delay * (2 ** max(self.fail - 1, 0)), self.cfg.max_delay)

    def record_failure(self) -> Optional[float]:
        """Return the delay before the next attempt, or None once exhausted."""
        self.fail += 1
        if self.exhausted:
            self.log.error("retry budget exhausted after %d failures", self.fail)
            return None
        self.log.warning("poll failure %d/%d", self.fail, self.cfg.max_retries)
        return self.next_delay()

    def record_success(self) -> None:
        if self.fail:
            self.log.info("poll recovered after %d failures", self.fail)
        self.fail = 0
