"""
Request pacing for the Aircall API
Enforces a minimum interval between consecutive requests
"""

import time
import logging
from threading import Lock
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-interval rate limiter

    Aircall allows 60 requests per minute per company. Each caller holds
    its own limiter, so the budget is not shared across processes.
    """

    def __init__(
        self,
        min_interval: float,
        name: str = 'default',
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize rate limiter

        Args:
            min_interval: Minimum seconds between two acquisitions
            name: Label used in log messages
            clock: Monotonic time source
            sleep: Sleep function
        """
        self.min_interval = min_interval
        self.name = name
        self.clock = clock
        self.sleep = sleep
        self.last_request: Optional[float] = None
        self.total_waited = 0.0
        self.acquisitions = 0
        self.lock = Lock()

        logger.debug(f"RateLimiter '{name}' initialized with {min_interval}s interval")

    def wait_if_needed(self) -> float:
        """
        Block until the interval since the previous acquisition has elapsed

        Returns:
            Time waited in seconds
        """
        with self.lock:
            wait_time = 0.0

            if self.last_request is not None:
                elapsed = self.clock() - self.last_request
                wait_time = max(0.0, self.min_interval - elapsed)

                if wait_time > 0:
                    logger.debug(f"Pacing '{self.name}': waiting {wait_time:.2f} seconds")
                    self.sleep(wait_time)

            self.last_request = self.clock()
            self.total_waited += wait_time
            self.acquisitions += 1

            return wait_time

    def reset(self):
        """Forget the previous acquisition"""
        with self.lock:
            self.last_request = None

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'min_interval': self.min_interval,
            'acquisitions': self.acquisitions,
            'total_waited': round(self.total_waited, 3)
        }
