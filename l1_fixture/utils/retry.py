"""
Bounded retry with a fixed delay

Wraps build steps that may fail transiently right after the node comes up
(funding transactions, the contract deployer).
"""

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from .exceptions import FixtureError

T = TypeVar('T')
LOG = logging.getLogger(__name__)


class Retry:
    """
    Call a function up to `max_retries` times, sleeping `delay` seconds
    between failed attempts.

    `max_retries` is the total number of attempts, so max_retries=5 calls
    the function at most five times and sleeps at most four times.
    """

    def __init__(
        self,
        max_retries: int = 5,
        delay: float = 1.0,
        retry_on: Optional[Tuple[Type[Exception], ...]] = None,
        sleep: Callable[[float], None] = time.sleep,
        description: str = "operation"
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.max_retries = max_retries
        self.delay = delay
        self.retry_on = retry_on or (FixtureError,)
        self.sleep = sleep
        self.description = description
        self.attempts = 0

    def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Call func until it succeeds or attempts run out.

        Raises:
            The last exception if all attempts fail, or immediately for
            exceptions not listed in retry_on.
        """
        self.attempts = 0

        while True:
            self.attempts += 1
            try:
                result = func(*args, **kwargs)
            except self.retry_on as e:
                if self.attempts >= self.max_retries:
                    LOG.error(
                        f"{self.description} failed after {self.attempts} attempts. "
                        f"Last error: {type(e).__name__}: {e}"
                    )
                    raise
                LOG.warning(
                    f"{self.description}: attempt {self.attempts}/{self.max_retries} "
                    f"failed: {type(e).__name__}: {e}. Retrying in {self.delay}s..."
                )
                self.sleep(self.delay)
                continue

            if self.attempts > 1:
                LOG.info(f"{self.description} succeeded on attempt {self.attempts}")
            return result
