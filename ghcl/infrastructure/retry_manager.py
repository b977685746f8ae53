"""
Retry coordination for cloning freshly created forks.

A fork requested through the API is not guaranteed to be cloneable right
away. The coordinator re-runs a clone attempt with exponential backoff while
the failure looks like "the fork does not exist yet": a network-class error
with no observed transport progress. Anything else ends the loop.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from ..models import ProgressFlag, RetryState
from .error_handler import ForkTimedOut, is_network_error
from .logger import logger


T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for fork clone retries (all durations in seconds)."""

    fork_timeout: float = 30.0
    initial_timeout: float = 2.0
    backoff_factor: float = 2.0


class RetryCoordinator:
    """
    Drives repeated clone attempts until success or a terminal failure.

    Each attempt receives a fresh ``ProgressFlag``. A failed attempt is
    retried only if the flag is still unset and the error is network-class.
    After every backoff sleep the cumulative wait is compared with
    ``fork_timeout``; once it exceeds it, the loop gives up with
    ``ForkTimedOut`` instead of making another attempt.
    """

    def __init__(
        self,
        fork_timeout: float = 30.0,
        initial_timeout: float = 2.0,
        backoff_factor: float = 2.0,
        is_retryable_error: Callable[[BaseException], bool] = is_network_error,
    ):
        if initial_timeout <= 0:
            raise ValueError("initial_timeout must be positive")
        if backoff_factor < 1:
            raise ValueError("backoff_factor must be at least 1")

        self.fork_timeout = fork_timeout
        self.initial_timeout = initial_timeout
        self.backoff_factor = backoff_factor
        self.is_retryable_error = is_retryable_error
        self.last_state: Optional[RetryState] = None

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryCoordinator":
        return cls(
            fork_timeout=config.fork_timeout,
            initial_timeout=config.initial_timeout,
            backoff_factor=config.backoff_factor,
        )

    def should_retry(self, error: BaseException, progress: ProgressFlag) -> bool:
        """A failure is retryable only with zero progress and a network-class error."""

        return not progress.progressed and self.is_retryable_error(error)

    async def execute(self, attempt: Callable[[ProgressFlag], Awaitable[T]]) -> T:
        """
        Run ``attempt`` until it succeeds or fails terminally.

        Args:
            attempt: Coroutine function performing one clone attempt; it
                receives the attempt's progress flag

        Returns:
            Whatever the first successful attempt returns

        Raises:
            ForkTimedOut: If retryable failures outlast ``fork_timeout``
            Exception: The attempt's own error when it is not retryable
        """
        state = RetryState(total_wait=0.0, timeout=self.initial_timeout)
        self.last_state = state
        last_error: Optional[Exception] = None
        attempt_number = 0

        while True:
            if last_error is not None and state.total_wait > self.fork_timeout:
                logger.debug(
                    f"All {attempt_number} attempts failed, giving up "
                    f"after {state.total_wait:g} seconds"
                )
                raise ForkTimedOut(state.total_wait, last_error) from last_error

            attempt_number += 1
            progress = ProgressFlag()
            try:
                return await attempt(progress)
            except Exception as e:
                if not self.should_retry(e, progress):
                    logger.debug(
                        f"Attempt {attempt_number} failed terminally "
                        f"(progressed={progress.progressed}): {e}"
                    )
                    raise

                last_error = e
                logger.debug(f"Attempt {attempt_number} failed: {e}")
                logger.info(f"Fork not yet created, waiting {state.timeout:g} seconds")
                await asyncio.sleep(state.timeout)
                state.advance(self.backoff_factor)
