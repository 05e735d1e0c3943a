"""
Resilient invocation of the generation service.

Wraps a single external call with classification-aware retry, exponential
backoff and credential rotation. Each attempt asks the credential pool for
its current credential, so a retry may run on a different key than the
attempt that failed.

The pool's lock is only held inside pool methods; nothing is locked while
the external call runs or while the invoker waits between attempts.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from studygen.errors import Classification, InvocationCancelled, classify_error
from studygen.llm.credentials import CredentialPool, mask

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and which errors are worth retrying."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    classify: Callable[[BaseException], Classification] = field(default=classify_error)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {self.base_delay}")


def backoff_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """Delay in seconds before retrying after attempt `attempt` (0-based): base x 2^attempt."""
    return base_delay * (2 ** attempt)


class ResilientInvoker:
    """
    Runs generation calls against a credential pool with retry.

    Example:
        >>> invoker = ResilientInvoker(CredentialPool(["key-a", "key-b"]))
        >>> invoker.invoke(lambda key: client.generate("Hi", credential=key))
    """

    def __init__(
        self,
        pool: CredentialPool,
        policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float, threading.Event], bool]] = None,
    ) -> None:
        """
        Initialize the invoker.

        Args:
            pool: Credential pool shared by all calls
            policy: Default retry policy
            sleep: Waits for the given seconds unless the event is set first;
                returns True if the wait was interrupted. Tests replace it to
                avoid real delays.
        """
        self.pool = pool
        self.policy = policy or RetryPolicy()
        self._sleep = sleep or _event_sleep

    def _should_retry(
        self, error: BaseException, credential: str, attempt: int, policy: RetryPolicy
    ) -> bool:
        verdict = policy.classify(error)
        final = attempt >= policy.max_attempts - 1
        if not verdict.retryable or final:
            if verdict.retryable:
                logger.error(
                    f"Generation failed after {policy.max_attempts} attempts ({verdict.kind.value}): {error}"
                )
            return False

        self.pool.report_failure(error, credential=credential)
        logger.warning(
            f"Generation attempt {attempt + 1}/{policy.max_attempts} failed "
            f"({verdict.kind.value}): {error}; retrying in "
            f"{backoff_delay(attempt, policy.base_delay):.1f}s"
        )
        return True

    def invoke(
        self,
        operation: Callable[[str], T],
        policy: Optional[RetryPolicy] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> T:
        """
        Call `operation` with the current credential, retrying on failure.

        Args:
            operation: Performs the external call with the given credential
            policy: Overrides the invoker's default policy
            cancel_event: When set during a backoff wait, the wait ends and
                no further attempt is made

        Returns:
            The operation's result

        Raises:
            The last error from `operation` if it is not retryable or all
            attempts failed.
            InvocationCancelled: If cancel_event was set while waiting.
        """
        policy = policy or self.policy
        cancel_event = cancel_event or threading.Event()

        for attempt in range(policy.max_attempts):
            credential = self.pool.current()
            try:
                result = operation(credential)
            except Exception as e:
                if not self._should_retry(e, credential, attempt, policy):
                    raise
                if self._sleep(backoff_delay(attempt, policy.base_delay), cancel_event):
                    raise InvocationCancelled(
                        f"Cancelled while waiting to retry after attempt {attempt + 1}"
                    ) from e
                continue

            self.pool.report_success(credential=credential)
            if attempt:
                logger.info(f"Generation succeeded on attempt {attempt + 1} with {mask(credential)}")
            return result

        raise RuntimeError("All retry attempts failed")

    async def ainvoke(
        self,
        operation: Callable[[str], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
    ) -> T:
        """
        Async variant of invoke().

        The backoff wait is asyncio.sleep, so cancelling the surrounding task
        interrupts it and no further attempt is made.
        """
        policy = policy or self.policy

        for attempt in range(policy.max_attempts):
            credential = self.pool.current()
            try:
                result = await operation(credential)
            except Exception as e:
                if not self._should_retry(e, credential, attempt, policy):
                    raise
                await asyncio.sleep(backoff_delay(attempt, policy.base_delay))
                continue

            self.pool.report_success(credential=credential)
            if attempt:
                logger.info(f"Generation succeeded on attempt {attempt + 1} with {mask(credential)}")
            return result

        raise RuntimeError("All retry attempts failed")


def _event_sleep(seconds: float, event: threading.Event) -> bool:
    return event.wait(seconds)
