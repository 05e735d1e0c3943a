"""
Credential pool with failure tracking, cooldown and rotation.

Holds one record per configured API key and a cursor pointing at the current
one. Failing keys are demoted after repeated failures and become eligible
again once their cooldown has passed. When every key is blocked the pool
revives one instead of refusing service; that policy lives in revive_oldest()
and can be replaced through the constructor.

All operations take the pool's lock for their whole read-modify-write, so
concurrent rotations never leave the cursor out of range.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from studygen.clock import Clock, SystemClock
from studygen.errors import AuthError

logger = logging.getLogger(__name__)

MAX_FAILURES = 3
COOLDOWN_PERIOD = 60.0


@dataclass
class CredentialRecord:
    """Health of a single credential. Mutated only by CredentialPool."""

    credential: str
    consecutive_failures: int = 0
    last_failure_time: Optional[float] = None
    blocked: bool = False

    def reset(self) -> None:
        self.consecutive_failures = 0
        self.last_failure_time = None
        self.blocked = False

    def __repr__(self) -> str:
        return (
            f"CredentialRecord(credential={mask(self.credential)!r}, "
            f"consecutive_failures={self.consecutive_failures}, blocked={self.blocked})"
        )


@dataclass(frozen=True)
class PoolStatus:
    """Counts of credentials by availability."""

    total: int
    available: int
    blocked: int


def mask(credential: str) -> str:
    """Render a credential safely for logs."""
    if len(credential) <= 4:
        return "****"
    return f"****{credential[-4:]}"


def revive_oldest(records: Sequence[CredentialRecord]) -> int:
    """
    Pick the record to force back into service when none are viable.

    Chooses the record whose last failure is oldest; records with no failure
    time count as oldest of all.

    Returns:
        Index of the record to revive
    """
    oldest_index = 0
    oldest_time = records[0].last_failure_time or 0.0
    for i, record in enumerate(records[1:], start=1):
        failure_time = record.last_failure_time or 0.0
        if failure_time < oldest_time:
            oldest_time = failure_time
            oldest_index = i
    return oldest_index


class CredentialPool:
    """
    Tracks health of interchangeable API credentials.

    Example:
        >>> pool = CredentialPool(["key-a", "key-b"])
        >>> pool.current()
        'key-a'
        >>> pool.report_failure(RuntimeError("429"))
        >>> pool.current()
        'key-b'
    """

    def __init__(
        self,
        credentials: Sequence[str],
        clock: Optional[Clock] = None,
        max_failures: int = MAX_FAILURES,
        cooldown: float = COOLDOWN_PERIOD,
        revival: Callable[[Sequence[CredentialRecord]], int] = revive_oldest,
    ) -> None:
        """
        Initialize the pool.

        Args:
            credentials: API keys in preference order (at least one)
            clock: Time source (default: wall clock)
            max_failures: Consecutive failures before a credential is blocked
            cooldown: Seconds after the last failure before a blocked
                credential is tried again
            revival: Chooses which record to revive when none are viable

        Raises:
            ValueError: If no credentials are given
        """
        keys = [c.strip() for c in credentials if c and c.strip()]
        if not keys:
            raise ValueError(
                "No API keys configured. Set GOOGLE_API_KEY (and optionally GOOGLE_API_KEYS) "
                "in the environment or .env file."
            )

        self._records = [CredentialRecord(credential=key) for key in keys]
        self._cursor = 0
        self._clock = clock or SystemClock()
        self._max_failures = max_failures
        self._cooldown = cooldown
        self._revival = revival
        self._lock = threading.Lock()

        logger.info(f"Credential pool initialized with {len(self._records)} key(s)")

    def __len__(self) -> int:
        return len(self._records)

    # The helpers below assume the lock is held.

    def _viable(self, index: int, now: float) -> bool:
        record = self._records[index]
        if not record.blocked:
            return True
        if record.last_failure_time is not None and now - record.last_failure_time > self._cooldown:
            record.reset()
            logger.info(f"Credential #{index} ({mask(record.credential)}) back in service after cooldown")
            return True
        return False

    def _force_revive(self) -> None:
        index = self._revival(self._records)
        self._records[index].reset()
        self._cursor = index
        logger.warning(
            f"All {len(self._records)} credentials blocked; "
            f"forcing credential #{index} ({mask(self._records[index].credential)}) back into service"
        )

    def _advance(self, now: float) -> None:
        total = len(self._records)
        for step in range(1, total + 1):
            index = (self._cursor + step) % total
            if self._viable(index, now):
                self._cursor = index
                return
        self._force_revive()

    def _index_of(self, credential: Optional[str]) -> Optional[int]:
        if credential is None or self._records[self._cursor].credential == credential:
            return self._cursor
        for index, record in enumerate(self._records):
            if record.credential == credential:
                return index
        return None

    # Public API

    def current(self) -> str:
        """
        Return the credential to use for the next call.

        Always returns something: if no record is viable, the one chosen by
        the revival policy is reset and returned.
        """
        with self._lock:
            now = self._clock.now()
            if not self._viable(self._cursor, now):
                for index in range(len(self._records)):
                    if self._viable(index, now):
                        self._cursor = index
                        break
                else:
                    self._force_revive()
            return self._records[self._cursor].credential

    def report_failure(
        self,
        error: Optional[BaseException] = None,
        credential: Optional[str] = None,
    ) -> None:
        """
        Record a failed call and rotate.

        The failure is charged to `credential` when given, otherwise to the
        current credential. Callers should pass the credential their call
        used: another caller may have moved the cursor in the meantime, and
        the cursor only advances if it still points at the failed
        credential. Credentials not in the pool are ignored.

        The credential is blocked after max_failures consecutive failures,
        or at once if the error is an AuthError.
        """
        with self._lock:
            index = self._index_of(credential)
            if index is None:
                logger.debug(f"Ignoring failure report for unknown credential {mask(credential)}")
                return
            now = self._clock.now()
            record = self._records[index]
            record.consecutive_failures += 1
            record.last_failure_time = now
            if isinstance(error, AuthError):
                record.consecutive_failures = max(record.consecutive_failures, self._max_failures)
            if record.consecutive_failures >= self._max_failures:
                record.blocked = True
                logger.warning(
                    f"Credential #{index} ({mask(record.credential)}) blocked after "
                    f"{record.consecutive_failures} failures: {error}"
                )
            if index == self._cursor:
                self._advance(now)

    def report_success(self, credential: Optional[str] = None) -> None:
        """Clear the failure history of `credential`, or of the current one."""
        with self._lock:
            index = self._index_of(credential)
            if index is None:
                return
            record = self._records[index]
            if record.consecutive_failures > 0 or record.last_failure_time is not None:
                record.consecutive_failures = 0
                record.last_failure_time = None

    def rotate(self) -> None:
        """Move to the next credential if it is viable, for spreading load."""
        with self._lock:
            index = (self._cursor + 1) % len(self._records)
            if self._viable(index, self._clock.now()):
                self._cursor = index

    def status(self) -> PoolStatus:
        """Return total, available and blocked counts."""
        with self._lock:
            now = self._clock.now()
            available = sum(1 for i in range(len(self._records)) if self._viable(i, now))
            return PoolStatus(
                total=len(self._records),
                available=available,
                blocked=len(self._records) - available,
            )
