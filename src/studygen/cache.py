"""
Result cache for generated artifacts.

Entries are keyed by a document fingerprint plus the request options, expire
lazily after a TTL and are evicted oldest-created first once the store is
full. Reads do not refresh an entry's age.

Provides:
    - fingerprint: cheap FNV-1a hash of document text
    - cache_key: fingerprint + encoded option pairs
    - ResultCache: thread-safe bounded TTL store
    - with_cache: probe, produce on miss, write back
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional
from urllib.parse import quote

from studygen.clock import Clock, SystemClock
from studygen.errors import CacheError

logger = logging.getLogger(__name__)

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193

# Documents longer than this are hashed on their head and tail only.
FINGERPRINT_SAMPLE = 10_000

DEFAULT_MAX_ENTRIES = 5
DEFAULT_TTL = 24 * 60 * 60.0

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def fingerprint(text: str) -> str:
    """
    Compute a 32-bit FNV-1a fingerprint of a document, in base36.

    Documents longer than 10,000 characters are hashed on their first and
    last 10,000 characters only. Two huge documents differing only in the
    middle therefore share a fingerprint; the cost is a stale cache hit.

    Args:
        text: Document text

    Returns:
        Fingerprint string
    """
    if len(text) > FINGERPRINT_SAMPLE:
        text = text[:FINGERPRINT_SAMPLE] + text[-FINGERPRINT_SAMPLE:]

    h = FNV_OFFSET_BASIS
    for ch in text:
        h ^= ord(ch)
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return _base36(h)


def cache_key(document_fingerprint: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a cache key from a fingerprint and request options.

    Each option is encoded as a percent-quoted `name=value` pair and the
    pairs are joined in sorted name order, so two different option sets for
    the same document never share a key.

    Example:
        >>> cache_key("k3x9", {"style": "conceptual", "depth": "basic"})
        'k3x9:depth=basic|style=conceptual'
    """
    if not options:
        return document_fingerprint
    encoded = "|".join(
        f"{quote(str(name), safe='')}={quote(str(options[name]), safe='')}" for name in sorted(options)
    )
    return f"{document_fingerprint}:{encoded}"


@dataclass(frozen=True)
class CacheEntry:
    """A cached artifact. Replaced wholesale on overwrite."""

    key: str
    value: str
    created_at: float
    session_id: Optional[str] = None


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache occupancy and entry ages in seconds."""

    size: int
    max_entries: int
    oldest_entry_age: float
    newest_entry_age: float
    average_entry_age: float


@dataclass(frozen=True)
class CacheWriteResult:
    """Outcome of a best-effort cache write. Callers decide what to do with errors."""

    ok: bool
    error: Optional[CacheError] = None


@dataclass(frozen=True)
class CachedResult:
    """Value returned by with_cache, flagged with whether it came from the cache."""

    value: str
    cached: bool


class ResultCache:
    """
    Bounded TTL cache with oldest-created eviction.

    Thread-safe: one lock guards the entry map, so concurrent puts never
    exceed max_entries or leave duplicate keys.

    Example:
        >>> cache = ResultCache(max_entries=1)
        >>> cache.put("docA:conceptual", "summary1")
        >>> cache.put("docB:conceptual", "summary2")
        >>> cache.get("docA:conceptual") is None
        True
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl: float = DEFAULT_TTL,
        clock: Optional[Clock] = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock or SystemClock()
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl

    def get(self, key: str) -> Optional[str]:
        """
        Look up a cached value.

        Expired entries are removed and reported as absent.

        Returns:
            The cached value, or None if absent or expired
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock.now()):
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None
            return entry.value

    def put(self, key: str, value: str, session_id: Optional[str] = None) -> None:
        """
        Store a value, evicting the oldest-created entry if the cache is full.

        Raises:
            CacheError: If key or value is not a string
        """
        if not isinstance(key, str) or not isinstance(value, str):
            raise CacheError(
                f"cache keys and values must be strings, got {type(key).__name__}/{type(value).__name__}"
            )

        with self._lock:
            now = self._clock.now()
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                oldest = min(self._entries.values(), key=lambda e: e.created_at)
                del self._entries[oldest.key]
                logger.debug(f"Cache full ({self.max_entries}), evicted {oldest.key}")
            self._entries[key] = CacheEntry(key=key, value=value, created_at=now, session_id=session_id)

    def try_put(self, key: str, value: str, session_id: Optional[str] = None) -> CacheWriteResult:
        """Store a value, returning the failure instead of raising it."""
        try:
            self.put(key, value, session_id=session_id)
        except CacheError as e:
            return CacheWriteResult(ok=False, error=e)
        return CacheWriteResult(ok=True)

    def invalidate_document(self, document_fingerprint: str, session_id: Optional[str] = None) -> int:
        """
        Drop every artifact derived from a document.

        Removes all keys in the document's partition and, when a session is
        given, every other entry written for that session.

        Returns:
            Number of entries removed
        """
        prefix = f"{document_fingerprint}:"
        with self._lock:
            doomed = [
                key
                for key, entry in self._entries.items()
                if key == document_fingerprint
                or key.startswith(prefix)
                or (session_id is not None and entry.session_id == session_id)
            ]
            for key in doomed:
                del self._entries[key]

        if doomed:
            logger.info(f"Invalidated {len(doomed)} cached artifacts for document {document_fingerprint}")
        return len(doomed)

    def prune_expired(self) -> int:
        """Remove all expired entries. Returns the number removed."""
        with self._lock:
            now = self._clock.now()
            doomed = [key for key, entry in self._entries.items() if self._expired(entry, now)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        """Return occupancy and age statistics."""
        with self._lock:
            now = self._clock.now()
            ages = [now - entry.created_at for entry in self._entries.values()]

        if not ages:
            return CacheStats(0, self.max_entries, 0.0, 0.0, 0.0)
        return CacheStats(
            size=len(ages),
            max_entries=self.max_entries,
            oldest_entry_age=max(ages),
            newest_entry_age=min(ages),
            average_entry_age=sum(ages) / len(ages),
        )


def with_cache(
    document_fingerprint: str,
    options: Optional[Mapping[str, Any]],
    producer: Callable[[], str],
    cache: Optional[ResultCache] = None,
    session_id: Optional[str] = None,
) -> CachedResult:
    """
    Return a cached artifact or produce and cache it.

    Cache failures never block generation: a failed read is treated as a
    miss and a failed write is logged. Errors from the producer propagate.

    Args:
        document_fingerprint: fingerprint() of the source document
        options: Request options that distinguish artifacts of one document
        producer: Generates the artifact on a miss
        cache: Cache to use (default: the process-wide cache)
        session_id: Session that owns the artifact, for bulk invalidation

    Returns:
        CachedResult with the value and whether it was a cache hit
    """
    if cache is None:
        from studygen.services import get_result_cache

        cache = get_result_cache()

    key = cache_key(document_fingerprint, options)

    try:
        hit = cache.get(key)
    except Exception as e:
        logger.warning(f"Cache read failed for {key}, regenerating: {e}")
        hit = None

    if hit is not None:
        logger.debug(f"Cache hit: {key}")
        return CachedResult(value=hit, cached=True)

    logger.debug(f"Cache miss: {key}")
    value = producer()

    outcome = cache.try_put(key, value, session_id=session_id)
    if not outcome.ok:
        logger.warning(f"Cache write failed for {key}, continuing uncached: {outcome.error}")

    return CachedResult(value=value, cached=False)
