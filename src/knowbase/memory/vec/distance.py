"""
Vector distance for the SQL evaluator
=====================================

``vec_dist(a, b)`` is registered as a deterministic scalar function on each
connection and is evaluated once per scanned row by ``ORDER BY``.

- Arguments are binary blobs (see :mod:`.codec`) or JSON-array strings.
- Result is negated cosine similarity, so ascending order means "closer".
- Decoded vectors are memoized in a :class:`DecodeCache` keyed on the raw
  argument. Entries are never evicted; the key space is bounded by the corpus.
- Call counts and timings accumulate in the owning :class:`VectorDistance`.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Union

import numpy as np

from knowbase.errors import CodecError, LengthMismatchError
from .codec import decode, parse_json_floats

logger = logging.getLogger(__name__)

FUNCTION_NAME = "vec_dist"

# Sorts after every real distance; SQLite would turn NaN into NULL, which sorts first.
UNCOMPARABLE = math.inf

RawVector = Union[bytes, str]


class ScalarFunctionRegistry(Protocol):
    """Anything that can host a named scalar SQL function (e.g. ``sqlite3.Connection``)."""

    def create_function(
        self, name: str, narg: int, func: Callable[..., Any], *, deterministic: bool = False
    ) -> None: ...


class DecodeCache:
    """Thread-safe, unbounded map from raw vector representation to decoded array."""

    def __init__(self) -> None:
        self._entries: Dict[RawVector, np.ndarray] = {}
        self._lock = threading.Lock()

    def get_or_decode(self, raw: Any) -> np.ndarray:
        key = _cache_key(raw)
        with self._lock:
            hit = self._entries.get(key)
        if hit is not None:
            return hit

        if isinstance(key, str):
            vec = np.asarray(parse_json_floats(key), dtype=np.float64)
        else:
            vec = decode(key)
        vec.flags.writeable = False

        with self._lock:
            # Another thread may have raced us; keep whichever landed first.
            return self._entries.setdefault(key, vec)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, raw: Any) -> bool:
        try:
            key = _cache_key(raw)
        except CodecError:
            return False
        with self._lock:
            return key in self._entries


def _cache_key(raw: Any) -> RawVector:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    raise CodecError(f"expected blob or string, got {type(raw).__name__}")


@dataclass(frozen=True)
class DistanceStats:
    """Point-in-time copy of the cumulative counters."""

    calls: int = 0
    total_ns: int = 0
    decode_ns: int = 0
    compare_ns: int = 0

    @property
    def average_ns(self) -> int:
        return self.total_ns // self.calls if self.calls else 0


class VectorDistance:
    """
    Negated cosine similarity between two encoded vectors.

    Instances are callable and can be registered with any
    :class:`ScalarFunctionRegistry`. Counters are guarded by a lock so readers
    always see a consistent snapshot; they never influence the result.
    """

    def __init__(self, cache: Optional[DecodeCache] = None) -> None:
        self.cache = cache if cache is not None else DecodeCache()
        self._stats_lock = threading.Lock()
        self._calls = 0
        self._total_ns = 0
        self._decode_ns = 0
        self._compare_ns = 0
        self._errors = threading.local()

    # ---- evaluation ---------------------------------------------------------

    def __call__(self, left: Any, right: Any) -> float:
        start = time.perf_counter_ns()
        decode_ns = compare_ns = 0
        try:
            a = self.cache.get_or_decode(left)
            b = self.cache.get_or_decode(right)
            decode_ns = time.perf_counter_ns() - start

            if a.shape[0] != b.shape[0]:
                raise LengthMismatchError(a.shape[0], b.shape[0])

            compare_start = time.perf_counter_ns()
            result = cosine_distance(a, b)
            compare_ns = time.perf_counter_ns() - compare_start
            return result
        except (CodecError, LengthMismatchError) as exc:
            # sqlite3 flattens callback exceptions; keep the real one around.
            self._errors.last = exc
            raise
        finally:
            elapsed = time.perf_counter_ns() - start
            with self._stats_lock:
                self._calls += 1
                self._total_ns += elapsed
                self._decode_ns += decode_ns
                self._compare_ns += compare_ns

    def take_error(self) -> Optional[Exception]:
        """Pop the last error raised on this thread, if any."""
        exc = getattr(self._errors, "last", None)
        self._errors.last = None
        return exc

    def register(self, registry: ScalarFunctionRegistry, name: str = FUNCTION_NAME) -> None:
        registry.create_function(name, 2, self, deterministic=True)

    # ---- diagnostics --------------------------------------------------------

    def stats(self) -> DistanceStats:
        with self._stats_lock:
            return DistanceStats(
                calls=self._calls,
                total_ns=self._total_ns,
                decode_ns=self._decode_ns,
                compare_ns=self._compare_ns,
            )

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._calls = self._total_ns = self._decode_ns = self._compare_ns = 0

    def log_statistics(self, log: logging.Logger = logger) -> None:
        snap = self.stats()
        if snap.calls == 0:
            return
        log.debug(
            "vec_dist comparison stats count=%d tot=%.3fms decoding=%.3fms comparison=%.3fms avg=%.3fus",
            snap.calls,
            snap.total_ns / 1e6,
            snap.decode_ns / 1e6,
            snap.compare_ns / 1e6,
            snap.average_ns / 1e3,
        )


def _peak(v: np.ndarray) -> float:
    return float(np.max(np.abs(v))) if v.size else 0.0


def cosine_distance(a: np.ndarray, b: np.ndarray) -> float:
    """
    Return ``-(a·b / (|a||b|))``, or ``0.0`` when either norm is zero.

    Both sides are divided by their largest magnitude first so the squared
    norms stay in ``[1, dim]``; ``vec_dist(a, a)`` is then exactly ``-1.0`` at
    any scale. Vectors holding NaN or infinity return :data:`UNCOMPARABLE`.
    """
    if a.shape != b.shape:
        raise LengthMismatchError(a.shape[0], b.shape[0])
    peak_a = _peak(a)
    peak_b = _peak(b)
    if peak_a == 0 or peak_b == 0:
        return 0.0
    if not (math.isfinite(peak_a) and math.isfinite(peak_b)):
        return UNCOMPARABLE
    a = a / peak_a
    b = b / peak_b
    norm_a = float(np.dot(a, a))
    norm_b = float(np.dot(b, b))
    dot = float(np.dot(a, b))
    return -(dot / math.sqrt(norm_a * norm_b))


__all__ = [
    "FUNCTION_NAME",
    "UNCOMPARABLE",
    "ScalarFunctionRegistry",
    "DecodeCache",
    "DistanceStats",
    "VectorDistance",
    "cosine_distance",
]
