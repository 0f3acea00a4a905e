# tpllib — named text-template library with memoised rendering
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Render cache keyed by a canonical fingerprint of (template name, slots).

Fingerprints are SHA-256 digests of canonical JSON: mapping keys are
sorted, sequences keep their order, and ``True`` never collides with ``1``.
Two slot mappings with the same content therefore share one cache entry no
matter how they were built.

Entries are never evicted and never invalidated when the library changes.
A template overwritten after it was rendered keeps returning the old
output for slot combinations already seen.

Usage::

    cache = RenderCache()
    key = fingerprint("greet", {"name": "World"})
    text = cache.get_or_compute(key, lambda: "Hello, World!")
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


def _normalise(value: Any) -> Any:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Slot mapping keys must be str, got {key!r}")
            out[key] = _normalise(item)
        return out
    if isinstance(value, (list, tuple)):
        return [_normalise(item) for item in value]
    raise TypeError(
        f"Unsupported slot value of type {type(value).__name__}: {value!r}"
    )


def canonicalize(name: str, slots: Mapping[str, Any] | None) -> str:
    """Return the canonical JSON text for *name* rendered with *slots*."""
    payload = [name, _normalise(dict(slots or {}))]
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def fingerprint(name: str, slots: Mapping[str, Any] | None) -> str:
    """Return the cache key for rendering *name* with *slots*."""
    return hashlib.sha256(canonicalize(name, slots).encode("utf-8")).hexdigest()


@dataclass
class CacheStats:
    """Counters for a :class:`RenderCache`."""

    hits: int = 0
    misses: int = 0
    size: int = 0


class RenderCache:
    """Thread-safe, grow-only memo of rendered output.

    :meth:`get_or_compute` runs at most one computation per key for callers
    that agree to wait; everyone else asking for that key meanwhile blocks
    and receives the same result (or the same exception).
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._pending: dict[str, Future[str]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> str | None:
        """Return the stored output for *key*, or ``None``."""
        with self._lock:
            return self._entries.get(key)

    def get_or_compute(
        self, key: str, compute: Callable[[], str], *, wait: bool = True,
    ) -> str:
        """Return the cached value for *key*, computing it on first use.

        With ``wait=False`` a caller that finds *key* in flight on another
        thread computes it itself instead of blocking.  The first stored
        value always wins.

        If the owning caller is interrupted (``KeyboardInterrupt``,
        ``SystemExit`` and other non-``Exception`` errors), waiters are not
        handed the interruption; one of them takes over the computation.
        """
        while True:
            with self._lock:
                if key in self._entries:
                    self._hits += 1
                    return self._entries[key]
                pending = self._pending.get(key)
                owner = pending is None
                if owner:
                    pending = Future()
                    self._pending[key] = pending
                if owner or not wait:
                    self._misses += 1

            if owner:
                return self._compute_as_owner(key, compute, pending)

            if not wait:
                result = compute()
                with self._lock:
                    return self._entries.setdefault(key, result)

            logger.debug("Waiting for in-flight render %s", key[:12])
            try:
                result = pending.result()
            except CancelledError:
                logger.debug("In-flight render %s was interrupted, retrying", key[:12])
                continue
            with self._lock:
                self._hits += 1
            return result

    def _compute_as_owner(
        self, key: str, compute: Callable[[], str], pending: Future[str],
    ) -> str:
        try:
            result = compute()
        except BaseException as exc:
            with self._lock:
                del self._pending[key]
            if isinstance(exc, Exception):
                pending.set_exception(exc)
            else:
                pending.cancel()
            raise

        with self._lock:
            result = self._entries.setdefault(key, result)
            del self._pending[key]
        pending.set_result(result)
        logger.debug("Cached render %s (%d chars)", key[:12], len(result))
        return result

    def stats(self) -> CacheStats:
        """Return hit/miss counters and the current number of entries."""
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, size=len(self._entries))

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
