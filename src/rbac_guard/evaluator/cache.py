"""Thread-safe memo of authorization decisions.

Each entry maps a key built from ``(role name, resource, verb, names)`` to
the boolean decision computed for it.  Entries are never evicted on their
own: a cached decision is only valid while the role it was computed for is
unchanged, so callers that swap or edit roles must call :meth:`clear` or
:meth:`invalidate_role`.

Each entry is indexed by the role it was computed for, so invalidating
one role never touches another role whose name merely shares a prefix.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "$"


def make_key(
    role_name: str,
    resource: str,
    verb: str,
    names: Sequence[str],
    separator: str = DEFAULT_SEPARATOR,
) -> str:
    """Join the query fields into a cache key, preserving name order."""
    return separator.join([role_name, resource, verb, *names])


class DecisionCache:
    """Append-only decision cache guarded by a lock.

    Parameters
    ----------
    separator:
        Field separator for keys; must not occur in any key field.
    """

    def __init__(self, separator: str = DEFAULT_SEPARATOR) -> None:
        self._separator = separator
        self._entries: dict[str, bool] = {}
        self._by_role: dict[str, set[str]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def separator(self) -> str:
        return self._separator

    def key(self, role_name: str, resource: str, verb: str, names: Sequence[str]) -> str:
        """Build a key with this cache's separator."""
        return make_key(role_name, resource, verb, names, self._separator)

    # ------------------------------------------------------------------
    # Read / write API
    # ------------------------------------------------------------------

    def get(self, key: str) -> bool | None:
        """Return the cached decision for *key*, or ``None`` if absent."""
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: bool, role_name: str | None = None) -> None:
        """Store *value* under *key*.

        *role_name* defaults to the first key field; pass it explicitly when
        the name may itself contain the separator.
        """
        with self._lock:
            self._store(key, value, role_name)

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], bool],
        role_name: str | None = None,
    ) -> bool:
        """Return the decision for *key*, computing and storing it if absent.

        The lookup, computation and store happen under one lock scope.
        *role_name* is recorded for :meth:`invalidate_role` as in :meth:`set`.
        """
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._hits += 1
                return cached
            self._misses += 1
            value = compute()
            self._store(key, value, role_name)
            return value

    def _store(self, key: str, value: bool, role_name: str | None) -> None:
        if role_name is None:
            role_name = key.partition(self._separator)[0]
        self._entries[key] = value
        self._by_role.setdefault(role_name, set()).add(key)

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def clear(self) -> int:
        """Drop every entry and return how many were dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._by_role.clear()
        logger.debug("Decision cache cleared (%d entries)", dropped)
        return dropped

    def invalidate_role(self, role_name: str) -> int:
        """Drop every entry computed for *role_name*; return the count."""
        with self._lock:
            stale = self._by_role.pop(role_name, set())
            for key in stale:
                self._entries.pop(key, None)
        logger.debug("Decision cache invalidated %d entries for role %r", len(stale), role_name)
        return len(stale)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def keys(self) -> list[str]:
        """Return a snapshot of the cached keys."""
        with self._lock:
            return list(self._entries)

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def stats(self) -> dict[str, int]:
        """Return entry, hit and miss counts."""
        with self._lock:
            return {"entries": len(self._entries), "hits": self._hits, "misses": self._misses}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
