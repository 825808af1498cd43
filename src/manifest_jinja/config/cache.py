"""Render result caching for the Jinja manifest renderer."""

import copy
import hashlib
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateSpec:
    """Inputs that determine a source's rendered output."""

    path: str
    values: Dict[str, Any] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TemplateSpec):
            return NotImplemented
        return self.path == other.path and _canonical(self.values) == _canonical(
            other.values
        )

    def __hash__(self) -> int:
        return hash((self.path, _canonical(self.values)))


KeyFunc = Callable[[TemplateSpec], Hashable]


def _canonical(value: Any) -> Any:
    """Convert a value tree into a hashable form that ignores mapping order."""
    if isinstance(value, dict):
        items = [(_type_tag(k), repr(k), _canonical(v)) for k, v in value.items()]
        return ("map", tuple(sorted(items, key=lambda item: item[:2])))
    if isinstance(value, (list, tuple)):
        return ("seq", tuple(_canonical(v) for v in value))
    if isinstance(value, (set, frozenset)):
        return ("set", tuple(sorted(repr(_canonical(v)) for v in value)))
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return (_type_tag(value), value)
    return (_type_tag(value), repr(value))


def _type_tag(value: Any) -> str:
    return type(value).__name__


def default_key_func(spec: TemplateSpec) -> str:
    """Derive a key from the path and the full merged value tree.

    Two specs produce the same key iff their paths are equal and their value
    trees are structurally equal, regardless of mapping insertion order.
    """
    canonical = repr((spec.path, _canonical(spec.values)))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def path_key_func(spec: TemplateSpec) -> str:
    """Derive a key from the template path only.

    All value variants of a source share one cache slot. Only correct when
    output does not depend on values, or when stale results are acceptable
    until the entry expires.
    """
    return spec.path


class RenderCache:
    """Thread-safe TTL cache of rendered object lists.

    Values are deep-copied on both ``set`` and ``get`` so callers can never
    modify cached state through a list they stored or received.
    """

    def __init__(
        self, ttl_seconds: float = 300, key_func: Optional[KeyFunc] = None
    ) -> None:
        """Initialize the render cache.

        Args:
            ttl_seconds: Default time-to-live for cached entries in seconds
            key_func: Function deriving a cache key from a TemplateSpec
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self._cache: Dict[Hashable, Dict[str, Any]] = {}
        self._lock = threading.RLock()
        self._ttl_seconds = ttl_seconds
        self._key_func = key_func or default_key_func

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def key_func(self) -> KeyFunc:
        return self._key_func

    def key(self, spec: TemplateSpec, scope: Hashable = None) -> Hashable:
        """Derive the cache key for a template spec.

        Args:
            spec: Template spec to derive the key from
            scope: Namespace separating entries of different sources that
                may share a path, None for the unscoped key
        """
        spec_key = self._key_func(spec)
        if scope is None:
            return spec_key
        return (scope, spec_key)

    def get(
        self, spec: TemplateSpec, scope: Hashable = None
    ) -> Optional[List[Dict[str, Any]]]:
        """Get a copy of the cached objects for a template spec if present and fresh.

        Args:
            spec: Template spec to look up
            scope: Key namespace the entry was stored under

        Returns:
            Independent copy of the cached objects, None on a miss
        """
        cache_key = self.key(spec, scope)

        with self._lock:
            cache_entry = self._cache.get(cache_key)
            if cache_entry is None:
                return None

            if time.monotonic() >= cache_entry["expires_at"]:
                del self._cache[cache_key]
                return None

            return copy.deepcopy(cache_entry["objects"])

    def set(
        self,
        spec: TemplateSpec,
        objects: List[Dict[str, Any]],
        ttl_seconds: Optional[float] = None,
        scope: Hashable = None,
    ) -> None:
        """Cache a copy of the objects rendered for a spec.

        Args:
            spec: Template spec the objects were rendered from
            objects: Rendered objects to cache
            ttl_seconds: Override of the default time-to-live
            scope: Key namespace to store the entry under
        """
        cache_key = self.key(spec, scope)
        ttl = ttl_seconds if ttl_seconds is not None else self._ttl_seconds
        stored = copy.deepcopy(objects)

        with self._lock:
            self._cache[cache_key] = {
                "objects": stored,
                "expires_at": time.monotonic() + ttl,
            }

    def invalidate(self, spec: TemplateSpec, scope: Hashable = None) -> bool:
        """Remove the entry for a spec.

        Returns:
            True if an entry was removed, False if it wasn't cached
        """
        cache_key = self.key(spec, scope)

        with self._lock:
            if cache_key in self._cache:
                del self._cache[cache_key]
                return True
            return False

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        """Get the current number of cached entries, expired ones included."""
        with self._lock:
            return len(self._cache)

    def cleanup_expired(self) -> int:
        """Remove expired cache entries.

        Returns:
            Number of entries removed
        """
        now = time.monotonic()

        with self._lock:
            expired_keys = [
                cache_key
                for cache_key, cache_entry in self._cache.items()
                if now >= cache_entry["expires_at"]
            ]
            for cache_key in expired_keys:
                del self._cache[cache_key]

        if expired_keys:
            logger.debug(f"Removed {len(expired_keys)} expired render cache entries")

        return len(expired_keys)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            now = time.monotonic()
            expired_entries = sum(
                1 for entry in self._cache.values() if now >= entry["expires_at"]
            )

            return {
                "total_entries": len(self._cache),
                "active_entries": len(self._cache) - expired_entries,
                "expired_entries": expired_entries,
                "ttl_seconds": self._ttl_seconds,
            }
