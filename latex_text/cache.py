"""
Thread-safe memoization caches for engine output and rasterized images.
"""
import hashlib
import json
import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SVG_KEY_TYPE = "svg"
IMAGE_KEY_TYPE = "image"


def cache_key(key_type: str, fields: Mapping[str, Any]) -> str:
    """
    Build a stable cache key from *fields*.

    The fields are serialised with sorted keys and hashed with SHA-256. If
    they cannot be serialised, a raw-string key is used instead; it is weaker
    but still usable.

    Args:
        key_type: Suffix naming the cache the key belongs to
        fields: Key fields

    Returns:
        Key string
    """
    try:
        payload = json.dumps(fields, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        logger.warning(f"Could not encode {key_type} cache key, using fallback key: {e}")
        return f"{_fallback_key(fields)}-{key_type}"

    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{digest}-{key_type}"


def _fallback_key(fields: Mapping[str, Any]) -> str:
    return "|".join(f"{name}={fields[name]!s}" for name in sorted(fields))


def svg_cache_key(text: str, display_mode: bool, engine_options: Optional[Mapping[str, Any]]) -> str:
    """Key for the engine output of one equation."""
    return cache_key(SVG_KEY_TYPE, {
        "text": text,
        "display": display_mode,
        "texOptions": dict(engine_options or {}),
    })


def image_cache_key(markup: str, x_height: float) -> str:
    """Key for a rasterized equation image at a given font x-height."""
    return cache_key(IMAGE_KEY_TYPE, {
        "svg": markup,
        "xHeight": x_height,
    })


class RenderCache:
    """
    A content-addressed cache safe for use from several threads.

    A lock guards every access to the underlying map. Values are computed
    outside the lock, so two threads missing the same key may both compute
    it; the last write wins.

    Args:
        name: Name used in log messages
        max_entries: Optional size bound; the oldest entries are evicted first
        debug: Enable debug output
    """

    def __init__(self, name: str = "render", max_entries: Optional[int] = None, debug: bool = False):
        self.name = name
        self.max_entries = max_entries
        self.debug = debug
        self._entries: "OrderedDict[str, Any]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for *key*, or ``None`` on a miss."""
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self.misses += 1
            else:
                self.hits += 1
            return value

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous value."""
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    if self.debug:
                        logger.info(f"Evicted {evicted} from {self.name} cache")

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """
        Return the value for *key*, computing and storing it on a miss.

        Args:
            key: Cache key
            compute: Zero-argument callable producing the value

        Returns:
            The cached or freshly computed value
        """
        value = self.get(key)
        if value is not None:
            if self.debug:
                logger.info(f"📦 {self.name} cache hit: {key[:16]}")
            return value

        value = compute()
        if value is not None:
            self.set(key, value)
        return value

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()
        if self.debug:
            logger.info(f"Cleared {self.name} cache")

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
