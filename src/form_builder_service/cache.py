from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TypeVar

T = TypeVar("T")

DEFAULT_TTL_SEC = 300


class TTLCache:
    """Small in-process key/value cache. Entries are `(expires_at, value)`; expired ones are evicted on read."""

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl_sec: float = DEFAULT_TTL_SEC) -> None:
        if not key:
            return
        with self._lock:
            self._data[key] = (time.time() + float(ttl_sec), value)

    def get(self, key: str) -> Optional[Any]:
        if not key:
            return None
        with self._lock:
            rec = self._data.get(key)
            if not rec:
                return None
            expires_at, value = rec
            if time.time() >= float(expires_at):
                self._data.pop(key, None)
                return None
            return value

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def cleanup(self) -> int:
        now = time.time()
        with self._lock:
            expired = [k for k, (exp, _) in self._data.items() if now >= exp]
            for k in expired:
                self._data.pop(k, None)
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


ai_response_cache = TTLCache()


def cache_key(prefix: str, params: Mapping[str, Any]) -> str:
    parts = []
    for k in sorted(params):
        try:
            raw = json.dumps(params[k], ensure_ascii=True, sort_keys=True, separators=(",", ":"))
        except (TypeError, ValueError):
            raw = str(params[k])
        parts.append(f"{k}:{raw}")
    joined = "|".join(parts)
    return f"{prefix}:{hashlib.sha256(joined.encode('utf-8')).hexdigest()[:16]}"


def cached(key: str, fn: Callable[[], T], ttl_sec: float = DEFAULT_TTL_SEC, *, cache: Optional[TTLCache] = None) -> T:
    store = cache if cache is not None else ai_response_cache
    hit = store.get(key)
    if hit is not None:
        return hit
    value = fn()
    store.set(key, value, ttl_sec)
    return value
