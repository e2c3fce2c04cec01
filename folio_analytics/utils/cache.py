"""Simple file-based caching for market-data responses."""

import hashlib
import json
import time
from pathlib import Path

from folio_analytics.config import Paths, SETTINGS


class DataCache:
    """File-based JSON cache with TTL support.

    A category whose configured TTL is 0 is disabled: ``get`` always misses
    and ``set`` is a no-op.
    """

    def __init__(self, category: str = "general", cache_dir: Path | None = None):
        self.cache_dir = (cache_dir or Paths.DATA_CACHE) / category
        ttl_config = SETTINGS.get("cache", {}).get("ttl_hours", {})
        self.ttl_seconds = ttl_config.get(category, 24) * 3600

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def _key_path(self, key: str) -> Path:
        hashed = hashlib.md5(key.encode()).hexdigest()
        return self.cache_dir / f"{hashed}.json"

    def get(self, key: str) -> dict | list | None:
        """Retrieve cached JSON data if not expired."""
        if not self.enabled:
            return None
        path = self._key_path(key)
        if not path.exists():
            return None
        if time.time() - path.stat().st_mtime > self.ttl_seconds:
            path.unlink(missing_ok=True)
            return None
        with open(path) as f:
            return json.load(f)

    def set(self, key: str, data: dict | list) -> None:
        """Store JSON data in cache."""
        if not self.enabled:
            return
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self._key_path(key)
        with open(path, "w") as f:
            json.dump(data, f)
