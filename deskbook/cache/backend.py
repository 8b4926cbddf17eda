"""Cache backend interface and implementations for local key/value storage."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Abstract base class for cache backends.

    A backend is a plain string key/value store, like browser local storage.
    Expiry is handled by the caller. Implement this interface to create custom
    cache backends (e.g., Redis, DB).
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Get a cached value by key.

        Args:
            key: Cache key

        Returns:
            Stored value if present, None otherwise
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value.

        Args:
            key: Cache key
            value: Value to store
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a cached value by key.

        Args:
            key: Cache key
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all cached values."""
        pass


class NullCache(CacheBackend):
    """No-op cache backend that never caches anything.

    Use this when you don't want any caching.
    """

    def get(self, key: str) -> str | None:
        return None

    def set(self, key: str, value: str) -> None:
        pass

    def delete(self, key: str) -> None:
        pass

    def clear(self) -> None:
        pass


class MemoryCache(CacheBackend):
    """In-memory cache backend (no persistence).

    Cached values are lost when the process exits.
    """

    def __init__(self):
        self._cache: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        value = self._cache.get(key)
        logger.debug(f"Cache {'hit' if value is not None else 'miss'} for key: {key}")
        return value

    def set(self, key: str, value: str) -> None:
        self._cache[key] = value
        logger.debug(f"Cached value for key: {key}")

    def delete(self, key: str) -> None:
        if key in self._cache:
            del self._cache[key]
            logger.debug(f"Deleted cache for key: {key}")

    def clear(self) -> None:
        self._cache.clear()
        logger.debug("Cleared all cached values")

    def __contains__(self, key: str) -> bool:
        return key in self._cache


class FileCache(CacheBackend):
    """File-based cache backend.

    Stores every key in a single JSON file so values survive restarts.
    """

    def __init__(self, cache_dir: str | Path = ".cache/deskbook", filename: str = "storage.json"):
        """Initialize file cache.

        Args:
            cache_dir: Directory to store the cache file (relative or absolute)
            filename: Name of the cache file
        """
        self.cache_dir = Path(cache_dir).expanduser().resolve()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.cache_dir / filename
        logger.debug(f"File cache initialized at: {self.path}")

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load cache file {self.path}: {e}")
            self.path.unlink(missing_ok=True)
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring cache file {self.path} with unexpected content")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)
        logger.debug(f"Cached value for key: {key} at {self.path}")

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)
            logger.debug(f"Deleted cache for key: {key}")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.debug(f"Cleared all cached values from {self.path}")
