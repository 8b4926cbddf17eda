"""Expiring cache for the user id to display name index."""

import json
import logging
import time
from collections.abc import Callable

from .backend import CacheBackend

logger = logging.getLogger(__name__)

CACHE_KEY = "userDisplayNames"
EXPIRY_KEY = f"{CACHE_KEY}_expiry"

# One hour
DEFAULT_TTL = 3600


def _now_ms() -> int:
    return int(time.time() * 1000)


class DisplayNameCache:
    """Display names of other users, cached under a fixed key with an explicit expiry.

    The index is stored as a JSON object under ``userDisplayNames`` and its
    absolute expiry, in milliseconds since the epoch, under
    ``userDisplayNames_expiry``. Reading at or after the expiry clears both.
    """

    def __init__(
        self,
        backend: CacheBackend,
        ttl: int = DEFAULT_TTL,
        clock: Callable[[], int] = _now_ms,
    ):
        """Initialize display name cache.

        Args:
            backend: Key/value store holding the two entries
            ttl: Time-to-live in seconds (default: 3600 = 1 hour)
            clock: Current time in milliseconds since the epoch
        """
        self.backend = backend
        self.ttl = ttl
        self._clock = clock

    def get(self) -> dict[str, str] | None:
        """Get the cached index.

        Returns:
            Mapping of user id to display name, or None when absent or expired
        """
        raw_expiry = self.backend.get(EXPIRY_KEY)
        if raw_expiry is None:
            return None

        try:
            expires_at = int(raw_expiry)
        except ValueError:
            logger.warning(f"Invalid display name cache expiry: {raw_expiry!r}")
            self.clear()
            return None

        if self._clock() >= expires_at:
            logger.debug("Display name cache expired")
            self.clear()
            return None

        raw = self.backend.get(CACHE_KEY)
        if raw is None:
            return None

        try:
            names = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to load display name cache: {e}")
            self.clear()
            return None

        if not isinstance(names, dict):
            self.clear()
            return None
        return {str(k): str(v) for k, v in names.items()}

    def set(self, names: dict[str, str]) -> int:
        """Store the index.

        Args:
            names: Mapping of user id to display name

        Returns:
            Absolute expiry in milliseconds since the epoch
        """
        expires_at = self._clock() + self.ttl * 1000
        self.backend.set(CACHE_KEY, json.dumps(names))
        self.backend.set(EXPIRY_KEY, str(expires_at))
        logger.debug(f"Cached {len(names)} display names until {expires_at}")
        return expires_at

    def merge(self, names: dict[str, str]) -> dict[str, str]:
        """Add names to the cached index without extending its expiry.

        Starts a new index with a fresh expiry when there is none.

        Args:
            names: Mapping of user id to display name

        Returns:
            The merged index
        """
        current = self.get()
        if current is None:
            self.set(names)
            return dict(names)

        merged = {**current, **names}
        self.backend.set(CACHE_KEY, json.dumps(merged))
        logger.debug(f"Merged {len(names)} display names into cached index")
        return merged

    def clear(self) -> None:
        self.backend.delete(CACHE_KEY)
        self.backend.delete(EXPIRY_KEY)
