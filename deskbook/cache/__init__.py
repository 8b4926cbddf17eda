"""Local caching for deskbook."""

from .backend import CacheBackend, FileCache, MemoryCache, NullCache
from .display_names import CACHE_KEY, DEFAULT_TTL, EXPIRY_KEY, DisplayNameCache

__all__ = [
    "CacheBackend",
    "NullCache",
    "MemoryCache",
    "FileCache",
    "DisplayNameCache",
    "CACHE_KEY",
    "EXPIRY_KEY",
    "DEFAULT_TTL",
]
