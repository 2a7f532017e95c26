"""
Proxy caching package.

Provides the in-process expiring cache used for access tokens and shaped
products. Entries are only replaced on refresh; there is no eviction.
"""

from .expiring_cache import CacheEntry, ExpiringCache

__all__ = ["CacheEntry", "ExpiringCache"]
