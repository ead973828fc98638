"""Cache storage protocol.

Defines the interface for any key/value backend that keeps cache entries
with a TTL and a set of tags.

Implementations can include:
- In-process dictionary (default)
- Any other store that can hold immutable entries and enumerate them by tag
"""

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from portfolio_activity.entities import CacheEntryEntity


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Storage only: freshness policies live in ``CacheService``. A store
    returns whatever it holds for a key, fresh or not.
    """

    def get(self, key: str) -> CacheEntryEntity | None:
        """Get the entry stored under a key.

        Args:
            key: The cache key

        Returns:
            The entry, or None if absent
        """
        ...

    def set(self, entry: CacheEntryEntity) -> None:
        """Store an entry, replacing any entry with the same key.

        Args:
            entry: The entry to store
        """
        ...

    def delete(self, key: str, expected: CacheEntryEntity | None = None) -> bool:
        """Delete an entry.

        Args:
            key: The cache key
            expected: Only delete if the stored entry is this exact entry

        Returns:
            True if deleted, False otherwise
        """
        ...

    def invalidate_by_tag(self, tag: str) -> int:
        """Delete every entry carrying a tag.

        Args:
            tag: The tag to match

        Returns:
            Number of entries deleted
        """
        ...

    def sweep_expired(self, now: float) -> int:
        """Delete every entry past its TTL.

        Args:
            now: Current clock reading

        Returns:
            Number of entries deleted
        """
        ...

    def keys(self) -> Iterable[str]:
        """Snapshot of the stored keys."""
        ...

    def count(self) -> int:
        """Count stored entries."""
        ...
