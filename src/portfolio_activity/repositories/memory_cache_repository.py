"""In-process implementation of CacheStore.

Entries live in a plain dict for the lifetime of the process. Entries are
immutable and swapped in whole, so a reader never observes a partially
written value.
"""

from portfolio_activity.entities import CacheEntryEntity


class MemoryCacheRepository:
    """Dictionary-backed implementation of the CacheStore protocol.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(self, name: str = "cache") -> None:
        """Initialize the repository.

        Args:
            name: Label used in stats and logs.
        """
        self._name = name
        self._entries: dict[str, CacheEntryEntity] = {}

    @classmethod
    def create(cls, name: str = "cache") -> "MemoryCacheRepository":
        """Factory method to create an empty repository."""
        return cls(name=name)

    @property
    def name(self) -> str:
        """Get the repository label."""
        return self._name

    def get(self, key: str) -> CacheEntryEntity | None:
        """Get the entry stored under a key, fresh or not."""
        return self._entries.get(key)

    def set(self, entry: CacheEntryEntity) -> None:
        """Store an entry, replacing any previous entry for its key."""
        self._entries[entry.key] = entry

    def delete(self, key: str, expected: CacheEntryEntity | None = None) -> bool:
        """Delete an entry by key.

        Args:
            key: The cache key
            expected: If given, only delete when the stored entry is this object,
                so that a newer replacement is never removed by mistake.

        Returns:
            True if deleted, False otherwise
        """
        current = self._entries.get(key)
        if current is None:
            return False
        if expected is not None and current is not expected:
            return False
        del self._entries[key]
        return True

    def invalidate_by_tag(self, tag: str) -> int:
        """Delete every entry whose tag set contains ``tag``."""
        count = 0
        for key, entry in list(self._entries.items()):
            if tag in entry.tags and self.delete(key, expected=entry):
                count += 1
        return count

    def sweep_expired(self, now: float) -> int:
        """Delete every entry that is past its TTL at ``now``."""
        count = 0
        for key, entry in list(self._entries.items()):
            if entry.is_expired(now) and self.delete(key, expected=entry):
                count += 1
        return count

    def keys(self) -> list[str]:
        """Snapshot of the stored keys."""
        return list(self._entries)

    def count(self) -> int:
        """Count stored entries."""
        return len(self._entries)

    def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats
        """
        return {
            "name": self._name,
            "total_entries": self.count(),
        }
