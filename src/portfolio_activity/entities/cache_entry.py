"""Cache entry domain entity."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a single cached value.

    Entries are immutable. Replacing a value means writing a new entry
    under the same key.

    Attributes:
        key: Deterministic key derived from the logical request
        value: The cached value
        created_at: Clock reading when the entry was written (seconds)
        ttl: Freshness window in seconds
        tags: Labels used for bulk invalidation
    """

    key: str
    value: Any
    created_at: float
    ttl: float
    tags: frozenset[str] = field(default_factory=frozenset)

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was written."""
        return now - self.created_at

    def is_fresh(self, now: float) -> bool:
        """Check whether the entry is still inside its TTL."""
        return self.age(now) <= self.ttl

    def is_expired(self, now: float) -> bool:
        """Check whether the entry is past its TTL."""
        return not self.is_fresh(now)
