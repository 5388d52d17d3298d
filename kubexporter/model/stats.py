"""
Run Statistics

Each worker owns a Stats instance; the dispatcher folds them into one
run level Stats once every worker has stopped. Namespaces are tracked as a
set so that merging never double counts a namespace seen by two workers.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Set


@dataclass
class Stats:
    """Export statistics"""
    kinds: int = 0
    pages: int = 0
    resources: int = 0
    errors: int = 0
    _namespaces: Set[str] = field(default_factory=set, repr=False)

    def add_namespace(self, namespace: str) -> None:
        """Track a namespace, cluster scoped instances have none and are ignored"""
        if namespace:
            self._namespaces.add(namespace)

    def namespaces(self) -> int:
        """Number of distinct namespaces touched"""
        return len(self._namespaces)

    def add(self, other: Optional['Stats']) -> 'Stats':
        """Fold another Stats into this one"""
        if other is not None:
            self.kinds += other.kinds
            self.pages += other.pages
            self.resources += other.resources
            self.errors += other.errors
            self._namespaces |= other._namespaces
        return self

    def has_errors(self) -> bool:
        """At least one kind failed"""
        return self.errors > 0

    @classmethod
    def merged(cls, stats: Iterable['Stats']) -> 'Stats':
        total = cls()
        for s in stats:
            total.add(s)
        return total
