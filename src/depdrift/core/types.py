"""
Core type definitions for depdrift.

The result models handed to renderers: dependency trees and diff entries.
They are pydantic models so the CLI can emit them as JSON unchanged.
"""

from enum import StrEnum
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class DiffClassification(StrEnum):
    """How a dependency differs between two packages."""
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    UNCHANGED = "unchanged"

    def mirror(self) -> "DiffClassification":
        """The classification seen from the other side."""
        if self is DiffClassification.ADDED:
            return DiffClassification.REMOVED
        if self is DiffClassification.REMOVED:
            return DiffClassification.ADDED
        return self


class DependencyNode(BaseModel):
    """
    One dependency edge of a resolved tree.

    resolved_version is None when nothing is installed under the name;
    that is a reportable state, not a failure.

    satisfies is None when the requested range cannot be checked (roots,
    missing packages, workspace: and other non-semver ranges).
    """
    name: str
    requested_range: Optional[str] = None
    resolved_version: Optional[str] = None
    children: List["DependencyNode"] = Field(default_factory=list)
    is_cycle: bool = False
    satisfies: Optional[bool] = None

    location: Optional[str] = None
    section: Optional[str] = None
    is_truncated: bool = False
    is_deduped: bool = False
    is_workspace_link: bool = False

    model_config = ConfigDict(extra="ignore")

    @property
    def is_missing(self) -> bool:
        return self.resolved_version is None

    @property
    def is_unsatisfied(self) -> bool:
        return self.satisfies is False

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        """Identity used for cycle detection."""
        return (self.name, self.resolved_version)

    def walk(self, depth: int = 0) -> Iterator[Tuple["DependencyNode", int]]:
        """Pre-order traversal yielding (node, depth)."""
        stack = [(self, depth)]
        while stack:
            node, d = stack.pop()
            yield node, d
            for child in reversed(node.children):
                stack.append((child, d + 1))

    def max_depth(self) -> int:
        return max(d for _, d in self.walk())

    def count_missing(self) -> int:
        return sum(1 for node, _ in self.walk() if node.is_missing)

    def count_unsatisfied(self) -> int:
        return sum(1 for node, _ in self.walk() if node.is_unsatisfied)


class DiffEntry(BaseModel):
    """Version of one dependency on both sides of a diff."""
    name: str
    left_version: Optional[str] = None
    right_version: Optional[str] = None
    classification: DiffClassification
    left_range: Optional[str] = None
    right_range: Optional[str] = None
    left_satisfies: Optional[bool] = None
    right_satisfies: Optional[bool] = None

    def mirrored(self) -> "DiffEntry":
        """The same entry with left and right swapped."""
        return DiffEntry(
            name=self.name,
            left_version=self.right_version,
            right_version=self.left_version,
            classification=self.classification.mirror(),
            left_range=self.right_range,
            right_range=self.left_range,
            left_satisfies=self.right_satisfies,
            right_satisfies=self.left_satisfies,
        )


class DiffSummary(BaseModel):
    """
    Counts of diff entries per classification.

    unsatisfied counts entries whose installed version misses its declared
    range on either side; it does not contribute to drift.
    """
    added: int = 0
    removed: int = 0
    changed: int = 0
    unchanged: int = 0
    unsatisfied: int = 0

    @classmethod
    def from_entries(cls, entries: List[DiffEntry]) -> "DiffSummary":
        counts: Dict[str, int] = {c.value: 0 for c in DiffClassification}
        for entry in entries:
            counts[entry.classification.value] += 1
        unsatisfied = sum(1 for e in entries if e.left_satisfies is False or e.right_satisfies is False)
        return cls(**counts, unsatisfied=unsatisfied)

    @property
    def has_drift(self) -> bool:
        return (self.added + self.removed + self.changed) > 0
