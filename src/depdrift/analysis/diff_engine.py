"""
Diff Engine - Compare the dependency versions two packages actually get.

Identifies, per dependency name:
1. Added (only the right side declares it)
2. Removed (only the left side declares it)
3. Changed (both declare it, resolved versions differ)
4. Unchanged (both declare it, same resolved version)

Each side is flattened into name -> resolved version, first occurrence
winning in pre-order. By default only the first-level dependencies of the
requested packages are compared; transitive mode compares every node.
Classification compares resolved versions only; range satisfaction is
carried along for display.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..core.types import DependencyNode, DiffClassification, DiffEntry


@dataclass(frozen=True)
class _Resolution:
    version: Optional[str]
    requested_range: Optional[str]
    satisfies: Optional[bool] = None


def flatten(nodes: Sequence[DependencyNode], transitive: bool = False) -> Dict[str, _Resolution]:
    """
    Flatten trees into name -> resolution.

    Roots are the requested packages themselves and are never part of the
    mapping. A declared but missing dependency maps to version None.

    Args:
        nodes: Root nodes of one side.
        transitive: Include every descendant, not just first-level children.

    Returns:
        Mapping in pre-order of first occurrence.
    """
    flat: Dict[str, _Resolution] = {}
    for root in nodes:
        if transitive:
            descendants = (node for node, depth in root.walk() if depth > 0)
        else:
            descendants = iter(root.children)
        for node in descendants:
            if node.name not in flat:
                flat[node.name] = _Resolution(node.resolved_version, node.requested_range, node.satisfies)
    return flat


def classify(left: Optional[_Resolution], right: Optional[_Resolution]) -> DiffClassification:
    if left is None:
        return DiffClassification.ADDED
    if right is None:
        return DiffClassification.REMOVED
    if left.version != right.version:
        return DiffClassification.CHANGED
    return DiffClassification.UNCHANGED


def diff(
    left_nodes: Sequence[DependencyNode],
    right_nodes: Sequence[DependencyNode],
    transitive: bool = False,
) -> List[DiffEntry]:
    """
    Compare two sets of trees dependency by dependency.

    Args:
        left_nodes: Root nodes of the left side.
        right_nodes: Root nodes of the right side.
        transitive: Compare all descendants instead of first-level ones.

    Returns:
        One DiffEntry per name in the union of both sides, sorted by name.
    """
    left = flatten(left_nodes, transitive)
    right = flatten(right_nodes, transitive)

    entries = []
    for name in sorted(left.keys() | right.keys()):
        l_res = left.get(name)
        r_res = right.get(name)
        entries.append(
            DiffEntry(
                name=name,
                left_version=l_res.version if l_res else None,
                right_version=r_res.version if r_res else None,
                classification=classify(l_res, r_res),
                left_range=l_res.requested_range if l_res else None,
                right_range=r_res.requested_range if r_res else None,
                left_satisfies=l_res.satisfies if l_res else None,
                right_satisfies=r_res.satisfies if r_res else None,
            )
        )
    return entries
