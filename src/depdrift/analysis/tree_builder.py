"""
Tree Builder - Reconstruct the dependency tree a package sees at runtime.

Each edge is resolved through the HoistedIndex from the requesting
package's own install location, so the tree reflects hoisting and
shadowing. Traversal is an explicit depth-first walk that tracks the
(name, version) pairs on the current root-to-node path; a pair seen again
on the path is marked as a cycle and not expanded, which bounds the walk.

Each resolved edge also records whether the installed version satisfies
the range its parent declares.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from ..core.index import HoistedIndex
from ..core.manifest import Manifest, is_workspace_range
from ..core.ranges import satisfies
from ..core.types import DependencyNode
from ..core.workspace import Project

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    node: DependencyNode
    dependencies: Iterator[Tuple[str, str, Optional[str]]]
    depth: int
    location: Path


@dataclass
class _Resolved:
    version: str
    location: Path
    manifest: Manifest


class TreeBuilder:
    """
    Builds depth-limited dependency trees from a HoistedIndex.

    Attributes:
        index: The hoisted lookup index (read-only).
        max_depth: Deepest level that may appear in the output; None for
            unlimited. Roots are at depth 0.
        project: Project used to locate requested workspace packages.
        dedupe: Expand each (name, version, location) only once per build.
    """

    def __init__(
        self,
        index: HoistedIndex,
        max_depth: Optional[int] = None,
        project: Optional[Project] = None,
        dedupe: bool = False,
    ):
        if max_depth is not None and max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        self.index = index
        self.max_depth = max_depth
        self.project = project
        self.dedupe = dedupe

    def build(self, package_names: Sequence[str]) -> List[DependencyNode]:
        """Build one root node per requested package name."""
        expanded: Set[Tuple[str, str, Path]] = set()
        return [self._build_root(name, expanded) for name in package_names]

    def _build_root(self, name: str, expanded: Set[Tuple[str, str, Path]]) -> DependencyNode:
        resolved = self._find_root(name)
        if resolved is None:
            logger.info(f"Package '{name}' not found in project or node_modules")
            return DependencyNode(name=name)

        root = DependencyNode(
            name=name,
            resolved_version=resolved.version,
            location=str(resolved.location),
        )
        self._expand(root, resolved, expanded)
        return root

    def _find_root(self, name: str) -> Optional[_Resolved]:
        if self.project is not None:
            found = self.project.find(name)
            if found is not None:
                manifest, directory = found
                return _Resolved(manifest.version, directory, manifest)

        pkg = self.index.resolve(self.index.project_root, name)
        if pkg is not None:
            return _Resolved(pkg.version, pkg.location, pkg.manifest)
        return None

    def _resolve_edge(self, from_location: Path, name: str, dep_range: str) -> Optional[_Resolved]:
        pkg = self.index.resolve(from_location, name)
        if pkg is not None:
            return _Resolved(pkg.version, pkg.location, pkg.manifest)

        # workspace: ranges link to a member even when nothing is installed
        if self.project is not None and is_workspace_range(dep_range):
            found = self.project.find(name)
            if found is not None:
                manifest, directory = found
                return _Resolved(manifest.version, directory, manifest)
        return None

    def _expand(
        self,
        root: DependencyNode,
        resolved: _Resolved,
        expanded: Set[Tuple[str, str, Path]],
    ) -> None:
        if not self._may_expand(root, resolved, 0, expanded):
            return

        on_path = {root.key}
        stack = [_Frame(root, resolved.manifest.iter_dependencies(), 0, resolved.location)]

        while stack:
            frame = stack[-1]
            item = next(frame.dependencies, None)
            if item is None:
                stack.pop()
                on_path.discard(frame.node.key)
                continue

            dep_name, dep_range, section = item
            child_resolved = self._resolve_edge(frame.location, dep_name, dep_range)
            child = DependencyNode(
                name=dep_name,
                requested_range=dep_range,
                section=section,
                is_workspace_link=is_workspace_range(dep_range),
            )
            frame.node.children.append(child)

            if child_resolved is None:
                continue

            child.resolved_version = child_resolved.version
            child.satisfies = satisfies(dep_range, child_resolved.version)
            child.location = str(child_resolved.location)

            if child.key in on_path:
                child.is_cycle = True
                continue

            depth = frame.depth + 1
            if not self._may_expand(child, child_resolved, depth, expanded):
                continue

            on_path.add(child.key)
            stack.append(
                _Frame(child, child_resolved.manifest.iter_dependencies(), depth, child_resolved.location)
            )

    def _may_expand(
        self,
        node: DependencyNode,
        resolved: _Resolved,
        depth: int,
        expanded: Set[Tuple[str, str, Path]],
    ) -> bool:
        if not resolved.manifest.has_dependencies():
            return False

        if self.max_depth is not None and depth >= self.max_depth:
            node.is_truncated = True
            return False

        if self.dedupe:
            identity = (node.name, resolved.version, resolved.location)
            if identity in expanded:
                node.is_deduped = True
                return False
            expanded.add(identity)

        return True


def build_tree(
    package_names: Sequence[str],
    index: HoistedIndex,
    max_depth: Optional[int] = None,
    project: Optional[Project] = None,
    dedupe: bool = False,
) -> List[DependencyNode]:
    """
    Convenience function to build trees for several packages.

    Args:
        package_names: Names of the requested packages.
        index: The hoisted lookup index.
        max_depth: Optional depth limit (roots are depth 0).
        project: Project for locating workspace packages.
        dedupe: Collapse repeated subtrees.

    Returns:
        One root DependencyNode per requested name.
    """
    return TreeBuilder(index, max_depth=max_depth, project=project, dedupe=dedupe).build(package_names)
