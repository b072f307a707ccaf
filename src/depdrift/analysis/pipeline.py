"""
Pipeline - Run one depdrift invocation end to end.

    manifest parse -> workspace resolve -> index build -> tree build -> diff

The index is built exactly once per invocation and shared by every tree
built during it, so all results come from the same filesystem snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from ..config import DepdriftConfig
from ..core.index import HoistedIndex
from ..core.manifest import FileManifestProvider, ManifestProvider
from ..core.types import DependencyNode, DiffEntry, DiffSummary
from ..core.workspace import Project
from .diff_engine import diff
from .tree_builder import TreeBuilder

logger = logging.getLogger(__name__)


# --- Requests ---
@dataclass(frozen=True)
class TreeRequest:
    """Build trees for the named packages (all project packages if empty)."""
    package_names: Sequence[str] = ()


@dataclass(frozen=True)
class DiffRequest:
    """Compare the dependencies of two packages."""
    left: str
    right: str
    transitive: bool = False


# --- Reports ---
class TreeReport(BaseModel):
    """Structured response for the tree command."""
    project_root: str
    trees: List[DependencyNode]
    workspace_root: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)

    @property
    def missing_count(self) -> int:
        return sum(tree.count_missing() for tree in self.trees)

    @property
    def unsatisfied_count(self) -> int:
        return sum(tree.count_unsatisfied() for tree in self.trees)


class DiffReport(BaseModel):
    """Structured response for the diff command."""
    project_root: str
    left: DependencyNode
    right: DependencyNode
    entries: List[DiffEntry]
    summary: DiffSummary
    transitive: bool = False
    warnings: List[str] = Field(default_factory=list)


@dataclass
class Session:
    """
    Inputs captured once at the start of a run.

    Attributes:
        project: The project universe (root + workspace members).
        index: The hoisted lookup index built for this run.
        config: Effective configuration.
    """

    project: Project
    index: HoistedIndex
    config: DepdriftConfig = field(default_factory=DepdriftConfig)

    @classmethod
    def open(
        cls,
        project_root: Path,
        provider: Optional[ManifestProvider] = None,
        config: Optional[DepdriftConfig] = None,
    ) -> "Session":
        """
        Load the project and build its index.

        Raises:
            ManifestIOError: If the root manifest or a node_modules folder is unreadable.
            MalformedManifestError: If the root manifest cannot be parsed.
        """
        config = config or DepdriftConfig()
        provider = provider or FileManifestProvider()

        project = Project.load(project_root, provider, config)
        index = HoistedIndex.build(
            project.root,
            project.members,
            provider=provider,
            workers=config.scan_workers,
        )
        return cls(project=project, index=index, config=config)

    @property
    def warnings(self) -> List[str]:
        return [*self.project.warnings, *self.index.warnings]

    def builder(self, max_depth: Optional[int] = None, dedupe: Optional[bool] = None) -> TreeBuilder:
        depth = max_depth if max_depth is not None else self.config.max_depth
        dedupe = self.config.dedupe if dedupe is None else dedupe
        return TreeBuilder(self.index, max_depth=depth, project=self.project, dedupe=dedupe)

    def package_name(self, identifier: str) -> str:
        """
        Map a requested identifier to a package name.

        Identifiers are package names, or paths to the root or a member
        directory (relative to the working directory or the project root).
        """
        if self.project.find(identifier) is not None:
            return identifier

        for candidate in (Path(identifier), self.project.root / identifier):
            if not candidate.is_dir():
                continue
            found = self.project.find_by_path(candidate)
            if found is not None:
                manifest, _ = found
                logger.debug(f"Resolved path '{identifier}' to package {manifest.name}")
                return manifest.name

        return identifier

    def all_package_names(self) -> List[str]:
        return [manifest.name for manifest, _ in self.project.packages()]


def run_tree(
    request: TreeRequest,
    project_root: Path,
    max_depth: Optional[int] = None,
    provider: Optional[ManifestProvider] = None,
    config: Optional[DepdriftConfig] = None,
) -> TreeReport:
    """
    Build dependency trees for the requested packages.

    Args:
        request: Packages to build (every project package if empty).
        project_root: Project root directory.
        max_depth: Depth limit, overriding the configured one.
        provider: Manifest provider (filesystem by default).
        config: Effective configuration.

    Returns:
        TreeReport with one tree per requested package.
    """
    session = Session.open(project_root, provider, config)

    if request.package_names:
        names = [session.package_name(ident) for ident in request.package_names]
    else:
        names = session.all_package_names()

    trees = session.builder(max_depth).build(names)
    workspace_root = session.project.manifest.name if session.project.manifest.is_workspace_root else None

    return TreeReport(
        project_root=str(session.project.root),
        trees=trees,
        workspace_root=workspace_root,
        warnings=session.warnings,
    )


def run_diff(
    request: DiffRequest,
    project_root: Path,
    max_depth: Optional[int] = None,
    provider: Optional[ManifestProvider] = None,
    config: Optional[DepdriftConfig] = None,
) -> DiffReport:
    """
    Compare the resolved dependencies of two packages.

    Args:
        request: The two packages and the comparison mode.
        project_root: Project root directory.
        max_depth: Depth limit for the trees being compared. Values below
            1 are raised to 1 so direct dependencies are never hidden.
        provider: Manifest provider (filesystem by default).
        config: Effective configuration.

    Returns:
        DiffReport with entries sorted by dependency name.
    """
    session = Session.open(project_root, provider, config)
    depth = max_depth if max_depth is not None else session.config.max_depth
    if depth is not None:
        # First-level dependencies are always compared
        depth = max(depth, 1)
    # Deduped subtrees would hide transitive versions from the comparison
    builder = session.builder(depth, dedupe=False)

    left, right = builder.build(
        [session.package_name(request.left), session.package_name(request.right)]
    )

    logger.info(f"Diffing {left.name} against {right.name}")
    entries = diff([left], [right], transitive=request.transitive)

    return DiffReport(
        project_root=str(session.project.root),
        left=left,
        right=right,
        entries=entries,
        summary=DiffSummary.from_entries(entries),
        transitive=request.transitive,
        warnings=session.warnings,
    )
