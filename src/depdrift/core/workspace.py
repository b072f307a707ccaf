"""
Workspace Resolver.

Responsible for expanding the workspace globs declared in a root manifest
into the set of member packages, producing the full universe of packages
under a project root.

Resolution Policy:
    1. Each glob is expanded against the project root; only directories match.
    2. Patterns starting with "!" exclude directories matched so far.
    3. A matched directory without package.json is skipped with a warning.
    4. A member whose manifest is malformed is skipped with a warning.
    5. Members are ordered by their root-relative path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from ..config import MANIFEST_FILENAME, NODE_MODULES_DIRNAME, DepdriftConfig
from .exceptions import MalformedManifestError
from .manifest import FileManifestProvider, Manifest, ManifestProvider, MergePolicy, load_manifest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceMember:
    """
    A package linked into a project through a workspace glob.

    Attributes:
        manifest: The member's parsed manifest.
        root_relative_path: Directory relative to the project root.
        path: Absolute directory of the member.
    """

    manifest: Manifest
    root_relative_path: Path
    path: Path

    @property
    def name(self) -> str:
        return self.manifest.name


@dataclass
class WorkspaceResolution:
    """
    Result container for workspace expansion.

    Attributes:
        members: Resolved members, ordered by root-relative path.
        warnings: Non-fatal problems encountered while expanding.
    """

    members: List[WorkspaceMember] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, message: str) -> None:
        """Record and log a non-fatal warning."""
        logger.warning(message)
        self.warnings.append(message)


class WorkspaceResolver:
    """
    Expands workspace globs into WorkspaceMember records.

    Example:
        ```python
        resolver = WorkspaceResolver(Path("./monorepo"))
        resolution = resolver.resolve(root_manifest)
        for member in resolution.members:
            print(member.name, member.root_relative_path)
        ```
    """

    def __init__(
        self,
        project_root: Path,
        provider: Optional[ManifestProvider] = None,
        sections: Optional[Sequence[str]] = None,
        policy: MergePolicy = MergePolicy.LAST_WINS,
    ):
        self.project_root = project_root.resolve()
        self.provider = provider or FileManifestProvider()
        self.sections = tuple(sections) if sections is not None else None
        self.policy = policy

    def resolve(self, root_manifest: Manifest) -> WorkspaceResolution:
        """
        Expand every glob of the root manifest.

        Args:
            root_manifest: The project's root manifest.

        Returns:
            WorkspaceResolution with members and warnings.
        """
        result = WorkspaceResolution()

        for directory in self._expand(root_manifest.workspaces):
            manifest_path = directory / MANIFEST_FILENAME
            relative = directory.relative_to(self.project_root)

            if not self.provider.exists(manifest_path):
                result.add_warning(f"Workspace directory '{relative}' has no {MANIFEST_FILENAME}; skipping")
                continue

            try:
                manifest = self._load(directory)
            except MalformedManifestError as e:
                result.add_warning(f"Skipping workspace member '{relative}': {e.reason}")
                continue

            logger.debug(f"Found workspace member {manifest.name} at {relative}")
            result.members.append(
                WorkspaceMember(manifest=manifest, root_relative_path=relative, path=directory)
            )

        result.members.sort(key=lambda m: m.root_relative_path.as_posix())
        return result

    def member_directories(self, root_manifest: Manifest) -> List[Path]:
        """
        Directories matched by the workspace globs that hold a manifest.

        Member manifests are not parsed and nothing is reported.
        """
        return [
            directory
            for directory in self._expand(root_manifest.workspaces)
            if self.provider.exists(directory / MANIFEST_FILENAME)
        ]

    def _load(self, directory: Path) -> Manifest:
        if self.sections is None:
            return load_manifest(directory, self.provider, policy=self.policy)
        return load_manifest(directory, self.provider, sections=self.sections, policy=self.policy)

    def _expand(self, patterns: Sequence[str]) -> List[Path]:
        """Expand glob patterns into a de-duplicated list of directories."""
        matched: Dict[Path, None] = {}

        for pattern in patterns:
            if pattern.startswith("!"):
                for directory in self._glob_dirs(pattern[1:]):
                    matched.pop(directory, None)
                continue

            found = self._glob_dirs(pattern)
            if not found:
                logger.debug(f"Workspace glob '{pattern}' matched no directories")
            for directory in found:
                matched[directory] = None

        return list(matched)

    def _glob_dirs(self, pattern: str) -> List[Path]:
        try:
            candidates = sorted(self.project_root.glob(pattern))
        except (ValueError, NotImplementedError) as e:
            logger.warning(f"Ignoring invalid workspace glob '{pattern}': {e}")
            return []

        dirs = []
        for candidate in candidates:
            if not candidate.is_dir():
                continue
            directory = candidate.resolve()
            if directory == self.project_root:
                continue
            try:
                relative = directory.relative_to(self.project_root)
            except ValueError:
                # Symlinked outside the project
                logger.debug(f"Skipping workspace match outside project root: {directory}")
                continue
            if NODE_MODULES_DIRNAME in relative.parts:
                continue
            dirs.append(directory)
        return dirs


def resolve_workspaces(
    project_root: Path,
    root_manifest: Manifest,
    provider: Optional[ManifestProvider] = None,
) -> List[WorkspaceMember]:
    """
    Convenience function to expand the workspace members of a project.

    Args:
        project_root: Directory containing the root manifest.
        root_manifest: The parsed root manifest.
        provider: Manifest provider (filesystem by default).

    Returns:
        List of members ordered by root-relative path.
    """
    return WorkspaceResolver(project_root, provider).resolve(root_manifest).members


@dataclass
class Project:
    """
    The universe of packages under a project root.

    Attributes:
        root: Absolute project root directory.
        manifest: The root manifest.
        members: Workspace members, ordered by root-relative path.
        warnings: Non-fatal warnings from workspace expansion.
    """

    root: Path
    manifest: Manifest
    members: List[WorkspaceMember] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def load(
        cls,
        project_root: Path,
        provider: Optional[ManifestProvider] = None,
        config: Optional[DepdriftConfig] = None,
    ) -> "Project":
        """
        Load the root manifest and resolve its workspace members.

        Raises:
            ManifestIOError: If the root manifest cannot be read.
            MalformedManifestError: If the root manifest cannot be parsed.
        """
        config = config or DepdriftConfig()
        provider = provider or FileManifestProvider()
        root = project_root.resolve()
        policy = MergePolicy(config.merge_policy)

        manifest = load_manifest(root, provider, sections=config.sections, policy=policy)
        resolution = WorkspaceResolver(root, provider, config.sections, policy).resolve(manifest)

        logger.info(f"Loaded project {manifest.name} with {len(resolution.members)} workspace member(s)")
        return cls(
            root=root,
            manifest=manifest,
            members=resolution.members,
            warnings=resolution.warnings,
        )

    def packages(self) -> Iterator[tuple[Manifest, Path]]:
        """Yield (manifest, directory) for the root and every member."""
        yield self.manifest, self.root
        for member in self.members:
            yield member.manifest, member.path

    def find(self, name: str) -> Optional[tuple[Manifest, Path]]:
        """Find a project package (root or member) by name."""
        for manifest, directory in self.packages():
            if manifest.name == name:
                return manifest, directory
        return None

    def find_by_path(self, path: Path) -> Optional[tuple[Manifest, Path]]:
        """Find a project package (root or member) by its directory."""
        target = path.resolve()
        for manifest, directory in self.packages():
            if directory == target:
                return manifest, directory
        return None


def find_project_root(start: Path, provider: Optional[ManifestProvider] = None) -> Optional[Path]:
    """
    Locate the project root for a directory.

    Walks upward from start to the nearest workspace root that includes
    start (or is start). Falls back to the nearest directory holding a
    package.json.

    Args:
        start: Directory to start from.
        provider: Manifest provider (filesystem by default).

    Returns:
        The project root, or None if no package.json exists above start.
    """
    provider = provider or FileManifestProvider()
    start = start.resolve()
    nearest: Optional[Path] = None

    for directory in [start, *start.parents]:
        if not provider.exists(directory / MANIFEST_FILENAME):
            continue
        if nearest is None:
            nearest = directory

        try:
            manifest = load_manifest(directory, provider)
        except MalformedManifestError as e:
            logger.debug(f"Ignoring unparseable manifest while locating root: {e}")
            continue

        if not manifest.is_workspace_root:
            continue
        if directory == start:
            return directory

        members = WorkspaceResolver(directory, provider).member_directories(manifest)
        if any(start == member or member in start.parents for member in members):
            return directory

    return nearest
