"""
Hoisted Lookup Index.

A read-only snapshot of every node_modules directory reachable from a
project root and its workspace members, with hoisting-aware lookup.

Resolution walks from the requesting location up through its ancestors and
returns the nearest node_modules/<name> entry, so a nested install shadows a
hoisted one exactly like the runtime module resolver does.

Locations are real paths. A package symlinked in from a pnpm store therefore
resolves its dependencies from the store folder it really lives in, and
that folder's node_modules is indexed alongside the others.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..config import (
    DEPENDENCIES,
    IGNORE_NODE_MODULES_ENTRIES,
    MANIFEST_FILENAME,
    NODE_MODULES_DIRNAME,
    OPTIONAL_DEPENDENCIES,
)
from .exceptions import MalformedManifestError, ManifestIOError
from .manifest import FileManifestProvider, Manifest, ManifestProvider
from .workspace import WorkspaceMember

logger = logging.getLogger(__name__)

# Sections read from packages installed inside node_modules
INSTALLED_SECTIONS: Tuple[str, ...] = (DEPENDENCIES, OPTIONAL_DEPENDENCIES)


@dataclass(frozen=True)
class InstalledPackage:
    """
    A package found in a node_modules directory.

    Attributes:
        name: Name the package is installed under (directory name, with scope).
        version: Installed version from its manifest.
        location: Real package directory (symlinks resolved).
        manifest: The installed package's manifest.
    """

    name: str
    version: str
    location: Path
    manifest: Manifest = field(repr=False, compare=False)

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass
class _ScanResult:
    owner: Path
    packages: Dict[str, InstalledPackage] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


class HoistedIndex:
    """
    Snapshot of installed packages keyed by the directory owning each
    node_modules folder.

    Example:
        ```python
        index = HoistedIndex.build(project.root, project.members)
        pkg = index.resolve(project.root / "packages/b", "lodash")
        print(pkg.version if pkg else "missing")
        ```
    """

    def __init__(
        self,
        project_root: Path,
        entries: Dict[Path, Dict[str, InstalledPackage]],
        warnings: Optional[List[str]] = None,
    ):
        self.project_root = project_root
        self._entries = entries
        self.warnings = list(warnings or [])

    @classmethod
    def build(
        cls,
        project_root: Path,
        members: Iterable[WorkspaceMember] = (),
        provider: Optional[ManifestProvider] = None,
        workers: int = 1,
    ) -> "HoistedIndex":
        """
        Scan node_modules directories under the project root and members.

        Every node_modules directory is read one level deep (scoped packages
        included). Packages that carry their own node_modules are queued and
        scanned as separate entries, level by level, until none remain.

        Args:
            project_root: The project root directory.
            members: Workspace members whose node_modules are scanned too.
            provider: Manifest provider (filesystem by default).
            workers: Threads used per level; results never depend on it.

        Returns:
            The populated, read-only index.

        Raises:
            ManifestIOError: If a node_modules directory cannot be listed.
        """
        scanner = _Scanner(provider or FileManifestProvider())
        root = project_root.resolve()

        level = _unique([root, *(m.path.resolve() for m in members)])
        seen = set(level)
        entries: Dict[Path, Dict[str, InstalledPackage]] = {}
        warnings: List[str] = []

        with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
            while level:
                if workers > 1:
                    results = list(executor.map(scanner.scan, level))
                else:
                    results = [scanner.scan(owner) for owner in level]

                next_level: List[Path] = []
                for result in sorted(results, key=lambda r: (len(r.owner.parts), r.owner.as_posix())):
                    warnings.extend(result.warnings)
                    if not result.packages:
                        continue
                    entries[result.owner] = result.packages
                    for pkg in result.packages.values():
                        store = _store_owner(pkg.location, root)
                        if store is not None and store not in seen:
                            seen.add(store)
                            next_level.append(store)
                        if pkg.location in seen:
                            continue
                        if (pkg.location / NODE_MODULES_DIRNAME).is_dir():
                            seen.add(pkg.location)
                            next_level.append(pkg.location)
                level = next_level

        index = cls(root, entries, warnings)
        logger.info(f"Indexed {len(index)} installed package(s) in {len(entries)} node_modules folder(s)")
        return index

    def resolve(self, from_location: Path, name: str) -> Optional[InstalledPackage]:
        """
        Resolve a package name as seen from a directory.

        Walks from from_location upward; the first ancestor whose
        node_modules holds name wins. The walk ends at the project root
        (or the filesystem root for locations outside the project).

        Args:
            from_location: Directory requesting the package.
            name: Package name, including any @scope/ prefix.

        Returns:
            The nearest InstalledPackage, or None if none is visible.
        """
        location = from_location if from_location.is_absolute() else self.project_root / from_location

        for directory in (location, *location.parents):
            pkg = self._entries.get(directory, {}).get(name)
            if pkg is not None:
                return pkg
            if directory == self.project_root:
                break
        return None

    def packages(self) -> Iterator[InstalledPackage]:
        """Iterate all indexed packages, ordered by owner depth then name."""
        for owner in sorted(self._entries, key=lambda p: (len(p.parts), p.as_posix())):
            for name in sorted(self._entries[owner]):
                yield self._entries[owner][name]

    def owners(self) -> List[Path]:
        """Directories that own an indexed node_modules folder."""
        return sorted(self._entries, key=lambda p: (len(p.parts), p.as_posix()))

    def __len__(self) -> int:
        return sum(len(pkgs) for pkgs in self._entries.values())

    def __contains__(self, name: str) -> bool:
        return any(name in pkgs for pkgs in self._entries.values())


class _Scanner:
    """Reads one node_modules directory into InstalledPackage records."""

    def __init__(self, provider: ManifestProvider):
        self.provider = provider

    def scan(self, owner: Path) -> _ScanResult:
        result = _ScanResult(owner=owner)
        node_modules = owner / NODE_MODULES_DIRNAME
        if not node_modules.is_dir():
            return result

        for name, directory in self._entries(node_modules):
            pkg = self._read_package(name, directory, result)
            if pkg is not None:
                result.packages[name] = pkg

        logger.debug(f"Scanned {node_modules}: {len(result.packages)} package(s)")
        return result

    def _entries(self, node_modules: Path) -> List[Tuple[str, Path]]:
        """List (install name, directory) pairs, expanding @scope folders."""
        found = []
        for entry in _list_dir(node_modules):
            if entry.name in IGNORE_NODE_MODULES_ENTRIES or entry.name.startswith("."):
                continue
            if not entry.is_dir():
                continue
            if entry.name.startswith("@"):
                for scoped in _list_dir(entry):
                    if scoped.is_dir() and not scoped.name.startswith("."):
                        found.append((f"{entry.name}/{scoped.name}", scoped))
            else:
                found.append((entry.name, entry))
        return found

    def _read_package(self, name: str, directory: Path, result: _ScanResult) -> Optional[InstalledPackage]:
        manifest_path = directory / MANIFEST_FILENAME
        if not self.provider.exists(manifest_path):
            logger.debug(f"Skipping {directory}: no {MANIFEST_FILENAME}")
            return None

        try:
            manifest = Manifest.parse(
                self.provider.read(manifest_path),
                source=manifest_path,
                sections=INSTALLED_SECTIONS,
            )
        except MalformedManifestError as e:
            message = f"Skipping installed package '{name}': {e}"
            logger.warning(message)
            result.warnings.append(message)
            return None

        return InstalledPackage(
            name=name,
            version=manifest.version,
            location=directory.resolve(),
            manifest=manifest,
        )


def _list_dir(directory: Path) -> List[Path]:
    try:
        with os.scandir(directory) as it:
            return sorted((Path(e.path) for e in it), key=lambda p: p.name)
    except OSError as e:
        raise ManifestIOError(directory, str(e))


def _store_owner(location: Path, project_root: Path) -> Optional[Path]:
    """
    Directory owning the node_modules folder a package really lives in.

    For a package symlinked in from a store (node_modules/.pnpm/<id>/node_modules/<name>)
    this is the store entry, whose node_modules also holds the package's own
    dependencies. None when the package does not live in a node_modules
    folder under the project root.
    """
    parent = location.parent
    if parent.name.startswith("@"):
        parent = parent.parent
    if parent.name != NODE_MODULES_DIRNAME:
        return None
    owner = parent.parent
    if owner != project_root and project_root not in owner.parents:
        return None
    return owner


def _unique(paths: Sequence[Path]) -> List[Path]:
    return list(dict.fromkeys(paths))
