"""
Manifest definition and parsing for package.json.

Defines the in-memory model of a package descriptor: its name, version,
declared dependency ranges and workspace globs. Ranges are kept as opaque
strings; depdrift compares installed versions, it never solves ranges.

The raw text comes from a ManifestProvider so the parsing logic can be used
without touching the filesystem.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from ..config import DEFAULT_PROJECT_SECTIONS, MANIFEST_FILENAME
from .exceptions import MalformedManifestError, ManifestIOError

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "0.0.0"
WORKSPACE_PROTOCOL = "workspace:"


class MergePolicy(StrEnum):
    """
    How a name declared in several sections is merged.

    Attributes:
        LAST_WINS: The declaration from the later section replaces earlier ones.
        FIRST_WINS: The first section that declares a name keeps it.
    """

    LAST_WINS = "last-wins"
    FIRST_WINS = "first-wins"


@dataclass(frozen=True)
class Manifest:
    """
    Represents the parsed content of a package.json file.

    Attributes:
        name: Package name.
        version: Package version string ("0.0.0" when not declared).
        dependencies: Effective dependency ranges keyed by name, in
            declaration order.
        workspaces: Workspace glob patterns, in declaration order.
        dependency_sections: Section each effective declaration came from.
        private: Whether the package is marked private.
    """

    name: str
    version: str = DEFAULT_VERSION
    dependencies: Dict[str, str] = field(default_factory=dict)
    workspaces: Tuple[str, ...] = ()
    dependency_sections: Dict[str, str] = field(default_factory=dict)
    private: bool = False

    @classmethod
    def parse(
        cls,
        raw_text: str,
        *,
        source: Optional[Union[str, Path]] = None,
        sections: Sequence[str] = tuple(DEFAULT_PROJECT_SECTIONS),
        policy: MergePolicy = MergePolicy.LAST_WINS,
    ) -> "Manifest":
        """
        Parse raw package.json text.

        Duplicate keys inside one JSON object keep the last declaration.
        Unknown fields are ignored.

        Args:
            raw_text: The manifest document.
            source: Where the text came from, used in error messages.
            sections: Dependency sections to read, in precedence order.
            policy: Merge policy for names declared in several sections.

        Returns:
            Manifest instance.

        Raises:
            MalformedManifestError: If the text is not a JSON object, lacks
            a name, or has wrongly shaped fields.
        """
        try:
            data = json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise MalformedManifestError(f"invalid JSON ({e})", source)

        if not isinstance(data, dict):
            raise MalformedManifestError("top-level value is not an object", source)

        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise MalformedManifestError("missing required field 'name'", source)

        version = data.get("version", DEFAULT_VERSION)
        if not isinstance(version, str):
            raise MalformedManifestError("'version' is not a string", source)

        dependencies: Dict[str, str] = {}
        dependency_sections: Dict[str, str] = {}
        for section in sections:
            for dep_name, dep_range in _section_items(data, section, source):
                if dep_name in dependencies and policy == MergePolicy.FIRST_WINS:
                    continue
                dependencies[dep_name] = dep_range
                dependency_sections[dep_name] = section

        return cls(
            name=name,
            version=version,
            dependencies=dependencies,
            workspaces=_workspace_globs(data.get("workspaces"), source),
            dependency_sections=dependency_sections,
            private=bool(data.get("private", False)),
        )

    @property
    def is_workspace_root(self) -> bool:
        """Check if this manifest declares workspace members."""
        return len(self.workspaces) > 0

    def has_dependencies(self) -> bool:
        """Check if any dependencies are declared."""
        return len(self.dependencies) > 0

    def iter_dependencies(self) -> Iterator[Tuple[str, str, Optional[str]]]:
        """Yield (name, range, section) in declaration order."""
        for dep_name, dep_range in self.dependencies.items():
            yield dep_name, dep_range, self.dependency_sections.get(dep_name)


def _section_items(
    data: Dict[str, Any],
    section: str,
    source: Optional[Union[str, Path]],
) -> List[Tuple[str, str]]:
    value = data.get(section)
    if value is None:
        return []
    if not isinstance(value, dict):
        raise MalformedManifestError(f"'{section}' is not an object", source)

    items = []
    for dep_name, dep_range in value.items():
        if not isinstance(dep_range, str):
            raise MalformedManifestError(
                f"range for '{dep_name}' in '{section}' is not a string", source
            )
        items.append((dep_name, dep_range))
    return items


def _workspace_globs(value: Any, source: Optional[Union[str, Path]]) -> Tuple[str, ...]:
    """
    Normalize the workspaces field.

    Accepts the array form and the object form {"packages": [...]}. The "."
    pattern is dropped: a workspace root is never its own member.
    """
    if value is None:
        return ()
    if isinstance(value, dict):
        value = value.get("packages", [])
    if not isinstance(value, list):
        raise MalformedManifestError("'workspaces' is not an array", source)

    globs = []
    for pattern in value:
        if not isinstance(pattern, str):
            raise MalformedManifestError("workspace entry is not a string", source)
        pattern = pattern.strip().rstrip("/")
        if pattern in ("", ".", "./"):
            continue
        if pattern.startswith("./"):
            pattern = pattern[2:]
        globs.append(pattern)
    return tuple(globs)


def is_workspace_range(dep_range: str) -> bool:
    """Check if a range uses the workspace: protocol."""
    return dep_range.startswith(WORKSPACE_PROTOCOL)


class ManifestProvider(ABC):
    """
    Source of raw manifest text.

    The core never reads manifests itself; it asks a provider, which keeps
    parsing and resolution testable without a filesystem.
    """

    @abstractmethod
    def read(self, path: Path) -> str:
        """
        Return the raw text of the manifest at path.

        Raises:
            ManifestIOError: If the manifest is missing or unreadable.
        """

    def exists(self, path: Path) -> bool:
        """Check if a manifest exists at path."""
        return path.is_file()


class FileManifestProvider(ManifestProvider):
    """Reads manifests from the local filesystem."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def read(self, path: Path) -> str:
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError:
            raise ManifestIOError(path, "file not found")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestIOError(path, str(e))


def load_manifest(
    directory: Path,
    provider: Optional[ManifestProvider] = None,
    *,
    sections: Sequence[str] = tuple(DEFAULT_PROJECT_SECTIONS),
    policy: MergePolicy = MergePolicy.LAST_WINS,
) -> Manifest:
    """
    Read and parse <directory>/package.json.

    Args:
        directory: Package directory.
        provider: Manifest provider (filesystem by default).
        sections: Dependency sections to read.
        policy: Merge policy across sections.

    Returns:
        Parsed Manifest.

    Raises:
        ManifestIOError: If the manifest cannot be read.
        MalformedManifestError: If the manifest cannot be parsed.
    """
    provider = provider or FileManifestProvider()
    path = directory / MANIFEST_FILENAME
    raw_text = provider.read(path)
    return Manifest.parse(raw_text, source=path, sections=sections, policy=policy)
