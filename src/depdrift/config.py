"""
Global Configuration and Defaults.

This module centralizes the filesystem conventions depdrift relies on
(manifest and install directory names) and the optional per-project
configuration read from depdrift.toml.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

# --- Filesystem Conventions ---
MANIFEST_FILENAME = "package.json"
NODE_MODULES_DIRNAME = "node_modules"
CONFIG_FILENAME = "depdrift.toml"

# Environment variable that overrides the CLI log level
LOG_LEVEL_ENV_VAR = "DEPDRIFT_LOG_LEVEL"

# --- Manifest Sections ---
DEPENDENCIES = "dependencies"
DEV_DEPENDENCIES = "devDependencies"
OPTIONAL_DEPENDENCIES = "optionalDependencies"
PEER_DEPENDENCIES = "peerDependencies"

KNOWN_SECTIONS: List[str] = [
    DEPENDENCIES,
    DEV_DEPENDENCIES,
    OPTIONAL_DEPENDENCIES,
    PEER_DEPENDENCIES,
]

# Sections read from packages that live in the project (root + members)
DEFAULT_PROJECT_SECTIONS: List[str] = [DEPENDENCIES, DEV_DEPENDENCIES]

# Sections that are never read from installed packages (inside node_modules)
INSTALLED_EXCLUDED_SECTIONS: Set[str] = {DEV_DEPENDENCIES}

# Entries inside node_modules that are never packages
IGNORE_NODE_MODULES_ENTRIES: Set[str] = {
    ".bin",
    ".cache",
    ".pnpm",
    ".package-lock.json",
    ".modules.yaml",
    ".yarn-state.yml",
}


@dataclass
class DepdriftConfig:
    """
    Configuration from the [tool.depdrift] section of depdrift.toml.

    Attributes:
        sections: Manifest sections read for project packages, in
            precedence order.
        merge_policy: How duplicate names across sections are merged
            ("last-wins" or "first-wins").
        scan_workers: Thread count used when scanning node_modules.
        dedupe: Collapse repeated subtrees in tree output.
        max_depth: Default depth limit (None means unlimited).
    """

    sections: List[str] = field(default_factory=lambda: list(DEFAULT_PROJECT_SECTIONS))
    merge_policy: str = "last-wins"
    scan_workers: int = 1
    dedupe: bool = False
    max_depth: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DepdriftConfig":
        """Parse from a TOML dictionary, validating known keys."""
        sections = data.get("sections", list(DEFAULT_PROJECT_SECTIONS))
        if not isinstance(sections, list) or not all(isinstance(s, str) for s in sections):
            raise ValueError("sections must be a list of strings")
        unknown = [s for s in sections if s not in KNOWN_SECTIONS]
        if unknown:
            raise ValueError(f"Unknown dependency sections: {', '.join(unknown)}")

        merge_policy = data.get("merge_policy", "last-wins")
        if merge_policy not in ("last-wins", "first-wins"):
            raise ValueError(f"Invalid merge_policy: {merge_policy}")

        scan_workers = data.get("scan_workers", 1)
        if not isinstance(scan_workers, int) or scan_workers < 1:
            raise ValueError("scan_workers must be a positive integer")

        max_depth = data.get("max_depth")
        if max_depth is not None and (not isinstance(max_depth, int) or max_depth < 0):
            raise ValueError("max_depth must be a non-negative integer")

        return cls(
            sections=sections,
            merge_policy=merge_policy,
            scan_workers=scan_workers,
            dedupe=bool(data.get("dedupe", False)),
            max_depth=max_depth,
        )

    @classmethod
    def load(cls, project_root: Path) -> "DepdriftConfig":
        """
        Load depdrift.toml from the project root.

        Args:
            project_root: Directory that may contain depdrift.toml.

        Returns:
            DepdriftConfig: Parsed configuration, or defaults when the file
            does not exist.

        Raises:
            ValueError: If the TOML file is malformed or has invalid values.
        """
        path = project_root / CONFIG_FILENAME
        if not path.exists():
            return cls()

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ValueError(f"Failed to parse {path}: {e}")

        section = data.get("tool", {}).get("depdrift", {})
        try:
            config = cls.from_dict(section)
        except ValueError as e:
            raise ValueError(f"Invalid configuration in {path}: {e}")

        logger.debug(f"Loaded configuration from {path}: {config}")
        return config

    def to_toml_string(self) -> str:
        """
        Serialize the configuration to depdrift.toml format.

        Returns:
            TOML-formatted string.
        """
        sections = ", ".join(f'"{s}"' for s in self.sections)
        lines = [
            "[tool.depdrift]",
            f"sections = [{sections}]",
            f'merge_policy = "{self.merge_policy}"',
            f"scan_workers = {self.scan_workers}",
            f"dedupe = {'true' if self.dedupe else 'false'}",
        ]
        if self.max_depth is not None:
            lines.append(f"max_depth = {self.max_depth}")
        lines.append("")
        return "\n".join(lines)
