"""
Demo Manager - Scaffolds an example workspace.

This module generates a small hoisted install on disk that exercises every
depdrift feature: a hoisted dependency, a nested install shadowing it, a
dependency cycle, a missing dependency and an install that no longer
satisfies its declared range. It gives new users something to
run `depdrift tree` and `depdrift diff` against immediately.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class DemoManager:
    """
    Manages the creation of the demo workspace.
    """

    ROOT_MANIFEST = {
        "name": "demo-monorepo",
        "version": "1.0.0",
        "private": True,
        "workspaces": ["packages/*"],
        "devDependencies": {"typescript": "^5.4.0"},
    }

    # Member "web" gets the hoisted lodash 4, member "legacy" pins lodash 3.
    # legacy asks for ^3.10.2 but still has 3.10.1 installed.
    WEB_MANIFEST = {
        "name": "web",
        "version": "2.1.0",
        "dependencies": {
            "lodash": "^4.0.0",
            "ping": "^1.0.0",
            "shared": "workspace:*",
        },
    }

    LEGACY_MANIFEST = {
        "name": "legacy",
        "version": "0.9.0",
        "dependencies": {
            "lodash": "^3.10.2",
            "chalk": "^5.0.0",
            "shared": "workspace:*",
        },
    }

    SHARED_MANIFEST = {
        "name": "shared",
        "version": "1.3.0",
        "dependencies": {"lodash": "^4.17.0"},
    }

    # Installed packages: (install path relative to root, manifest)
    INSTALLED = {
        "node_modules/lodash": {"name": "lodash", "version": "4.17.21"},
        "node_modules/typescript": {"name": "typescript", "version": "5.4.5"},
        "node_modules/ping": {"name": "ping", "version": "1.0.2", "dependencies": {"pong": "^1.0.0"}},
        "node_modules/pong": {"name": "pong", "version": "1.1.0", "dependencies": {"ping": "^1.0.0"}},
        "packages/legacy/node_modules/lodash": {"name": "lodash", "version": "3.10.1"},
    }

    def __init__(self, root_dir: Path, name: str = "depdrift-demo"):
        self.root_dir = root_dir
        self.name = name

    def provision(self) -> Path:
        """
        Create the demo workspace on disk.

        Returns:
            Path: The path to the created demo directory.
        """
        demo_dir = self.root_dir / self.name
        demo_dir.mkdir(parents=True, exist_ok=True)

        # 1. Root manifest
        self._write_manifest(demo_dir, self.ROOT_MANIFEST)

        # 2. Workspace members
        self._write_manifest(demo_dir / "packages/web", self.WEB_MANIFEST)
        self._write_manifest(demo_dir / "packages/legacy", self.LEGACY_MANIFEST)
        self._write_manifest(demo_dir / "packages/shared", self.SHARED_MANIFEST)

        # 3. Installed tree (hoisted + one nested override)
        for relative, manifest in self.INSTALLED.items():
            self._write_manifest(demo_dir / relative, manifest)

        logger.info(f"Provisioned demo workspace at {demo_dir}")
        return demo_dir

    @staticmethod
    def _write_manifest(directory: Path, manifest: Dict[str, Any], indent: Optional[int] = 2) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "package.json").write_text(json.dumps(manifest, indent=indent) + "\n")
