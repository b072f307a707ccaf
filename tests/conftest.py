"""
Shared fixtures for depdrift tests.

Workspaces are written to tmp_path as real package.json files and
node_modules folders so every test exercises the filesystem provider.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest


def write_package(directory: Path, name: str, version: Optional[str] = "1.0.0", **fields: Any) -> Path:
    """Write directory/package.json and return the directory."""
    manifest: Dict[str, Any] = {"name": name}
    if version is not None:
        manifest["version"] = version
    manifest.update(fields)
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "package.json").write_text(json.dumps(manifest, indent=2))
    return directory


@pytest.fixture
def make_package() -> Callable[..., Path]:
    return write_package


@pytest.fixture
def lodash_workspace(tmp_path: Path) -> Path:
    """
    Two members pinning different lodash majors.

    root/node_modules/lodash          4.17.21 (hoisted)
    root/packages/b/node_modules/lodash 3.10.1 (shadows the hoisted one for b)
    """
    root = tmp_path / "repo"
    write_package(root, "monorepo", workspaces=["packages/*"])
    write_package(root / "packages/a", "a", dependencies={"lodash": "^4.0.0"})
    write_package(root / "packages/b", "b", dependencies={"lodash": "^3.0.0"})
    write_package(root / "node_modules/lodash", "lodash", "4.17.21")
    write_package(root / "packages/b/node_modules/lodash", "lodash", "3.10.1")
    return root


@pytest.fixture
def cyclic_workspace(tmp_path: Path) -> Path:
    """A single package depending on A, where A -> B -> A."""
    root = tmp_path / "cyclic"
    write_package(root, "app", dependencies={"A": "^1.0.0"})
    write_package(root / "node_modules/A", "A", "1.0.0", dependencies={"B": "^1.0.0"})
    write_package(root / "node_modules/B", "B", "1.0.0", dependencies={"A": "^1.0.0"})
    return root
