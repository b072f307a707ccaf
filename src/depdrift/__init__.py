"""
depdrift - Hoisting-aware dependency trees for node_modules workspaces.

depdrift reads package.json manifests and the installed node_modules
layout of a workspace and reports which version of each dependency a
package actually gets at runtime, and where two packages disagree.

Key Components:
- core: Manifests, workspace discovery and the hoisted install index
- analysis: Tree building, diffing and the end-to-end pipeline
- cli: The `depdrift` command line

Usage:
    from pathlib import Path
    from depdrift import TreeRequest, run_tree

    report = run_tree(TreeRequest(["web"]), Path("."))
"""

__version__ = "0.1.0"

from .analysis.pipeline import DiffRequest, TreeRequest, run_diff, run_tree
from .core.types import DependencyNode, DiffClassification, DiffEntry

__all__ = [
    "__version__",
    "DependencyNode",
    "DiffClassification",
    "DiffEntry",
    "DiffRequest",
    "TreeRequest",
    "run_diff",
    "run_tree",
]
