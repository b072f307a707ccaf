"""
CLI Commands Package.

Each command is implemented in its own module for maintainability.
"""

from . import diff
from . import tree
from .initialize import init

__all__ = [
    "diff",
    "tree",
    "init",
]
