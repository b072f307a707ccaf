"""
Range Checking.

Decides whether an installed version satisfies the range a manifest
declares for it, using npm range semantics (caret, tilde, x-ranges,
hyphen ranges and "||" alternatives).

Ranges that are not npm semver ranges (workspace:, file:, git URLs,
dist-tags such as "latest") cannot be checked and yield None.
"""

import logging
from functools import lru_cache
from typing import Optional

from semantic_version import NpmSpec, Version

from .manifest import is_workspace_range

logger = logging.getLogger(__name__)

ALTERNATIVE_SEPARATOR = "||"


@lru_cache(maxsize=1024)
def _parse_spec(dep_range: str) -> Optional[NpmSpec]:
    if is_workspace_range(dep_range):
        return None
    try:
        return NpmSpec(dep_range)
    except ValueError:
        return None


@lru_cache(maxsize=1024)
def _parse_version(version: str) -> Optional[Version]:
    try:
        return Version(version)
    except ValueError:
        return None


def satisfies(dep_range: Optional[str], version: Optional[str]) -> Optional[bool]:
    """
    Check an installed version against a declared range.

    Alternatives are checked one by one when the range as a whole is not
    parseable, so "^1.0.0 || workspace:*" still checks its first half.

    Args:
        dep_range: The declared range, or None for requested roots.
        version: The installed version, or None when missing.

    Returns:
        True or False when the range could be checked, None otherwise.
    """
    if dep_range is None or version is None:
        return None

    installed = _parse_version(version)
    if installed is None:
        logger.debug(f"Cannot check range '{dep_range}': '{version}' is not a semver version")
        return None

    spec = _parse_spec(dep_range.strip())
    if spec is not None:
        return spec.match(installed)

    if ALTERNATIVE_SEPARATOR not in dep_range:
        logger.debug(f"Range '{dep_range}' is not checkable")
        return None

    checked = [
        spec.match(installed)
        for spec in (_parse_spec(alt.strip()) for alt in dep_range.split(ALTERNATIVE_SEPARATOR))
        if spec is not None
    ]
    if not checked:
        return None
    return any(checked)
