"""
CLI Utilities - Shared helper functions for command line operations.

This module provides common functionality used across the CLI commands,
including formatted printing, logging setup and project/config loading.
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click

from ..config import LOG_LEVEL_ENV_VAR, DepdriftConfig
from ..core.exceptions import ConfigurationError
from ..core.workspace import find_project_root


@dataclass
class CliContext:
    """Options shared by every command, stored on click's ctx.obj."""
    project_root: Optional[Path] = None
    depth: Optional[int] = None
    verbose: bool = False


def echo_success(message: str) -> None:
    """
    Print a success message with a green checkmark.

    Args:
        message (str): The message to display.
    """
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    """
    Print a warning message with a yellow alert symbol.

    Args:
        message (str): The warning message to display.
    """
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def echo_info(message: str) -> None:
    """
    Print an informational message, dimmed.

    Args:
        message (str): The info message to display.
    """
    click.echo(click.style(f"   {message}", dim=True))


def setup_logging(verbose: bool) -> None:
    """
    Configure root logging for a CLI run.

    DEBUG with --verbose, WARNING otherwise; the DEPDRIFT_LOG_LEVEL
    environment variable overrides both.
    """
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR)
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def resolve_project_root(explicit: Optional[Path]) -> Path:
    """
    Determine the project root for a command.

    Uses the explicit --project-root when given, otherwise walks up from the
    working directory to the enclosing workspace root.
    """
    if explicit is not None:
        return explicit.resolve()
    cwd = Path.cwd()
    return find_project_root(cwd) or cwd


def load_config(project_root: Path) -> DepdriftConfig:
    """
    Load depdrift.toml for the project.

    Raises:
        ConfigurationError: If the file is malformed.
    """
    try:
        return DepdriftConfig.load(project_root)
    except ValueError as e:
        raise ConfigurationError(str(e))


def format_version(version: Optional[str]) -> str:
    """Render an optional resolved version."""
    return version if version is not None else "[MISSING]"
