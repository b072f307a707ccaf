"""
depdrift CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

from pathlib import Path
from typing import Optional

import click

from .commands import diff, init, tree
from .utils import CliContext, setup_logging


@click.group()
@click.version_option(package_name="depdrift")
@click.option("--project-root", type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=None, help="Project root (default: nearest workspace root above the cwd)")
@click.option("--depth", type=click.IntRange(min=0), default=None,
              help="Default maximum tree depth for every command")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, project_root: Optional[Path], depth: Optional[int], verbose: bool):
    """depdrift: Hoisting-aware dependency trees for node_modules workspaces.

    Shows which version of each dependency a package really gets once the
    package manager has hoisted everything, and where two packages drift.

    \b
    Quick Start:
      depdrift init --demo && cd depdrift-demo
      depdrift tree web
      depdrift diff web legacy
    """
    setup_logging(verbose)
    ctx.obj = CliContext(project_root=project_root, depth=depth, verbose=verbose)


# Register commands
main.add_command(tree.tree)
main.add_command(diff.diff)
main.add_command(init)

if __name__ == "__main__":
    main()
