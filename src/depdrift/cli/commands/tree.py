"""
Tree Command - Show the dependency tree packages get at runtime.

Usage:
    depdrift tree                 # Workspace root and every member
    depdrift tree web legacy      # Selected packages (names or paths)
    depdrift tree web --depth 1   # Direct dependencies only
    depdrift tree web --json      # Machine-readable output
"""

import logging
from contextlib import nullcontext
from typing import Optional, Tuple

import click

from ...analysis.pipeline import TreeRequest, run_tree
from ...core.exceptions import DepdriftError
from ..renderers import JsonRenderer, TreeRenderer
from ..utils import CliContext, echo_error, echo_info, echo_warning, load_config, resolve_project_root

logger = logging.getLogger(__name__)


@click.command()
@click.argument("packages", nargs=-1)
@click.option("-d", "--depth", type=click.IntRange(min=0), default=None,
              help="Maximum tree depth (default: unlimited)")
@click.option("--dedupe", is_flag=True, help="Expand repeated packages only once")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def tree(
    obj: Optional[CliContext],
    packages: Tuple[str, ...],
    depth: Optional[int],
    dedupe: bool,
    as_json: bool,
) -> None:
    """
    Show the resolved dependency tree of one or more packages.

    Each dependency is resolved the way the runtime does it: from the
    requesting package's own folder upward, so nested installs shadow
    hoisted ones. Missing dependencies are reported, not treated as errors.

    \b
    Examples:
        depdrift tree
        depdrift tree web --depth 2
        depdrift tree packages/legacy
    """
    obj = obj or CliContext()
    renderer = JsonRenderer("tree")
    depth = depth if depth is not None else obj.depth

    # Capture stray stdout in JSON mode so the envelope stays parseable
    context_manager = renderer.capture() if as_json else nullcontext()

    error_to_report = None
    report = None

    with context_manager:
        try:
            project_root = resolve_project_root(obj.project_root)
            config = load_config(project_root)
            if dedupe:
                config.dedupe = True
            report = run_tree(TreeRequest(packages), project_root, max_depth=depth, config=config)
        except DepdriftError as e:
            logger.debug("tree failed", exc_info=True)
            error_to_report = e

    if error_to_report is not None:
        if as_json:
            renderer.render_error(error_to_report)
        else:
            echo_error(str(error_to_report))
        raise SystemExit(error_to_report.exit_code)

    if as_json:
        renderer.render_success(report)
        return

    for warning in report.warnings:
        echo_warning(warning)

    TreeRenderer().render_trees(report.trees, workspace_root=report.workspace_root)

    missing = report.missing_count
    if missing:
        echo_info(f"{missing} missing dependenc{'y' if missing == 1 else 'ies'}")

    unsatisfied = report.unsatisfied_count
    if unsatisfied:
        echo_warning(f"{unsatisfied} dependenc{'y' if unsatisfied == 1 else 'ies'} outside the declared range")
