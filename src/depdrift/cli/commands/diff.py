"""
Diff Command - Compare the installed dependency versions of two packages.

Usage:
    # Compare two workspace members
    depdrift diff web legacy

    # Compare every transitive dependency, not just direct ones
    depdrift diff web legacy --transitive

    # Hide dependencies that resolve to the same version
    depdrift diff web legacy --changes-only

    # Output as JSON
    depdrift diff web legacy --json
"""

import logging
from contextlib import nullcontext
from typing import Optional

import click

from ...analysis.pipeline import DiffReport, DiffRequest, run_diff
from ...core.exceptions import DepdriftError
from ...core.types import DiffClassification
from ..renderers import JsonRenderer, TreeRenderer
from ..utils import CliContext, echo_error, echo_success, echo_warning, load_config, resolve_project_root

logger = logging.getLogger(__name__)


@click.command()
@click.argument("left")
@click.argument("right")
@click.option("-d", "--depth", type=click.IntRange(min=0), default=None,
              help="Depth of the trees being compared (default: unlimited)")
@click.option("--transitive", is_flag=True, help="Compare transitive dependencies too")
@click.option("--changes-only", is_flag=True, help="Hide unchanged dependencies")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def diff(
    obj: Optional[CliContext],
    left: str,
    right: str,
    depth: Optional[int],
    transitive: bool,
    changes_only: bool,
    as_json: bool,
) -> None:
    """
    Compare the resolved dependencies of two packages.

    Every dependency declared by either package is classified as added,
    removed, changed or unchanged by its installed version.

    \b
    Exit Codes:
        0 - Success (drift is a result, not a failure)
        2 - A required manifest is unreadable or malformed
    """
    obj = obj or CliContext()
    renderer = JsonRenderer("diff")
    depth = depth if depth is not None else obj.depth

    context_manager = renderer.capture() if as_json else nullcontext()

    error_to_report = None
    report = None

    with context_manager:
        try:
            project_root = resolve_project_root(obj.project_root)
            config = load_config(project_root)
            report = run_diff(
                DiffRequest(left=left, right=right, transitive=transitive),
                project_root,
                max_depth=depth,
                config=config,
            )
        except DepdriftError as e:
            logger.debug("diff failed", exc_info=True)
            error_to_report = e

    if error_to_report is not None:
        if as_json:
            renderer.render_error(error_to_report)
        else:
            echo_error(str(error_to_report))
        raise SystemExit(error_to_report.exit_code)

    if changes_only:
        report = _filter_changes_only(report)

    if as_json:
        renderer.render_success(report)
        return

    for warning in report.warnings:
        echo_warning(warning)

    table_renderer = TreeRenderer()
    table_renderer.console.print(table_renderer.build_diff_table(report.left, report.right, report.entries))
    _print_summary(report)


def _filter_changes_only(report: DiffReport) -> DiffReport:
    """Drop unchanged entries; the summary keeps the full counts."""
    entries = [e for e in report.entries if e.classification != DiffClassification.UNCHANGED]
    return report.model_copy(update={"entries": entries})


def _print_summary(report: DiffReport) -> None:
    s = report.summary
    if not s.has_drift:
        echo_success("No drift: every dependency resolves to the same version")
    else:
        click.echo(
            f"Summary: {click.style(str(s.added), fg='green')} added, "
            f"{click.style(str(s.removed), fg='red')} removed, "
            f"{click.style(str(s.changed), fg='yellow')} changed, "
            f"{s.unchanged} unchanged"
        )
    if s.unsatisfied:
        echo_warning(f"{s.unsatisfied} dependenc{'y' if s.unsatisfied == 1 else 'ies'} outside the declared range")
