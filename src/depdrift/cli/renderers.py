"""
Renderers - Turn pipeline reports into terminal or JSON output.

TreeRenderer draws dependency trees and diff tables with rich.
JsonRenderer wraps any pydantic response in a stable envelope:

    {"meta": {...}, "data": {...}, "error": null}
"""

import io
import json
from contextlib import contextmanager, redirect_stdout
from importlib.metadata import PackageNotFoundError, version
from typing import Iterator, List, Optional

import click
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from ..core.exceptions import DepdriftError
from ..core.types import DependencyNode, DiffClassification, DiffEntry
from .utils import format_version

_STATUS_STYLES = {
    DiffClassification.ADDED: "green",
    DiffClassification.REMOVED: "red",
    DiffClassification.CHANGED: "yellow",
    DiffClassification.UNCHANGED: "dim",
}


def _version_style(satisfied: Optional[bool]) -> str:
    """Green when the declared range holds, red when it does not."""
    if satisfied is False:
        return "red"
    return "green"


def _tool_version() -> str:
    try:
        return version("depdrift")
    except PackageNotFoundError:
        return "unknown"


class JsonRenderer:
    """
    Renders command results as a JSON envelope on stdout.

    While capturing, anything printed by the command body is swallowed so
    the envelope stays machine readable.
    """

    def __init__(self, command: str):
        self.command = command
        self.captured = ""

    @contextmanager
    def capture(self) -> Iterator[None]:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            yield
        self.captured = buffer.getvalue()

    def _meta(self, status: str) -> dict:
        return {"command": self.command, "status": status, "version": _tool_version()}

    def render_success(self, data: BaseModel) -> None:
        envelope = {
            "meta": self._meta("success"),
            "data": data.model_dump(mode="json"),
            "error": None,
        }
        click.echo(json.dumps(envelope, indent=2))

    def render_error(self, error: Exception) -> None:
        code = type(error).__name__
        envelope = {
            "meta": self._meta("error"),
            "data": None,
            "error": {
                "code": code,
                "message": str(error),
                "exit_code": error.exit_code if isinstance(error, DepdriftError) else 1,
            },
        }
        click.echo(json.dumps(envelope, indent=2))


class TreeRenderer:
    """Draws dependency trees and diff tables with rich."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def node_label(self, node: DependencyNode, is_root: bool = False) -> Text:
        """Build the label for one node of a tree."""
        label = Text()
        label.append(node.name, style="bold" if is_root else "")

        if node.requested_range is not None:
            label.append("@", style="bright_black")
            label.append(node.requested_range, style="bright_blue")

        if node.is_missing:
            label.append(" → ", style="bright_black")
            label.append("[MISSING]", style="bold red")
        else:
            label.append(" → " if not is_root else "@", style="bright_black")
            label.append(node.resolved_version, style=_version_style(node.satisfies) if not is_root else "blue")
            if node.is_unsatisfied:
                label.append(" [UNSATISFIED]", style="bold red")

        if node.section == "devDependencies":
            label.append(" [DEV]", style="blue")
        if node.is_workspace_link:
            label.append(" [WORKSPACE]", style="cyan")
        if node.is_cycle:
            label.append(" [CYCLE]", style="magenta")
        if node.is_deduped:
            label.append(" [DEDUPED]", style="yellow")
        if node.is_truncated:
            label.append(" …", style="bright_black")
        return label

    def build_tree(self, root: DependencyNode, title: Optional[Text] = None) -> Tree:
        """Convert a DependencyNode tree into a rich Tree."""
        tree = Tree(title or self.node_label(root, is_root=True), guide_style="dim")
        stack = [(tree, child) for child in reversed(root.children)]
        while stack:
            branch, node = stack.pop()
            sub = branch.add(self.node_label(node))
            for child in reversed(node.children):
                stack.append((sub, child))
        return tree

    def render_trees(self, trees: List[DependencyNode], workspace_root: Optional[str] = None) -> None:
        for root in trees:
            if workspace_root is not None and root.name == workspace_root:
                self.console.print(Text("[WORKSPACE ROOT]", style="blue"))
            self.console.print(self.build_tree(root))
            self.console.print()

    def build_diff_table(self, left: DependencyNode, right: DependencyNode, entries: List[DiffEntry]) -> Table:
        """Build a table with one row per compared dependency."""
        title = f"{left.name}@{format_version(left.resolved_version)} ↔ {right.name}@{format_version(right.resolved_version)}"
        table = Table(title=title, title_justify="left")
        table.add_column("Dependency")
        table.add_column(left.name)
        table.add_column(right.name)
        table.add_column("Status")

        for entry in entries:
            style = _STATUS_STYLES[entry.classification]
            table.add_row(
                entry.name,
                self._side(
                    entry.left_version,
                    entry.left_range,
                    present=entry.classification != DiffClassification.ADDED,
                    satisfied=entry.left_satisfies,
                ),
                self._side(
                    entry.right_version,
                    entry.right_range,
                    present=entry.classification != DiffClassification.REMOVED,
                    satisfied=entry.right_satisfies,
                ),
                Text(entry.classification.value, style=style),
            )
        return table

    @staticmethod
    def _side(
        version_str: Optional[str],
        range_str: Optional[str],
        present: bool,
        satisfied: Optional[bool] = None,
    ) -> Text:
        if not present:
            return Text("-", style="bright_black")
        if version_str is None:
            text = Text(format_version(version_str), style="red")
        else:
            text = Text(version_str, style=_version_style(satisfied))
        if satisfied is False:
            text.append(" [UNSATISFIED]", style="bold red")
        if range_str is not None:
            text.append(f" ({range_str})", style="bright_black")
        return text
