"""
Init Command - Onboarding Automation.

This module handles the `depdrift init` command, which writes a
depdrift.toml with the default settings, or provisions a demo workspace
to try depdrift against.
"""

from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from ...config import CONFIG_FILENAME, MANIFEST_FILENAME, DepdriftConfig
from ...core.demo import DemoManager

console = Console()


def _init_project(root_dir: Path) -> Path:
    """Write the default configuration into root_dir."""
    if not (root_dir / MANIFEST_FILENAME).exists():
        console.print(f"[yellow]No {MANIFEST_FILENAME} found in {root_dir}. Writing defaults anyway.[/yellow]")

    config_file = root_dir / CONFIG_FILENAME
    config_file.write_text(DepdriftConfig().to_toml_string())

    console.print("\n✨ [bold green]Initialized successfully![/bold green]")
    console.print(f"   Config created at: [dim]{config_file}[/dim]")
    return config_file


@click.command()
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
@click.option("--demo", is_flag=True, help="Create an example workspace to try depdrift instantly")
def init(force: bool, demo: bool) -> None:
    """
    Initialize depdrift in the current directory.

    If --demo is used, a sample workspace with an installed node_modules
    tree is created in ./depdrift-demo and initialized automatically.
    """
    console.print(Panel.fit("🚀 [bold blue]depdrift Initialization[/bold blue]", border_style="blue"))

    if demo:
        console.print("[cyan]Provisioning demo workspace...[/cyan]")
        manager = DemoManager(Path.cwd())
        demo_dir = manager.provision()

        console.print(f"📂 Created demo workspace at: [bold]{demo_dir}[/bold]")
        _init_project(demo_dir)

        console.print("\n[bold green]Ready to go! Try these commands:[/bold green]")
        console.print(f"1. cd {demo_dir.name}")
        console.print("2. [bold cyan]depdrift tree web[/bold cyan]")
        console.print("3. [bold cyan]depdrift diff web legacy[/bold cyan]")
        return

    root_dir = Path.cwd()
    config_file = root_dir / CONFIG_FILENAME

    if config_file.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {config_file}[/yellow]")
        if not Confirm.ask("Do you want to overwrite it?"):
            console.print("Aborted.")
            return

    _init_project(root_dir)
