"""Platforms command"""

import click
from rich.console import Console
from rich.table import Table
from rich import box

from core.models.render import PLATFORM_SETTINGS

console = Console()


@click.command()
def platforms_cmd():
    """List target platforms and their output settings"""
    table = Table(title="Platforms", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Size")
    table.add_column("Aspect")
    table.add_column("Max Duration", justify="right")

    for spec in PLATFORM_SETTINGS.values():
        table.add_row(
            spec.name,
            f"{spec.width}x{spec.height}",
            spec.aspect_ratio,
            f"{spec.max_duration:.0f}s",
        )

    console.print(table)
