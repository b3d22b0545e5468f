"""Provider commands"""

import json
import os

import click
from rich.console import Console
from rich.table import Table
from rich import box

from core.providers import PROVIDER_REGISTRY, get_provider_info

console = Console()


def _key_set(info: dict) -> bool:
    env = info.get("api_key_env")
    return env is None or bool(os.getenv(env))


@click.group()
def providers_cmd():
    """Provider information"""
    pass


@providers_cmd.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(as_json: bool):
    """List all providers with their API key status"""
    providers = [dict(info, api_key_set=_key_set(info)) for info in PROVIDER_REGISTRY.values()]

    if as_json:
        click.echo(json.dumps(providers, indent=2))
        return

    table = Table(title="Providers", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("API Key")

    for p in providers:
        if p["api_key_env"] is None:
            key_status = "[dim]not needed[/dim]"
        elif p["api_key_set"]:
            key_status = f"[green]✓[/green] {p['api_key_env']}"
        else:
            key_status = f"[yellow]missing[/yellow] {p['api_key_env']}"
        table.add_row(p["name"], p["category"], key_status)

    console.print(table)


@providers_cmd.command()
@click.argument("name")
def check(name: str):
    """Show details of a specific provider"""
    try:
        info = get_provider_info(name)
    except KeyError:
        raise click.ClickException(f"Provider '{name}' not found")

    console.print(f"\n[bold cyan]{info['name']}[/bold cyan]")
    console.print(f"Category: {info['category']}")
    console.print(f"Class: {info['module']}.{info['class']}")
    console.print(f"API Key Env: {info['api_key_env'] or '-'}")
    console.print(f"API Key Set: {'Yes' if _key_set(info) else 'No'}")
    console.print("Features:")
    for feature in info["features"]:
        console.print(f"  • {feature}")
