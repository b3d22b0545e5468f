"""Filters command - show the FFmpeg filter chains for a clip transform"""

import click
from rich.console import Console
from rich.table import Table
from rich import box

from core.filters import atempo_stages, build_audio_filter, build_video_filter
from core.models.clip import ClipConfig

console = Console()


@click.command()
@click.option("--speed", "-s", type=float, default=1.0, help="Speed multiplier (0.5 = slow-mo)")
@click.option("--duration", "-d", type=float, default=4.0, help="Seconds of source footage")
@click.option("--no-sharpen", is_flag=True, help="Skip the sharpening filter")
def filters_cmd(speed: float, duration: float, no_sharpen: bool):
    """
    Show the video and audio filter chains for a speed/sharpen setting.

    Examples:

        reel-studio filters --speed 0.5

        reel-studio filters --speed 4 --no-sharpen
    """
    try:
        config = ClipConfig(source_id="preview", duration=duration, speed=speed, sharpen=not no_sharpen)
    except ValueError as e:
        raise click.BadParameter(str(e))

    table = Table(title="Filter Chains", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Video (-vf)", build_video_filter(config) or "[dim](none)[/dim]")
    table.add_row("Audio (-af)", build_audio_filter(speed) or "[dim](none)[/dim]")
    table.add_row("atempo stages", ", ".join(f"{s:.4f}" for s in atempo_stages(speed)) or "[dim](none)[/dim]")
    table.add_row("Effective duration", f"{config.effective_duration:.2f}s")

    console.print(table)
