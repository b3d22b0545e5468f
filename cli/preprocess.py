"""Preprocess command - download and transcode clips ahead of rendering"""

import asyncio
import json
from pathlib import Path
from typing import List

import click
from rich.console import Console
from rich.table import Table
from rich import box

from core.config import Settings
from core.errors import StudioError
from core.models.clip import ClipConfig, PreprocessedClip
from core.provider_config import create_batch_preprocessor

console = Console()


def load_clip_configs(path: Path) -> List[ClipConfig]:
    """Load clip configs from a JSON list or a plan with a "clips" key"""
    with open(path) as f:
        data = json.load(f)
    entries = data.get("clips", []) if isinstance(data, dict) else data
    return [ClipConfig.from_dict(entry) for entry in entries]


async def _preprocess(settings: Settings, configs: List[ClipConfig]) -> List[PreprocessedClip]:
    batch = create_batch_preprocessor(settings)
    try:
        return await batch.preprocess_all(configs)
    finally:
        await batch.preprocessor.fetcher.close()


@click.command()
@click.argument("clips_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--temp-dir", type=click.Path(file_okay=False), help="Where processed files are written")
@click.option("--timeout", type=float, help="Seconds allowed per FFmpeg run")
@click.option("--manifest", "-m", type=click.Path(dir_okay=False), help="Write processed clip info as JSON")
def preprocess_cmd(clips_file: Path, temp_dir: str, timeout: float, manifest: str):
    """
    Download, trim, sharpen and speed-ramp clips with FFmpeg.

    CLIPS_FILE is JSON: a list of clip entries, or an edit plan with "clips".
    Each entry needs fileId (or source_id); trimStart, duration, speed and
    sharpen are optional.

    Examples:

        reel-studio preprocess clips.json

        reel-studio preprocess plan.json --manifest processed.json
    """
    settings = Settings()
    overrides = {}
    if temp_dir:
        overrides["temp_dir"] = temp_dir
    if timeout:
        overrides["transcode_timeout"] = timeout
    if overrides:
        settings = settings.model_copy(update=overrides)

    try:
        configs = load_clip_configs(clips_file)
    except (ValueError, KeyError) as e:
        raise click.ClickException(f"Invalid clips file: {e}")
    if not configs:
        raise click.ClickException("No clips found")

    console.print(f"[bold]Pre-processing {len(configs)} clips[/bold]")
    try:
        clips = asyncio.run(_preprocess(settings, configs))
    except StudioError as e:
        raise click.ClickException(str(e))

    table = Table(title="Processed Clips", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Source", style="cyan")
    table.add_column("Speed", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Path")

    for i, clip in enumerate(clips, 1):
        table.add_row(
            str(i),
            clip.source_id,
            f"{clip.speed}x",
            f"{clip.effective_duration:.1f}s",
            f"{clip.size_bytes / (1024 * 1024):.1f}MB",
            clip.local_path,
        )
    console.print(table)

    if manifest:
        with open(manifest, "w") as f:
            json.dump(
                [
                    {
                        "processedId": c.processed_id,
                        "fileId": c.source_id,
                        "src": c.local_path,
                        "trimStart": 0,
                        "duration": c.effective_duration,
                        "speed": 1.0,
                        "appliedSpeed": c.speed,
                    }
                    for c in clips
                ],
                f,
                indent=2,
            )
        console.print(f"[green]Manifest written to {manifest}[/green]")
