"""Render command - render an edit plan per platform, then review and revise"""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table
from rich import box

from core.config import Settings
from core.models.edit_plan import EditPlan
from core.models.render import PLATFORM_SETTINGS, RenderJob, RenderStatus, get_platform
from core.provider_config import ProviderFactory, create_pipeline

console = Console()

# Mock renders need several status ticks; keep offline runs quick
MOCK_POLL_INTERVAL = 0.2


def load_plan(path: Path) -> EditPlan:
    with open(path) as f:
        return EditPlan.from_dict(json.load(f))


async def _render(
    settings: Settings,
    plan: EditPlan,
    platforms: List[str],
    backend: str,
    mode: str,
    review: bool,
) -> List[RenderJob]:
    providers = ProviderFactory.create_all(settings)
    orchestrator, controller = create_pipeline(settings, providers, review=review)

    try:
        jobs = await asyncio.gather(*(
            orchestrator.submit(plan, platform, backend, mode) for platform in platforms
        ))
        if controller is not None:
            for job in jobs:
                await controller.wait(job)
        else:
            await orchestrator.wait_all()
        await orchestrator.flush()
        # Revisions keep the same record, so the list still points at the final state
        return list(jobs)
    finally:
        await orchestrator.close()
        if controller is not None:
            await controller.close()
        await providers.fetcher.close()


def _score_text(job: RenderJob) -> str:
    if job.review is None:
        return f"[dim]{job.review_status.value}[/dim]"
    history = " → ".join(f"{s:g}" for s in job.previous_scores + [job.review.overall_score])
    style = "red" if job.regressed else "green"
    return f"[{style}]{history}[/{style}]"


def print_results(jobs: List[RenderJob]):
    table = Table(title="Render Results", box=box.ROUNDED)
    table.add_column("Platform", style="cyan")
    table.add_column("Backend")
    table.add_column("Status")
    table.add_column("Scores")
    table.add_column("Revisions", justify="right")
    table.add_column("Artifact")

    for job in jobs:
        status_style = "green" if job.status == RenderStatus.DONE else "red"
        table.add_row(
            job.platform,
            job.backend.value,
            f"[{status_style}]{job.status.value}[/{status_style}]",
            _score_text(job),
            str(job.revision_count),
            job.artifact_url or job.error or "",
        )
    console.print(table)

    for job in jobs:
        if job.regressed:
            console.print(
                f"[yellow]⚠ {job.platform}: revision scored lower than the previous render. "
                f"Original: {job.fallback_artifact_url}[/yellow]"
            )
        if job.review_error:
            console.print(f"[yellow]⚠ {job.platform}: review failed: {job.review_error}[/yellow]")
        if job.review and job.review.summary:
            console.print(f"[dim]{job.platform}: {job.review.summary}[/dim]")


@click.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--platform", "-p", "platforms", multiple=True, default=("tiktok",),
    help=f"Target platform, repeatable ({', '.join(PLATFORM_SETTINGS)})",
)
@click.option("--backend", "-b", type=click.Choice(["cloud", "local"]), default="cloud")
@click.option("--mode", type=click.Choice(["game_day", "our_story", "quick_hit", "showcase"]),
              help="Editing mode (default: the plan's mode)")
@click.option("--mock/--live", default=True, help="Mock providers (default) or live APIs")
@click.option("--no-review", is_flag=True, help="Skip the automatic review")
@click.option("--no-revise", is_flag=True, help="Review but never resubmit")
@click.option("--poll-interval", type=float, help="Seconds between cloud status checks")
def render_cmd(
    plan_file: Path,
    platforms: tuple,
    backend: str,
    mode: Optional[str],
    mock: bool,
    no_review: bool,
    no_revise: bool,
    poll_interval: Optional[float],
):
    """
    Render an edit plan for one or more platforms.

    PLAN_FILE is an edit plan JSON (clips with fileId/src, trimStart,
    duration, speed; optional textOverlays and musicUrl).

    Examples:

        # Offline run with mock render and review
        reel-studio render plan.json -p tiktok -p youtube

        # Shotstack + Claude review
        reel-studio render plan.json -p ig_reels --live

        # Local FFmpeg render, no review
        reel-studio render plan.json -p youtube --backend local --no-review
    """
    for name in platforms:
        try:
            get_platform(name)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--platform")

    try:
        plan = load_plan(plan_file)
    except (ValueError, KeyError) as e:
        raise click.ClickException(f"Invalid edit plan: {e}")
    if not plan.clips:
        raise click.ClickException("Edit plan has no clips")

    overrides = {"provider_mode": "mock" if mock else "live"}
    if no_revise:
        overrides["auto_revise"] = False
    if poll_interval is not None:
        overrides["poll_interval"] = poll_interval
    elif mock:
        overrides["poll_interval"] = MOCK_POLL_INTERVAL
    settings = Settings().model_copy(update=overrides)

    render_mode = mode or plan.mode
    console.print(
        f"[bold]Rendering {plan.clip_count} clips[/bold] → {', '.join(platforms)} "
        f"({backend}, {render_mode}, {'mock' if mock else 'live'})"
    )

    jobs = asyncio.run(_render(settings, plan, list(platforms), backend, render_mode, not no_review))
    print_results(jobs)

    failed = [j for j in jobs if j.status == RenderStatus.FAILED]
    if failed:
        raise click.ClickException(f"{len(failed)} of {len(jobs)} renders failed")
