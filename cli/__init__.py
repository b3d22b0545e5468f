"""Reel Studio CLI"""

import logging

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .filters import filters_cmd
from .platforms import platforms_cmd
from .preprocess import preprocess_cmd
from .providers import providers_cmd
from .render import render_cmd

# Load .env file at CLI startup
load_dotenv()

console = Console()


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """Reel Studio - preprocess clips, render per platform, review and revise

    \b
    Quick Start:
      reel-studio preprocess clips.json
      reel-studio render plan.json -p tiktok -p youtube --mock
      reel-studio render plan.json -p tiktok --live --backend local

    \b
    Commands:
      filters     Show the FFmpeg filter chains for a clip
      preprocess  Download and transcode clips
      render      Render an edit plan, then review and revise it
      platforms   List platform output settings
      providers   List providers and their API key status
    """
    setup_logging(verbose)


main.add_command(filters_cmd, name="filters")
main.add_command(preprocess_cmd, name="preprocess")
main.add_command(render_cmd, name="render")
main.add_command(platforms_cmd, name="platforms")
main.add_command(providers_cmd, name="providers")


if __name__ == "__main__":
    main()
