"""Render backends"""

from .ffmpeg import FFmpegLocalRenderer
from .shotstack import ShotstackRenderer, build_timeline

__all__ = [
    "FFmpegLocalRenderer",
    "ShotstackRenderer",
    "build_timeline",
]
