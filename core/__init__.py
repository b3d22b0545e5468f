"""Core components - preprocessing, render orchestration, review loop"""

from .config import Settings
from .errors import (
    StudioError,
    DownloadError,
    TranscodeError,
    SubmissionError,
    PollTimeoutError,
    RenderFailedError,
    ReviewError,
    RevisionLimitError,
)
from .filters import build_video_filter, build_audio_filter, atempo_stages

# Note: the orchestrator, review loop and factory are NOT imported here to avoid circular imports
# Import them directly: from core.orchestrator import RenderJobOrchestrator

__all__ = [
    # Config
    "Settings",

    # Errors
    "StudioError",
    "DownloadError",
    "TranscodeError",
    "SubmissionError",
    "PollTimeoutError",
    "RenderFailedError",
    "ReviewError",
    "RevisionLimitError",

    # Filters
    "build_video_filter",
    "build_audio_filter",
    "atempo_stages",
]
