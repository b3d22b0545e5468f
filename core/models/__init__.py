"""Data models for Reel Studio"""

from .clip import ClipConfig, PreprocessedClip
from .edit_plan import PlanClip, TextOverlay, EditPlan
from .review import (
    IssueSeverity,
    StoryArc,
    ReviewIssue,
    VideoReview,
    ReviewOutcome,
)
from .render import (
    RenderBackend,
    RenderStatus,
    ReviewStatus,
    PlatformSpec,
    PLATFORM_SETTINGS,
    get_platform,
    SubmitResult,
    StatusReport,
    RenderJob,
    LibraryRecord,
)

__all__ = [
    # Clip models
    "ClipConfig",
    "PreprocessedClip",
    # Edit plan models
    "PlanClip",
    "TextOverlay",
    "EditPlan",
    # Review models
    "IssueSeverity",
    "StoryArc",
    "ReviewIssue",
    "VideoReview",
    "ReviewOutcome",
    # Render models
    "RenderBackend",
    "RenderStatus",
    "ReviewStatus",
    "PlatformSpec",
    "PLATFORM_SETTINGS",
    "get_platform",
    "SubmitResult",
    "StatusReport",
    "RenderJob",
    "LibraryRecord",
]
