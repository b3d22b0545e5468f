"""
Render models for platform-specific output

These models represent render jobs across the cloud and local backends,
their lifecycle states, and the per-platform output settings.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .edit_plan import EditPlan
from .review import VideoReview


class RenderBackend(Enum):
    """Where a render runs"""
    CLOUD = "cloud"
    LOCAL = "local"


class RenderStatus(Enum):
    """Lifecycle of a render job"""
    PENDING = "pending"
    SUBMITTING = "submitting"
    QUEUED = "queued"
    FETCHING = "fetching"
    RENDERING = "rendering"
    SAVING = "saving"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RenderStatus.DONE, RenderStatus.FAILED)


class ReviewStatus(Enum):
    IDLE = "idle"
    REVIEWING = "reviewing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PlatformSpec:
    """Output settings for one publishing platform"""
    name: str
    width: int
    height: int
    max_duration: float
    aspect_ratio: str


PLATFORM_SETTINGS: Dict[str, PlatformSpec] = {
    "tiktok": PlatformSpec("tiktok", 1080, 1920, 60, "9:16"),
    "ig_reels": PlatformSpec("ig_reels", 1080, 1920, 90, "9:16"),
    "ig_feed": PlatformSpec("ig_feed", 1080, 1080, 60, "1:1"),
    "youtube": PlatformSpec("youtube", 1920, 1080, 600, "16:9"),
    "facebook": PlatformSpec("facebook", 1920, 1080, 240, "16:9"),
    "linkedin": PlatformSpec("linkedin", 1920, 1080, 120, "16:9"),
}

# Hyphenated names used by older plans
PLATFORM_ALIASES = {
    "ig-reels": "ig_reels",
    "ig-feed": "ig_feed",
}


def get_platform(name: str) -> PlatformSpec:
    """Look up platform settings, raising ValueError for unknown platforms"""
    key = PLATFORM_ALIASES.get(name.lower(), name.lower())
    spec = PLATFORM_SETTINGS.get(key)
    if spec is None:
        raise ValueError(
            f"Unknown platform '{name}'. Known: {', '.join(sorted(PLATFORM_SETTINGS))}"
        )
    return spec


@dataclass
class SubmitResult:
    """Response from submitting a cloud render"""
    job_handle: Optional[str] = None
    artifact_url: Optional[str] = None


@dataclass
class StatusReport:
    """One status check of a cloud render"""
    status: RenderStatus
    artifact_url: Optional[str] = None
    error: Optional[str] = None


@dataclass
class RenderJob:
    """
    One (platform, backend) unit of work.

    The record survives revisions: a re-submission resets the result fields
    but keeps the score history and the original artifact for rollback.

    Attributes:
        platform: Target platform name
        backend: Cloud or local renderer
        status: Current lifecycle state
        job_handle: Cloud render ID, once submitted
        artifact_url: Result location once done (URL or local path)
        error: Error message once failed
        failure: Exception that failed the job
        used_plan: Plan snapshot that produced this submission
        mode: Editing mode
        revision_count: 0 for the original render
        previous_scores: Overall review scores of earlier renders
        original_artifact_url: Pre-revision artifact, kept for rollback
    """
    platform: str
    backend: RenderBackend
    status: RenderStatus = RenderStatus.PENDING
    job_handle: Optional[str] = None
    artifact_url: Optional[str] = None
    error: Optional[str] = None
    failure: Optional[Exception] = None
    used_plan: Optional[EditPlan] = None
    mode: str = "game_day"

    # Review state
    review: Optional[VideoReview] = None
    review_status: ReviewStatus = ReviewStatus.IDLE
    review_error: Optional[str] = None
    revised_plan: Optional[EditPlan] = None

    # Revision tracking
    revision_count: int = 0
    previous_scores: List[float] = field(default_factory=list)
    original_artifact_url: Optional[str] = None
    regressed: bool = False

    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def key(self) -> Tuple[str, RenderBackend]:
        return (self.platform, self.backend)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def fallback_artifact_url(self) -> Optional[str]:
        """The render to fall back to: the original if revised, else the current one"""
        return self.original_artifact_url or self.artifact_url

    @property
    def last_previous_score(self) -> Optional[float]:
        return self.previous_scores[-1] if self.previous_scores else None


@dataclass
class LibraryRecord:
    """Metadata stored for a finished render"""
    record_id: str
    created_at: str
    platform: str
    backend: str
    artifact_url: str
    mode: str
    clip_count: int
    revision_count: int = 0
    job_handle: Optional[str] = None
    plan_summary: Optional[str] = None
