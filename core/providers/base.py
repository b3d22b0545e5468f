"""Abstract base classes for provider interfaces"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any
from enum import Enum

from core.models.edit_plan import EditPlan
from core.models.render import PlatformSpec, SubmitResult, StatusReport, LibraryRecord
from core.models.review import ReviewOutcome


class ProviderType(Enum):
    """Available provider types"""
    MOCK = "mock"
    SHOTSTACK = "shotstack"
    FFMPEG = "ffmpeg"
    CLAUDE = "claude"
    HTTP = "http"


def _mask_secret(value: Optional[str]) -> str:
    """Mask a secret value for safe display in logs/repr."""
    if value is None:
        return "None"
    if len(value) <= 8:
        return "'***'"
    return f"'{value[:4]}...{value[-4:]}'"


@dataclass
class ProviderConfig:
    """Configuration shared by the HTTP-backed providers"""
    provider_type: ProviderType
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 30.0  # seconds per request
    extra_params: Dict[str, Any] = None

    def __post_init__(self):
        if self.extra_params is None:
            self.extra_params = {}

    def __repr__(self) -> str:
        """Safe repr that masks API key to prevent accidental exposure in logs."""
        return (
            f"ProviderConfig(provider_type={self.provider_type}, "
            f"api_key={_mask_secret(self.api_key)}, "
            f"base_url={self.base_url!r}, timeout={self.timeout})"
        )


class SourceFetcher(ABC):
    """Downloads a source clip to local disk."""

    @abstractmethod
    async def fetch(self, source_id: str, dest_path: str) -> str:
        """
        Download a source clip.

        Args:
            source_id: Source identifier (e.g. Drive file ID)
            dest_path: Local path to write

        Returns:
            The local path written

        Raises:
            DownloadError: If the fetch fails
        """
        pass

    async def close(self):
        pass


class CloudRenderer(ABC):
    """
    Asynchronous render service.

    submit() returns a job handle to poll, or an artifact URL when the
    service finished immediately.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def submit(self, plan: EditPlan, platform: PlatformSpec, mode: str) -> SubmitResult:
        """
        Submit a render.

        Raises:
            SubmissionError: If the service rejects the job
        """
        pass

    @abstractmethod
    async def status(self, job_handle: str) -> StatusReport:
        """Check a submitted render. Network errors propagate to the caller."""
        pass

    async def close(self):
        pass


class LocalRenderer(ABC):
    """Synchronous render on this machine."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def render(self, plan: EditPlan, platform: PlatformSpec, mode: str) -> str:
        """
        Render to a local file.

        Returns:
            Path of the rendered file

        Raises:
            TranscodeError: If the render fails
        """
        pass


class VideoReviewer(ABC):
    """Critiques a rendered video and may propose a revised plan."""

    @abstractmethod
    async def review(
        self,
        artifact_url: str,
        platform: str,
        mode: str,
        plan: Optional[EditPlan],
    ) -> ReviewOutcome:
        """
        Review a render.

        Args:
            artifact_url: Where the rendered video lives
            platform: Target platform
            mode: Editing mode
            plan: The exact plan that produced the render

        Raises:
            ReviewError: If the review cannot be produced
        """
        pass

    async def close(self):
        pass


class VideoLibrary(ABC):
    """Stores metadata about finished renders."""

    @abstractmethod
    async def save(self, record: LibraryRecord) -> None:
        pass
