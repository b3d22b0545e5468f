"""Error taxonomy for preprocessing, rendering and review"""

from typing import Optional


class StudioError(Exception):
    """Base class for all pipeline errors."""
    pass


class DownloadError(StudioError):
    """Raised when a source clip cannot be fetched."""
    pass


class TranscodeError(StudioError):
    """Raised when FFmpeg exits non-zero, times out, or produces no output."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class SubmissionError(StudioError):
    """Raised when a render backend rejects a job."""
    pass


class PollTimeoutError(StudioError):
    """Raised when polling a cloud render exhausts its attempt budget."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class RenderFailedError(StudioError):
    """Raised when the cloud backend itself reports a failed render."""
    pass


class ReviewError(StudioError):
    """Raised when the reviewer call fails."""
    pass


class RevisionLimitError(StudioError):
    """Raised when a revision is requested past the revision cap."""
    pass


class SupersededJobError(StudioError):
    """Raised when acting on a job record that a fresh submit has replaced."""
    pass
