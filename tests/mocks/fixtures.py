"""Test data factories and fake providers for consistent test setup"""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from core.errors import DownloadError, TranscodeError
from core.models.clip import ClipConfig
from core.models.edit_plan import EditPlan, PlanClip, TextOverlay
from core.models.render import LibraryRecord, PlatformSpec, StatusReport, SubmitResult
from core.models.review import IssueSeverity, ReviewIssue, StoryArc, VideoReview
from core.providers.base import CloudRenderer, LocalRenderer, SourceFetcher, VideoLibrary


def make_clip_config(source_id: str = "clip_a", **kwargs) -> ClipConfig:
    """Factory for ClipConfig objects"""
    defaults = {
        "source_id": source_id,
        "trim_start": 1.0,
        "duration": 4.0,
        "speed": 1.0,
        "sharpen": True,
    }
    defaults.update(kwargs)
    return ClipConfig(**defaults)


def make_plan(clip_count: int = 3, **kwargs) -> EditPlan:
    """Factory for EditPlan objects with remote clip sources"""
    clips = [
        PlanClip(
            source_id=f"clip_{i + 1}",
            src=f"https://cdn.example.com/clip_{i + 1}.mp4",
            trim_start=0.0,
            duration=4.0,
            purpose=f"shot {i + 1}",
        )
        for i in range(clip_count)
    ]
    defaults = {
        "clips": tuple(clips),
        "mode": "game_day",
        "text_overlays": (TextOverlay(text="Final Score 3-1", start=1.0, duration=3.0),),
    }
    defaults.update(kwargs)
    return EditPlan(**defaults)


def make_review(score: float = 7.0, blocking: bool = False, **kwargs) -> VideoReview:
    """Factory for VideoReview objects"""
    issues = []
    if blocking:
        issues.append(ReviewIssue(
            severity=IssueSeverity.CRITICAL,
            category="pacing",
            description="Opening drags",
            fix="Trim the first clip",
            timestamp="0-3s",
        ))
    defaults = {
        "overall_score": score,
        "storytelling_score": score,
        "pacing_score": score,
        "platform_fit_score": score,
        "story_arc": StoryArc.CLEAR,
        "issues": issues,
        "summary": "Test review",
    }
    defaults.update(kwargs)
    return VideoReview(**defaults)


class FakeFetcher(SourceFetcher):
    """Writes placeholder bytes instead of downloading; fails for listed IDs"""

    def __init__(self, fail_ids: Sequence[str] = (), error: Optional[Exception] = None):
        self.fail_ids = set(fail_ids)
        self.error = error
        self.fetched: List[str] = []
        self.closed = False

    async def fetch(self, source_id: str, dest_path: str) -> str:
        if source_id in self.fail_ids:
            raise self.error or DownloadError(f"Download of {source_id} failed: HTTP 404")
        Path(dest_path).write_bytes(b"raw video bytes")
        self.fetched.append(source_id)
        return dest_path

    async def close(self):
        self.closed = True


class ScriptedCloudRenderer(CloudRenderer):
    """
    Cloud renderer that answers status checks from a script.

    Each script entry is a StatusReport or an exception to raise; the last
    entry repeats once the script runs out.
    """

    def __init__(
        self,
        statuses: Optional[List[Union[StatusReport, Exception]]] = None,
        submit_result: Optional[SubmitResult] = None,
        submit_error: Optional[Exception] = None,
    ):
        self.statuses = list(statuses or [])
        self.submit_result = submit_result
        self.submit_error = submit_error
        self.submitted: List[Dict] = []
        self.status_calls = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "scripted"

    async def submit(self, plan: EditPlan, platform: PlatformSpec, mode: str) -> SubmitResult:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append({"plan": plan, "platform": platform.name, "mode": mode})
        if self.submit_result is not None:
            return self.submit_result
        return SubmitResult(job_handle=f"render_{len(self.submitted)}")

    async def status(self, job_handle: str) -> StatusReport:
        index = min(self.status_calls, len(self.statuses) - 1)
        self.status_calls += 1
        entry = self.statuses[index]
        if isinstance(entry, Exception):
            raise entry
        return entry

    async def close(self):
        self.closed = True


class FakeLocalRenderer(LocalRenderer):
    """Local renderer returning numbered output paths, or raising"""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.renders: List[Dict] = []

    @property
    def name(self) -> str:
        return "fake-ffmpeg"

    async def render(self, plan: EditPlan, platform: PlatformSpec, mode: str) -> str:
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        self.renders.append({"plan": plan, "platform": platform.name, "mode": mode})
        return f"/renders/render_{platform.name}_{len(self.renders)}.mp4"


class RecordingLibrary(VideoLibrary):
    """Keeps saved records in memory, or fails every save"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.records: List[LibraryRecord] = []

    async def save(self, record: LibraryRecord) -> None:
        if self.fail:
            raise OSError("disk full")
        self.records.append(record)


def fake_ffmpeg(size: int = 2048, error: Optional[BaseException] = None, write: bool = True):
    """
    Stand-in for run_ffmpeg that writes the output file (last argument).

    With error set, a partial output is written before raising.
    """
    calls: List[List[str]] = []

    async def run(cmd: List[str], timeout: float) -> str:
        calls.append(cmd)
        await asyncio.sleep(0)
        if error is not None:
            Path(cmd[-1]).write_bytes(b"partial")
            raise error
        if write:
            Path(cmd[-1]).write_bytes(b"\x00" * size)
        return ""

    run.calls = calls
    return run


def transcode_error(message: str = "FFmpeg exited with code 1: moov atom not found") -> TranscodeError:
    return TranscodeError(message, returncode=1, stderr="moov atom not found")
