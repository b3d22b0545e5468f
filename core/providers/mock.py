"""Mock render and review providers for running without API keys"""

import asyncio
from dataclasses import replace
from typing import Dict, List, Optional

from core.models.edit_plan import EditPlan
from core.models.render import PlatformSpec, RenderStatus, StatusReport, SubmitResult
from core.models.review import IssueSeverity, ReviewIssue, ReviewOutcome, StoryArc, VideoReview
from .base import CloudRenderer, VideoReviewer


class MockCloudRenderer(CloudRenderer):
    """
    Mock cloud renderer that walks each job through the Shotstack lifecycle.

    Every status() call advances the job one step:
    queued -> fetching -> rendering -> saving -> done.

    Used for:
    - Testing without API keys
    - Development without incurring render costs
    """

    LIFECYCLE = [
        RenderStatus.QUEUED,
        RenderStatus.FETCHING,
        RenderStatus.RENDERING,
        RenderStatus.SAVING,
        RenderStatus.DONE,
    ]

    def __init__(self, delay: float = 0.05, fail_platforms: Optional[List[str]] = None):
        """
        Args:
            delay: Simulated API latency per call
            fail_platforms: Platforms whose renders end in "failed"
        """
        self.delay = delay
        self.fail_platforms = set(fail_platforms or [])
        self.submit_count = 0
        self.jobs: Dict[str, Dict] = {}

    @property
    def name(self) -> str:
        return "mock"

    async def submit(self, plan: EditPlan, platform: PlatformSpec, mode: str) -> SubmitResult:
        await asyncio.sleep(self.delay)
        self.submit_count += 1
        handle = f"mock_render_{self.submit_count}"
        self.jobs[handle] = {
            "step": 0,
            "platform": platform.name,
            "mode": mode,
            "clip_count": plan.clip_count,
        }
        return SubmitResult(job_handle=handle)

    async def status(self, job_handle: str) -> StatusReport:
        await asyncio.sleep(self.delay)
        job = self.jobs.get(job_handle)
        if job is None:
            return StatusReport(status=RenderStatus.FAILED, error=f"Render {job_handle} not found")

        step = min(job["step"], len(self.LIFECYCLE) - 1)
        job["step"] += 1
        status = self.LIFECYCLE[step]

        if status == RenderStatus.DONE:
            if job["platform"] in self.fail_platforms:
                return StatusReport(status=RenderStatus.FAILED, error="Mock render failure")
            return StatusReport(
                status=RenderStatus.DONE,
                artifact_url=f"https://mock-cdn.example.com/renders/{job_handle}.mp4",
            )
        return StatusReport(status=status)

    def reset(self):
        """Reset mock state (useful for testing)"""
        self.submit_count = 0
        self.jobs.clear()


class MockReviewer(VideoReviewer):
    """
    Mock reviewer with a scripted score sequence.

    The first review finds a pacing problem and proposes a tightened plan;
    later reviews report the problem fixed. Scores come from `scores`, one
    per call, repeating the last one when exhausted.
    """

    def __init__(self, scores: Optional[List[float]] = None, delay: float = 0.05):
        self.scores = list(scores or [4.0, 7.0])
        self.delay = delay
        self.calls: List[Dict] = []

    def _next_score(self) -> float:
        index = min(len(self.calls), len(self.scores) - 1)
        return self.scores[index]

    async def review(
        self,
        artifact_url: str,
        platform: str,
        mode: str,
        plan: Optional[EditPlan],
    ) -> ReviewOutcome:
        await asyncio.sleep(self.delay)
        score = self._next_score()
        self.calls.append({"artifact_url": artifact_url, "platform": platform, "mode": mode})

        if score >= 7.0:
            review = VideoReview(
                overall_score=score,
                storytelling_score=score,
                pacing_score=score,
                platform_fit_score=score,
                story_arc=StoryArc.CLEAR,
                hook_effectiveness="Strong opening shot",
                ending_quality="Ends on the celebration",
                strengths=["Tight pacing", "Clear story arc"],
                summary="Solid cut, ready to post.",
            )
            return ReviewOutcome(review=review)

        review = VideoReview(
            overall_score=score,
            storytelling_score=score,
            pacing_score=max(score - 1, 0),
            platform_fit_score=score,
            story_arc=StoryArc.WEAK,
            hook_effectiveness="Slow first two seconds",
            ending_quality="Ends abruptly",
            issues=[
                ReviewIssue(
                    severity=IssueSeverity.CRITICAL,
                    category="pacing",
                    description="Opening clip runs too long before any action",
                    fix="Trim the opening clip and lead with the highlight",
                    timestamp="0:00-0:04",
                ),
            ],
            strengths=["Good clip selection"],
            summary="Pacing drags; tighten the opening.",
        )

        revised = None
        if plan is not None and plan.clips:
            first = plan.clips[0]
            tightened = [replace(first, duration=max(first.duration / 2, 1.0))]
            revised = plan.revised(
                clips=tightened + list(plan.clips[1:]),
                revision_notes="Trimmed the opening clip",
            )
        return ReviewOutcome(review=review, revised_plan=revised)
