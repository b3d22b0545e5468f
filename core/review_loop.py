"""
Review-Revise Controller - critiques finished renders and re-renders them.

Every job that reaches "done" is reviewed. When the review finds blocking
issues and proposes a revised plan, the job is resubmitted, at most
max_revisions times. A revision that scores below the render it replaced
is flagged as a regression; the original render stays available through
job.fallback_artifact_url.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from .errors import RevisionLimitError, SupersededJobError
from .models.edit_plan import EditPlan
from .models.render import RenderBackend, RenderJob, ReviewStatus
from .models.review import VideoReview
from .orchestrator import RenderJobOrchestrator
from .providers.base import VideoReviewer

logger = logging.getLogger(__name__)


class ReviewReviseController:
    """Reviews done renders and drives bounded automatic revisions"""

    def __init__(
        self,
        orchestrator: RenderJobOrchestrator,
        reviewer: VideoReviewer,
        auto_revise: bool = True,
    ):
        """
        Args:
            orchestrator: Orchestrator whose done jobs get reviewed
            reviewer: Produces the critique and revised plan
            auto_revise: Resubmit automatically when a review warrants it
        """
        self.orchestrator = orchestrator
        self.reviewer = reviewer
        self.auto_revise = auto_revise
        self._reviews: Dict[Tuple[str, RenderBackend], Tuple[RenderJob, asyncio.Task]] = {}

        orchestrator.add_listener(self._on_done)
        orchestrator.add_replace_listener(self._on_replaced)

    @property
    def max_revisions(self) -> int:
        return self.orchestrator.max_revisions

    def _review_for(self, job: RenderJob) -> Optional[asyncio.Task]:
        entry = self._reviews.get(job.key)
        if entry is None or entry[0] is not job:
            return None
        return entry[1]

    async def _on_done(self, job: RenderJob):
        self._reviews[job.key] = (job, asyncio.create_task(self.review(job)))

    async def _on_replaced(self, job: RenderJob):
        task = self._review_for(job)
        if task is None:
            return
        del self._reviews[job.key]
        if task.done() or task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.wait({task})
        if job.review_status == ReviewStatus.REVIEWING:
            job.review_status = ReviewStatus.IDLE
        logger.info(f"Dropped review of replaced {job.platform}/{job.backend.value} record")

    async def review(self, job: RenderJob) -> Optional[VideoReview]:
        """
        Review a done job and revise it if eligible.

        A failed review leaves the render done and is recorded on the job.
        Records replaced by a fresh submit are reviewed but never revised.
        """
        artifact_url = job.artifact_url
        job.review_status = ReviewStatus.REVIEWING
        logger.info(f"Reviewing {job.platform}/{job.backend.value} render (revision {job.revision_count})")

        try:
            outcome = await self.reviewer.review(artifact_url, job.platform, job.mode, job.used_plan)
        except Exception as e:
            job.review_status = ReviewStatus.FAILED
            job.review_error = str(e)
            logger.warning(f"Review of {job.platform}/{job.backend.value} failed: {e}")
            return None

        if job.artifact_url != artifact_url:
            logger.debug(f"Discarding stale review of {artifact_url}")
            return None

        review = outcome.review
        job.review = review
        job.revised_plan = outcome.revised_plan
        job.review_status = ReviewStatus.DONE

        previous = job.last_previous_score
        job.regressed = (
            job.revision_count > 0
            and previous is not None
            and review.overall_score < previous
        )
        if job.regressed:
            logger.warning(
                f"Revision {job.revision_count} of {job.platform} regressed: "
                f"{previous} -> {review.overall_score}. "
                f"Original render: {job.original_artifact_url}"
            )

        logger.info(
            f"Review {job.platform}: overall={review.overall_score}/10, "
            f"{len(review.issues)} issues ({review.critical_count} critical)"
        )

        if self.auto_revise and self.can_revise(job):
            try:
                await self.revise(job)
            except (RevisionLimitError, SupersededJobError) as e:
                logger.info(str(e))
        return review

    def can_revise(self, job: RenderJob) -> bool:
        """True when there is a revised plan, a blocking issue, and revisions left"""
        return (
            job.revised_plan is not None
            and job.review is not None
            and job.review.has_blocking_issues
            and job.revision_count < self.max_revisions
        )

    async def revise(self, job: RenderJob, plan: Optional[EditPlan] = None) -> RenderJob:
        """
        Resubmit a job with its revised plan (or an explicit one).

        Raises:
            SupersededJobError: If a fresh submit has replaced this record
            RevisionLimitError: If the job is at the revision cap
            ValueError: If there is no plan to render
        """
        if not self.orchestrator.is_current(job):
            raise SupersededJobError(
                f"{job.platform}/{job.backend.value} record was replaced by a newer submit"
            )
        if job.revision_count >= self.max_revisions:
            raise RevisionLimitError(
                f"{job.platform} has reached the revision limit ({self.max_revisions})"
            )
        plan = plan or job.revised_plan
        if plan is None:
            raise ValueError(f"No revised plan available for {job.platform}")
        return await self.orchestrator.resubmit(job, plan)

    async def wait(self, job: RenderJob) -> RenderJob:
        """Wait for rendering, review and any chained revisions to settle"""
        while True:
            await self.orchestrator.wait(job)
            task = self._review_for(job)
            if task is None:
                return job
            await asyncio.wait({task})
            if self._review_for(job) is task and job.is_terminal:
                return job

    async def wait_all(self) -> List[RenderJob]:
        for job in self.orchestrator.jobs:
            await self.wait(job)
        return self.orchestrator.jobs

    async def close(self):
        tasks = [task for _, task in self._reviews.values()]
        for task in tasks:
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.wait(tasks)
        await self.reviewer.close()
