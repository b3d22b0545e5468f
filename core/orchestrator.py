"""
Render Job Orchestrator - submits, polls and reconciles renders per platform.

One job record exists per (platform, backend) pair:
    local:  pending -> submitting -> done | failed
    cloud:  pending -> submitting -> queued -> fetching -> rendering -> saving -> done
            (failed from any intermediate state)

Each cloud job polls in its own asyncio task. Jobs never share a lock, so
different platforms render concurrently and one job's failure never touches
another's record.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple, Union

from .config import Settings
from .errors import (
    PollTimeoutError,
    RenderFailedError,
    RevisionLimitError,
    StudioError,
    SubmissionError,
    SupersededJobError,
    TranscodeError,
)
from .models.edit_plan import EditPlan
from .models.render import (
    LibraryRecord,
    PlatformSpec,
    RenderBackend,
    RenderJob,
    RenderStatus,
    ReviewStatus,
    get_platform,
)
from .providers.base import CloudRenderer, LocalRenderer, VideoLibrary

logger = logging.getLogger(__name__)

DoneListener = Callable[[RenderJob], Awaitable[None]]

MAX_REVISIONS_LIMIT = 2


class RenderJobOrchestrator:
    """
    Drives render jobs across the cloud and local backends.

    Done listeners are awaited whenever a job reaches "done" with an
    artifact. Library persistence runs in the background and never blocks
    or fails a render.
    """

    def __init__(
        self,
        cloud: Optional[CloudRenderer] = None,
        local: Optional[LocalRenderer] = None,
        library: Optional[VideoLibrary] = None,
        poll_interval: float = 5.0,
        max_poll_attempts: int = 120,
        max_revisions: int = MAX_REVISIONS_LIMIT,
    ):
        """
        Args:
            cloud: Asynchronous render service
            local: Local FFmpeg renderer
            library: Where finished renders are recorded
            poll_interval: Seconds between status checks
            max_poll_attempts: Status checks before giving up
            max_revisions: Re-submissions allowed per job (0-2)
        """
        if max_poll_attempts < 1:
            raise ValueError("max_poll_attempts must be at least 1")
        if not 0 <= max_revisions <= MAX_REVISIONS_LIMIT:
            raise ValueError(f"max_revisions must be between 0 and {MAX_REVISIONS_LIMIT}")

        self.cloud = cloud
        self.local = local
        self.library = library
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.max_revisions = max_revisions

        self._jobs: Dict[Tuple[str, RenderBackend], RenderJob] = {}
        # Pollers are owned by the record they poll, not just its key
        self._pollers: Dict[Tuple[str, RenderBackend], Tuple[RenderJob, asyncio.Task]] = {}
        self._listeners: List[DoneListener] = []
        self._replace_listeners: List[DoneListener] = []
        self._background: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cloud: Optional[CloudRenderer] = None,
        local: Optional[LocalRenderer] = None,
        library: Optional[VideoLibrary] = None,
    ) -> "RenderJobOrchestrator":
        return cls(
            cloud=cloud,
            local=local,
            library=library,
            poll_interval=settings.poll_interval,
            max_poll_attempts=settings.poll_max_attempts,
            max_revisions=settings.max_revisions,
        )

    # ==================== JOB RECORDS ====================

    def add_listener(self, callback: DoneListener):
        """Register an async callback for jobs reaching "done" with an artifact"""
        self._listeners.append(callback)

    def add_replace_listener(self, callback: DoneListener):
        """Register an async callback for records replaced by a fresh submit"""
        self._replace_listeners.append(callback)

    def is_current(self, job: RenderJob) -> bool:
        """True while `job` is the record tracked for its (platform, backend)"""
        return self._jobs.get(job.key) is job

    def get(self, platform: str, backend: Union[RenderBackend, str]) -> Optional[RenderJob]:
        key = (get_platform(platform).name, RenderBackend(backend))
        return self._jobs.get(key)

    @property
    def jobs(self) -> List[RenderJob]:
        return list(self._jobs.values())

    # ==================== SUBMISSION ====================

    async def submit(
        self,
        plan: EditPlan,
        platform: str,
        backend: Union[RenderBackend, str] = RenderBackend.CLOUD,
        mode: str = "game_day",
    ) -> RenderJob:
        """
        Start a fresh render for (platform, backend).

        A previous record for the same pair is replaced: its polling is
        stopped and replace listeners are told so they can drop work still
        running on it. Backend failures are recorded on the returned job.

        Raises:
            ValueError: If the platform or backend is unknown
        """
        spec = get_platform(platform)
        backend = RenderBackend(backend)

        key = (spec.name, backend)
        job = RenderJob(platform=spec.name, backend=backend, mode=mode, used_plan=plan)
        previous = self._jobs.get(key)
        self._jobs[key] = job

        if previous is not None:
            await self._stop_polling(previous)
            for listener in list(self._replace_listeners):
                try:
                    await listener(previous)
                except Exception:
                    logger.exception(f"Replace listener failed for {spec.name}/{backend.value}")

        await self._start(job, spec)
        return job

    async def resubmit(self, job: RenderJob, plan: EditPlan) -> RenderJob:
        """
        Re-render a job with a revised plan.

        The score history and the original artifact survive; everything
        describing the previous attempt is cleared.

        Raises:
            SupersededJobError: If a fresh submit has replaced this record
            RevisionLimitError: If the job has used all its revisions
        """
        if not self.is_current(job):
            raise SupersededJobError(
                f"{job.platform}/{job.backend.value} record was replaced by a newer submit"
            )
        if job.revision_count >= self.max_revisions:
            raise RevisionLimitError(
                f"{job.platform}/{job.backend.value} already revised "
                f"{job.revision_count} times (max {self.max_revisions})"
            )

        spec = get_platform(job.platform)
        await self._stop_polling(job)

        if job.review is not None:
            job.previous_scores.append(job.review.overall_score)
        elif job.artifact_url is not None:
            logger.warning(
                f"Resubmitting {job.platform}/{job.backend.value} without a review of "
                f"{job.artifact_url}; the next score is compared with an older render"
            )
        if job.original_artifact_url is None:
            job.original_artifact_url = job.artifact_url

        job.job_handle = None
        job.artifact_url = None
        job.error = None
        job.failure = None
        job.review = None
        job.review_status = ReviewStatus.IDLE
        job.review_error = None
        job.revised_plan = None
        job.regressed = False
        job.completed_at = None

        job.used_plan = plan
        job.revision_count += 1

        logger.info(
            f"Resubmitting {job.platform}/{job.backend.value} "
            f"(revision {job.revision_count}/{self.max_revisions})"
        )
        await self._start(job, spec)
        return job

    async def _start(self, job: RenderJob, spec: PlatformSpec):
        job.status = RenderStatus.SUBMITTING
        job.submitted_at = datetime.now()

        if job.backend == RenderBackend.LOCAL:
            await self._render_local(job, spec)
        else:
            await self._submit_cloud(job, spec)

    async def _render_local(self, job: RenderJob, spec: PlatformSpec):
        if self.local is None:
            self._fail(job, SubmissionError("No local renderer configured"))
            return

        try:
            output_path = await self.local.render(job.used_plan, spec, job.mode)
        except StudioError as e:
            self._fail(job, e)
            return
        except Exception as e:
            self._fail(job, TranscodeError(f"Local render failed: {e}"))
            return

        await self._complete(job, output_path)

    async def _submit_cloud(self, job: RenderJob, spec: PlatformSpec):
        if self.cloud is None:
            self._fail(job, SubmissionError("No cloud renderer configured"))
            return

        try:
            result = await self.cloud.submit(job.used_plan, spec, job.mode)
        except SubmissionError as e:
            self._fail(job, e)
            return
        except Exception as e:
            self._fail(job, SubmissionError(f"Render submission failed: {e}"))
            return

        job.job_handle = result.job_handle
        if result.artifact_url:
            await self._complete(job, result.artifact_url)
            return
        if not result.job_handle:
            self._fail(job, SubmissionError("Render service returned neither a job handle nor a URL"))
            return

        job.status = RenderStatus.QUEUED
        logger.info(f"Render queued: {job.platform}/{job.backend.value} -> {job.job_handle}")
        self._pollers[job.key] = (job, asyncio.create_task(self.poll(job)))

    # ==================== POLLING ====================

    async def poll(self, job: RenderJob):
        """
        Poll the cloud backend until the job finishes or the attempt budget runs out.

        A failed status check is logged and retried on the next tick.
        """
        handle = job.job_handle
        for attempt in range(1, self.max_poll_attempts + 1):
            await asyncio.sleep(self.poll_interval)
            if job.job_handle != handle:
                return

            try:
                report = await self.cloud.status(handle)
            except Exception as e:
                logger.warning(f"Status check {attempt} for {handle} failed: {e}")
                continue

            if report.status == RenderStatus.DONE:
                if report.artifact_url:
                    await self._complete(job, report.artifact_url)
                else:
                    job.status = RenderStatus.DONE
                    job.completed_at = datetime.now()
                    logger.warning(f"Render {handle} reported done without a URL")
                return

            if report.status == RenderStatus.FAILED:
                self._fail(job, RenderFailedError(f"Render failed: {report.error or 'Unknown error'}"))
                return

            job.status = report.status

        self._fail(
            job,
            PollTimeoutError(
                f"Timed out waiting for render after {self.max_poll_attempts} attempts",
                attempts=self.max_poll_attempts,
            ),
        )

    def _poller_for(self, job: RenderJob) -> Optional[asyncio.Task]:
        entry = self._pollers.get(job.key)
        if entry is None or entry[0] is not job:
            return None
        return entry[1]

    async def _stop_polling(self, job: RenderJob):
        task = self._poller_for(job)
        if task is None:
            return
        del self._pollers[job.key]
        if task.done() or task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.wait({task})

    # ==================== COMPLETION ====================

    def _fail(self, job: RenderJob, error: StudioError):
        job.status = RenderStatus.FAILED
        job.error = str(error)
        job.failure = error
        job.completed_at = datetime.now()
        logger.error(f"Render {job.platform}/{job.backend.value} failed: {error}")

    async def _complete(self, job: RenderJob, artifact_url: str):
        job.status = RenderStatus.DONE
        job.artifact_url = artifact_url
        job.completed_at = datetime.now()
        logger.info(f"Render done: {job.platform}/{job.backend.value} -> {artifact_url}")

        if self.library is not None:
            self._spawn(self._save_to_library(self._library_record(job)))

        for listener in list(self._listeners):
            try:
                await listener(job)
            except Exception:
                logger.exception(f"Done listener failed for {job.platform}/{job.backend.value}")

    def _library_record(self, job: RenderJob) -> LibraryRecord:
        plan = job.used_plan
        return LibraryRecord(
            record_id=uuid.uuid4().hex[:12],
            created_at=datetime.now().isoformat(),
            platform=job.platform,
            backend=job.backend.value,
            artifact_url=job.artifact_url,
            mode=job.mode,
            clip_count=plan.clip_count if plan else 0,
            revision_count=job.revision_count,
            job_handle=job.job_handle,
            plan_summary=plan.summary() if plan else None,
        )

    async def _save_to_library(self, record: LibraryRecord):
        try:
            await self.library.save(record)
        except Exception as e:
            logger.warning(f"Library save failed for {record.platform} render: {e}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # ==================== WAITING / SHUTDOWN ====================

    async def wait(self, job: RenderJob) -> RenderJob:
        """Wait until the job's polling settles (including re-submissions started meanwhile)"""
        while True:
            task = self._poller_for(job)
            if task is None:
                return job
            await asyncio.wait({task})
            if self._poller_for(job) is task:
                return job

    async def wait_all(self) -> List[RenderJob]:
        for job in self.jobs:
            await self.wait(job)
        return self.jobs

    async def cancel(self, job: RenderJob):
        """Stop polling a job. The remote render itself may keep running."""
        await self._stop_polling(job)
        logger.info(f"Stopped polling {job.platform}/{job.backend.value} ({job.status.value})")

    async def flush(self):
        """Wait for pending background work such as library saves"""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self):
        """Cancel all pollers, drain library saves and close the backends"""
        for job, _ in list(self._pollers.values()):
            await self._stop_polling(job)
        await self.flush()
        if self.cloud is not None:
            await self.cloud.close()
