"""
Claude vision reviewer for rendered videos.

Downloads a finished render, samples frames across it, and asks Claude for a
structured editorial critique. When the critique finds blocking issues, a
second query asks for a revised edit plan.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import List, Optional, Tuple

from core.claude_client import ClaudeClient, JSONExtractor
from core.errors import ReviewError, TranscodeError
from core.ffmpeg import find_ffmpeg, probe_duration, run_ffmpeg
from core.files import remove_file
from core.models.edit_plan import EditPlan
from core.models.review import ReviewOutcome, VideoReview
from core.providers.base import SourceFetcher, VideoReviewer
from core.providers.source import HttpSourceFetcher

logger = logging.getLogger(__name__)


REVIEW_SYSTEM_PROMPT = """You are a professional video editor and social media strategist reviewing a rendered video.

You are looking at frames extracted from the final render, not the source footage.

EDITING MODE: {mode}
TARGET PLATFORM: {platform}

Score storytelling, pacing and platform fit from 1-10. A 5 is average; only give 8+ when the edit genuinely excels.
Every issue must carry a concrete fix and a timestamp.

Return ONLY valid JSON in this format:
{{
  "overallScore": 7,
  "storytellingScore": 6,
  "pacingScore": 7,
  "platformFitScore": 8,
  "storyArc": "clear | weak | missing",
  "hookEffectiveness": "...",
  "endingQuality": "...",
  "issues": [
    {{"severity": "critical | warning | suggestion", "timestamp": "0-3s", "category": "pacing", "description": "...", "fix": "..."}}
  ],
  "strengths": ["..."],
  "summary": "..."
}}"""


REVISION_PROMPT = """You are REVISING an edit plan that was rendered and reviewed.

SCORES: overall {overall}/10, storytelling {storytelling}/10, pacing {pacing}/10, platform fit {platform_fit}/10

ISSUES TO FIX:
{issues}

STRENGTHS TO KEEP:
{strengths}

REVIEWER SUMMARY: {summary}

ORIGINAL EDIT PLAN:
{plan}

Fix each issue primarily by choosing better trimStart values. Keep the same fileId and src references.
Keep clips the reviewer praised. Follow {mode} pacing for {platform}.

Return ONLY the revised JSON edit plan (same format as the original) in ```json fences,
with a "revisionNotes" field explaining what changed."""


def frame_timestamps(duration: float, count: int) -> List[float]:
    """Evenly spaced sample points from 5% to 95% of the video"""
    if count < 2:
        return [duration * 0.5]
    return [duration * (0.05 + 0.90 * i / (count - 1)) for i in range(count)]


class ClaudeVideoReviewer(VideoReviewer):
    """
    Reviews renders by sending sampled frames to Claude.

    Temporary downloads and frames are always removed.
    """

    def __init__(
        self,
        client: ClaudeClient,
        work_dir: str = ".temp-preprocess",
        frame_count: int = 8,
        fetcher: Optional[SourceFetcher] = None,
        ffmpeg_path: Optional[str] = None,
    ):
        self.client = client
        self.work_dir = Path(work_dir)
        self.frame_count = frame_count
        self.fetcher = fetcher or HttpSourceFetcher()
        self._ffmpeg_path = ffmpeg_path or find_ffmpeg()

    async def extract_frames(self, video_path: str, review_id: str) -> Tuple[List[str], float]:
        """
        Extract review frames from a video.

        Returns:
            (frame paths, video duration); frames that fail are skipped
        """
        duration = await probe_duration(video_path, self._ffmpeg_path)
        if not duration or duration <= 0:
            return [], 0.0

        frames = []
        for i, ts in enumerate(frame_timestamps(duration, self.frame_count)):
            frame_path = str(self.work_dir / f"{review_id}_frame_{i}.jpg")
            cmd = [
                self._ffmpeg_path,
                "-y",
                "-ss", f"{ts:.2f}",
                "-i", video_path,
                "-frames:v", "1",
                "-q:v", "2",
                frame_path,
            ]
            try:
                await run_ffmpeg(cmd, timeout=30)
            except TranscodeError as e:
                logger.debug(f"Skipping frame {i} at {ts:.2f}s: {e}")
                continue
            if os.path.exists(frame_path):
                frames.append(frame_path)
        return frames, duration

    def _review_prompt(self, frames: List[str], duration: float, platform: str, mode: str,
                       plan: Optional[EditPlan]) -> str:
        labels = "\n".join(
            f"Frame {i + 1}: ~{ts:.1f}s into the video"
            for i, ts in enumerate(frame_timestamps(duration, len(frames)))
        )
        prompt = (
            f"These {len(frames)} frames are extracted from a rendered video ({duration:.1f}s long) "
            f"for the {platform.upper()} platform using {mode.upper()} editing mode.\n\n{labels}\n"
        )
        if plan is not None:
            prompt += (
                f"\nORIGINAL EDIT PLAN CONTEXT:\n"
                f"- Mode: {plan.mode}\n"
                f"- Total clips used: {plan.clip_count}\n"
                f"- Text overlays: {len(plan.text_overlays)}\n"
                f"- Planned duration: {plan.total_duration or plan.timeline_duration:.1f}s\n"
                f"\nDid the edit plan's vision come through in the final render?\n"
            )
        return prompt + "\nReturn your review as JSON following the format in your instructions."

    async def revise_plan(self, review: VideoReview, plan: EditPlan, platform: str,
                          mode: str) -> Optional[EditPlan]:
        """Ask Claude for a corrected plan. Returns None if the answer can't be parsed."""
        issues = "\n".join(
            f"{i + 1}. [{issue.severity.value.upper()}] {issue.category} at {issue.timestamp}: "
            f"{issue.description}\n   Fix: {issue.fix}"
            for i, issue in enumerate(review.issues)
        )
        strengths = "\n".join(f"{i + 1}. {s}" for i, s in enumerate(review.strengths))
        prompt = REVISION_PROMPT.format(
            overall=review.overall_score,
            storytelling=review.storytelling_score,
            pacing=review.pacing_score,
            platform_fit=review.platform_fit_score,
            issues=issues or "(none)",
            strengths=strengths or "(none)",
            summary=review.summary,
            plan=json.dumps(plan.to_dict(), indent=2),
            mode=mode,
            platform=platform,
        )

        response = await self.client.query(prompt)
        try:
            data = JSONExtractor.extract(response)
        except ValueError as e:
            logger.warning(f"Revised plan could not be parsed: {e}")
            return None

        revised = EditPlan.from_dict(data)
        if not revised.clips:
            logger.warning("Revised plan has no clips, ignoring")
            return None
        return revised

    async def review(
        self,
        artifact_url: str,
        platform: str,
        mode: str,
        plan: Optional[EditPlan],
    ) -> ReviewOutcome:
        review_id = f"review_{int(time.time() * 1000)}"
        self.work_dir.mkdir(parents=True, exist_ok=True)

        # Local renders are reviewed in place
        is_temp = not os.path.exists(artifact_url)
        video_path = str(self.work_dir / f"{review_id}.mp4") if is_temp else artifact_url
        try:
            try:
                if is_temp:
                    await self.fetcher.fetch(artifact_url, video_path)
                frames, duration = await self.extract_frames(video_path, review_id)
                if not frames:
                    raise ReviewError("Could not extract any frames from the rendered video")

                logger.info(f"Reviewing {artifact_url} ({len(frames)} frames, {duration:.1f}s)")
                response = await self.client.query(
                    self._review_prompt(frames, duration, platform, mode, plan),
                    system_prompt=REVIEW_SYSTEM_PROMPT.format(mode=mode.upper(), platform=platform.upper()),
                    images=frames,
                )
                review = VideoReview.from_dict(JSONExtractor.extract(response))

                revised_plan = None
                if review.has_blocking_issues and plan is not None:
                    revised_plan = await self.revise_plan(review, plan, platform, mode)

            except ReviewError:
                raise
            except Exception as e:
                raise ReviewError(f"Video review failed: {e}") from e
        finally:
            for frame in self.work_dir.glob(f"{review_id}_frame_*.jpg"):
                remove_file(frame)
            if is_temp:
                remove_file(video_path)

        logger.info(
            f"Review complete: overall={review.overall_score}/10, "
            f"{len(review.issues)} issues, revised plan={'yes' if revised_plan else 'no'}"
        )
        return ReviewOutcome(review=review, revised_plan=revised_plan)

    async def close(self):
        await self.fetcher.close()
        await self.client.close()
