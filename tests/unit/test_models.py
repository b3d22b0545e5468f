"""Unit tests for clip, edit plan, review and render models"""

import pytest

from core.models.clip import ClipConfig
from core.models.edit_plan import EditPlan, PlanClip
from core.models.render import (
    RenderBackend,
    RenderJob,
    RenderStatus,
    get_platform,
)
from core.models.review import IssueSeverity, StoryArc, VideoReview
from tests.mocks.fixtures import make_clip_config, make_plan, make_review


class TestClipConfig:
    """Test clip config validation and timing"""

    def test_effective_duration_fast(self):
        assert make_clip_config(duration=10.0, speed=2.0).effective_duration == 5.0

    def test_effective_duration_slow_motion(self):
        assert make_clip_config(duration=10.0, speed=0.5).effective_duration == 20.0

    @pytest.mark.parametrize("kwargs", [
        {"speed": 0},
        {"speed": -1.0},
        {"duration": 0},
        {"trim_start": -0.5},
        {"source_id": ""},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            make_clip_config(**kwargs)

    def test_from_dict_camel_case(self):
        config = ClipConfig.from_dict({
            "fileId": "1AbC",
            "filename": "goal.mp4",
            "trimStart": 2.5,
            "duration": 3,
            "speed": 0.5,
            "sharpen": False,
        })
        assert config.source_id == "1AbC"
        assert config.display_name == "goal.mp4"
        assert config.trim_start == 2.5
        assert config.duration == 3.0
        assert config.speed == 0.5
        assert config.sharpen is False

    def test_from_dict_defaults(self):
        config = ClipConfig.from_dict({"source_id": "xyz"})
        assert config.trim_start == 0.0
        assert config.speed == 1.0
        assert config.sharpen is True
        assert config.display_name == "xyz"


class TestEditPlan:
    """Test edit plan parsing and revision"""

    def test_from_dict_accepts_generator_format(self):
        plan = EditPlan.from_dict({
            "mode": "our_story",
            "clips": [
                {"fileId": "a", "src": "https://cdn.example.com/a.mp4", "trimStart": 1, "duration": 4},
                {"fileId": "b", "sourceUrl": "https://cdn.example.com/b.mp4", "duration": 6, "speed": 2},
            ],
            "textOverlays": [{"text": "Season Recap", "start": 0, "duration": 2, "position": "top"}],
            "musicUrl": "https://cdn.example.com/track.mp3",
            "totalDuration": 7,
        })
        assert plan.mode == "our_story"
        assert plan.clip_count == 2
        assert plan.clips[1].src == "https://cdn.example.com/b.mp4"
        assert plan.timeline_duration == 7.0
        assert plan.text_overlays[0].position == "top"
        assert plan.music_url == "https://cdn.example.com/track.mp3"
        assert plan.total_duration == 7.0

    def test_revised_returns_new_plan(self):
        plan = make_plan(2)
        revised = plan.revised(clips=[plan.clips[1]], revision_notes="Dropped the opener")

        assert revised is not plan
        assert revised.clip_count == 1
        assert isinstance(revised.clips, tuple)
        assert plan.clip_count == 2
        assert plan.revision_notes == ""

    def test_to_dict_uses_camel_case(self):
        data = make_plan(1, music_url="https://cdn.example.com/m.mp3").to_dict()
        assert data["clips"][0]["fileId"] == "clip_1"
        assert "trimStart" in data["clips"][0]
        assert data["textOverlays"][0]["text"] == "Final Score 3-1"
        assert data["musicUrl"] == "https://cdn.example.com/m.mp3"

    def test_plan_clip_effective_duration(self):
        assert PlanClip(source_id="a", duration=6.0, speed=2.0).effective_duration == 3.0


class TestVideoReview:
    """Test review parsing and scoring"""

    def test_scores_are_clamped(self):
        review = VideoReview.from_dict({
            "overallScore": 12,
            "storytellingScore": -3,
            "pacingScore": "not a number",
            "platformFitScore": 6.5,
        })
        assert review.overall_score == 10.0
        assert review.storytelling_score == 0.0
        assert review.pacing_score == 0.0
        assert review.platform_fit_score == 6.5

    def test_from_dict_parses_issues(self):
        review = VideoReview.from_dict({
            "overallScore": 5,
            "storyArc": "MISSING",
            "issues": [
                {"severity": "critical", "category": "pacing", "description": "slow", "fix": "trim"},
                {"severity": "bogus", "category": "audio", "description": "quiet"},
            ],
        })
        assert review.story_arc == StoryArc.MISSING
        assert review.issues[0].severity == IssueSeverity.CRITICAL
        assert review.issues[1].severity == IssueSeverity.SUGGESTION
        assert review.critical_count == 1
        assert review.has_blocking_issues is True

    def test_suggestions_are_not_blocking(self):
        review = VideoReview.from_dict({
            "overallScore": 8,
            "issues": [{"severity": "suggestion", "category": "color", "description": "warmer"}],
        })
        assert review.has_blocking_issues is False

    def test_warnings_are_blocking(self):
        review = VideoReview.from_dict({
            "overallScore": 6,
            "issues": [{"severity": "warning", "category": "ending", "description": "abrupt"}],
        })
        assert review.has_blocking_issues is True


class TestPlatforms:
    """Test platform lookup"""

    def test_lookup_is_case_insensitive(self):
        assert get_platform("TikTok").name == "tiktok"

    def test_hyphenated_alias(self):
        spec = get_platform("ig-reels")
        assert spec.name == "ig_reels"
        assert (spec.width, spec.height) == (1080, 1920)

    def test_unknown_platform(self):
        with pytest.raises(ValueError, match="Unknown platform"):
            get_platform("myspace")


class TestRenderJob:
    """Test render job helpers"""

    def test_fallback_prefers_original_artifact(self):
        job = RenderJob(platform="tiktok", backend=RenderBackend.CLOUD, artifact_url="new.mp4")
        assert job.fallback_artifact_url == "new.mp4"

        job.original_artifact_url = "original.mp4"
        assert job.fallback_artifact_url == "original.mp4"

    def test_terminal_states(self):
        assert RenderStatus.DONE.is_terminal
        assert RenderStatus.FAILED.is_terminal
        assert not RenderStatus.RENDERING.is_terminal

    def test_last_previous_score(self):
        job = RenderJob(platform="youtube", backend=RenderBackend.LOCAL)
        assert job.last_previous_score is None
        job.previous_scores.extend([4.0, 6.0])
        assert job.last_previous_score == 6.0
        assert job.key == ("youtube", RenderBackend.LOCAL)

    def test_review_factory_blocking(self):
        assert make_review(4.0, blocking=True).has_blocking_issues
