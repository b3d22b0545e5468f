"""Review models for automated critique of rendered videos"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .edit_plan import EditPlan


class IssueSeverity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class StoryArc(Enum):
    CLEAR = "clear"
    WEAK = "weak"
    MISSING = "missing"


BLOCKING_SEVERITIES = (IssueSeverity.CRITICAL, IssueSeverity.WARNING)


def _score(value: Any) -> float:
    """Coerce a reviewer score into [0, 10]"""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(10.0, score))


@dataclass
class ReviewIssue:
    """One problem the reviewer found, with a suggested fix"""
    severity: IssueSeverity
    category: str
    description: str
    fix: str = ""
    timestamp: Optional[str] = None

    @property
    def is_blocking(self) -> bool:
        return self.severity in BLOCKING_SEVERITIES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewIssue":
        try:
            severity = IssueSeverity(str(data.get("severity", "suggestion")).lower())
        except ValueError:
            severity = IssueSeverity.SUGGESTION
        return cls(
            severity=severity,
            category=data.get("category", "general"),
            description=data.get("description", ""),
            fix=data.get("fix", ""),
            timestamp=data.get("timestamp"),
        )


@dataclass
class VideoReview:
    """
    Structured critique of one rendered video.

    Scores are on a 0-10 scale. A score of 5 is average.
    """
    overall_score: float
    storytelling_score: float = 0.0
    pacing_score: float = 0.0
    platform_fit_score: float = 0.0

    story_arc: StoryArc = StoryArc.WEAK
    hook_effectiveness: str = ""
    ending_quality: str = ""

    issues: List[ReviewIssue] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    summary: str = ""

    def __post_init__(self):
        self.overall_score = _score(self.overall_score)
        self.storytelling_score = _score(self.storytelling_score)
        self.pacing_score = _score(self.pacing_score)
        self.platform_fit_score = _score(self.platform_fit_score)

    @property
    def has_blocking_issues(self) -> bool:
        """True when any issue is critical or a warning"""
        return any(issue.is_blocking for issue in self.issues)

    @property
    def critical_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == IssueSeverity.CRITICAL)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoReview":
        """Parse the reviewer's JSON (camelCase keys)"""
        try:
            arc = StoryArc(str(data.get("storyArc", "weak")).lower())
        except ValueError:
            arc = StoryArc.WEAK
        return cls(
            overall_score=data.get("overallScore", 0),
            storytelling_score=data.get("storytellingScore", 0),
            pacing_score=data.get("pacingScore", 0),
            platform_fit_score=data.get("platformFitScore", 0),
            story_arc=arc,
            hook_effectiveness=data.get("hookEffectiveness", ""),
            ending_quality=data.get("endingQuality", ""),
            issues=[ReviewIssue.from_dict(i) for i in data.get("issues", []) or []],
            strengths=list(data.get("strengths", []) or []),
            summary=data.get("summary", ""),
        )


@dataclass
class ReviewOutcome:
    """What the reviewer returns: the critique and an optional revised plan"""
    review: VideoReview
    revised_plan: Optional[EditPlan] = None
