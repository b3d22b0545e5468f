"""
Edit plan models

An EditPlan is the ordered clip sequence a render consumes. Plans are
immutable: a revision produces a new EditPlan so the plan that was actually
rendered stays available for comparison and rollback.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class PlanClip:
    """
    One clip placement in an edit plan.

    src is whatever the renderer reads: a public URL for cloud renders,
    a local path for FFmpeg renders.
    """
    source_id: str
    src: str = ""
    trim_start: float = 0.0
    duration: float = 4.0
    speed: float = 1.0
    purpose: str = ""
    filename: Optional[str] = None

    @property
    def effective_duration(self) -> float:
        return self.duration / self.speed if self.speed > 0 else self.duration

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanClip":
        source_id = data.get("source_id") or data.get("fileId") or ""
        speed = data.get("speed")
        return cls(
            source_id=source_id,
            src=data.get("src") or data.get("sourceUrl") or "",
            trim_start=float(data.get("trim_start", data.get("trimStart", 0.0)) or 0.0),
            duration=float(data.get("duration", 4.0) or 4.0),
            speed=float(speed) if speed is not None else 1.0,
            purpose=data.get("purpose", ""),
            filename=data.get("filename"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "fileId": self.source_id,
            "src": self.src,
            "trimStart": self.trim_start,
            "duration": self.duration,
            "speed": self.speed,
            "purpose": self.purpose,
        }
        if self.filename:
            data["filename"] = self.filename
        return data


@dataclass(frozen=True)
class TextOverlay:
    """A text card placed on the timeline"""
    text: str
    start: float = 0.0
    duration: float = 3.0
    position: str = "bottom"  # "top", "center", "bottom"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextOverlay":
        return cls(
            text=data.get("text", ""),
            start=float(data.get("start", 0.0)),
            duration=float(data.get("duration", 3.0)),
            position=data.get("position", "bottom"),
        )

    def window(self, video_duration: float) -> Tuple[float, float]:
        """
        (start, length) kept inside a video of the given duration.

        An overlay past the end is pulled back before it, one running over
        the end is shortened; lengths never drop below half a second.
        """
        start, length = self.start, self.duration
        if video_duration <= 0:
            return start, length
        if start >= video_duration:
            start = video_duration - length - 0.5
        if start + length > video_duration:
            length = video_duration - start
        return max(start, 0.0), max(length, 0.5)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "start": self.start,
            "duration": self.duration,
            "position": self.position,
        }


@dataclass(frozen=True)
class EditPlan:
    """
    Ordered clip sequence with timing, platform-agnostic.

    Attributes:
        clips: Clip placements in timeline order
        mode: Editing mode (game_day, our_story, quick_hit, showcase)
        text_overlays: Title/caption cards
        music_url: Optional soundtrack URL
        total_duration: Planned duration in seconds (None = sum of clips)
        revision_notes: Reviewer's notes when this plan is a revision
    """
    clips: Tuple[PlanClip, ...] = field(default_factory=tuple)
    mode: str = "game_day"
    text_overlays: Tuple[TextOverlay, ...] = field(default_factory=tuple)
    music_url: Optional[str] = None
    total_duration: Optional[float] = None
    revision_notes: str = ""

    @property
    def clip_count(self) -> int:
        return len(self.clips)

    @property
    def timeline_duration(self) -> float:
        """Sum of effective clip durations"""
        return sum(c.effective_duration for c in self.clips)

    def revised(self, **changes) -> "EditPlan":
        """Return a new plan with the given fields replaced"""
        if "clips" in changes:
            changes["clips"] = tuple(changes["clips"])
        if "text_overlays" in changes:
            changes["text_overlays"] = tuple(changes["text_overlays"])
        return replace(self, **changes)

    def summary(self, limit: int = 200) -> str:
        purposes = [c.purpose or c.filename or c.source_id for c in self.clips]
        text = f"{self.mode}: {self.clip_count} clips ({', '.join(purposes)})"
        return text[:limit]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditPlan":
        """Parse the JSON plan format produced by the edit-plan generator"""
        clips = [PlanClip.from_dict(c) for c in data.get("clips", []) or []]
        overlays = [
            TextOverlay.from_dict(o)
            for o in (data.get("text_overlays") or data.get("textOverlays") or [])
        ]
        total = data.get("total_duration", data.get("totalDuration"))
        notes = data.get("revision_notes", data.get("revisionNotes", ""))
        if not isinstance(notes, str):
            notes = str(notes)
        return cls(
            clips=tuple(clips),
            mode=data.get("mode", "game_day"),
            text_overlays=tuple(overlays),
            music_url=data.get("music_url") or data.get("musicUrl"),
            total_duration=float(total) if isinstance(total, (int, float)) else None,
            revision_notes=notes,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "mode": self.mode,
            "clips": [c.to_dict() for c in self.clips],
            "textOverlays": [o.to_dict() for o in self.text_overlays],
        }
        if self.music_url:
            data["musicUrl"] = self.music_url
        if self.total_duration is not None:
            data["totalDuration"] = self.total_duration
        if self.revision_notes:
            data["revisionNotes"] = self.revision_notes
        return data
