"""
Clip models for FFmpeg pre-processing

A ClipConfig describes one source clip and the transform to apply to it.
A PreprocessedClip is the trimmed, sharpened, speed-ramped file on disk.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ClipConfig:
    """
    One source clip and the transform to apply.

    Attributes:
        source_id: Identifier of the source clip (e.g. a Drive file ID)
        filename: Optional display name used in logs
        trim_start: Offset into the source in seconds
        duration: Seconds of source footage to keep
        speed: Playback speed multiplier (0.5 = slow-mo, 2.0 = fast)
        sharpen: Whether to apply the sharpening filter
    """
    source_id: str
    filename: Optional[str] = None
    trim_start: float = 0.0
    duration: float = 4.0
    speed: float = 1.0
    sharpen: bool = True

    def __post_init__(self):
        if not self.source_id:
            raise ValueError("ClipConfig requires a source_id")
        if self.trim_start < 0:
            raise ValueError(f"trim_start must be >= 0, got {self.trim_start}")
        if self.duration <= 0:
            raise ValueError(f"duration must be > 0, got {self.duration}")
        if self.speed <= 0:
            raise ValueError(f"speed must be > 0, got {self.speed}")

    @property
    def display_name(self) -> str:
        return self.filename or self.source_id

    @property
    def effective_duration(self) -> float:
        """Timeline length after the speed change."""
        return self.duration / self.speed

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClipConfig":
        """Build from a plan entry (accepts snake_case or camelCase keys)"""
        speed = data.get("speed")
        sharpen = data.get("sharpen")
        return cls(
            source_id=data.get("source_id") or data.get("fileId") or "",
            filename=data.get("filename"),
            trim_start=float(data.get("trim_start", data.get("trimStart", 0.0)) or 0.0),
            duration=float(data.get("duration", 4.0)),
            speed=float(speed) if speed is not None else 1.0,
            sharpen=sharpen is not False,
        )


@dataclass
class PreprocessedClip:
    """
    Output of pre-processing one clip.

    Attributes:
        processed_id: Unique ID for this processed file
        local_path: Absolute path of the processed file on disk
        source_id: Source clip identifier this was produced from
        effective_duration: Duration after the speed change (duration / speed)
        speed: Speed multiplier that was applied
        size_bytes: Size of the processed file
    """
    processed_id: str
    local_path: str
    source_id: str
    effective_duration: float
    speed: float
    size_bytes: int = 0
