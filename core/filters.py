"""
FFmpeg filter chain builders for clip pre-processing.

Pure functions, no I/O. The video chain sharpens and rescales timestamps;
the audio chain changes tempo without changing pitch.
"""

from typing import List

from core.models.clip import ClipConfig

# 5x5 luma amount 0.8, 5x5 chroma amount 0.4
SHARPEN_FILTER = "unsharp=5:5:0.8:5:5:0.4"

# atempo accepts a per-stage multiplier in [0.5, 2.0]
ATEMPO_MIN = 0.5
ATEMPO_MAX = 2.0


def build_video_filter(config: ClipConfig) -> str:
    """
    Build the video filter chain for a clip.

    Sharpening comes first, then setpts. For speed=2.0 timestamps are
    compressed (PTS*0.5000); for speed=0.5 they are stretched (PTS*2.0000).

    Returns:
        Comma-joined filter chain, or "" when no filter applies
    """
    filters = []

    if config.sharpen is not False:
        filters.append(SHARPEN_FILTER)

    if config.speed != 1.0:
        filters.append(build_setpts_filter(config.speed))

    return ",".join(filters)


def build_setpts_filter(speed: float) -> str:
    """Timestamp rescale for a speed change (2.0 gives setpts=PTS*0.5000)"""
    return f"setpts=PTS*{1.0 / speed:.4f}"


def atempo_stages(speed: float) -> List[float]:
    """
    Decompose a speed multiplier into atempo stages inside [0.5, 2.0].

    High speeds are halved first, then low speeds are doubled, then the
    remainder is emitted. The product of the stages equals speed.
    """
    if speed <= 0:
        raise ValueError(f"speed must be > 0, got {speed}")
    if speed == 1.0:
        return []

    stages = []
    remaining = speed

    while remaining > ATEMPO_MAX:
        stages.append(ATEMPO_MAX)
        remaining /= ATEMPO_MAX
    while remaining < ATEMPO_MIN:
        stages.append(ATEMPO_MIN)
        remaining /= ATEMPO_MIN
    stages.append(remaining)

    return stages


def build_audio_filter(speed: float) -> str:
    """
    Build the audio filter chain for a speed change.

    Example: 4.0 -> "atempo=2.0,atempo=2.0000", 0.2 -> "atempo=0.5,atempo=0.4000"

    Returns:
        Comma-joined atempo chain, or "" for speed 1.0
    """
    stages = atempo_stages(speed)
    if not stages:
        return ""

    # Fixed stages print as 2.0/0.5; the remainder is formatted to 4 places
    parts = [f"atempo={s}" for s in stages[:-1]]
    parts.append(f"atempo={stages[-1]:.4f}")
    return ",".join(parts)
