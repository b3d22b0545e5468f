"""
FFmpeg-based local renderer.

Scales and pads every clip of an edit plan to the platform frame, applies
the clip's speed to picture and sound, and concatenates video and audio
into a single output file. Text overlays are drawn on the joined video and
an optional soundtrack is mixed under the clip audio.
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import List, Optional

from core.errors import TranscodeError
from core.ffmpeg import find_ffmpeg, run_ffmpeg
from core.files import remove_file
from core.filters import build_audio_filter, build_setpts_filter
from core.models.edit_plan import EditPlan, TextOverlay
from core.models.render import PlatformSpec
from ..base import LocalRenderer, SourceFetcher
from .shotstack import clip_volume, soundtrack_volume

logger = logging.getLogger(__name__)

# Soundtrack fades in over 1s and out over the last 2s
MUSIC_FADE_IN = 1.0
MUSIC_FADE_OUT = 2.0


def escape_drawtext(text: str) -> str:
    """Escape text for a single-quoted drawtext value inside a filtergraph."""
    return (
        text.replace("\\", "\\\\")
        .replace("'", "'\\''")
        .replace(":", "\\:")
        .replace("%", "\\%")
    )


def _suffix(src: str) -> str:
    return os.path.splitext(src.split("?", 1)[0])[1] or ".mp3"


class FFmpegLocalRenderer(LocalRenderer):
    """
    Renders an edit plan on this machine.

    Clip and soundtrack sources that are not local files are fetched into
    the work directory first and removed once the render finishes. Every
    clip is expected to carry an audio stream, as pre-processed clips do.
    """

    def __init__(
        self,
        output_dir: str = "artifacts/renders",
        fetcher: Optional[SourceFetcher] = None,
        timeout: float = 300.0,
        ffmpeg_path: Optional[str] = None,
        crf: int = 23,
        preset: str = "fast",
        fps: int = 30,
    ):
        """
        Initialize the renderer.

        Args:
            output_dir: Directory for rendered output files
            fetcher: Used for clips whose src is not a local file
            timeout: Seconds allowed for the FFmpeg run
            ffmpeg_path: FFmpeg binary (auto-detected if not provided)
        """
        self.output_dir = Path(output_dir)
        self.fetcher = fetcher
        self.timeout = timeout
        self._ffmpeg_path = ffmpeg_path or find_ffmpeg()
        self.crf = crf
        self.preset = preset
        self.fps = fps

    @property
    def name(self) -> str:
        return "ffmpeg"

    def _find_font(self) -> Optional[str]:
        """Find a font file for drawtext; FFmpeg falls back to fontconfig without one."""
        font_paths = [
            r"C:\Windows\Fonts\arialbd.ttf",
            r"C:\Windows\Fonts\arial.ttf",
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
            "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
            "/System/Library/Fonts/Helvetica.ttc",
        ]
        for path in font_paths:
            if os.path.exists(path):
                return path
        return None

    def build_drawtext(self, overlay: TextOverlay, platform: PlatformSpec, video_duration: float) -> str:
        """drawtext filter for one overlay, styled like the cloud caption card."""
        start, length = overlay.window(video_duration)
        fontsize = max(24, platform.width // 22)
        coords = {
            "top": "x=(w-text_w)/2:y=h*0.08",
            "center": "x=(w-text_w)/2:y=(h-text_h)/2",
        }.get(overlay.position, "x=(w-text_w)/2:y=h-text_h-h*0.08")

        parts = [
            f"text='{escape_drawtext(overlay.text)}'",
            f"fontsize={fontsize}",
            "fontcolor=white",
            coords,
            "box=1",
            "boxcolor=black@0.55",
            "boxborderw=12",
            f"enable='between(t,{start:.3f},{start + length:.3f})'",
        ]
        font_path = self._find_font()
        if font_path:
            escaped_font = font_path.replace("\\", "/").replace(":", "\\:")
            parts.append(f"fontfile='{escaped_font}'")
        return f"drawtext={':'.join(parts)}"

    def build_filter_complex(self, plan: EditPlan, platform: PlatformSpec, mode: str) -> str:
        """
        Build the filtergraph for a plan.

        Per clip: scale/pad to the platform frame plus setpts, and the
        matching atempo chain on its audio. The joined streams come out as
        [outv] and [outa]; with a soundtrack, input N (after the N clips)
        is faded and mixed under the ducked clip audio.
        """
        w, h = platform.width, platform.height
        clip_count = len(plan.clips)
        parts = []

        for i, clip in enumerate(plan.clips):
            video = (
                f"[{i}:v]scale={w}:{h}:force_original_aspect_ratio=decrease,"
                f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2,setsar=1"
            )
            if clip.speed != 1.0:
                video += f",{build_setpts_filter(clip.speed)}"
            parts.append(f"{video}[v{i}]")
            parts.append(f"[{i}:a]{build_audio_filter(clip.speed) or 'anull'}[a{i}]")

        labels = "".join(f"[v{i}][a{i}]" for i in range(clip_count))
        parts.append(f"{labels}concat=n={clip_count}:v=1:a=1[cv][ca]")

        duration = plan.timeline_duration
        overlays = [self.build_drawtext(o, platform, duration) for o in plan.text_overlays if o.text]
        parts.append(f"[cv]{','.join(overlays) or 'null'}[outv]")

        volume = clip_volume(plan, mode)
        if not plan.music_url:
            parts.append(f"[ca]volume={volume:.2f}[outa]")
            return "; ".join(parts)

        fade_out_start = max(duration - MUSIC_FADE_OUT, 0.0)
        parts.append(f"[ca]volume={volume:.2f}[duck]")
        parts.append(
            f"[{clip_count}:a]volume={soundtrack_volume(mode):.2f},"
            f"afade=t=in:st=0:d={MUSIC_FADE_IN},"
            f"afade=t=out:st={fade_out_start:.3f}:d={MUSIC_FADE_OUT}[music]"
        )
        parts.append("[duck][music]amix=inputs=2:duration=first:normalize=0[outa]")
        return "; ".join(parts)

    def build_command(
        self,
        plan: EditPlan,
        inputs: List[str],
        platform: PlatformSpec,
        output_path: str,
        mode: str = "game_day",
        music_path: Optional[str] = None,
    ) -> List[str]:
        cmd = [self._ffmpeg_path, "-y"]
        for clip, path in zip(plan.clips, inputs):
            cmd.extend(["-ss", str(clip.trim_start), "-t", str(clip.duration), "-i", path])
        if plan.music_url:
            cmd.extend(["-i", music_path or plan.music_url])

        cmd.extend([
            "-filter_complex", self.build_filter_complex(plan, platform, mode),
            "-map", "[outv]",
            "-map", "[outa]",
            "-c:v", "libx264",
            "-preset", self.preset,
            "-crf", str(self.crf),
            "-r", str(self.fps),
            "-c:a", "aac",
            "-b:a", "128k",
            output_path,
        ])
        return cmd

    async def _resolve(self, src: str, local_path: Path, fetched: List[str], label: str) -> str:
        """Return a local file for src, fetching it when it is not one already."""
        if src and os.path.exists(src):
            return src
        if self.fetcher is None:
            raise TranscodeError(f"{label} source is not a local file: {src}")

        logger.info(f"Downloading {label}: {src}")
        fetched.append(str(local_path))
        await self.fetcher.fetch(src, str(local_path))
        return str(local_path)

    async def _resolve_inputs(self, plan: EditPlan, work_dir: Path, fetched: List[str]) -> List[str]:
        """Map each clip to a local file, fetching the ones that are remote."""
        inputs: List[str] = []
        for i, clip in enumerate(plan.clips):
            label = f"Clip {i} ({i + 1}/{plan.clip_count})"
            path = work_dir / f"clip_{i}_{clip.source_id}.mp4"
            inputs.append(await self._resolve(clip.src or clip.source_id, path, fetched, label))
        return inputs

    async def render(self, plan: EditPlan, platform: PlatformSpec, mode: str) -> str:
        if not plan.clips:
            raise TranscodeError("Edit plan has no clips to render")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        stamp = int(time.time() * 1000)
        output_path = self.output_dir / f"render_{platform.name}_{mode}_{stamp}.mp4"

        logger.info(f"Starting local render: {plan.clip_count} clips, platform={platform.name}")
        start_time = time.time()

        fetched: List[str] = []
        try:
            inputs = await self._resolve_inputs(plan, self.output_dir, fetched)
            music_path = None
            if plan.music_url:
                music_path = await self._resolve(
                    plan.music_url, self.output_dir / f"music_{stamp}{_suffix(plan.music_url)}", fetched, "Soundtrack"
                )
            cmd = self.build_command(plan, inputs, platform, str(output_path), mode, music_path)
            await run_ffmpeg(cmd, timeout=self.timeout)
        except (Exception, asyncio.CancelledError):
            remove_file(output_path)
            raise
        finally:
            for path in fetched:
                remove_file(path)

        if not output_path.exists():
            raise TranscodeError(f"Render output not created: {output_path}")

        logger.info(f"Local render complete in {time.time() - start_time:.1f}s: {output_path}")
        return str(output_path)
