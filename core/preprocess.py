"""
FFmpeg pre-processing pipeline.

Downloads source clips, applies sharpening and speed ramping via FFmpeg, and
writes trimmed files that the renderers consume.

Pipeline: source fetch -> raw_<id>.mp4 -> FFmpeg (trim + sharpen + speed) -> processed_<id>.mp4

The trim is applied here (-ss/-t), so the processed file contains only the
kept segment and downstream renderers use trim=0 with the effective duration.
"""

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from core.errors import DownloadError, TranscodeError
from core.ffmpeg import find_ffmpeg, run_ffmpeg
from core.files import remove_file
from core.filters import build_audio_filter, build_video_filter
from core.models.clip import ClipConfig, PreprocessedClip
from core.providers.base import SourceFetcher

logger = logging.getLogger(__name__)


def cleanup_clips(clips: Sequence[PreprocessedClip]) -> List[Tuple[PreprocessedClip, Exception]]:
    """
    Delete processed files from disk. Safe to call more than once.

    Call this after the render completes or fails.

    Returns:
        (clip, error) pairs for files that could not be removed
    """
    failures = []
    for clip in clips:
        error = remove_file(clip.local_path)
        if error is not None:
            failures.append((clip, error))
    return failures


class ClipPreprocessor:
    """
    Pre-processes one clip: download, FFmpeg filter, verify.

    The raw download is always removed, on success, failure and
    cancellation alike.
    """

    def __init__(
        self,
        fetcher: SourceFetcher,
        temp_dir: str = ".temp-preprocess",
        timeout: float = 180.0,
        ffmpeg_path: Optional[str] = None,
        crf: int = 20,
        preset: str = "fast",
        audio_bitrate: str = "128k",
    ):
        """
        Args:
            fetcher: Source clip fetcher
            temp_dir: Directory for raw and processed files
            timeout: Seconds allowed per FFmpeg run
            ffmpeg_path: FFmpeg binary (auto-detected if not provided)
            crf: x264 quality (lower = better, 20 is very good)
            preset: x264 speed preset
            audio_bitrate: AAC bitrate
        """
        self.fetcher = fetcher
        self.temp_dir = Path(temp_dir).absolute()
        self.timeout = timeout
        self._ffmpeg_path = ffmpeg_path or find_ffmpeg()
        self.crf = crf
        self.preset = preset
        self.audio_bitrate = audio_bitrate

    @staticmethod
    def _new_id() -> str:
        return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"

    def build_command(self, config: ClipConfig, raw_path: str, output_path: str) -> List[str]:
        """Build the FFmpeg argument list. Empty filter chains are left out."""
        cmd = [
            self._ffmpeg_path,
            "-y",
            "-ss", str(config.trim_start),
            "-t", str(config.duration),
            "-i", raw_path,
        ]

        video_filter = build_video_filter(config)
        audio_filter = build_audio_filter(config.speed)
        if video_filter:
            cmd.extend(["-vf", video_filter])
        if audio_filter:
            cmd.extend(["-af", audio_filter])

        cmd.extend([
            "-c:v", "libx264",
            "-preset", self.preset,
            "-crf", str(self.crf),
            "-c:a", "aac",
            "-b:a", self.audio_bitrate,
            output_path,
        ])
        return cmd

    async def preprocess(self, config: ClipConfig) -> PreprocessedClip:
        """
        Download and transcode one clip.

        Raises:
            DownloadError: If the source fetch fails
            TranscodeError: If FFmpeg fails or produces no output
        """
        processed_id = self._new_id()
        self.temp_dir.mkdir(parents=True, exist_ok=True)

        raw_path = self.temp_dir / f"raw_{processed_id}.mp4"
        output_path = self.temp_dir / f"processed_{processed_id}.mp4"
        name = config.display_name

        logger.info(
            f"Clip {name}: downloading {config.source_id} (trim={config.trim_start}s, "
            f"dur={config.duration}s, speed={config.speed}x, "
            f"sharpen={'yes' if config.sharpen else 'no'})"
        )

        try:
            try:
                await self.fetcher.fetch(config.source_id, str(raw_path))
            except DownloadError:
                raise
            except Exception as e:
                raise DownloadError(f"Failed to download clip {name}: {e}") from e

            cmd = self.build_command(config, str(raw_path), str(output_path))
            try:
                await run_ffmpeg(cmd, timeout=self.timeout)
            except TranscodeError as e:
                raise TranscodeError(
                    f"FFmpeg pre-processing failed for {name}: {e}",
                    returncode=e.returncode,
                    stderr=e.stderr,
                ) from e

            if not output_path.exists():
                raise TranscodeError(f"Pre-processed file not created: {output_path}")

        except (Exception, asyncio.CancelledError):
            remove_file(output_path)
            raise
        finally:
            remove_file(raw_path)

        # speed=0.5 turns 4s of source into 8s; speed=2.0 turns it into 2s
        effective_duration = config.duration / config.speed
        size_bytes = output_path.stat().st_size

        logger.info(
            f"Clip {name}: done ({processed_id}, effectiveDur={effective_duration:.1f}s, "
            f"{size_bytes / (1024 * 1024):.1f}MB)"
        )

        return PreprocessedClip(
            processed_id=processed_id,
            local_path=str(output_path),
            source_id=config.source_id,
            effective_duration=effective_duration,
            speed=config.speed,
            size_bytes=size_bytes,
        )


class BatchPreprocessor:
    """
    Pre-processes a list of clips one at a time.

    Clips run strictly sequentially to bound disk and memory use. If any
    clip fails, every clip already produced by the batch is deleted before
    the original error propagates.
    """

    def __init__(self, preprocessor: ClipPreprocessor):
        self.preprocessor = preprocessor
        self._lock = asyncio.Lock()

    async def preprocess_all(self, configs: Sequence[ClipConfig]) -> List[PreprocessedClip]:
        """
        Pre-process all clips in caller order.

        Returns:
            Processed clips, same order as configs
        """
        async with self._lock:
            start_time = time.time()
            total = len(configs)
            logger.info(f"Starting pre-processing of {total} clips...")

            results: List[PreprocessedClip] = []
            for i, config in enumerate(configs, 1):
                logger.info(f"Processing clip {i}/{total}...")
                try:
                    results.append(await self.preprocessor.preprocess(config))
                except (Exception, asyncio.CancelledError):
                    logger.error(f"Clip {i}/{total} failed, removing {len(results)} processed clips")
                    self.cleanup(results)
                    raise

            logger.info(f"All {total} clips processed in {time.time() - start_time:.1f}s")
            return results

    @staticmethod
    def cleanup(clips: Sequence[PreprocessedClip]) -> List[Tuple[PreprocessedClip, Exception]]:
        """Delete processed files. See cleanup_clips()."""
        return cleanup_clips(clips)
