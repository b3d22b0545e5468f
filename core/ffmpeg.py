"""
FFmpeg process helpers.

Locating the binaries and running them as non-blocking subprocesses with a
hard timeout. Every caller in the pipeline goes through run_ffmpeg() so
timeouts and cancellation always kill the child process.
"""

import asyncio
import glob
import logging
import os
import shutil
from typing import List, Optional

from core.errors import TranscodeError

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(TranscodeError):
    """Raised when FFmpeg is not installed or not in PATH."""
    pass


def find_ffmpeg() -> str:
    """Find FFmpeg executable."""
    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg:
        return ffmpeg

    # Check common locations on Windows
    common_paths = [
        r"C:\ffmpeg\bin\ffmpeg.exe",
        r"C:\Program Files\ffmpeg\bin\ffmpeg.exe",
        r"C:\Program Files (x86)\ffmpeg\bin\ffmpeg.exe",
    ]
    for path in common_paths:
        if os.path.exists(path):
            return path

    # Check WinGet installation location
    winget_base = os.path.expandvars(r"%LOCALAPPDATA%\Microsoft\WinGet\Packages")
    if os.path.exists(winget_base):
        pattern = os.path.join(winget_base, "*FFmpeg*", "*", "bin", "ffmpeg.exe")
        matches = glob.glob(pattern)
        if matches:
            return matches[0]

    # Not found - the exec call will raise FFmpegNotFoundError
    return "ffmpeg"


def find_ffprobe(ffmpeg_path: str) -> Optional[str]:
    """Find FFprobe, preferring PATH and then the directory FFmpeg lives in."""
    ffprobe = shutil.which("ffprobe")
    if ffprobe:
        return ffprobe

    ffmpeg_dir = os.path.dirname(ffmpeg_path)
    for name in ("ffprobe", "ffprobe.exe"):
        candidate = os.path.join(ffmpeg_dir, name)
        if os.path.exists(candidate):
            return candidate
    return None


def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass


async def run_ffmpeg(cmd: List[str], timeout: float) -> str:
    """
    Run an FFmpeg command to completion.

    Args:
        cmd: Full argument list, binary first
        timeout: Seconds before the process is killed

    Returns:
        Decoded stderr (FFmpeg logs there)

    Raises:
        FFmpegNotFoundError: If the binary cannot be executed
        TranscodeError: On non-zero exit or timeout
    """
    logger.debug("Running: %s", " ".join(cmd))

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except FileNotFoundError as e:
        raise FFmpegNotFoundError(f"FFmpeg not found: {cmd[0]}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill(process)
        await process.wait()
        raise TranscodeError(f"FFmpeg timed out after {timeout:.0f}s")
    except asyncio.CancelledError:
        _kill(process)
        await asyncio.shield(process.wait())
        raise

    stderr_text = stderr.decode(errors="replace") if stderr else ""
    if process.returncode != 0:
        tail = stderr_text.strip()[-500:]
        raise TranscodeError(
            f"FFmpeg exited with code {process.returncode}: {tail}",
            returncode=process.returncode,
            stderr=stderr_text,
        )
    return stderr_text


async def probe_duration(video_path: str, ffmpeg_path: str = "ffmpeg") -> Optional[float]:
    """Get duration of a video file using FFprobe."""
    if not os.path.exists(video_path):
        return None

    ffprobe = find_ffprobe(ffmpeg_path)
    if not ffprobe:
        return None

    cmd = [
        ffprobe,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        video_path
    ]

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE
    )
    try:
        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=30)
    except asyncio.TimeoutError:
        _kill(process)
        await process.wait()
        return None

    if process.returncode != 0:
        return None
    try:
        return float(stdout.decode().strip())
    except ValueError:
        return None
