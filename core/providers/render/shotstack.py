"""Shotstack cloud render provider"""

import asyncio
import html
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from core.errors import SubmissionError
from core.models.edit_plan import EditPlan
from core.models.render import PlatformSpec, RenderStatus, StatusReport, SubmitResult
from ..base import CloudRenderer, ProviderConfig, ProviderType

logger = logging.getLogger(__name__)


# Per-mode pacing: transitions, overlap between clips, fallback clip length,
# clip audio volume, optional colour filter and timeline background.
MODE_RENDER_SETTINGS: Dict[str, Dict[str, Any]] = {
    "game_day": {
        "transition_in": "carouselRight",
        "transition_out": "carouselLeft",
        "transition_duration": 0.5,
        "default_clip_length": 4,
        "volume": 0.8,
        "filter": "boost",
        "background": "#000000",
    },
    "our_story": {
        "transition_in": "fade",
        "transition_out": "fade",
        "transition_duration": 1.0,
        "default_clip_length": 8,
        "volume": 0.5,
        "effect": "zoomIn",
        "background": "#0a0a0a",
    },
    "quick_hit": {
        "transition_in": "slideRight",
        "transition_out": "slideLeft",
        "transition_duration": 0.3,
        "default_clip_length": 4,
        "volume": 0.7,
        "background": "#000000",
    },
    "showcase": {
        "transition_in": "fadeSlow",
        "transition_out": "fadeSlow",
        "transition_duration": 1.2,
        "default_clip_length": 6,
        "volume": 0.4,
        "effect": "zoomIn",
        "background": "#000000",
    },
}

# Cycling motion effects so consecutive clips don't move the same way
CLIP_EFFECT_POOLS: Dict[str, List[str]] = {
    "game_day": ["zoomIn", "slideRight", "slideLeft", "zoomOut"],
    "our_story": ["zoomIn", "zoomOut"],
    "quick_hit": ["slideRight", "slideLeft"],
    "showcase": ["zoomIn", "zoomOut", "slideRight"],
}

SOUNDTRACK_VOLUME = {"showcase": 0.4, "our_story": 0.2}

OVERLAY_CSS = (
    "p { font-family: 'Montserrat', sans-serif; font-size: 34px; font-weight: 700; "
    "color: #FFFFFF; text-align: center; background-color: rgba(0, 0, 0, 0.55); "
    "padding: 12px 28px; margin: 0; }"
)

# Shotstack status strings map one-to-one onto the render lifecycle
_STATUS_MAP = {
    "queued": RenderStatus.QUEUED,
    "fetching": RenderStatus.FETCHING,
    "rendering": RenderStatus.RENDERING,
    "saving": RenderStatus.SAVING,
    "done": RenderStatus.DONE,
    "failed": RenderStatus.FAILED,
}


def clip_volume(plan: EditPlan, mode: str) -> float:
    """Clip audio volume for a mode, ducked when a soundtrack plays underneath"""
    volume = MODE_RENDER_SETTINGS.get(mode, MODE_RENDER_SETTINGS["game_day"])["volume"]
    if plan.music_url:
        volume = max(0.15, volume - 0.2)
    return volume


def soundtrack_volume(mode: str) -> float:
    return SOUNDTRACK_VOLUME.get(mode, 0.35)


def build_timeline(plan: EditPlan, platform: PlatformSpec, mode: str) -> Dict[str, Any]:
    """
    Convert an edit plan into a Shotstack render request.

    Tracks are ordered foreground first: text overlays, video, then a solid
    background so transitions never fade to empty timeline.
    """
    settings = MODE_RENDER_SETTINGS.get(mode, MODE_RENDER_SETTINGS["game_day"])
    effects = CLIP_EFFECT_POOLS.get(mode, CLIP_EFFECT_POOLS["game_day"])
    overlap = settings["transition_duration"]
    min_length = overlap * 2 + 1

    volume = clip_volume(plan, mode)

    video_clips = []
    start = 0.0
    for index, clip in enumerate(plan.clips):
        length = max(clip.effective_duration or settings["default_clip_length"], min_length)
        entry: Dict[str, Any] = {
            "asset": {
                "type": "video",
                "src": clip.src,
                "trim": clip.trim_start,
                "volume": volume,
            },
            "start": round(start, 3),
            "length": round(length, 3),
            "transition": {
                "in": settings["transition_in"],
                "out": settings["transition_out"],
            },
            "fit": "cover",
            "effect": effects[index % len(effects)],
        }
        if settings.get("filter"):
            entry["filter"] = settings["filter"]
        video_clips.append(entry)
        start += length - overlap

    video_duration = 0.0
    if video_clips:
        last = video_clips[-1]
        video_duration = last["start"] + last["length"]

    text_clips = []
    for overlay in plan.text_overlays:
        # Keep overlays inside the video so the tail never renders black
        overlay_start, overlay_length = overlay.window(video_duration)

        text_entry: Dict[str, Any] = {
            "asset": {
                "type": "html",
                "html": f"<p>{html.escape(overlay.text)}</p>",
                "css": OVERLAY_CSS,
                "width": 800,
                "height": 120,
            },
            "start": round(overlay_start, 3),
            "length": round(overlay_length, 3),
            "transition": {"in": "fade", "out": "fadeFast"},
            "position": overlay.position,
        }
        if overlay.position == "bottom":
            text_entry["offset"] = {"y": -0.08}
        elif overlay.position == "top":
            text_entry["offset"] = {"y": 0.08}
        text_clips.append(text_entry)

    tracks = []
    if text_clips:
        tracks.append({"clips": text_clips})
    tracks.append({"clips": video_clips})
    if video_duration > 0:
        tracks.append({
            "clips": [{
                "asset": {
                    "type": "html",
                    "html": (
                        f'<div style="width:100%;height:100%;'
                        f'background-color:{settings["background"]};"></div>'
                    ),
                    "css": "",
                    "width": platform.width,
                    "height": platform.height,
                },
                "start": 0,
                "length": round(video_duration + 1, 3),
                "fit": "none",
            }],
        })

    timeline: Dict[str, Any] = {
        "tracks": tracks,
        "background": settings["background"],
    }
    if plan.music_url:
        timeline["soundtrack"] = {
            "src": plan.music_url,
            "effect": "fadeInFadeOut",
            "volume": soundtrack_volume(mode),
        }

    return {
        "timeline": timeline,
        "output": {
            "format": "mp4",
            "resolution": "hd",
            "fps": 30,
            "quality": "high",
            "size": {"width": platform.width, "height": platform.height},
        },
    }


class ShotstackRenderer(CloudRenderer):
    """
    Shotstack Edit API renderer.

    API Documentation: https://shotstack.io/docs/api/
    """

    API_HOST = "https://api.shotstack.io"

    def __init__(self, api_key: str, environment: str = "stage", timeout: float = 30.0):
        if not api_key:
            raise ValueError("Shotstack API key required")

        # The production endpoint is /v1
        env_path = "v1" if environment in ("v1", "production") else "stage"
        self.config = ProviderConfig(
            provider_type=ProviderType.SHOTSTACK,
            api_key=api_key,
            base_url=f"{self.API_HOST}/{env_path}",
            timeout=timeout,
        )
        self.session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        return "shotstack"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers={
                    "x-api-key": self.config.api_key,
                    "Content-Type": "application/json",
                }
            )
        return self.session

    async def submit(self, plan: EditPlan, platform: PlatformSpec, mode: str) -> SubmitResult:
        payload = build_timeline(plan, platform, mode)
        session = await self._get_session()

        try:
            async with session.post(
                f"{self.config.base_url}/render",
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:
                if response.status not in (200, 201):
                    body = await response.text()
                    raise SubmissionError(
                        f"Shotstack render submission failed ({response.status}): {body[:500]}"
                    )
                data = await response.json()
        except SubmissionError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SubmissionError(f"Shotstack render submission failed: {e}") from e

        render_id = (data.get("response") or {}).get("id")
        if not render_id:
            raise SubmissionError(f"No render ID in Shotstack response: {data}")

        logger.info(f"Shotstack render submitted: {render_id} ({platform.name}, {mode})")
        return SubmitResult(job_handle=render_id)

    async def status(self, job_handle: str) -> StatusReport:
        session = await self._get_session()

        async with session.get(
            f"{self.config.base_url}/render/{job_handle}",
            timeout=aiohttp.ClientTimeout(total=self.config.timeout),
        ) as response:
            if response.status != 200:
                raise aiohttp.ClientResponseError(
                    response.request_info,
                    response.history,
                    status=response.status,
                    message=f"Shotstack status check failed ({response.status})",
                )
            data = await response.json()

        body = data.get("response") or {}
        raw_status = body.get("status", "")
        status = _STATUS_MAP.get(raw_status)
        if status is None:
            logger.debug(f"Unknown Shotstack status '{raw_status}' for {job_handle}")
            status = RenderStatus.QUEUED

        return StatusReport(
            status=status,
            artifact_url=body.get("url"),
            error=body.get("error"),
        )

    async def close(self):
        """Close aiohttp session"""
        if self.session and not self.session.closed:
            await self.session.close()
