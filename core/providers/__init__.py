"""Provider interfaces for external services (source fetch, rendering, review, library)"""

from .base import (
    ProviderType,
    ProviderConfig,
    SourceFetcher,
    CloudRenderer,
    LocalRenderer,
    VideoReviewer,
    VideoLibrary,
)
from .mock import MockCloudRenderer, MockReviewer
from .source import HttpSourceFetcher
from .render import FFmpegLocalRenderer, ShotstackRenderer

__all__ = [
    # Base interfaces
    "ProviderType",
    "ProviderConfig",
    "SourceFetcher",
    "CloudRenderer",
    "LocalRenderer",
    "VideoReviewer",
    "VideoLibrary",
    # Mock providers
    "MockCloudRenderer",
    "MockReviewer",
    # Implementations
    "HttpSourceFetcher",
    "FFmpegLocalRenderer",
    "ShotstackRenderer",
    # Registry
    "PROVIDER_REGISTRY",
    "get_provider_info",
]


# Provider registry for CLI introspection
PROVIDER_REGISTRY = {
    "http": {
        "name": "http",
        "category": "source",
        "class": "HttpSourceFetcher",
        "module": "core.providers.source",
        "api_key_env": None,
        "features": ["Streaming download", "Google Drive direct links", "URL template"],
    },
    "shotstack": {
        "name": "shotstack",
        "category": "cloud render",
        "class": "ShotstackRenderer",
        "module": "core.providers.render.shotstack",
        "api_key_env": "SHOTSTACK_API_KEY",
        "features": ["Per-mode transitions", "Text overlays", "Soundtrack", "Platform output size"],
    },
    "ffmpeg": {
        "name": "ffmpeg",
        "category": "local render",
        "class": "FFmpegLocalRenderer",
        "module": "core.providers.render.ffmpeg",
        "api_key_env": None,
        "features": ["Scale/pad to platform frame", "Concatenation", "H.264 output"],
    },
    "claude": {
        "name": "claude",
        "category": "review",
        "class": "ClaudeVideoReviewer",
        "module": "core.reviewer",
        "api_key_env": "ANTHROPIC_API_KEY",
        "features": ["Frame sampling", "Scored critique", "Revised edit plan"],
    },
    "mock": {
        "name": "mock",
        "category": "cloud render / review",
        "class": "MockCloudRenderer, MockReviewer",
        "module": "core.providers.mock",
        "api_key_env": None,
        "features": ["Offline runs", "Scripted review scores"],
    },
}


def get_provider_info(name: str) -> dict:
    """Get registry info for a provider, raising KeyError if unknown"""
    return PROVIDER_REGISTRY[name]
