"""Provider configuration and factory"""

import logging
from dataclasses import dataclass
from typing import Optional

from .claude_client import ClaudeClient
from .config import Settings
from .library import JsonVideoLibrary
from .orchestrator import RenderJobOrchestrator
from .preprocess import BatchPreprocessor, ClipPreprocessor
from .providers import (
    CloudRenderer,
    FFmpegLocalRenderer,
    HttpSourceFetcher,
    LocalRenderer,
    MockCloudRenderer,
    MockReviewer,
    ShotstackRenderer,
    SourceFetcher,
    VideoLibrary,
    VideoReviewer,
)
from .reviewer import ClaudeVideoReviewer
from .review_loop import ReviewReviseController

logger = logging.getLogger(__name__)


@dataclass
class Providers:
    """The set of external collaborators a pipeline run uses"""
    fetcher: SourceFetcher
    cloud: CloudRenderer
    local: LocalRenderer
    reviewer: VideoReviewer
    library: VideoLibrary


class ProviderFactory:
    """Factory for creating providers from settings"""

    @staticmethod
    def create_fetcher(settings: Settings) -> SourceFetcher:
        return HttpSourceFetcher(url_template=settings.source_url_template)

    @staticmethod
    def create_cloud(settings: Settings) -> CloudRenderer:
        """
        Shotstack in live mode, the mock renderer otherwise.

        Falls back to the mock when SHOTSTACK_API_KEY is not set.
        """
        if settings.provider_mode != "live":
            return MockCloudRenderer()
        if not settings.shotstack_api_key:
            logger.warning("SHOTSTACK_API_KEY not set, falling back to mock cloud renderer")
            return MockCloudRenderer()
        return ShotstackRenderer(api_key=settings.shotstack_api_key, environment=settings.shotstack_env)

    @staticmethod
    def create_local(settings: Settings, fetcher: Optional[SourceFetcher] = None) -> LocalRenderer:
        return FFmpegLocalRenderer(
            output_dir=settings.render_output_dir,
            fetcher=fetcher,
            timeout=settings.local_render_timeout,
        )

    @staticmethod
    def create_reviewer(settings: Settings, fetcher: Optional[SourceFetcher] = None) -> VideoReviewer:
        """
        Claude vision reviewer in live mode, the scripted mock otherwise.

        Falls back to the mock when ANTHROPIC_API_KEY is not set.
        """
        if settings.provider_mode != "live":
            return MockReviewer()
        if not settings.anthropic_api_key:
            logger.warning("ANTHROPIC_API_KEY not set, falling back to mock reviewer")
            return MockReviewer()
        client = ClaudeClient(api_key=settings.anthropic_api_key, model=settings.review_model)
        return ClaudeVideoReviewer(
            client=client,
            work_dir=settings.temp_dir,
            frame_count=settings.review_frame_count,
            fetcher=fetcher,
        )

    @classmethod
    def create_all(cls, settings: Settings) -> Providers:
        fetcher = cls.create_fetcher(settings)
        return Providers(
            fetcher=fetcher,
            cloud=cls.create_cloud(settings),
            local=cls.create_local(settings, fetcher),
            reviewer=cls.create_reviewer(settings, fetcher),
            library=JsonVideoLibrary(settings.library_path),
        )


def create_batch_preprocessor(settings: Settings, fetcher: Optional[SourceFetcher] = None) -> BatchPreprocessor:
    """Batch preprocessor wired from settings"""
    preprocessor = ClipPreprocessor(
        fetcher=fetcher or ProviderFactory.create_fetcher(settings),
        temp_dir=settings.temp_dir,
        timeout=settings.transcode_timeout,
    )
    return BatchPreprocessor(preprocessor)


def create_pipeline(settings: Settings, providers: Providers, review: bool = True):
    """
    Orchestrator plus review controller, wired from settings.

    Returns:
        (RenderJobOrchestrator, ReviewReviseController or None when review is off)
    """
    orchestrator = RenderJobOrchestrator.from_settings(
        settings,
        cloud=providers.cloud,
        local=providers.local,
        library=providers.library,
    )
    if not review:
        return orchestrator, None
    controller = ReviewReviseController(
        orchestrator,
        providers.reviewer,
        auto_revise=settings.auto_revise,
    )
    return orchestrator, controller
