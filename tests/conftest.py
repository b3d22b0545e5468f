"""Shared pytest fixtures"""

import pytest

from core.library import JsonVideoLibrary
from core.orchestrator import RenderJobOrchestrator
from core.providers.mock import MockCloudRenderer, MockReviewer
from tests.mocks.claude_client import MockClaudeClient
from tests.mocks.fixtures import (
    FakeFetcher,
    FakeLocalRenderer,
    RecordingLibrary,
    make_plan,
)


# ============================================================
# Mock Claude Client
# ============================================================

@pytest.fixture
def mock_claude_client():
    """Fresh mock Claude client for each test"""
    client = MockClaudeClient(debug=False)
    yield client
    client.reset()


# ============================================================
# Providers
# ============================================================

@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def mock_cloud():
    """Mock cloud renderer with no simulated latency"""
    return MockCloudRenderer(delay=0)


@pytest.fixture
def mock_reviewer():
    """Scripted reviewer: 4.0 with a revised plan, then 7.0"""
    return MockReviewer(scores=[4.0, 7.0], delay=0)


@pytest.fixture
def local_renderer():
    return FakeLocalRenderer()


@pytest.fixture
def library():
    return RecordingLibrary()


@pytest.fixture
def json_library(tmp_path):
    return JsonVideoLibrary(str(tmp_path / "library" / "video_library.json"))


@pytest.fixture
def orchestrator(mock_cloud, local_renderer, library):
    """Orchestrator that polls without sleeping"""
    return RenderJobOrchestrator(
        cloud=mock_cloud,
        local=local_renderer,
        library=library,
        poll_interval=0,
        max_poll_attempts=20,
    )


# ============================================================
# Test Data Fixtures
# ============================================================

@pytest.fixture
def sample_plan():
    """Three-clip game day plan"""
    return make_plan(3)


# ============================================================
# Markers Configuration
# ============================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "live_api: marks tests that hit real APIs (requires keys)"
    )
