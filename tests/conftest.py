"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from looker.models.analysis import DesignFeedback, GoalAssessment, Issue, PageAnalysis
from looker.models.config import LookerConfig, RetryConfig, ViewportConfig
from looker.models.results import (
    IssueCounts,
    PageError,
    PageResult,
    RunResult,
    RunSummary,
    ScreenshotEntry,
)


def make_png(width: int = 40, height: int = 30, color: str = "white") -> bytes:
    """Encode a solid-color PNG of the given size."""
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


ANALYSIS_JSON = """{
  "feedback": {"layoutAndHierarchy": "Clear hierarchy", "typography": "Tight scale"},
  "issues": [
    {"severity": "critical", "category": "layout", "description": "Hero overlaps nav", "element": "header"},
    {"severity": "info", "category": "polish", "description": "Radius mismatch", "element": null}
  ],
  "goalAssessments": [],
  "overallGoalAlignment": 70,
  "topRecommendations": ["Fix the hero"]
}"""

COMPARISON_JSON = """{
  "breakpointQuality": "Smooth",
  "contentParity": "Equal",
  "navigationAdaptation": "Hamburger on mobile",
  "consistencyAcrossSizes": "Consistent",
  "goalConsistency": null,
  "issues": [{"severity": "warning", "category": "responsiveness", "description": "CTA hidden on mobile"}]
}"""


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def mobile() -> ViewportConfig:
    return ViewportConfig(name="mobile", width=375, height=812)


@pytest.fixture
def desktop() -> ViewportConfig:
    return ViewportConfig(name="desktop", width=1440, height=900)


@pytest.fixture
def config(tmp_path: Path, mobile: ViewportConfig, desktop: ViewportConfig) -> LookerConfig:
    """Config with every output directory under tmp_path and no retry delay."""
    return LookerConfig(
        url="https://example.com/",
        no_discover=True,
        viewports=[mobile, desktop],
        cache_dir=str(tmp_path / "cache"),
        screenshot_dir=str(tmp_path / "screenshots"),
        reports_dir=str(tmp_path / "reports"),
        retry=RetryConfig(attempts=3, base_delay=0, max_delay=0),
        analysis={"api_key": "test-key"},
    )


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return make_png


@pytest.fixture
def screenshot_entry(tmp_path: Path, desktop: ViewportConfig) -> ScreenshotEntry:
    """A desktop screenshot entry backed by a real file."""
    path = tmp_path / "shots" / "index" / "desktop.png"
    path.parent.mkdir(parents=True)
    path.write_bytes(make_png())
    return ScreenshotEntry(
        url="https://example.com/",
        viewport=desktop,
        file_path=str(path),
        timestamp="2025-01-01T00:00:00Z",
    )


@pytest.fixture
def page_analysis() -> PageAnalysis:
    return PageAnalysis(
        feedback=DesignFeedback(layout_and_hierarchy="Strong grid", typography="Good scale"),
        issues=[
            Issue(severity="critical", category="layout", description="Nav overlaps hero", element="nav"),
            Issue(severity="warning", category="color", description="Low contrast footer"),
        ],
        goal_assessments=[
            GoalAssessment(goal="Feel premium", alignment="partial", observation="Busy hero",
                           gap="Too many accents", suggestion="Use one accent color"),
        ],
        overall_goal_alignment=60,
        top_recommendations=["Simplify hero", "Raise footer contrast"],
    )


@pytest.fixture
def run_result(screenshot_entry: ScreenshotEntry, page_analysis: PageAnalysis) -> RunResult:
    page = PageResult(
        url="https://example.com/",
        screenshots={"desktop": screenshot_entry},
        analyses={"desktop": page_analysis},
        errors=[PageError(viewport="mobile", error="Capture failed: timeout")],
    )
    return RunResult(
        run_id="run_0001",
        started_at="2025-01-01T00:00:00Z",
        completed_at="2025-01-01T00:01:00Z",
        duration_seconds=60.0,
        pages=[page],
        summary=RunSummary(
            pages_analyzed=1,
            viewports=["desktop (1440px)"],
            total_issues=IssueCounts(critical=1, warning=1),
            average_goal_alignment=60,
            cache_hits=0,
            fresh_captures=1,
        ),
    )


# ============================================================================
# Playwright Mock Fixtures
# ============================================================================


class FakeBrowser:
    """Mock browser that hands out a fresh context (and page) per capture."""

    def __init__(self, screenshot: bytes):
        self.screenshot = screenshot
        self.contexts: list[AsyncMock] = []
        self.new_context = AsyncMock(side_effect=self._new_context)
        self.close = AsyncMock()

    async def _new_context(self, **kwargs):
        page = AsyncMock()
        page.screenshot = AsyncMock(return_value=self.screenshot)
        context = AsyncMock()
        context.new_page = AsyncMock(return_value=page)
        context.page = page
        self.contexts.append(context)
        return context


@pytest.fixture
def fake_browser() -> FakeBrowser:
    return FakeBrowser(make_png(60, 120))


@pytest.fixture
def mock_async_playwright() -> MagicMock:
    """Stand-in for playwright's async_playwright() context manager factory."""
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=MagicMock())
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


# ============================================================================
# Vision Client Fixtures
# ============================================================================


@pytest.fixture
def mock_vision_client() -> MagicMock:
    """VisionClient stand-in returning well-formed JSON replies."""
    client = MagicMock()
    client.analyze = AsyncMock(return_value=ANALYSIS_JSON)
    client.compare = AsyncMock(return_value=COMPARISON_JSON)
    return client
