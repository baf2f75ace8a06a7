"""Run result data structures produced by capture and analysis."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from looker.models.analysis import CrossViewportAnalysis, PageAnalysis
from looker.models.config import ViewportConfig

CROSS_VIEWPORT = "cross-viewport"


class ScreenshotEntry(BaseModel):
    url: str
    viewport: ViewportConfig
    file_path: str  # working-directory path handed to analysis
    timestamp: str
    cached: bool = False  # informational only


class PageError(BaseModel):
    viewport: str  # viewport name, or "cross-viewport"
    error: str


class PageResult(BaseModel):
    url: str
    screenshots: dict[str, ScreenshotEntry] = Field(default_factory=dict)  # viewport name -> entry
    analyses: dict[str, PageAnalysis] = Field(default_factory=dict)  # viewport name -> analysis
    cross_viewport_analysis: Optional[CrossViewportAnalysis] = None
    errors: list[PageError] = Field(default_factory=list)


class IssueCounts(BaseModel):
    critical: int = 0
    warning: int = 0
    info: int = 0

    def exceeds(self, threshold: Optional[str]) -> bool:
        """True when any issue at or above the given severity exists."""
        if threshold == "critical":
            return self.critical > 0
        if threshold == "warning":
            return self.critical + self.warning > 0
        if threshold == "info":
            return self.critical + self.warning + self.info > 0
        return False


class RunSummary(BaseModel):
    pages_analyzed: int = 0
    viewports: list[str] = Field(default_factory=list)
    total_issues: IssueCounts = Field(default_factory=IssueCounts)
    average_goal_alignment: Optional[int] = None
    cache_hits: int = 0
    fresh_captures: int = 0


class RunResult(BaseModel):
    run_id: str
    started_at: str
    completed_at: str = ""
    duration_seconds: float = 0.0
    pages: list[PageResult] = Field(default_factory=list)
    summary: RunSummary = Field(default_factory=RunSummary)
    exit_code: int = 0  # 0 ok, 1 fail_on threshold hit, 2 fatal error
