"""Run orchestrator — coordinates discovery, capture, analysis, comparison and reporting."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import Optional

from looker.ai.client import VisionClient
from looker.analysis.analyzer import analyze_screenshot, compare_viewports, load_custom_prompt
from looker.cache.screenshot_cache import ScreenshotCache
from looker.capture.capture import CaptureResult, ScreenshotCapturer
from looker.crawler import discover_urls
from looker.goals import VisualGoal, get_goals_for_page, load_goals
from looker.models.config import LookerConfig
from looker.models.results import (
    CROSS_VIEWPORT,
    IssueCounts,
    PageError,
    PageResult,
    RunResult,
    RunSummary,
)
from looker.reporter.reporter import Reporter

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates a full review run.

    Analysis runs in two phases that share one concurrency limit: every
    screenshot is analyzed first (Phase A), and only once all of those have
    settled are pages with two or more screenshots compared across viewports
    (Phase B). Failures are recorded on the page and never abort the run.
    """

    def __init__(
        self,
        config: LookerConfig,
        vision_client: Optional[VisionClient] = None,
        cache: Optional[ScreenshotCache] = None,
    ):
        self.config = config
        self.cache = cache or ScreenshotCache(config.cache_dir, disabled=config.no_cache)
        self.vision_client = vision_client
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._custom_prompt: Optional[str] = None
        self._custom_prompt_loaded = False

    def run(self) -> RunResult:
        """Execute the complete discover → capture → analyze → compare → report run."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> RunResult:
        start = time.time()
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        run_id = f"run_{uuid.uuid4().hex[:8]}"
        logger.info("=== Starting review %s ===", run_id)

        # Fails fast on a missing API key or prompt file, before any browser work
        client = self._get_client()
        self._get_custom_prompt()

        goals = load_goals(self.config.goals)
        urls = await discover_urls(self.config)

        self.cache.init()
        logger.info("--- Capture: %d page(s) x %d viewport(s) ---",
                    len(urls), len(self.config.viewports))
        capture_result = await ScreenshotCapturer(self.config, self.cache).capture(urls)

        pages = build_page_results(urls, capture_result)
        await self.analyze_pages(pages, goals, client)

        summary = summarize(pages, self.config)
        summary.cache_hits = capture_result.cache_hits
        summary.fresh_captures = capture_result.fresh_captures

        duration = time.time() - start
        result = RunResult(
            run_id=run_id,
            started_at=started_at,
            completed_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            duration_seconds=round(duration, 2),
            pages=pages,
            summary=summary,
            exit_code=1 if summary.total_issues.exceeds(self.config.fail_on) else 0,
        )

        Reporter(self.config).generate_reports(result)
        logger.info("=== Review complete in %.1fs ===", duration)
        return result

    def _get_client(self) -> VisionClient:
        if self.vision_client is None:
            analysis = self.config.analysis
            debug_dir = Path(self.config.cache_dir) / "debug" if logger.isEnabledFor(logging.DEBUG) else None
            self.vision_client = VisionClient(
                model=analysis.model,
                api_key=analysis.api_key,
                max_tokens=analysis.max_tokens,
                debug_dir=debug_dir,
                provider=analysis.provider,
                api_url=analysis.api_url,
            )
        return self.vision_client

    def _get_custom_prompt(self) -> Optional[str]:
        if not self._custom_prompt_loaded:
            self._custom_prompt = load_custom_prompt(self.config)
            self._custom_prompt_loaded = True
        return self._custom_prompt

    @property
    def semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.config.analysis_concurrency)
        return self._semaphore

    async def analyze_pages(
        self, pages: list[PageResult], goals: list[VisualGoal], client: Optional[VisionClient] = None,
    ) -> None:
        client = client or self._get_client()
        await self.run_analysis_phase(pages, goals, client)
        await self.run_comparison_phase(pages, goals, client)

    async def run_analysis_phase(
        self, pages: list[PageResult], goals: list[VisualGoal], client: VisionClient,
    ) -> None:
        """Phase A: analyze every screenshot. Returns once all tasks have settled."""
        custom_prompt = self._get_custom_prompt()
        tasks = []
        for page in pages:
            page_goals = get_goals_for_page(page.url, goals)
            for vp_name, entry in page.screenshots.items():
                if not Path(entry.file_path).exists():
                    logger.warning("Screenshot missing for %s @ %s, skipping analysis",
                                   page.url, vp_name)
                    page.errors.append(PageError(
                        viewport=vp_name, error=f"Screenshot file not found: {entry.file_path}",
                    ))
                    continue
                tasks.append(self._analyze_one(client, page, vp_name, page_goals, custom_prompt))

        logger.info("--- Phase A: analyzing %d screenshot(s) ---", len(tasks))
        await asyncio.gather(*tasks)
        analyzed = sum(len(p.analyses) for p in pages)
        logger.info("--- Phase A complete: %d/%d analyzed ---", analyzed, len(tasks))

    async def _analyze_one(
        self, client: VisionClient, page: PageResult, vp_name: str,
        page_goals: list[str], custom_prompt: Optional[str],
    ) -> None:
        async with self.semaphore:
            entry = page.screenshots[vp_name]
            try:
                page.analyses[vp_name] = await analyze_screenshot(
                    client, entry, page_goals, self.config, custom_prompt,
                )
            except Exception as e:
                logger.debug("Analysis failed for %s @ %s: %s", page.url, vp_name, e)
                page.errors.append(PageError(viewport=vp_name, error=str(e)))

    async def run_comparison_phase(
        self, pages: list[PageResult], goals: list[VisualGoal], client: VisionClient,
    ) -> None:
        """Phase B: compare pages with at least two screenshots across viewports."""
        candidates = [p for p in pages if len(p.screenshots) >= 2]
        if not candidates:
            return

        logger.info("--- Phase B: comparing viewports for %d page(s) ---", len(candidates))
        await asyncio.gather(*(self._compare_one(client, p, goals) for p in candidates))
        compared = sum(1 for p in candidates if p.cross_viewport_analysis is not None)
        logger.info("--- Phase B complete: %d/%d compared ---", compared, len(candidates))

    async def _compare_one(self, client: VisionClient, page: PageResult, goals: list[VisualGoal]) -> None:
        async with self.semaphore:
            try:
                page.cross_viewport_analysis = await compare_viewports(
                    client, page.url, page.screenshots,
                    get_goals_for_page(page.url, goals), self.config,
                )
            except Exception as e:
                logger.debug("Cross-viewport comparison failed for %s: %s", page.url, e)
                page.errors.append(PageError(viewport=CROSS_VIEWPORT, error=str(e)))


def build_page_results(urls: list[str], capture_result: CaptureResult) -> list[PageResult]:
    """One PageResult per URL, in discovery order, carrying any capture failures."""
    pages = []
    for url in urls:
        pages.append(PageResult(
            url=url,
            screenshots=dict(capture_result.entries.get(url, {})),
            errors=list(capture_result.failures.get(url, [])),
        ))
    return pages


def summarize(pages: list[PageResult], config: LookerConfig) -> RunSummary:
    counts = IssueCounts()
    alignments: list[int] = []

    for page in pages:
        issues = [i for a in page.analyses.values() for i in a.issues]
        if page.cross_viewport_analysis:
            issues.extend(page.cross_viewport_analysis.issues)
        for issue in issues:
            setattr(counts, issue.severity, getattr(counts, issue.severity) + 1)
        alignments.extend(
            a.overall_goal_alignment for a in page.analyses.values()
            if a.overall_goal_alignment is not None
        )

    return RunSummary(
        pages_analyzed=len(pages),
        viewports=[v.label for v in config.viewports],
        total_issues=counts,
        average_goal_alignment=round(sum(alignments) / len(alignments)) if alignments else None,
    )
