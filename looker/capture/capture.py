"""Screenshot capture — cache lookup, browser capture with retries, normalization."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, async_playwright

from looker.cache.screenshot_cache import ScreenshotCache
from looker.models.config import AuthState, LookerConfig, ViewportConfig
from looker.models.results import PageError, ScreenshotEntry
from looker.url_utils import slugify
from looker.utils.retry import retry_with_backoff

from .browser import capture_page, launch_browser, prepare_page
from .normalizer import normalize_image

logger = logging.getLogger(__name__)


@dataclass
class CaptureResult:
    entries: dict[str, dict[str, ScreenshotEntry]] = field(default_factory=dict)  # url -> viewport -> entry
    failures: dict[str, list[PageError]] = field(default_factory=dict)  # url -> errors

    @property
    def cache_hits(self) -> int:
        return sum(1 for vp in self.entries.values() for e in vp.values() if e.cached)

    @property
    def fresh_captures(self) -> int:
        return sum(1 for vp in self.entries.values() for e in vp.values() if not e.cached)

    def add(self, entry: ScreenshotEntry) -> None:
        self.entries.setdefault(entry.url, {})[entry.viewport.name] = entry

    def fail(self, url: str, viewport: ViewportConfig, error: Exception) -> None:
        self.failures.setdefault(url, []).append(
            PageError(viewport=viewport.name, error=f"Capture failed: {error}")
        )


class ScreenshotCapturer:
    """Captures every (url, viewport) pair, reusing cached screenshots where possible.

    Cache hits are restored into the working directory without touching the
    browser. Misses share one Chromium instance, each in its own context,
    bounded by `capture_concurrency`. A pair that fails all retries is
    recorded in `CaptureResult.failures` and does not affect other pairs.
    """

    def __init__(self, config: LookerConfig, cache: ScreenshotCache):
        self.config = config
        self.cache = cache
        self.screenshot_dir = Path(config.screenshot_dir).resolve()
        self.use_cache = not (config.no_cache or config.fresh)

    def working_path(self, url: str, viewport: ViewportConfig) -> Path:
        return self.screenshot_dir / slugify(url) / f"{viewport.name}.png"

    async def capture(self, urls: list[str]) -> CaptureResult:
        result = CaptureResult()
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)

        options = self.config.effective_capture
        misses: list[tuple[str, ViewportConfig, str]] = []
        for url in urls:
            for viewport in self.config.viewports:
                key = self.cache.generate_key(url, viewport, options)
                entry = self._restore_from_cache(key, url, viewport) if self.use_cache else None
                if entry:
                    result.add(entry)
                else:
                    misses.append((url, viewport, key))

        total = len(urls) * len(self.config.viewports)
        logger.info("Screenshots: %d cached, %d to capture", total - len(misses), len(misses))
        if misses:
            await self._capture_misses(misses, result)

        logger.info("Captured %d/%d screenshot(s)",
                    sum(len(v) for v in result.entries.values()), total)
        return result

    def _restore_from_cache(self, key: str, url: str, viewport: ViewportConfig) -> Optional[ScreenshotEntry]:
        cached = self.cache.get_cached(key)
        if cached is None:
            return None

        path = self.working_path(url, viewport)
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(cached)
            logger.debug("Restored cached screenshot to %s", path)

        return ScreenshotEntry(
            url=url, viewport=viewport, file_path=str(path),
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ"), cached=True,
        )

    async def _capture_misses(
        self, misses: list[tuple[str, ViewportConfig, str]], result: CaptureResult,
    ) -> None:
        auth = AuthState.load(self.config.auth) if self.config.auth else None

        async with async_playwright() as p:
            logger.debug("Launching Chromium for %d capture(s)...", len(misses))
            browser = await launch_browser(p)
            semaphore = asyncio.Semaphore(self.config.capture_concurrency)
            completed = 0

            async def _run_one(url: str, viewport: ViewportConfig, key: str) -> None:
                nonlocal completed
                async with semaphore:
                    try:
                        entry = await self._capture_fresh(browser, url, viewport, key, auth)
                        result.add(entry)
                    except Exception as e:
                        logger.warning("Capture failed for %s @ %s: %s", url, viewport.name, e)
                        result.fail(url, viewport, e)
                    finally:
                        completed += 1
                        logger.debug("Capturing screenshots (%d/%d)", completed, len(misses))

            try:
                await asyncio.gather(*(_run_one(u, vp, k) for u, vp, k in misses))
            finally:
                await browser.close()

    async def _capture_fresh(
        self,
        browser: Browser,
        url: str,
        viewport: ViewportConfig,
        key: str,
        auth: Optional[AuthState],
    ) -> ScreenshotEntry:
        options = self.config.capture
        retry = self.config.retry

        async def _attempt() -> bytes:
            async with capture_page(browser, viewport, bool(options.dark_mode), auth) as page:
                await prepare_page(page, url, options, self.config.hide_selectors, auth)
                return await page.screenshot(full_page=True, type="png")

        raw = await retry_with_backoff(
            _attempt,
            attempts=retry.attempts,
            base_delay=retry.base_delay,
            max_delay=retry.max_delay,
            on_retry=lambda err, attempt: logger.debug(
                "Retry %d for %s @ %s: %s", attempt, url, viewport.name, err),
        )

        screenshot = normalize_image(raw)

        path = self.working_path(url, viewport)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(screenshot)
        self.cache.set_cached(key, screenshot, url, viewport)

        return ScreenshotEntry(
            url=url, viewport=viewport, file_path=str(path),
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ"), cached=False,
        )


async def capture_screenshots(
    urls: list[str], config: LookerConfig, cache: ScreenshotCache,
) -> CaptureResult:
    """Capture every url at every configured viewport."""
    return await ScreenshotCapturer(config, cache).capture(urls)
