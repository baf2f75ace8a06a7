"""Per-viewport analysis and cross-viewport comparison of captured screenshots."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from looker.ai.client import VisionClient
from looker.ai.prompts.analysis import build_analysis_prompt
from looker.ai.prompts.comparison import build_comparison_prompt
from looker.errors import ConfigError, ScreenshotMissingError
from looker.models.analysis import CrossViewportAnalysis, PageAnalysis
from looker.models.config import LookerConfig
from looker.models.results import ScreenshotEntry
from looker.utils.retry import retry_with_backoff

from .parser import parse_analysis_response, parse_comparison_response

logger = logging.getLogger(__name__)


def load_custom_prompt(config: LookerConfig) -> Optional[str]:
    if not config.analysis.prompt:
        return None
    path = Path(config.analysis.prompt)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read prompt file {path}: {e}") from e


async def analyze_screenshot(
    client: VisionClient,
    entry: ScreenshotEntry,
    goals: list[str],
    config: LookerConfig,
    custom_prompt: Optional[str] = None,
) -> PageAnalysis:
    """Run the design review prompt on one screenshot."""
    path = Path(entry.file_path)
    if not path.exists():
        raise ScreenshotMissingError(entry.file_path)
    image = path.read_bytes()

    prompt = build_analysis_prompt(entry.url, entry.viewport, goals, custom_prompt, config.focus)
    retry = config.retry
    raw = await retry_with_backoff(
        lambda: client.analyze(image, prompt),
        attempts=retry.attempts,
        base_delay=retry.base_delay,
        max_delay=retry.max_delay,
        on_retry=lambda err, attempt: logger.debug(
            "API retry %d for %s @ %s: %s", attempt, entry.url, entry.viewport.name, err),
    )
    return parse_analysis_response(raw)


async def compare_viewports(
    client: VisionClient,
    url: str,
    screenshots: dict[str, ScreenshotEntry],
    goals: list[str],
    config: LookerConfig,
) -> Optional[CrossViewportAnalysis]:
    """Compare one page across viewports. Returns None when fewer than two images exist."""
    images: list[tuple[str, bytes]] = []
    for name, entry in screenshots.items():
        path = Path(entry.file_path)
        if not path.exists():
            logger.warning("Skipping missing screenshot for comparison: %s (%s)", name, path)
            continue
        images.append((name, path.read_bytes()))

    if len(images) < 2:
        logger.debug("Only %d viewport(s) available for comparison of %s, skipping",
                     len(images), url)
        return None

    prompt = build_comparison_prompt(url, [name for name, _ in images], goals)
    retry = config.retry
    raw = await retry_with_backoff(
        lambda: client.compare(images, prompt),
        attempts=retry.attempts,
        base_delay=retry.base_delay,
        max_delay=retry.max_delay,
        on_retry=lambda err, attempt: logger.debug(
            "Comparison API retry %d for %s: %s", attempt, url, err),
    )
    return parse_comparison_response(raw)
