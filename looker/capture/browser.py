"""Browser helpers — isolated capture contexts and page preparation for Playwright."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, Page, Playwright

from looker.models.config import AuthState, CaptureOptions, ViewportConfig

logger = logging.getLogger(__name__)

DISABLE_ANIMATIONS_CSS = """
*, *::before, *::after {
  animation-duration: 0s !important;
  animation-delay: 0s !important;
  transition-duration: 0s !important;
  transition-delay: 0s !important;
}
"""

# Scrolls in viewport-height steps so IntersectionObserver / lazy-loaded
# content renders, then returns to the top and lets the page settle.
_SCROLL_REVEAL_SCRIPT = """
async () => {
  const delay = (ms) => new Promise((r) => setTimeout(r, ms));
  const scrollHeight = document.body.scrollHeight;
  const viewportHeight = window.innerHeight;
  let position = 0;
  while (position < scrollHeight) {
    position += viewportHeight;
    window.scrollTo(0, position);
    await delay(250);
  }
  window.scrollTo(0, document.body.scrollHeight);
  await delay(300);
  window.scrollTo(0, 0);
  await delay(500);
}
"""

_SET_LOCAL_STORAGE_SCRIPT = "([k, v]) => localStorage.setItem(k, v)"


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch the shared Chromium instance used for all captures in a run."""
    return await playwright.chromium.launch(headless=headless)


def hide_selectors_css(selectors: list[str]) -> str:
    return "\n".join(f"{s} {{ display: none !important; }}" for s in selectors)


@asynccontextmanager
async def capture_page(
    browser: Browser,
    viewport: ViewportConfig,
    dark_mode: bool = False,
    auth: Optional[AuthState] = None,
) -> AsyncIterator[Page]:
    """Open a fresh context + page for one capture; both are closed on every exit path."""
    context = await browser.new_context(
        viewport={"width": viewport.width, "height": viewport.height},
        color_scheme="dark" if dark_mode else "light",
    )
    try:
        if auth and auth.cookies:
            await context.add_cookies([c.model_dump() for c in auth.cookies])
        page = await context.new_page()
        try:
            yield page
        finally:
            await page.close()
    finally:
        await context.close()


async def prepare_page(
    page: Page,
    url: str,
    options: CaptureOptions,
    hide_selectors: list[str],
    auth: Optional[AuthState] = None,
) -> None:
    """Navigate to url and apply waits, style overrides and auth state."""
    timeout = options.timeout
    await page.goto(url, wait_until="networkidle", timeout=timeout)

    if auth and auth.local_storage:
        for key, value in auth.local_storage.items():
            await page.evaluate(_SET_LOCAL_STORAGE_SCRIPT, [key, value])
        await page.goto(url, wait_until="networkidle", timeout=timeout)

    if options.wait_for:
        await page.wait_for_selector(options.wait_for, timeout=timeout)

    if options.delay:
        await asyncio.sleep(options.delay / 1000)

    if options.no_animations:
        await page.add_style_tag(content=DISABLE_ANIMATIONS_CSS)

    if hide_selectors:
        await page.add_style_tag(content=hide_selectors_css(hide_selectors))

    if options.scroll_reveal is not False:
        await scroll_to_reveal_content(page)


async def scroll_to_reveal_content(page: Page) -> None:
    await page.evaluate(_SCROLL_REVEAL_SCRIPT)
