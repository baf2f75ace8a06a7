"""URL discovery — sitemap, URL list file, configured pages or same-origin links."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.parse import urldefrag, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from looker.errors import ConfigError
from looker.models.config import LookerConfig
from looker.url_utils import same_origin

logger = logging.getLogger(__name__)

_SKIP_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:")
_ASSET_EXT = re.compile(r"\.(css|js|png|jpe?g|gif|svg|ico|woff2?|ttf|eot|pdf|zip)$", re.IGNORECASE)

REQUEST_TIMEOUT = 30.0


async def discover_urls(config: LookerConfig, client: httpx.AsyncClient | None = None) -> list[str]:
    """Resolve the list of page URLs to review, filtered, limited and de-duplicated."""
    own_client = client is None
    client = client or httpx.AsyncClient(follow_redirects=True, timeout=REQUEST_TIMEOUT)
    try:
        if config.sitemap:
            urls = await fetch_sitemap(client, config.sitemap)
        elif config.urls_file:
            urls = load_url_file(config.urls_file)
        elif config.pages and config.url:
            base = config.url.rstrip("/")
            urls = [p if p.startswith("http") else f"{base}/{p.lstrip('/')}" for p in config.pages]
        elif config.url:
            urls = [config.url] if config.no_discover else await discover_links(client, config.url)
        else:
            urls = []
    finally:
        if own_client:
            await client.aclose()

    if not urls:
        raise ConfigError("No URLs to analyze. Provide --url, --sitemap, or --urls.")

    if config.include:
        pattern = re.compile(config.include)
        urls = [u for u in urls if pattern.search(u)]
    if config.exclude:
        pattern = re.compile(config.exclude)
        urls = [u for u in urls if not pattern.search(u)]

    if not urls:
        logger.warning("Include/exclude filters removed every discovered URL")

    urls = list(dict.fromkeys(urls))
    if len(urls) > config.max_pages:
        logger.warning("Limiting to %d pages (found %d). Use --max-pages to adjust.",
                       config.max_pages, len(urls))
        urls = urls[:config.max_pages]

    logger.info("Discovered %d URL(s) to analyze", len(urls))
    return urls


async def discover_links(client: httpx.AsyncClient, start_url: str) -> list[str]:
    """Start URL plus every same-origin page linked from it."""
    logger.debug("Discovering links from %s", start_url)
    try:
        response = await client.get(start_url)
    except httpx.HTTPError as e:
        logger.warning("Link discovery failed for %s: %s", start_url, e)
        return [start_url]
    if response.status_code >= 400:
        logger.warning("Failed to fetch %s for link discovery: %d", start_url, response.status_code)
        return [start_url]

    urls = [start_url]
    soup = BeautifulSoup(response.text, "html.parser")
    for anchor in soup.select("a[href], area[href]"):
        href = anchor["href"].strip()
        if href.startswith(_SKIP_PREFIXES):
            continue
        resolved, _ = urldefrag(urljoin(start_url, href))
        if not same_origin(resolved, start_url):
            continue
        if _ASSET_EXT.search(urlparse(resolved).path):
            continue
        normalized = resolved.rstrip("/") or resolved
        if normalized not in urls and normalized != start_url.rstrip("/"):
            urls.append(normalized)

    logger.debug("Discovered %d page(s) from %s", len(urls), start_url)
    return urls


async def fetch_sitemap(client: httpx.AsyncClient, sitemap_url: str) -> list[str]:
    """Page URLs listed in a sitemap, following nested sitemap indexes."""
    logger.debug("Fetching sitemap: %s", sitemap_url)
    response = await client.get(sitemap_url)
    response.raise_for_status()

    urls: list[str] = []
    soup = BeautifulSoup(response.text, "html.parser")
    for tag in soup.find_all("loc"):
        loc = tag.get_text(strip=True)
        if not loc:
            continue
        if loc.endswith(".xml") or "sitemap" in loc:
            urls.extend(await fetch_sitemap(client, loc))
        else:
            urls.append(loc)

    logger.debug("Sitemap yielded %d URLs", len(urls))
    return urls


def load_url_file(file_path: str) -> list[str]:
    path = Path(file_path)
    if not path.exists():
        raise ConfigError(f"URL file not found: {path}")
    urls = [
        line.strip() for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    logger.debug("URL file yielded %d URLs", len(urls))
    return urls
