"""Shared URL utilities — page slugs and same-origin checks."""

from __future__ import annotations

from urllib.parse import urlparse


def slugify(url: str) -> str:
    """Directory-safe slug for a page URL: '/docs/intro/' -> 'docs-intro', '/' -> 'index'."""
    path = urlparse(url).path.rstrip("/")
    return path.lstrip("/").replace("/", "-") or "index"


def page_path(url: str) -> str:
    """URL path without a trailing slash; the root path stays '/'."""
    return urlparse(url).path.rstrip("/") or "/"


def same_origin(a: str, b: str) -> bool:
    pa, pb = urlparse(a), urlparse(b)
    return (pa.scheme, pa.netloc) == (pb.scheme, pb.netloc)
