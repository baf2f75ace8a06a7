"""Screenshot cache manifest data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field

from looker.models.config import ViewportConfig


class CacheManifestEntry(BaseModel):
    url: str
    viewport: ViewportConfig
    timestamp: str  # ISO timestamp
    file_path: str  # relative path from cache_dir to the PNG


class CacheManifest(BaseModel):
    entries: dict[str, CacheManifestEntry] = Field(default_factory=dict)
    # key: truncated SHA-256 of (url, viewport size, capture options)
