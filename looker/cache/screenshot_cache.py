"""Screenshot cache — content-addressed PNG store with a JSON manifest."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from looker.models.cache import CacheManifest, CacheManifestEntry
from looker.models.config import CaptureOptions, ViewportConfig

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = "./looker-cache"
MANIFEST_FILE = "manifest.json"
KEY_LENGTH = 16


def _canonical_options(options: CaptureOptions | Mapping[str, Any] | None) -> dict[str, Any] | None:
    if options is None:
        return None
    if isinstance(options, BaseModel):
        return options.model_dump(exclude_none=True)
    return {k: v for k, v in options.items() if v is not None}


class ScreenshotCache:
    """Maps (url, viewport, capture options) keys to stored screenshots.

    The manifest is the only index; it is rewritten in full after every store.
    When disabled, every lookup misses and every store is a no-op.
    """

    def __init__(self, cache_dir: str | Path | None = None, disabled: bool = False):
        self.cache_dir = Path(cache_dir or DEFAULT_CACHE_DIR).resolve()
        self.manifest_path = self.cache_dir / MANIFEST_FILE
        self.disabled = disabled
        self.manifest = CacheManifest()

    def init(self) -> None:
        """Create the cache directory and load the manifest if one exists."""
        if self.disabled:
            return

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        if not self.manifest_path.exists():
            return

        try:
            with open(self.manifest_path) as f:
                data = json.load(f)
            self.manifest = CacheManifest(**data)
            logger.debug("Cache loaded: %d entries", len(self.manifest.entries))
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Cache manifest corrupted (%s), starting fresh", e)
            self.manifest = CacheManifest()

    @staticmethod
    def generate_key(
        url: str,
        viewport: ViewportConfig,
        capture_options: CaptureOptions | Mapping[str, Any] | None = None,
    ) -> str:
        """Deterministic key for a capture request, independent of field order.

        The viewport name is display-only and does not take part in the key.
        """
        payload = {
            "url": url,
            "viewport": {"width": viewport.width, "height": viewport.height},
            "capture_options": _canonical_options(capture_options),
        }
        data = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(data.encode()).hexdigest()[:KEY_LENGTH]

    def get_cached(self, key: str) -> Optional[bytes]:
        """Return stored bytes for key, or None on a miss.

        An entry whose file has disappeared is dropped from the in-memory
        manifest; the manifest file is left alone until the next store.
        """
        if self.disabled:
            return None

        entry = self.manifest.entries.get(key)
        if entry is None:
            return None

        path = self.cache_dir / entry.file_path
        if not path.exists():
            logger.debug("Cache entry %s points at missing file %s, dropping", key, path)
            del self.manifest.entries[key]
            return None

        try:
            data = path.read_bytes()
        except OSError as e:
            logger.debug("Could not read cached screenshot %s: %s", path, e)
            return None
        logger.debug("Cache hit: %s @ %s", entry.url, entry.viewport.name)
        return data

    def set_cached(self, key: str, screenshot: bytes, url: str, viewport: ViewportConfig) -> Optional[Path]:
        """Store bytes under key and persist the manifest before returning."""
        if self.disabled:
            return None

        file_name = f"{key}.png"
        path = self.cache_dir / file_name
        path.write_bytes(screenshot)

        self.manifest.entries[key] = CacheManifestEntry(
            url=url,
            viewport=viewport,
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            file_path=file_name,
        )
        self._save_manifest()
        logger.debug("Cached: %s @ %s", url, viewport.name)
        return path

    def clear_cache(self) -> None:
        """Reset the manifest to empty. Stored PNG files are not deleted."""
        self.manifest = CacheManifest()
        if self.disabled:
            return
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._save_manifest()
        logger.info("Cache cleared")

    def _save_manifest(self) -> None:
        tmp_path = self.manifest_path.with_suffix(".json.tmp")
        with open(tmp_path, "w") as f:
            json.dump(self.manifest.model_dump(), f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self.manifest_path)
