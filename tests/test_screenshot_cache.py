"""Tests for the screenshot cache."""

import json
from pathlib import Path

import pytest

from looker.cache.screenshot_cache import MANIFEST_FILE, ScreenshotCache
from looker.models.config import CaptureOptions, ViewportConfig


@pytest.fixture
def cache(tmp_path: Path) -> ScreenshotCache:
    store = ScreenshotCache(tmp_path / "cache")
    store.init()
    return store


class TestGenerateKey:
    """Tests for cache key derivation."""

    def test_deterministic(self, desktop):
        opts = CaptureOptions(delay=500, dark_mode=True)
        assert ScreenshotCache.generate_key("https://a.com/", desktop, opts) == \
            ScreenshotCache.generate_key("https://a.com/", desktop, opts)

    def test_sixteen_hex_chars(self, desktop):
        key = ScreenshotCache.generate_key("https://a.com/", desktop)
        assert len(key) == 16
        int(key, 16)

    def test_independent_of_option_order(self, desktop):
        a = {"delay": 100, "wait_for": "#app", "hide_selectors": [".ad"]}
        b = {"hide_selectors": [".ad"], "wait_for": "#app", "delay": 100}
        assert ScreenshotCache.generate_key("https://a.com/", desktop, a) == \
            ScreenshotCache.generate_key("https://a.com/", desktop, b)

    def test_model_and_mapping_agree(self, desktop):
        opts = CaptureOptions(delay=100, timeout=5000)
        as_dict = {"delay": 100, "timeout": 5000}
        assert ScreenshotCache.generate_key("https://a.com/", desktop, opts) == \
            ScreenshotCache.generate_key("https://a.com/", desktop, as_dict)

    def test_viewport_name_not_part_of_key(self):
        a = ViewportConfig(name="desktop", width=1440, height=900)
        b = ViewportConfig(name="laptop", width=1440, height=900)
        assert ScreenshotCache.generate_key("https://a.com/", a) == ScreenshotCache.generate_key("https://a.com/", b)

    def test_sensitive_to_inputs(self, desktop, mobile):
        base = ScreenshotCache.generate_key("https://a.com/", desktop, CaptureOptions())
        assert ScreenshotCache.generate_key("https://a.com/x", desktop, CaptureOptions()) != base
        assert ScreenshotCache.generate_key("https://a.com/", mobile, CaptureOptions()) != base
        assert ScreenshotCache.generate_key("https://a.com/", desktop, CaptureOptions(dark_mode=True)) != base
        assert ScreenshotCache.generate_key(
            "https://a.com/", desktop, CaptureOptions(hide_selectors=[".x"])) != base

    def test_width_alone_changes_key(self, desktop):
        narrower = ViewportConfig(name=desktop.name, width=desktop.width - 1, height=desktop.height)
        assert ScreenshotCache.generate_key("https://a.com/", narrower) != \
            ScreenshotCache.generate_key("https://a.com/", desktop)

    def test_height_alone_changes_key(self, desktop):
        taller = ViewportConfig(name=desktop.name, width=desktop.width, height=desktop.height + 1)
        assert ScreenshotCache.generate_key("https://a.com/", taller) != \
            ScreenshotCache.generate_key("https://a.com/", desktop)


class TestStoreAndLookup:
    """Tests for get_cached / set_cached."""

    def test_miss_on_empty_cache(self, cache):
        assert cache.get_cached("0123456789abcdef") is None

    def test_round_trip(self, cache, desktop, png_factory):
        data = png_factory()
        path = cache.set_cached("abc", data, "https://a.com/", desktop)

        assert path == cache.cache_dir / "abc.png"
        assert cache.get_cached("abc") == data

    def test_manifest_written_on_store(self, cache, desktop, png_factory):
        cache.set_cached("abc", png_factory(), "https://a.com/", desktop)

        manifest = json.loads((cache.cache_dir / MANIFEST_FILE).read_text())
        entry = manifest["entries"]["abc"]
        assert entry["url"] == "https://a.com/"
        assert entry["viewport"]["width"] == 1440
        assert entry["file_path"] == "abc.png"
        assert entry["timestamp"]

    def test_persists_across_instances(self, cache, desktop, png_factory):
        data = png_factory()
        cache.set_cached("abc", data, "https://a.com/", desktop)

        reopened = ScreenshotCache(cache.cache_dir)
        reopened.init()
        assert reopened.get_cached("abc") == data

    def test_stale_entry_dropped_in_memory_only(self, cache, desktop, png_factory):
        cache.set_cached("abc", png_factory(), "https://a.com/", desktop)
        (cache.cache_dir / "abc.png").unlink()

        assert cache.get_cached("abc") is None
        assert "abc" not in cache.manifest.entries
        on_disk = json.loads((cache.cache_dir / MANIFEST_FILE).read_text())
        assert "abc" in on_disk["entries"]

    def test_corrupt_manifest_treated_as_empty(self, tmp_path):
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        (cache_dir / MANIFEST_FILE).write_text("{not json")

        store = ScreenshotCache(cache_dir)
        store.init()
        assert store.manifest.entries == {}

    def test_wrong_shape_manifest_treated_as_empty(self, tmp_path):
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        (cache_dir / MANIFEST_FILE).write_text('{"entries": {"k": {"url": 3}}}')

        store = ScreenshotCache(cache_dir)
        store.init()
        assert store.manifest.entries == {}


class TestDisabledCache:
    """A disabled cache is a complete bypass."""

    def test_never_hits_and_never_writes(self, tmp_path, desktop, png_factory):
        store = ScreenshotCache(tmp_path / "cache", disabled=True)
        store.init()

        assert store.set_cached("abc", png_factory(), "https://a.com/", desktop) is None
        assert store.get_cached("abc") is None
        assert not (tmp_path / "cache").exists()


class TestClearCache:
    """Tests for clear_cache."""

    def test_empties_manifest(self, cache, desktop, png_factory):
        cache.set_cached("abc", png_factory(), "https://a.com/", desktop)
        cache.clear_cache()

        assert cache.get_cached("abc") is None
        manifest = json.loads((cache.cache_dir / MANIFEST_FILE).read_text())
        assert manifest["entries"] == {}
