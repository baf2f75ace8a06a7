"""Configuration models for looker."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from looker.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (".lookerrc.json", "looker.config.json")

DEFAULT_URL = "https://websiteqsltemp.vercel.app/"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_OPENAI_MODEL = "gpt-4o"
OPENAI_MODEL_PREFIXES = ("gpt", "o1", "o3")
DEFAULT_TIMEOUT_MS = 30000

Provider = Literal["claude", "openai"]


class ViewportConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @property
    def label(self) -> str:
        return f"{self.name} ({self.width}px)"


DEFAULT_VIEWPORTS: list[ViewportConfig] = [
    ViewportConfig(name="mobile", width=375, height=812),
    ViewportConfig(name="tablet", width=768, height=1024),
    ViewportConfig(name="desktop", width=1440, height=900),
    ViewportConfig(name="wide", width=1920, height=1080),
]


class CaptureOptions(BaseModel):
    """Per-run page preparation settings. Every field participates in the cache key."""

    delay: Optional[int] = Field(default=None, ge=0)  # ms
    wait_for: Optional[str] = None
    hide_selectors: Optional[list[str]] = None
    no_animations: Optional[bool] = None
    dark_mode: Optional[bool] = None
    timeout: Optional[int] = Field(default=DEFAULT_TIMEOUT_MS, gt=0)  # ms
    scroll_reveal: Optional[bool] = None


def resolve_provider(model: Optional[str]) -> Provider:
    """Infer the vision provider from a model name."""
    if model and model.startswith(OPENAI_MODEL_PREFIXES):
        return "openai"
    return "claude"


class AnalysisConfig(BaseModel):
    provider: Optional[Provider] = None  # inferred from the model when unset
    model: str = DEFAULT_MODEL
    api_key: Optional[str] = None
    api_url: Optional[str] = None  # custom endpoint, e.g. an OpenAI-compatible gateway
    prompt: Optional[str] = None  # path to a custom prompt template
    max_tokens: int = 4096

    @model_validator(mode="after")
    def _fill_provider(self) -> "AnalysisConfig":
        if self.provider is None:
            self.provider = resolve_provider(self.model)
        if self.provider == "openai" and self.model == DEFAULT_MODEL:
            self.model = DEFAULT_OPENAI_MODEL
        return self


class RetryConfig(BaseModel):
    attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)  # seconds
    max_delay: float = Field(default=10.0, ge=0)  # seconds


class AuthCookie(BaseModel):
    name: str
    value: str
    domain: str
    path: str = "/"


class AuthState(BaseModel):
    cookies: list[AuthCookie] = Field(default_factory=list)
    local_storage: dict[str, str] = Field(default_factory=dict, alias="localStorage")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def load(cls, path: str | Path) -> "AuthState":
        """Load cookies and localStorage values from an auth JSON file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Auth file not found: {path}")
        try:
            with open(path) as f:
                return cls(**json.load(f))
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Invalid auth file {path}: {e}") from e


class LookerConfig(BaseModel):
    # Input
    url: Optional[str] = DEFAULT_URL
    sitemap: Optional[str] = None
    urls_file: Optional[str] = None
    pages: list[str] = Field(default_factory=list)
    max_pages: int = Field(default=10, gt=0)
    include: Optional[str] = None
    exclude: Optional[str] = None
    no_discover: bool = False

    # Viewports
    viewports: list[ViewportConfig] = Field(default_factory=lambda: list(DEFAULT_VIEWPORTS))

    # Capture
    capture: CaptureOptions = Field(default_factory=CaptureOptions)
    hide: list[str] = Field(default_factory=list)
    auth: Optional[str] = None  # path to auth JSON
    capture_concurrency: int = Field(default=3, gt=0)

    # Goals
    goals: Optional[str] = None

    # Analysis
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    focus: Optional[str] = None
    analysis_concurrency: int = Field(default=5, gt=0)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    # Output
    output: Literal["console", "markdown", "html", "json"] = "console"
    output_file: Optional[str] = None
    reports_dir: str = "./reports"

    # Cache
    no_cache: bool = False
    fresh: bool = False  # recapture even when the cache has an entry
    cache_dir: str = "./looker-cache"
    screenshot_dir: str = "./screenshots"

    # CI
    fail_on: Optional[Literal["critical", "warning", "info"]] = None

    @property
    def hide_selectors(self) -> list[str]:
        return [*(self.capture.hide_selectors or []), *self.hide]

    @property
    def effective_capture(self) -> CaptureOptions:
        """Capture options with the top-level `hide` list folded in, as used for the cache key."""
        return self.capture.model_copy(update={"hide_selectors": self.hide_selectors or None})

    @classmethod
    def load(cls, path: str | Path) -> "LookerConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(exclude_none=True), f, indent=2)

    @classmethod
    def resolve(
        cls, overrides: dict[str, Any] | None = None, start_dir: str | Path | None = None,
    ) -> "LookerConfig":
        """Merge defaults, the nearest config file and CLI overrides (CLI wins)."""
        config_path = find_config_file(Path(start_dir) if start_dir else Path.cwd())
        file_data = load_config_file(config_path) if config_path else {}
        merged = deep_merge(file_data, overrides or {})
        try:
            return cls(**merged)
        except ValidationError as e:
            for err in e.errors():
                logger.error("  %s: %s", ".".join(str(p) for p in err["loc"]), err["msg"])
            raise ConfigError("Configuration validation failed") from e


def find_config_file(start_dir: Path) -> Path | None:
    """Search start_dir and its parents for a looker config file."""
    directory = start_dir.resolve()
    for candidate_dir in (directory, *directory.parents):
        for name in CONFIG_FILENAMES:
            candidate = candidate_dir / name
            if candidate.exists():
                return candidate
    return None


def load_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = json.load(f)
        logger.debug("Loaded config from %s", path)
        return data if isinstance(data, dict) else {}
    except (OSError, ValueError) as e:
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. None values in override are ignored."""
    result = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def parse_viewport_widths(widths: str) -> list[dict[str, Any]]:
    """Turn '375,1440' into viewport dicts, reusing the default names where widths match."""
    viewports = []
    for raw in widths.split(","):
        raw = raw.strip()
        if not raw:
            continue
        try:
            width = int(raw)
        except ValueError as e:
            raise ConfigError(f"Invalid viewport width: {raw!r}") from e
        match = next((v for v in DEFAULT_VIEWPORTS if v.width == width), None)
        if match:
            viewports.append(match.model_dump())
        else:
            viewports.append({"name": f"{width}px", "width": width, "height": round(width * 0.75)})
    return viewports


def resolve_viewport_flags(
    mobile_only: bool = False,
    desktop_only: bool = False,
    widths: Optional[str] = None,
    viewport_config: Optional[str] = None,
) -> list[dict[str, Any]] | None:
    """Viewport list selected by CLI flags, or None to keep the configured one."""
    if mobile_only:
        return [DEFAULT_VIEWPORTS[0].model_dump()]
    if desktop_only:
        return [DEFAULT_VIEWPORTS[2].model_dump()]
    if widths:
        return parse_viewport_widths(widths)
    if viewport_config:
        path = Path(viewport_config)
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Invalid viewport config {path}: {e}") from e
        if not isinstance(data, list):
            raise ConfigError(f"Viewport config {path} must contain a JSON list")
        return data
    return None
