"""Exception types raised by looker."""

from __future__ import annotations


class LookerError(Exception):
    """Base class for looker errors."""


class ConfigError(LookerError):
    """Invalid or missing configuration. Never retried."""


class ScreenshotMissingError(LookerError):
    """A screenshot expected on disk does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Screenshot file not found: {path}")
