"""Visual goals — parse goals.md and select the goals that apply to a page."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from looker.url_utils import page_path

logger = logging.getLogger(__name__)

DEFAULT_GOALS_FILENAME = "goals.md"
SITE_WIDE = "site-wide"

_HEADING = re.compile(r"^##\s+(.+)$")
_BULLET = re.compile(r"^[-*]\s+(.+)$")
_SITE_WIDE_HEADING = re.compile(r"site[- ]wide\s+goals?", re.IGNORECASE)
_PAGE_HEADING = re.compile(r"^(?:Page:\s*)?(/.*)$", re.IGNORECASE)


class VisualGoal(BaseModel):
    scope: str  # "site-wide" or a page path such as "/pricing"
    goals: list[str] = Field(default_factory=list)


def load_goals(file_path: Optional[str] = None, cwd: Optional[Path] = None) -> list[VisualGoal]:
    """Load goals from file_path, or from ./goals.md when no path is given."""
    path = Path(file_path) if file_path else (cwd or Path.cwd()) / DEFAULT_GOALS_FILENAME
    if not path.exists():
        if file_path:
            logger.warning("Goals file not found: %s", path)
        else:
            logger.debug("No goals.md found, running without goals")
        return []

    goals = parse_goals_markdown(path.read_text(encoding="utf-8"))
    logger.info("Loaded %d goal(s) across %d section(s) from %s",
                sum(len(g.goals) for g in goals), len(goals), path)
    return goals


def parse_goals_markdown(content: str) -> list[VisualGoal]:
    sections: list[VisualGoal] = []
    current: Optional[VisualGoal] = None

    for line in content.splitlines():
        stripped = line.strip()

        heading = _HEADING.match(stripped)
        if heading:
            if current is not None and current.goals:
                sections.append(current)
            text = heading.group(1).strip()
            page = _PAGE_HEADING.match(text)
            if _SITE_WIDE_HEADING.search(text) or not page:
                scope = SITE_WIDE
            else:
                scope = page.group(1).strip()
            current = VisualGoal(scope=scope)
            continue

        bullet = _BULLET.match(stripped)
        if bullet and current is not None:
            current.goals.append(bullet.group(1).strip())

    if current is not None and current.goals:
        sections.append(current)

    logger.debug("Parsed %d goal section(s)", len(sections))
    return sections


def get_goals_for_page(page_url: str, all_goals: list[VisualGoal]) -> list[str]:
    """Site-wide goals plus the goals whose scope matches the page path."""
    path = page_path(page_url)
    merged: list[str] = []
    for section in all_goals:
        if section.scope == SITE_WIDE or (section.scope.rstrip("/") or "/") == path:
            merged.extend(section.goals)
    return merged
