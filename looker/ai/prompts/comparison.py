"""Prompt for comparing one page across viewports."""

from __future__ import annotations

from .goals import build_goal_comparison_section

COMPARISON_PROMPT = """You are reviewing the same page at multiple viewport sizes.

Compare these screenshots and assess:

1. **Responsive Breakpoint Quality** - Are breakpoints well chosen? Any awkward in-between states?
2. **Content Parity** - Is important content accessible at all sizes? Anything hidden that shouldn't be?
3. **Navigation Adaptation** - Does navigation adapt appropriately? Is the mobile menu usable?
4. **Consistency Across Sizes** - Does the design feel cohesive? Any jarring differences?

Viewports provided: {viewport_list}
Page: {url}

{goal_section}

IMPORTANT: Respond ONLY with valid JSON matching this exact structure (no markdown, no code fences):
{
  "breakpointQuality": "your analysis...",
  "contentParity": "your analysis...",
  "navigationAdaptation": "your analysis...",
  "consistencyAcrossSizes": "your analysis...",
  "goalConsistency": "goal consistency analysis or null if no goals",
  "issues": [
    {
      "severity": "critical|warning|info",
      "category": "layout|typography|color|responsiveness|polish|accessibility|goal-alignment|other",
      "description": "...",
      "element": "CSS selector or description, or null"
    }
  ]
}"""


def build_comparison_prompt(url: str, viewport_names: list[str], goals: list[str]) -> str:
    return (
        COMPARISON_PROMPT.replace("{viewport_list}", ", ".join(viewport_names))
        .replace("{url}", url)
        .replace("{goal_section}", build_goal_comparison_section(goals))
    )
