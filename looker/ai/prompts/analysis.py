"""Prompt for the per-viewport design review."""

from __future__ import annotations

from typing import Optional

from looker.models.config import ViewportConfig

from .goals import build_goal_prompt_section

ANALYSIS_PROMPT = """You are the most detail-obsessed designer on the team: the one who spots a 1px misalignment from across the room and treats "good enough" as a starting point. You are not mean, but you are relentless, and you back every opinion with a named design principle.

Review this screenshot.

## 1. Layout & Hierarchy
- Is there a clear reading flow (F- or Z-pattern)? Can you name the primary, secondary and tertiary focal points within two seconds?
- Is spacing drawn from a consistent system (8px baseline or 4px sub-grid)? Call out arbitrary padding and margins.
- Are related elements grouped by proximity and common region, and unrelated sections clearly separated?
- Check optical alignment. 2px of drift is visible.
- Is whitespace used for emphasis, or is it leftover space?

## 2. Typography
- Is there a modular type scale, or do the sizes look random? More than 5-6 distinct sizes usually means an undisciplined scale.
- Is any font pairing intentional?
- Body line height should be 1.5-1.75x; headings 1.1-1.3x. Give the ratio that would fix it.
- Line length: 45-75 characters for body text.
- Tracking on all-caps text, weight used for hierarchy, orphans and widows.

## 3. Color & Contrast
- Palette discipline (60-30-10), semantic color use, harmony of hues.
- Contrast ratios: WCAG AA is the floor (4.5:1 body, 3:1 large text). Flag anything borderline.
- Would the palette survive a light/dark mode switch?

## 4. Responsiveness (Viewport: {viewport_name}, {width}px x {height}px)
- Does content reflow intentionally, or does it look squeezed?
- Touch targets at least 44x44px with 8px separation on touch viewports.
- Text readable without zoom; no horizontal overflow.
- Density appropriate for this viewport; images sized for it.

## 5. Visual Polish
- Consistent border radii, shadow depths, icon sizes and stroke weights.
- Visible hover/focus/active affordances; buttons that look like buttons.
- Pixel precision, visual noise, and whether this feels design-led or template-built.

Viewport: {viewport_name} ({width}x{height})
Page: {url}

Be specific: reference exact elements, approximate measurements and design principles. If something is fine, say what would make it exceptional."""

JSON_FORMAT_INSTRUCTION = """

IMPORTANT: Respond ONLY with valid JSON matching this exact structure (no markdown, no code fences):
{
  "feedback": {
    "layoutAndHierarchy": "your analysis...",
    "typography": "your analysis...",
    "colorAndContrast": "your analysis...",
    "responsiveness": "your analysis...",
    "visualPolish": "your analysis..."
  },
  "issues": [
    {
      "severity": "critical|warning|info",
      "category": "layout|typography|color|responsiveness|polish|accessibility|goal-alignment|other",
      "description": "...",
      "element": "CSS selector or description, or null"
    }
  ],
  "goalAssessments": [
    {
      "goal": "the goal text",
      "alignment": "strong|partial|weak",
      "observation": "what you see...",
      "gap": "what's missing, or null if strong",
      "suggestion": "specific change, or null if strong"
    }
  ],
  "overallGoalAlignment": null,
  "topRecommendations": ["rec 1", "rec 2", "rec 3"]
}

If no goals were provided, set goalAssessments to [] and overallGoalAlignment to null."""


def build_analysis_prompt(
    url: str,
    viewport: ViewportConfig,
    goals: list[str],
    custom_prompt: Optional[str] = None,
    focus: Optional[str] = None,
) -> str:
    """Fill the analysis template for one page at one viewport."""
    prompt = custom_prompt or ANALYSIS_PROMPT
    prompt = (
        prompt.replace("{viewport_name}", viewport.name)
        .replace("{width}", str(viewport.width))
        .replace("{height}", str(viewport.height))
        .replace("{url}", url)
    )

    goal_section = build_goal_prompt_section(goals)
    if goal_section:
        prompt = goal_section + "\n\n" + prompt

    if focus:
        prompt += f'\n\nFOCUS: Pay special attention to "{focus}" in your analysis.'

    return prompt + JSON_FORMAT_INSTRUCTION
