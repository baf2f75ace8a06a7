"""Prompt sections that inject stakeholder design goals."""

from __future__ import annotations


def _numbered(goals: list[str]) -> str:
    return "\n".join(f"{i}. {g}" for i, g in enumerate(goals, 1))


def build_goal_prompt_section(goals: list[str]) -> str:
    if not goals:
        return ""
    return f"""
## Design Goals for This Page

The stakeholder has defined these specific visual goals. Evaluate the screenshot
against EACH goal and assess how well the current design achieves it.

Goals:
{_numbered(goals)}

For each goal, provide:
- Alignment: strong / partial / weak
- What you observe in the current design related to this goal
- If partial or weak: what specific visual change would better communicate the intent

After evaluating individual goals, provide an overall goal alignment score (0-100)
and your top 3 recommendations for making the design more clearly express the stated intent.
"""


def build_goal_comparison_section(goals: list[str]) -> str:
    if not goals:
        return ""
    return f"""
## Goal Consistency Across Viewports

The stakeholder defined these goals:
{_numbered(goals)}

Evaluate whether these goals are achieved consistently across all viewport sizes.
Are any goals lost or weakened at specific breakpoints?
"""
