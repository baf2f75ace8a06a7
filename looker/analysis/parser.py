"""Turns free-text vision model replies into validated feedback models.

Parsing never raises: a reply that validates is returned as-is, a reply that
is JSON but fails validation is salvaged field by field, and a reply that is
not JSON at all is kept as raw text in the first feedback slot.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from looker.models.analysis import (
    CrossViewportAnalysis,
    DesignFeedback,
    GoalAssessment,
    Issue,
    PageAnalysis,
)

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def extract_json(raw: str) -> Optional[dict[str, Any]]:
    """Parse the JSON object in a model reply, tolerating code fences and chatter."""
    text = raw.strip()
    match = _FENCE_PATTERN.search(text)
    if match:
        text = match.group(1).strip()

    try:
        parsed = json.loads(text, strict=False)
    except json.JSONDecodeError:
        first, last = text.find("{"), text.rfind("}")
        if first == -1 or last <= first:
            return None
        try:
            parsed = json.loads(text[first:last + 1], strict=False)
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def _valid_items(items: Any, model: type[BaseModel]) -> list:
    if not isinstance(items, list):
        return []
    valid = []
    for item in items:
        try:
            valid.append(model.model_validate(item))
        except ValidationError:
            logger.debug("Dropping invalid %s: %r", model.__name__, item)
    return valid


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def parse_analysis_response(raw: str) -> PageAnalysis:
    parsed = extract_json(raw)
    if parsed is None:
        logger.warning("Could not parse analysis as JSON, returning raw response")
        return PageAnalysis(feedback=DesignFeedback(layout_and_hierarchy=raw), raw_response=raw)

    try:
        result = PageAnalysis.model_validate(parsed)
        result.raw_response = raw
        return result
    except ValidationError as e:
        logger.debug("Analysis response didn't fully validate: %s", e)

    feedback = parsed.get("feedback")
    try:
        feedback_model = DesignFeedback.model_validate(feedback if isinstance(feedback, dict) else {})
    except ValidationError:
        feedback_model = DesignFeedback()

    alignment = parsed.get("overallGoalAlignment")
    if not isinstance(alignment, (int, float)) or isinstance(alignment, bool) or not 0 <= alignment <= 100:
        alignment = None

    recommendations = parsed.get("topRecommendations")
    return PageAnalysis(
        feedback=feedback_model,
        issues=_valid_items(parsed.get("issues"), Issue),
        goal_assessments=_valid_items(parsed.get("goalAssessments"), GoalAssessment),
        overall_goal_alignment=round(alignment) if alignment is not None else None,
        top_recommendations=[r for r in recommendations if isinstance(r, str)]
        if isinstance(recommendations, list) else [],
        raw_response=raw,
    )


def parse_comparison_response(raw: str) -> CrossViewportAnalysis:
    parsed = extract_json(raw)
    if parsed is None:
        logger.warning("Could not parse comparison as JSON")
        return CrossViewportAnalysis(breakpoint_quality=raw, raw_response=raw)

    try:
        result = CrossViewportAnalysis.model_validate(parsed)
        result.raw_response = raw
        return result
    except ValidationError as e:
        logger.debug("Comparison response didn't fully validate: %s", e)

    goal_consistency = parsed.get("goalConsistency")
    return CrossViewportAnalysis(
        breakpoint_quality=_text(parsed.get("breakpointQuality")),
        content_parity=_text(parsed.get("contentParity")),
        navigation_adaptation=_text(parsed.get("navigationAdaptation")),
        consistency_across_sizes=_text(parsed.get("consistencyAcrossSizes")),
        goal_consistency=goal_consistency if isinstance(goal_consistency, str) else None,
        issues=_valid_items(parsed.get("issues"), Issue),
        raw_response=raw,
    )
