"""Structured feedback returned by the vision model."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["critical", "warning", "info"]
IssueCategory = Literal[
    "layout", "typography", "color", "responsiveness",
    "polish", "accessibility", "goal-alignment", "other",
]

SEVERITIES: tuple[str, ...] = ("critical", "warning", "info")


class _ModelResponse(BaseModel):
    # Model output uses camelCase keys; Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Issue(_ModelResponse):
    severity: Severity
    category: IssueCategory = "other"
    description: str
    element: Optional[str] = None


class DesignFeedback(_ModelResponse):
    layout_and_hierarchy: str = ""
    typography: str = ""
    color_and_contrast: str = ""
    responsiveness: str = ""
    visual_polish: str = ""


class GoalAssessment(_ModelResponse):
    goal: str
    alignment: Literal["strong", "partial", "weak"]
    observation: str = ""
    gap: Optional[str] = None
    suggestion: Optional[str] = None


class PageAnalysis(_ModelResponse):
    feedback: DesignFeedback = Field(default_factory=DesignFeedback)
    issues: list[Issue] = Field(default_factory=list)
    goal_assessments: list[GoalAssessment] = Field(default_factory=list)
    overall_goal_alignment: Optional[int] = Field(default=None, ge=0, le=100)
    top_recommendations: list[str] = Field(default_factory=list)
    raw_response: Optional[str] = None


class CrossViewportAnalysis(_ModelResponse):
    breakpoint_quality: str = ""
    content_parity: str = ""
    navigation_adaptation: str = ""
    consistency_across_sizes: str = ""
    goal_consistency: Optional[str] = None
    issues: list[Issue] = Field(default_factory=list)
    raw_response: Optional[str] = None
