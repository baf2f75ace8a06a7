"""Markdown reports: the full review and the checklist-style action items."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from looker.models.analysis import Issue
from looker.models.results import PageResult, RunResult

logger = logging.getLogger(__name__)

SEVERITY_BADGES = {"critical": "🔴", "warning": "🟡", "info": "🔵"}
ALIGNMENT_BADGES = {"strong": "🟢", "partial": "🟡", "weak": "🔴"}
SEVERITY_ORDER = {"critical": 0, "warning": 1, "info": 2}

FEEDBACK_LABELS = [
    ("layout_and_hierarchy", "Layout & Hierarchy"),
    ("typography", "Typography"),
    ("color_and_contrast", "Color & Contrast"),
    ("responsiveness", "Responsiveness"),
    ("visual_polish", "Visual Polish"),
]


def _issue_line(issue: Issue, with_element: bool = True) -> str:
    element = f" (`{issue.element}`)" if with_element and issue.element else ""
    return f"- {SEVERITY_BADGES.get(issue.severity, '')} **[{issue.severity}]** {issue.description}{element}"


def _render_page(page: PageResult) -> list[str]:
    lines = [f"## Page: {page.url}\n"]

    for vp_name, analysis in page.analyses.items():
        lines.append(f"### {vp_name}\n")
        entry = page.screenshots.get(vp_name)
        if entry:
            lines.append(f"![{vp_name} screenshot]({entry.file_path})\n")

        for field, label in FEEDBACK_LABELS:
            text = getattr(analysis.feedback, field)
            if text:
                lines.append(f"**{label}:** {text}\n")

        if analysis.goal_assessments:
            lines.append("#### Goal Alignment\n")
            lines.append("| Goal | Alignment | Observation | Gap | Suggestion |")
            lines.append("|------|-----------|-------------|-----|------------|")
            for ga in analysis.goal_assessments:
                lines.append(
                    f"| {ga.goal} | {ALIGNMENT_BADGES[ga.alignment]} {ga.alignment} "
                    f"| {ga.observation or '-'} | {ga.gap or '-'} | {ga.suggestion or '-'} |"
                )
            if analysis.overall_goal_alignment is not None:
                lines.append(f"\n**Overall Goal Alignment: {analysis.overall_goal_alignment}/100**\n")

        if analysis.issues:
            lines.append("#### Issues\n")
            lines.extend(_issue_line(i) for i in analysis.issues)
            lines.append("")

        if analysis.top_recommendations:
            lines.append("#### Top Recommendations\n")
            lines.extend(f"{i}. {rec}" for i, rec in enumerate(analysis.top_recommendations, 1))
            lines.append("")

    cva = page.cross_viewport_analysis
    if cva:
        lines.append("### Cross-Viewport Analysis\n")
        for label, text in [
            ("Breakpoint Quality", cva.breakpoint_quality),
            ("Content Parity", cva.content_parity),
            ("Navigation Adaptation", cva.navigation_adaptation),
            ("Consistency", cva.consistency_across_sizes),
            ("Goal Consistency", cva.goal_consistency),
        ]:
            if text:
                lines.append(f"**{label}:** {text}\n")
        if cva.issues:
            lines.append("**Cross-Viewport Issues:**\n")
            lines.extend(_issue_line(i, with_element=False) for i in cva.issues)
            lines.append("")

    if page.errors:
        lines.append("### Errors\n")
        lines.extend(f"- ⚠️ {e.viewport}: {e.error}" for e in page.errors)
        lines.append("")

    return lines


def render_markdown_report(result: RunResult) -> str:
    summary = result.summary
    lines = [
        "# Site Review Report",
        f"Generated: {result.completed_at or result.started_at} (run {result.run_id})\n",
        "## Summary",
        f"- **Pages analyzed:** {summary.pages_analyzed}",
        f"- **Viewports:** {', '.join(summary.viewports)}",
        f"- **Critical issues:** {summary.total_issues.critical}",
        f"- **Warnings:** {summary.total_issues.warning}",
        f"- **Info:** {summary.total_issues.info}",
    ]
    if summary.average_goal_alignment is not None:
        lines.append(f"- **Average goal alignment:** {summary.average_goal_alignment}/100")
    lines.append(f"- **Screenshots:** {summary.cache_hits} cached, {summary.fresh_captures} captured")
    lines.append("")

    for page in result.pages:
        lines.extend(_render_page(page))

    return "\n".join(lines)


def _severity_label(severity: str) -> str:
    return f"**{severity.upper()}**" if severity in ("critical", "warning") else severity


def render_action_items(result: RunResult) -> str:
    """Checklist of issues, recommendations and goal gaps, most severe first."""
    summary = result.summary
    lines = [
        "# UI Review: Action Items",
        f"Generated: {result.completed_at or result.started_at}\n",
        "## Summary",
        f"- Pages: {summary.pages_analyzed}",
        f"- Critical: {summary.total_issues.critical}",
        f"- Warnings: {summary.total_issues.warning}",
        f"- Info: {summary.total_issues.info}",
    ]
    if summary.average_goal_alignment is not None:
        lines.append(f"- Goal alignment: {summary.average_goal_alignment}/100")
    lines.append("")

    for page in result.pages:
        lines.append(f"## {page.url}\n")

        issues = [(vp, issue) for vp, a in page.analyses.items() for issue in a.issues]
        issues.sort(key=lambda pair: SEVERITY_ORDER.get(pair[1].severity, 3))
        if issues:
            lines.append("### Issues\n")
            for vp, issue in issues:
                element = f" `{issue.element}`" if issue.element else ""
                lines.append(f"- [ ] {_severity_label(issue.severity)} [{vp}]: {issue.description}{element}")
            lines.append("")

        recommendations = list(dict.fromkeys(
            rec for a in page.analyses.values() for rec in a.top_recommendations
        ))
        if recommendations:
            lines.append("### Recommendations\n")
            lines.extend(f"{i}. {rec}" for i, rec in enumerate(recommendations, 1))
            lines.append("")

        gaps = {}
        for analysis in page.analyses.values():
            for ga in analysis.goal_assessments:
                if ga.alignment != "strong" and ga.gap and ga.goal not in gaps:
                    gaps[ga.goal] = ga
        if gaps:
            lines.append("### Goal Gaps\n")
            for ga in gaps.values():
                lines.append(f"- [ ] **{ga.goal}**: {ga.gap}")
                if ga.suggestion:
                    lines.append(f"  - Suggested fix: {ga.suggestion}")
            lines.append("")

        cva = page.cross_viewport_analysis
        if cva and cva.issues:
            lines.append("### Cross-Viewport Issues\n")
            lines.extend(f"- [ ] {_severity_label(i.severity)}: {i.description}" for i in cva.issues)
            lines.append("")

        if page.errors:
            lines.append("### Errors\n")
            lines.extend(f"- ⚠️ {e.viewport}: {e.error}" for e in page.errors)
            lines.append("")

    return "\n".join(lines)


def save_action_items(result: RunResult, reports_dir: str | Path) -> Path:
    """Write the action items to reports_dir as review-YYYY-MM-DD-HHMMSS.md."""
    out_dir = Path(reports_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"review-{time.strftime('%Y-%m-%d-%H%M%S')}.md"
    path.write_text(render_action_items(result), encoding="utf-8")
    logger.debug("Action items written to %s", path)
    return path
