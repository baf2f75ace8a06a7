"""HTML report generator — produces a self-contained page with embedded screenshots."""

from __future__ import annotations

import base64
import html
import logging
from pathlib import Path

from looker.models.analysis import Issue, PageAnalysis
from looker.models.results import PageResult, RunResult

logger = logging.getLogger(__name__)

FEEDBACK_LABELS = [
    ("layout_and_hierarchy", "Layout &amp; Hierarchy"),
    ("typography", "Typography"),
    ("color_and_contrast", "Color &amp; Contrast"),
    ("responsiveness", "Responsiveness"),
    ("visual_polish", "Visual Polish"),
]


def _embed_image(path: str) -> str:
    """Read a PNG and return a base64 data URI, or empty string if it can't be read."""
    p = Path(path)
    try:
        if not p.exists() or p.stat().st_size == 0:
            return ""
        data = base64.b64encode(p.read_bytes()).decode()
    except OSError as e:
        logger.debug("Could not embed screenshot %s: %s", path, e)
        return ""
    return f"data:image/png;base64,{data}"


def _issue_rows(issues: list[Issue]) -> str:
    rows = ""
    for issue in issues:
        element = f' <code>{html.escape(issue.element)}</code>' if issue.element else ""
        rows += f'''
        <li class="issue">
          <span class="badge {issue.severity}">{issue.severity}</span>
          <span class="badge category">{html.escape(issue.category)}</span>
          {html.escape(issue.description)}{element}
        </li>'''
    return f'<ul class="issues">{rows}</ul>' if rows else ""


def _analysis_section(vp_name: str, analysis: PageAnalysis, screenshot: str) -> str:
    section = f'<div class="viewport"><h3>{html.escape(vp_name)}</h3><div class="viewport-body">'

    data_uri = _embed_image(screenshot) if screenshot else ""
    if data_uri:
        section += (f'<div class="shot"><img src="{data_uri}" alt="{html.escape(vp_name)} screenshot" '
                    f'loading="lazy" onclick="this.classList.toggle(\'zoomed\')"/></div>')

    section += '<div class="feedback">'
    for field, label in FEEDBACK_LABELS:
        text = getattr(analysis.feedback, field)
        if text:
            section += f'<p><strong>{label}:</strong> {html.escape(text)}</p>'

    if analysis.goal_assessments:
        section += ('<h4>Goal Alignment</h4><table><tr><th>Goal</th><th>Alignment</th>'
                    '<th>Observation</th><th>Gap</th><th>Suggestion</th></tr>')
        for ga in analysis.goal_assessments:
            section += (
                f'<tr><td>{html.escape(ga.goal)}</td>'
                f'<td><span class="badge {ga.alignment}">{ga.alignment}</span></td>'
                f'<td>{html.escape(ga.observation or "-")}</td>'
                f'<td>{html.escape(ga.gap or "-")}</td>'
                f'<td>{html.escape(ga.suggestion or "-")}</td></tr>'
            )
        section += '</table>'
        if analysis.overall_goal_alignment is not None:
            section += f'<p class="score">Overall goal alignment: <strong>{analysis.overall_goal_alignment}/100</strong></p>'

    if analysis.issues:
        section += '<h4>Issues</h4>' + _issue_rows(analysis.issues)

    if analysis.top_recommendations:
        items = "".join(f"<li>{html.escape(r)}</li>" for r in analysis.top_recommendations)
        section += f'<h4>Top Recommendations</h4><ol>{items}</ol>'

    section += '</div></div></div>'
    return section


def _page_card(page: PageResult) -> str:
    card = f'<div class="page-card"><h2>{html.escape(page.url)}</h2>'

    for vp_name, analysis in page.analyses.items():
        entry = page.screenshots.get(vp_name)
        card += _analysis_section(vp_name, analysis, entry.file_path if entry else "")

    cva = page.cross_viewport_analysis
    if cva:
        card += '<div class="cross-viewport"><h3>Cross-Viewport Analysis</h3>'
        for label, text in [
            ("Breakpoint Quality", cva.breakpoint_quality),
            ("Content Parity", cva.content_parity),
            ("Navigation Adaptation", cva.navigation_adaptation),
            ("Consistency", cva.consistency_across_sizes),
            ("Goal Consistency", cva.goal_consistency),
        ]:
            if text:
                card += f'<p><strong>{label}:</strong> {html.escape(text)}</p>'
        card += _issue_rows(cva.issues)
        card += '</div>'

    if page.errors:
        items = "".join(
            f"<li><strong>{html.escape(e.viewport)}:</strong> {html.escape(e.error)}</li>" for e in page.errors
        )
        card += f'<div class="errors"><h3>&#9888; Errors ({len(page.errors)})</h3><ul>{items}</ul></div>'

    card += '</div>'
    return card


def render_html_report(result: RunResult) -> str:
    """Build a self-contained HTML document for the run."""
    summary = result.summary
    issues = summary.total_issues
    alignment = f"{summary.average_goal_alignment}/100" if summary.average_goal_alignment is not None else "&ndash;"
    page_cards = "".join(_page_card(p) for p in result.pages)

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Site Review Report &mdash; {html.escape(result.run_id)}</title>
<style>
  :root {{ --bg: #0d1117; --surface: #161b22; --border: #30363d; --text: #e6edf3; --muted: #8b949e; --accent: #58a6ff; --green: #3fb950; --yellow: #d29922; --red: #f85149; }}
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif; background: var(--bg); color: var(--text); line-height: 1.6; padding: 2rem; }}
  .container {{ max-width: 1200px; margin: 0 auto; }}
  h1 {{ color: var(--accent); margin-bottom: 0.3rem; }}
  h2 {{ margin-bottom: 1rem; border-bottom: 1px solid var(--border); padding-bottom: 0.5rem; word-break: break-all; }}
  h3 {{ color: var(--muted); margin: 1.2rem 0 0.6rem; }}
  h4 {{ color: var(--muted); margin: 0.8rem 0 0.4rem; font-size: 0.85rem; text-transform: uppercase; letter-spacing: 0.05em; }}
  p {{ margin-bottom: 0.6rem; }}
  .meta {{ color: var(--muted); margin-bottom: 1.5rem; font-size: 0.9rem; }}
  .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 0.8rem; margin-bottom: 1.5rem; }}
  .stat {{ background: var(--surface); border: 1px solid var(--border); border-radius: 8px; padding: 1rem; text-align: center; }}
  .stat .value {{ font-size: 1.6rem; font-weight: 700; }}
  .stat .label {{ font-size: 0.8rem; color: var(--muted); }}
  .stat.critical .value {{ color: var(--red); }}
  .stat.warning .value {{ color: var(--yellow); }}
  .stat.info .value {{ color: var(--accent); }}
  .page-card {{ background: var(--surface); border: 1px solid var(--border); border-radius: 8px; padding: 1.2rem; margin-bottom: 1.5rem; }}
  .viewport-body {{ display: grid; grid-template-columns: minmax(160px, 280px) 1fr; gap: 1rem; }}
  .shot img {{ width: 100%; border: 1px solid var(--border); border-radius: 6px; cursor: pointer; }}
  .shot img.zoomed {{ position: fixed; top: 5%; left: 5%; width: 90%; height: 90%; object-fit: contain; z-index: 1000; background: rgba(0,0,0,0.85); border: none; padding: 1rem; }}
  table {{ width: 100%; border-collapse: collapse; margin: 0.5rem 0; font-size: 0.88rem; }}
  th, td {{ padding: 0.4rem 0.6rem; border: 1px solid var(--border); text-align: left; }}
  th {{ color: var(--muted); }}
  code {{ background: var(--bg); padding: 0.1rem 0.35rem; border-radius: 3px; font-size: 0.85em; }}
  ul, ol {{ margin: 0.4rem 0 0.8rem 1.4rem; }}
  .issues {{ list-style: none; margin-left: 0; }}
  .issue {{ padding: 0.3rem 0; border-bottom: 1px solid var(--border); font-size: 0.9rem; }}
  .badge {{ display: inline-block; padding: 0.1rem 0.5rem; border-radius: 9999px; font-size: 0.7rem; font-weight: 600; text-transform: uppercase; margin-right: 0.3rem; }}
  .badge.critical, .badge.weak {{ background: #490202; color: var(--red); }}
  .badge.warning, .badge.partial {{ background: #3b2300; color: var(--yellow); }}
  .badge.info {{ background: #0c2d6b; color: var(--accent); }}
  .badge.strong {{ background: #033a16; color: var(--green); }}
  .badge.category {{ background: var(--bg); color: var(--muted); }}
  .cross-viewport {{ border-top: 1px solid var(--border); margin-top: 1rem; }}
  .errors {{ background: #2d0b0b; border-left: 4px solid var(--red); border-radius: 6px; padding: 0.8rem 1rem; margin-top: 1rem; }}
  .errors h3 {{ color: var(--red); margin-top: 0; }}
</style>
</head>
<body>
<div class="container">
  <h1>Site Review Report</h1>
  <p class="meta">Run: {html.escape(result.run_id)} &middot; {html.escape(result.started_at)} &middot; Duration: {result.duration_seconds}s &middot; Viewports: {html.escape(", ".join(summary.viewports))}</p>

  <div class="summary">
    <div class="stat"><div class="value">{summary.pages_analyzed}</div><div class="label">Pages</div></div>
    <div class="stat critical"><div class="value">{issues.critical}</div><div class="label">Critical</div></div>
    <div class="stat warning"><div class="value">{issues.warning}</div><div class="label">Warnings</div></div>
    <div class="stat info"><div class="value">{issues.info}</div><div class="label">Info</div></div>
    <div class="stat"><div class="value">{alignment}</div><div class="label">Goal Alignment</div></div>
    <div class="stat"><div class="value">{summary.cache_hits}/{summary.cache_hits + summary.fresh_captures}</div><div class="label">Cached Screenshots</div></div>
  </div>

  {page_cards}
</div>
</body>
</html>'''
