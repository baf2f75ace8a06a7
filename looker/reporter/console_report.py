"""Terminal report rendered with rich."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from looker.models.analysis import GoalAssessment, PageAnalysis
from looker.models.results import RunResult

SEVERITY_STYLES = {"critical": "red", "warning": "yellow", "info": "blue"}
ALIGNMENT_ICONS = {"strong": "[green]●[/green]", "partial": "[yellow]◐[/yellow]", "weak": "[red]○[/red]"}

FEEDBACK_LABELS = [
    ("layout_and_hierarchy", "Layout & Hierarchy"),
    ("typography", "Typography"),
    ("color_and_contrast", "Color & Contrast"),
    ("responsiveness", "Responsiveness"),
    ("visual_polish", "Visual Polish"),
]


def format_score(score: int) -> str:
    if score >= 80:
        return f"[green]{score}/100[/green]"
    if score >= 50:
        return f"[yellow]{score}/100[/yellow]"
    return f"[red]{score}/100[/red]"


def _goal_line(ga: GoalAssessment) -> str:
    icon = ALIGNMENT_ICONS.get(ga.alignment, "○")
    return f"{icon} {escape(ga.goal)} [dim]\\[{ga.alignment}][/dim]"


def _print_analysis(console: Console, vp_name: str, analysis: PageAnalysis) -> None:
    console.print(f"\n  [bold]{vp_name}[/bold]")

    for field, label in FEEDBACK_LABELS:
        text = getattr(analysis.feedback, field)
        if text:
            console.print(f"  [dim]{label}:[/dim]")
            console.print(f"    {text}", markup=False)

    if analysis.goal_assessments:
        console.print("  [bold dim]Goal Alignment:[/bold dim]")
        for ga in analysis.goal_assessments:
            console.print(f"    {_goal_line(ga)}")
            if ga.observation:
                console.print(f"      [dim]Observation: {escape(ga.observation)}[/dim]")
            if ga.gap:
                console.print(f"      [yellow]Gap: {escape(ga.gap)}[/yellow]")
            if ga.suggestion:
                console.print(f"      [green]Suggestion: {escape(ga.suggestion)}[/green]")
        if analysis.overall_goal_alignment is not None:
            console.print(f"    Overall: {format_score(analysis.overall_goal_alignment)}")

    if analysis.issues:
        console.print("  [bold dim]Issues:[/bold dim]")
        for issue in analysis.issues:
            style = SEVERITY_STYLES.get(issue.severity, "white")
            element = f" [dim]({escape(issue.element)})[/dim]" if issue.element else ""
            console.print(f"    [{style}]\\[{issue.severity}][/{style}] {escape(issue.description)}{element}")

    if analysis.top_recommendations:
        console.print("  [bold dim]Top Recommendations:[/bold dim]")
        for i, rec in enumerate(analysis.top_recommendations, 1):
            console.print(f"    {i}. {escape(rec)}")


def print_console_report(result: RunResult, console: Console) -> None:
    """Print the full run report to a rich console."""
    summary = result.summary
    console.print(Rule("[bold cyan]Site Review Report[/bold cyan]", style="cyan"))

    table = Table(title="Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Pages analyzed", str(summary.pages_analyzed))
    table.add_row("Viewports", ", ".join(summary.viewports))
    issues = summary.total_issues
    table.add_row(
        "Issues",
        f"[red]{issues.critical} critical[/red], [yellow]{issues.warning} warning[/yellow], "
        f"[blue]{issues.info} info[/blue]",
    )
    if summary.average_goal_alignment is not None:
        table.add_row("Average goal alignment", format_score(summary.average_goal_alignment))
    table.add_row("Screenshots", f"{summary.cache_hits} cached, {summary.fresh_captures} captured")
    console.print(table)

    for page in result.pages:
        console.print(f"\n[bold underline]Page: {escape(page.url)}[/bold underline]")

        for vp_name, analysis in page.analyses.items():
            _print_analysis(console, vp_name, analysis)

        cva = page.cross_viewport_analysis
        if cva:
            console.print("\n  [bold]Cross-Viewport Analysis[/bold]")
            for label, text in [
                ("Breakpoints", cva.breakpoint_quality),
                ("Content Parity", cva.content_parity),
                ("Navigation", cva.navigation_adaptation),
                ("Consistency", cva.consistency_across_sizes),
                ("Goal Consistency", cva.goal_consistency),
            ]:
                if text:
                    console.print(f"    {label}: {text}", markup=False)
            for issue in cva.issues:
                style = SEVERITY_STYLES.get(issue.severity, "white")
                console.print(f"    [{style}]\\[{issue.severity}][/{style}] {escape(issue.description)}")

        if page.errors:
            console.print("\n  [red]Errors:[/red]")
            for err in page.errors:
                console.print(f"    {err.viewport}: {err.error}", style="red", markup=False)

    console.print()
