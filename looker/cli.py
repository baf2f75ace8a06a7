"""CLI entry point for looker."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from looker.cache.screenshot_cache import ScreenshotCache
from looker.models.config import CONFIG_FILENAMES, LookerConfig, resolve_provider, resolve_viewport_flags
from looker.orchestrator import Orchestrator

console = Console(stderr=True)
logger = logging.getLogger("looker")


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # Third-party clients are noisy at DEBUG
    for name in ("httpx", "httpcore", "anthropic", "openai"):
        logging.getLogger(name).setLevel(max(level, logging.INFO))


@click.group()
@click.version_option("0.1.0", prog_name="looker")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors")
def cli(verbose: bool, quiet: bool) -> None:
    """Automated visual design feedback for websites."""
    setup_logging(verbose, quiet)


@cli.command()
# Input
@click.option("--url", help="URL to analyze")
@click.option("--sitemap", help="Sitemap URL to discover pages")
@click.option("--urls", "urls_file", type=click.Path(), help="Text file with URLs (one per line)")
@click.option("--no-discover", is_flag=True, help="Only analyze the provided URL")
# Filtering
@click.option("--max-pages", type=click.IntRange(min=1), help="Maximum pages to analyze")
@click.option("--include", help="Include URLs matching regex pattern")
@click.option("--exclude", help="Exclude URLs matching regex pattern")
# Viewports
@click.option("--viewports", "viewport_widths", help="Comma-separated viewport widths (e.g. 375,768,1440)")
@click.option("--viewport-config", type=click.Path(), help="JSON file with viewport definitions")
@click.option("--mobile-only", is_flag=True, help="Analyze only at mobile viewport (375px)")
@click.option("--desktop-only", is_flag=True, help="Analyze only at desktop viewport (1440px)")
# Capture
@click.option("--wait-for", help="Wait for selector before capturing")
@click.option("--delay", type=click.IntRange(min=0), help="Delay before capture in milliseconds")
@click.option("--no-animations", is_flag=True, help="Disable CSS animations before capture")
@click.option("--hide", multiple=True, help="CSS selector of an element to hide (repeatable)")
@click.option("--auth", type=click.Path(), help="JSON file with auth cookies/localStorage")
@click.option("--dark-mode", is_flag=True, help="Emulate dark mode preference")
@click.option("--timeout", type=click.IntRange(min=1), help="Page load timeout in milliseconds")
@click.option("--no-scroll-reveal", is_flag=True, help="Skip scroll-through for lazy content")
# Analysis
@click.option("--model", help="Vision model to use")
@click.option("--api-key", help="API key for the vision model")
@click.option("--api-url", help="Custom API endpoint URL (e.g. an OpenAI-compatible gateway)")
@click.option("--prompt", type=click.Path(), help="Custom prompt template file")
@click.option("--focus", help="Focus analysis on an area (e.g. typography, mobile)")
@click.option("--goals", type=click.Path(), help="Goals file path (default: auto-detect goals.md)")
# Output
@click.option("--output", type=click.Choice(["console", "markdown", "html", "json"]), help="Output format")
@click.option("--output-file", type=click.Path(), help="Write report to file")
# Cache
@click.option("--no-cache", is_flag=True, help="Disable screenshot caching")
@click.option("--cache-dir", type=click.Path(), help="Custom cache directory")
@click.option("--fresh", is_flag=True, help="Recapture screenshots even if cached")
# CI
@click.option("--fail-on", type=click.Choice(["critical", "warning", "info"]),
              help="Exit with code 1 if issues are found at this severity or above")
def run(**opts) -> None:
    """Capture, analyze and report on a site's pages."""
    try:
        cfg = LookerConfig.resolve(build_overrides(opts))
        result = Orchestrator(cfg).run()
    except Exception as e:
        logger.error("%s", e)
        logger.debug("Run failed", exc_info=True)
        sys.exit(2)

    summary = result.summary
    table = Table(title="Run Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Run ID", result.run_id)
    table.add_row("Duration", f"{result.duration_seconds}s")
    table.add_row("Pages", str(summary.pages_analyzed))
    table.add_row("Critical", f"[red]{summary.total_issues.critical}[/red]")
    table.add_row("Warnings", f"[yellow]{summary.total_issues.warning}[/yellow]")
    table.add_row("Screenshots", f"{summary.cache_hits} cached, {summary.fresh_captures} captured")
    console.print(table)
    sys.exit(result.exit_code)


def build_overrides(opts: dict) -> dict:
    """Map CLI options onto LookerConfig fields. Unset options are None and get dropped on merge."""
    capture = {
        "wait_for": opts.get("wait_for"),
        "delay": opts.get("delay"),
        "no_animations": opts.get("no_animations") or None,
        "dark_mode": opts.get("dark_mode") or None,
        "timeout": opts.get("timeout"),
        "scroll_reveal": False if opts.get("no_scroll_reveal") else None,
    }
    model = opts.get("model")
    analysis = {
        "model": model,
        "provider": resolve_provider(model) if model else None,
        "api_key": opts.get("api_key"),
        "api_url": opts.get("api_url"),
        "prompt": opts.get("prompt"),
    }

    return {
        "url": opts.get("url"),
        "sitemap": opts.get("sitemap"),
        "urls_file": opts.get("urls_file"),
        "no_discover": opts.get("no_discover") or None,
        "max_pages": opts.get("max_pages"),
        "include": opts.get("include"),
        "exclude": opts.get("exclude"),
        "viewports": resolve_viewport_flags(
            mobile_only=bool(opts.get("mobile_only")),
            desktop_only=bool(opts.get("desktop_only")),
            widths=opts.get("viewport_widths"),
            viewport_config=opts.get("viewport_config"),
        ),
        "capture": capture,
        "hide": list(opts["hide"]) if opts.get("hide") else None,
        "auth": opts.get("auth"),
        "analysis": analysis,
        "focus": opts.get("focus"),
        "goals": opts.get("goals"),
        "output": opts.get("output"),
        "output_file": opts.get("output_file"),
        "no_cache": opts.get("no_cache") or None,
        "cache_dir": opts.get("cache_dir"),
        "fresh": opts.get("fresh") or None,
        "fail_on": opts.get("fail_on"),
    }


@cli.command()
@click.option("--url", "-u", prompt="Site URL", help="Website URL to review")
def init(url: str) -> None:
    """Create a default .lookerrc.json in the current directory."""
    config_path = Path(CONFIG_FILENAMES[0])
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    LookerConfig(url=url).save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print("  [blue]looker run[/blue]")


@cli.group()
def cache() -> None:
    """Manage the screenshot cache."""
    pass


@cache.command("clear")
@click.option("--cache-dir", type=click.Path(), help="Custom cache directory")
def cache_clear(cache_dir: str | None) -> None:
    """Forget every cached screenshot."""
    cfg = LookerConfig.resolve({"cache_dir": cache_dir})
    store = ScreenshotCache(cfg.cache_dir)
    store.clear_cache()
    console.print(f"[green]Cache cleared:[/green] {store.cache_dir}")


if __name__ == "__main__":
    cli()
