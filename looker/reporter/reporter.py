"""Report generation orchestration."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from looker.models.config import LookerConfig
from looker.models.results import RunResult

from .console_report import print_console_report
from .html_report import render_html_report
from .json_report import render_json_report
from .markdown_report import render_markdown_report, save_action_items

logger = logging.getLogger(__name__)

RENDERERS = {
    "markdown": render_markdown_report,
    "html": render_html_report,
    "json": render_json_report,
}


class Reporter:
    """Writes the configured report format and the action-items review."""

    def __init__(self, config: LookerConfig, console: Optional[Console] = None):
        self.config = config
        self.console = console or Console()

    def generate_reports(self, result: RunResult) -> dict[str, str]:
        """Emit the main report and auto-save action items. Returns kind -> file path."""
        generated = {}
        fmt = self.config.output
        output_file = Path(self.config.output_file) if self.config.output_file else None

        if fmt == "console":
            if output_file:
                output_file.parent.mkdir(parents=True, exist_ok=True)
                with open(output_file, "w", encoding="utf-8") as f:
                    print_console_report(result, Console(file=f, no_color=True, width=120))
            else:
                print_console_report(result, self.console)
        else:
            logger.debug("Rendering %s report...", fmt)
            content = RENDERERS[fmt](result)
            if output_file:
                output_file.parent.mkdir(parents=True, exist_ok=True)
                output_file.write_text(content, encoding="utf-8")
            else:
                sys.stdout.write(content + "\n")

        if output_file:
            generated[fmt] = str(output_file)
            logger.info("Report written to %s", output_file)

        review_path = save_action_items(result, self.config.reports_dir)
        generated["review"] = str(review_path)
        logger.info("Action items saved to %s", review_path)
        return generated
