"""Colorized console output for a run."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from payroll_probe.harness.report import success_rate
from payroll_probe.schemas.result_schemas import Report, utc_now_iso

LEVEL_STYLES = {
    "success": "green",
    "error": "red",
    "info": "cyan",
    "warning": "yellow",
}
RULE_WIDTH = 60


def as_pretty_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, default=str)


class RunConsole:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def log(self, message: str, level: str = "info") -> None:
        style = LEVEL_STYLES.get(level, LEVEL_STYLES["info"])
        # Text keeps "[timestamp]" and JSON bodies from being read as rich markup
        self.console.print(Text(f"[{utc_now_iso()}] {message}", style=style))

    def plain(self, message: str = "", style: str | None = None) -> None:
        self.console.print(Text(message, style=style or ""))

    def rule(self) -> None:
        self.plain("=" * RULE_WIDTH)

    def print_report(self, report: Report) -> None:
        summary = report.summary
        failed_rate = success_rate(summary.failed, summary.total)

        self.plain()
        self.rule()
        self.plain("TEST REPORT", style="bold")
        self.rule()
        self.plain(f"Total Tests: {summary.total}")
        self.plain(f"Passed: {summary.passed} ({summary.success_rate:.1f}%)", style="green")
        self.plain(f"Failed: {summary.failed} ({failed_rate:.1f}%)", style="red" if summary.failed else None)

        self.plain()
        self.rule()
        self.plain("DETAILED RESULTS:", style="bold")
        self.rule()

        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Test")
        table.add_column("Status")
        for index, result in enumerate(report.results, start=1):
            status = Text("✓ PASS", style="green") if result.passed else Text("✗ FAIL", style="red")
            table.add_row(str(index), result.name, status)
        self.console.print(table)

        for index, result in enumerate(report.results, start=1):
            data = result.response.data if result.response is not None else None
            message = data.get("message") if isinstance(data, dict) else None
            details = data.get("details") if isinstance(data, dict) else None
            if not (result.error or message or details):
                continue
            self.plain(f"{index}. {result.name}", style="green" if result.passed else "red")
            if result.error:
                self.plain(f"   Error: {result.error}")
            if message:
                self.plain(f"   Message: {message}")
            if details:
                self.plain(f"   Details: {as_pretty_json(details)}")
