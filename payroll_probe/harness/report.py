from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from payroll_probe.core.logger import get_logger
from payroll_probe.schemas.result_schemas import Report, ReportSummary, TestResult, utc_now_iso

logger = get_logger(__name__)

REPORT_PREFIX = "payroll-settings-test-"


def success_rate(passed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(passed / total * 100, 1)


def build_report(results: Sequence[TestResult], timestamp: str | None = None) -> Report:
    total = len(results)
    passed = sum(1 for result in results if result.passed)
    summary = ReportSummary(
        total=total,
        passed=passed,
        failed=total - passed,
        success_rate=success_rate(passed, total),
    )
    return Report(timestamp=timestamp or utc_now_iso(), summary=summary, results=list(results))


def report_filename(timestamp: str) -> str:
    return f"{REPORT_PREFIX}{timestamp.replace(':', '-').replace('.', '-')}.json"


def _save_json(target: Path, payload: Any) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")


def write_report(report: Report, output_dir: Path) -> Path:
    target = Path(output_dir) / report_filename(report.timestamp)
    _save_json(target, report.to_payload())
    logger.info(
        "report.saved",
        path=str(target),
        total=report.summary.total,
        passed=report.summary.passed,
        failed=report.summary.failed,
    )
    return target
