from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. ``2026-01-05T09:30:12.481Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ResponseSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: int
    status_text: str = Field(default="", alias="statusText")
    data: Any = None


class TestResult(BaseModel):
    __test__ = False  # keep pytest from collecting this model

    model_config = ConfigDict(frozen=True)

    name: str
    timestamp: str = Field(default_factory=utc_now_iso)
    passed: bool
    error: str | None = None
    response: ResponseSnapshot | None = None


class ReportSummary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total: int
    passed: int
    failed: int
    success_rate: float = Field(alias="successRate")


class Report(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str = Field(default_factory=utc_now_iso)
    summary: ReportSummary
    results: list[TestResult] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
