"""Final report rendering and exit code."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone

from .engine import RunSummary, SubsystemStatus

STATUS_LABELS = {
    SubsystemStatus.PASSED: "OPERATIONAL",
    SubsystemStatus.FAILED: "FAILED",
    SubsystemStatus.PENDING: "NOT TESTED",
}

_RULE = "═" * 60
_THIN = "─" * 60


def exit_code(summary: RunSummary) -> int:
    """0 iff no probe failed. Warnings never change the exit code."""
    return 0 if summary.failed == 0 else 1


def verdict_line(summary: RunSummary) -> str:
    if summary.failed:
        return f"SYSTEM HAS PROBLEMS — {summary.failed} FAILURE(S) DETECTED"
    if summary.warnings:
        return f"SYSTEM OPERATIONAL WITH {summary.warnings} WARNING(S)"
    return "SYSTEM 100% HEALTHY — READY FOR PRODUCTION"


def render(
    summary: RunSummary,
    statuses: Mapping[str, SubsystemStatus],
    labels: Mapping[str, str] | None = None,
    title: str = "SYSTEM HEALTH REPORT",
    now: datetime | None = None,
) -> tuple[str, int]:
    """Render the aggregated run state as plain text plus the exit code."""
    labels = labels or {}
    now = now or datetime.now(timezone.utc)

    lines = [_RULE, f"  {title}", _RULE, ""]
    for key, status in statuses.items():
        name = labels.get(key, key)
        lines.append(f"  {name:<25} {STATUS_LABELS[status]}")

    lines += [
        "",
        _THIN,
        "  TEST SUMMARY",
        _THIN,
        "",
        f"  Total probes:       {summary.total}",
        f"  Passed:             {summary.passed}",
        f"  Failed:             {summary.failed}",
        f"  Warnings:           {summary.warnings}",
        "",
        f"  {verdict_line(summary)}",
        "",
        _RULE,
        f"  Success rate: {summary.success_rate}%",
        f"  Executed at: {now.isoformat(timespec='seconds')}",
        _RULE,
    ]
    return "\n".join(lines), exit_code(summary)
