"""Progress reporting for composite series."""

from __future__ import annotations

REPORT_STEPS = 20


def should_report(completed: int, total: int, steps: int = REPORT_STEPS) -> bool:
    """True roughly every ``1/steps`` of the series, and on the last composite."""
    interval = max(1, total // max(1, steps))
    return completed == total or completed % interval == 0


def seconds_remaining(elapsed: float, completed: int, total: int) -> float | None:
    """Projected seconds until the remaining composites are written.

    ``None`` while there is no rate to project from yet.
    """
    if total <= 0 or completed <= 0 or completed > total or elapsed <= 0.0:
        return None
    return elapsed / completed * (total - completed)


def series_progress(completed: int, total: int, elapsed: float) -> str:
    """One progress line, e.g. ``3/12 composites (25.0%, ~9.0s left)``."""
    percent = (completed / total) * 100.0 if total > 0 else 0.0
    summary = f"{completed}/{total} composites ({percent:0.1f}%"
    if completed >= total > 0:
        return f"{summary}, done in {elapsed:0.1f}s)"
    remaining = seconds_remaining(elapsed, completed, total)
    if remaining is None:
        return f"{summary}, estimating)"
    return f"{summary}, ~{remaining:0.1f}s left)"


__all__ = ["seconds_remaining", "series_progress", "should_report"]
