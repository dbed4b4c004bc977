from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from production_tracker.core.aggregates import summarize
from production_tracker.core.dates import to_display_string

CSV_HEADER = ("Date", "User", "Crew", "Type", "Feet")
CSV_FILENAME = "production-data.csv"


def newest_first(entries: Iterable[Any]) -> List[Any]:
    return sorted(entries, key=lambda e: e.date, reverse=True)


def entries_to_csv(entries: Iterable[Any]) -> str:
    # plain comma join, values are never quoted
    lines = [",".join(CSV_HEADER)]
    for e in newest_first(entries):
        lines.append(",".join([e.date, e.username, e.crew, e.type, str(e.feet)]))
    return "\n".join(lines)


def report_context(entries: List[Any], start: Optional[date], end: Optional[date]) -> Dict[str, Any]:
    """Values the printable report template renders."""
    summary = summarize(entries, start, end)
    return {
        "date_range": f"{to_display_string(start)} to {to_display_string(end)}" if start and end else "All dates",
        "summary": summary,
        "rows": newest_first(entries),
    }


__all__ = ["CSV_HEADER", "CSV_FILENAME", "newest_first", "entries_to_csv", "report_context"]
