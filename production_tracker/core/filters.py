from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel, field_validator

from production_tracker.core.dates import (
    from_storage_string,
    normalize_storage_string,
    to_storage_string,
)

ALL = "all"


class EntryFilter(BaseModel):
    search: Optional[str] = None
    crew: Optional[str] = None
    type: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _parse_bound(cls, value: Any) -> Optional[date]:
        if value is None or value == "":
            return None
        if isinstance(value, date):
            return value
        parsed = from_storage_string(str(value))
        if parsed is None:
            raise ValueError("expected YYYY/MM/DD or YYYY-MM-DD")
        return parsed


def _selected(value: Optional[str]) -> Optional[str]:
    if value is None or value == "" or value == ALL:
        return None
    return value


def matches_search(entry: Any, term: str) -> bool:
    term = term.lower()
    return (
        term in (entry.username or "").lower()
        or term in (entry.crew or "").lower()
        or term in (entry.type or "").lower()
    )


def in_date_range(entry: Any, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from is None and date_to is None:
        return True
    stored = normalize_storage_string(entry.date or "")
    if from_storage_string(stored) is None:
        return False
    if date_from is not None and stored < to_storage_string(date_from):
        return False
    if date_to is not None and stored > to_storage_string(date_to):
        return False
    return True


def filter_entries(entries: Iterable[Any], criteria: Optional[EntryFilter] = None) -> List[Any]:
    """Entries matching every predicate in ``criteria``; input order is kept."""
    rows = list(entries)
    if criteria is None:
        return rows

    if criteria.search:
        rows = [e for e in rows if matches_search(e, criteria.search)]
    crew = _selected(criteria.crew)
    if crew is not None:
        rows = [e for e in rows if e.crew == crew]
    work_type = _selected(criteria.type)
    if work_type is not None:
        rows = [e for e in rows if e.type == work_type]
    if criteria.date_from is not None or criteria.date_to is not None:
        rows = [e for e in rows if in_date_range(e, criteria.date_from, criteria.date_to)]
    return rows


def resolve_time_frame(
    frame: str,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Tuple[date, date]:
    """Inclusive (start, end) days covered by a dashboard time frame."""
    if frame == "day":
        return today, today
    if frame == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if frame == "week":
        return today - timedelta(days=7), today
    if frame == "month":
        first = today.replace(day=1)
        next_month = (first + timedelta(days=32)).replace(day=1)
        return first, next_month - timedelta(days=1)
    if frame == "quarter":
        return today - timedelta(days=90), today
    if frame == "custom":
        if start is None or end is None:
            raise ValueError("custom time frame needs both start and end")
        if start > end:
            raise ValueError("start must not be after end")
        return start, end
    raise ValueError(f"unknown time frame: {frame}")


__all__ = [
    "ALL",
    "EntryFilter",
    "matches_search",
    "in_date_range",
    "filter_entries",
    "resolve_time_frame",
]
