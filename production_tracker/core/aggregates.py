"""
Reporting aggregates over lists of entries.

Every function is pure and deterministic. Groupings not keyed on the date
(crew, type, user, bucket) keep every foot of the input: their sums equal
``total_feet`` of the same entries. Groupings keyed on the date (weekday,
day, week) skip entries whose date does not parse, so they only conserve
the total over entries with valid dates.
"""
from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from production_tracker.core.dates import from_storage_string, to_display_string, to_storage_string

BUCKET_WIDTH = 100
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class Summary:
    total_feet: int
    total_entries: int
    average_feet: int
    daily_average: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def total_feet(entries: Iterable[Any]) -> int:
    return sum(e.feet for e in entries)


def summarize(entries: Sequence[Any], start: Optional[date] = None, end: Optional[date] = None) -> Summary:
    total = total_feet(entries)
    count = len(entries)
    average = round_half_up(total / count) if count else 0
    day_count = 1
    if start is not None and end is not None:
        day_count = max(1, (end - start).days + 1)
    return Summary(
        total_feet=total,
        total_entries=count,
        average_feet=average,
        daily_average=round_half_up(total / day_count),
    )


def _sum_by(entries: Iterable[Any], key: Callable[[Any], Any]) -> Dict[Any, int]:
    sums: Dict[Any, int] = {}
    for entry in entries:
        k = key(entry)
        sums[k] = sums.get(k, 0) + entry.feet
    return sums


def _ranked(sums: Dict[str, int]) -> Dict[str, int]:
    ranked = sorted(((k, v) for k, v in sums.items() if v > 0), key=lambda kv: -kv[1])
    return dict(ranked)


def sum_by_crew(entries: Iterable[Any]) -> Dict[str, int]:
    return _ranked(_sum_by(entries, lambda e: e.crew))


def sum_by_type(entries: Iterable[Any]) -> Dict[str, int]:
    return _ranked(_sum_by(entries, lambda e: e.type))


def sum_by_user(entries: Iterable[Any]) -> Dict[str, int]:
    return _ranked(_sum_by(entries, lambda e: e.username))


def _dated(entries: Iterable[Any]) -> List[Tuple[date, Any]]:
    out = []
    for entry in entries:
        parsed = from_storage_string(entry.date)
        if parsed is not None:
            out.append((parsed, entry))
    return out


def sum_by_weekday(entries: Iterable[Any]) -> Dict[str, int]:
    sums = {day: 0 for day in WEEKDAYS}
    for parsed, entry in _dated(entries):
        sums[WEEKDAYS[parsed.weekday()]] += entry.feet
    return sums


def average_by_weekday(entries: Iterable[Any]) -> Dict[str, Dict[str, float]]:
    """Mean feet per entry for each weekday, with the entry count behind it."""
    values: Dict[str, List[int]] = {day: [] for day in WEEKDAYS}
    for parsed, entry in _dated(entries):
        values[WEEKDAYS[parsed.weekday()]].append(entry.feet)
    return {
        day: {"average": (sum(v) / len(v)) if v else 0.0, "count": len(v)}
        for day, v in values.items()
    }


def sum_by_day(entries: Iterable[Any]) -> Dict[str, int]:
    sums: Dict[str, int] = defaultdict(int)
    for parsed, entry in _dated(entries):
        sums[to_storage_string(parsed)] += entry.feet
    return dict(sorted(sums.items()))


def daily_series(
    entries: Iterable[Any], start: date, end: date, max_days: int = 30
) -> List[Dict[str, Any]]:
    """Zero-filled per-day totals for the last ``max_days`` days up to ``end``."""
    by_day = sum_by_day(entries)
    days = min((end - start).days + 1, max_days)
    series = []
    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        key = to_storage_string(day)
        series.append({"date": key, "name": day.strftime("%b %d"), "value": by_day.get(key, 0)})
    return series


def week_start(day: date) -> date:
    # weeks start on Sunday
    return day - timedelta(days=(day.weekday() + 1) % 7)


def weekly_trend(entries: Iterable[Any]) -> List[Dict[str, Any]]:
    weeks: Dict[date, int] = defaultdict(int)
    for parsed, entry in _dated(entries):
        weeks[week_start(parsed)] += entry.feet
    return [
        {"week_start": to_storage_string(start), "name": to_display_string(start), "value": value}
        for start, value in sorted(weeks.items())
    ]


def active_crews(entries: Iterable[Any]) -> int:
    """Number of distinct crews with at least one entry."""
    return len({e.crew for e in entries})


def crew_type_matrix(entries: Iterable[Any]) -> List[Dict[str, Any]]:
    sums = _sum_by(entries, lambda e: (e.crew, e.type))
    cells = [{"crew": crew, "type": t, "value": v} for (crew, t), v in sums.items() if v > 0]
    cells.sort(key=lambda c: -c["value"])
    return cells


def _normalized(values: List[float]) -> List[float]:
    top = max(values) if values else 0
    if top == 0:
        return list(values)
    return [v / top * 100 for v in values]


def crew_comparison(entries: Sequence[Any], crews: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
    """Total, average and count per crew, each also scaled to 0..100 of its max."""
    if crews is None:
        crews = list(dict.fromkeys(e.crew for e in entries))
    totals: List[float] = []
    averages: List[float] = []
    counts: List[float] = []
    for name in crews:
        feet = [e.feet for e in entries if e.crew == name]
        totals.append(sum(feet))
        averages.append(sum(feet) / len(feet) if feet else 0.0)
        counts.append(len(feet))
    rows = []
    for i, (t_pct, a_pct, c_pct) in enumerate(zip(_normalized(totals), _normalized(averages), _normalized(counts))):
        rows.append({
            "crew": crews[i],
            "total": int(totals[i]),
            "average": averages[i],
            "count": int(counts[i]),
            "total_pct": t_pct,
            "average_pct": a_pct,
            "count_pct": c_pct,
        })
    return rows


def bucket_label(feet: int, width: int = BUCKET_WIDTH) -> str:
    lo = (feet // width) * width
    return f"{lo}-{lo + width}"


def _bucketed(entries: Iterable[Any], width: int, value: Callable[[Any], int]) -> Dict[str, int]:
    if width <= 0:
        raise ValueError("bucket width must be positive")
    buckets: Dict[int, int] = defaultdict(int)
    for entry in entries:
        buckets[entry.feet // width] += value(entry)
    return {bucket_label(i * width, width): v for i, v in sorted(buckets.items())}


def sum_by_bucket(entries: Iterable[Any], width: int = BUCKET_WIDTH) -> Dict[str, int]:
    return _bucketed(entries, width, lambda e: e.feet)


def count_by_bucket(entries: Iterable[Any], width: int = BUCKET_WIDTH) -> Dict[str, int]:
    return _bucketed(entries, width, lambda e: 1)


__all__ = [
    "BUCKET_WIDTH",
    "WEEKDAYS",
    "Summary",
    "round_half_up",
    "total_feet",
    "summarize",
    "sum_by_crew",
    "sum_by_type",
    "sum_by_user",
    "sum_by_weekday",
    "average_by_weekday",
    "sum_by_day",
    "daily_series",
    "week_start",
    "weekly_trend",
    "crew_type_matrix",
    "active_crews",
    "crew_comparison",
    "bucket_label",
    "sum_by_bucket",
    "count_by_bucket",
]
