"""
Time bucketing for chart series.

Groups timestamped records by local calendar day (or month). Series are
sparse: only days that have records produce a bucket, ordered by ascending
ISO date string. Records whose timestamp is missing or unparseable are left
out of every bucket.
"""

from typing import Any, Callable, Iterable, Optional, TypeVar

from opsdash.engine.coercion import parse_timestamp
from opsdash.models.derived import SeriesPoint

R = TypeVar("R")

Accessor = Callable[[R], Any]


def day_key(value: Any) -> Optional[str]:
    """Local calendar date (YYYY-MM-DD) of a timestamp, or None if unparseable."""
    moment = parse_timestamp(value)
    if moment is None:
        return None
    return moment.date().isoformat()


def month_key(value: Any) -> Optional[str]:
    """Local calendar month (YYYY-MM) of a timestamp, or None if unparseable."""
    key = day_key(value)
    return key[:7] if key else None


def _bucket(
    records: Iterable[R],
    accessor: Accessor,
    key_fn: Callable[[Any], Optional[str]],
    value_fn: Callable[[R], float],
) -> list[SeriesPoint]:
    totals: dict[str, float] = {}
    for record in records:
        key = key_fn(accessor(record))
        if key is None:
            continue
        totals[key] = totals.get(key, 0.0) + value_fn(record)
    return [SeriesPoint(key=k, value=totals[k]) for k in sorted(totals)]


def bucket_by_day(records: Iterable[R], accessor: Accessor) -> list[SeriesPoint]:
    """
    Count records per calendar day.

    Args:
        records: Any collection of records
        accessor: Returns the timestamp of a record

    Returns:
        Sparse, ascending (day, count) series

    Example:
        >>> points = bucket_by_day(calls, lambda c: c.started_at)
        >>> [(p.key, p.value) for p in points]
        [('2026-10-01', 3.0), ('2026-10-04', 1.0)]
    """
    return _bucket(records, accessor, day_key, lambda _: 1.0)


def bucket_by_month(records: Iterable[R], accessor: Accessor) -> list[SeriesPoint]:
    """Count records per calendar month (sparse, ascending)."""
    return _bucket(records, accessor, month_key, lambda _: 1.0)


def sum_by_day(
    records: Iterable[R],
    accessor: Accessor,
    value_accessor: Callable[[R], Optional[float]],
    include: Optional[Callable[[R], bool]] = None,
) -> list[SeriesPoint]:
    """
    Sum a numeric field per calendar day.

    Missing values add 0. ``include`` restricts which records take part at
    all (a day only appears if at least one included record falls on it).
    """
    selected = records if include is None else (r for r in records if include(r))
    return _bucket(selected, accessor, day_key, lambda r: value_accessor(r) or 0.0)


def split_by_day(
    records: Iterable[R],
    accessor: Accessor,
    predicate: Callable[[R], bool],
) -> tuple[list[str], list[float], list[float]]:
    """
    Count records per day split by a predicate.

    Returns:
        (days, counts_not_matching, counts_matching), aligned by index
    """
    groups: dict[str, list[float]] = {}
    for record in records:
        key = day_key(accessor(record))
        if key is None:
            continue
        counts = groups.setdefault(key, [0.0, 0.0])
        counts[1 if predicate(record) else 0] += 1
    days = sorted(groups)
    return days, [groups[d][0] for d in days], [groups[d][1] for d in days]


def count_by_field(
    records: Iterable[R],
    accessor: Accessor,
    default: str = "Unknown",
) -> list[SeriesPoint]:
    """Count records per category value, in first-seen order."""
    counts: dict[str, float] = {}
    for record in records:
        key = accessor(record) or default
        counts[key] = counts.get(key, 0.0) + 1
    return [SeriesPoint(key=k, value=v) for k, v in counts.items()]
