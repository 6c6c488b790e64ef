"""
Ordering Module - Comparators and predicates for the collection view

Sort fields and the magnitude / date / search filters of the browser,
expressed as pure functions the CollectionView treats as opaque.
"""
from dataclasses import fields
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from QuakeView.feed.record_codec import Record, parse_timestamp


Comparator = Callable[[Record, Record], int]
Predicate = Callable[[Record], bool]

# Field name -> column label offered by the UI
SORT_FIELDS = {
    'time': 'Time',
    'magnitude': 'Magnitude',
    'depth': 'Depth',
    'place': 'Location',
    'updated': 'Updated',
}

# Category -> (label, lower bound inclusive, upper bound exclusive)
MAGNITUDE_RANGES = {
    'minor': ('Minor (< 4)', None, 4.0),
    'moderate': ('Moderate (4-5)', 4.0, 5.0),
    'strong': ('Strong (5-6)', 5.0, 6.0),
    'major': ('Major (6+)', 6.0, None),
}

# Range -> (label, days back from now)
DATE_RANGES = {
    '1day': ('Last 24 hours', 1),
    '7days': ('Last 7 days', 7),
    '30days': ('Last 30 days', 30),
}

ALL = 'all'

_RECORD_FIELDS = {f.name for f in fields(Record)}


def compare_by_field(field: str, descending: bool = False) -> Comparator:
    """
    Build a three-way comparator on a Record attribute

    None values always sort last, whatever the direction.
    """
    if field not in _RECORD_FIELDS:
        raise ValueError(f"Unknown record field: {field}")

    def compare(a: Record, b: Record) -> int:
        left = getattr(a, field)
        right = getattr(b, field)
        if left is None or right is None:
            return (left is None) - (right is None)
        if isinstance(left, str) and isinstance(right, str) and field == 'place':
            left, right = left.lower(), right.lower()
        result = (left > right) - (left < right)
        return -result if descending else result

    return compare


def magnitude_at_least(minimum: float) -> Predicate:
    return lambda record: record.magnitude >= minimum


def magnitude_at_most(maximum: float) -> Predicate:
    return lambda record: record.magnitude <= maximum


def magnitude_between(minimum: float, maximum: float) -> Predicate:
    if minimum > maximum:
        raise ValueError("minimum magnitude is above maximum")
    return lambda record: minimum <= record.magnitude <= maximum


def magnitude_category(name: str) -> Predicate:
    """Events in one of the MAGNITUDE_RANGES bands"""
    if name not in MAGNITUDE_RANGES:
        raise ValueError(f"Unknown magnitude range: {name}")
    _, lower, upper = MAGNITUDE_RANGES[name]

    def predicate(record: Record) -> bool:
        if lower is not None and record.magnitude < lower:
            return False
        if upper is not None and record.magnitude >= upper:
            return False
        return True

    return predicate


def occurred_between(start: Optional[datetime] = None, end: Optional[datetime] = None) -> Predicate:
    """Events whose time falls in [start, end], open-ended when a bound is None"""
    # Record times are UTC-aware
    if start is not None and start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end is not None and end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)

    def predicate(record: Record) -> bool:
        when = parse_timestamp(record.time)
        if when is None:
            return False
        if start is not None and when < start:
            return False
        if end is not None and when > end:
            return False
        return True

    return predicate


def occurred_within(range_name: str, now: Optional[datetime] = None) -> Predicate:
    """Events from the last N days of one of the DATE_RANGES"""
    if range_name not in DATE_RANGES:
        raise ValueError(f"Unknown date range: {range_name}")
    now = now or datetime.now(timezone.utc)
    return occurred_between(start=now - timedelta(days=DATE_RANGES[range_name][1]))


def text_contains(text: str) -> Predicate:
    """Case-insensitive substring search over place, id and network"""
    needle = (text or "").strip().lower()

    def predicate(record: Record) -> bool:
        if not needle:
            return True
        return (needle in record.place.lower()
                or needle in record.id.lower()
                or needle in record.network.lower())

    return predicate


def all_of(*predicates: Optional[Predicate]) -> Predicate:
    """Conjunction of predicates, None entries are ignored"""
    active = [p for p in predicates if p is not None]
    return lambda record: all(p(record) for p in active)


def build_filter(search: str = "",
                 min_magnitude: Optional[float] = None,
                 max_magnitude: Optional[float] = None,
                 magnitude_range: str = ALL,
                 date_range: str = ALL,
                 now: Optional[datetime] = None) -> Optional[Predicate]:
    """
    Combine the browser's filter controls into one predicate

    Args:
        search: Free text matched against place, id and network
        min_magnitude: Lowest magnitude shown, None for no bound
        max_magnitude: Highest magnitude shown, None for no bound
        magnitude_range: Key of MAGNITUDE_RANGES, or ALL
        date_range: Key of DATE_RANGES, or ALL
        now: Reference time for the date range, current UTC time when None

    Returns:
        The predicate, None when no filter is active

    Raises:
        ValueError: min_magnitude above max_magnitude, or an unknown range
    """
    predicates = []
    if search and search.strip():
        predicates.append(text_contains(search))

    if min_magnitude is not None and max_magnitude is not None:
        predicates.append(magnitude_between(min_magnitude, max_magnitude))
    elif min_magnitude is not None:
        predicates.append(magnitude_at_least(min_magnitude))
    elif max_magnitude is not None:
        predicates.append(magnitude_at_most(max_magnitude))

    if magnitude_range != ALL:
        predicates.append(magnitude_category(magnitude_range))
    if date_range != ALL:
        predicates.append(occurred_within(date_range, now))

    return all_of(*predicates) if predicates else None
