# app/services/scheduling/intervals.py
"""Half-open interval helpers shared by slot generation and booking checks"""
from datetime import date, datetime, time
from typing import Iterable, List, Tuple

TimeWindow = Tuple[time, time]


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """[a_start, a_end) and [b_start, b_end) share an instant; touching endpoints do not count"""
    return a_start < b_end and a_end > b_start


def merge_windows(windows: Iterable[TimeWindow]) -> List[TimeWindow]:
    """Union of same-day time ranges; overlapping and touching ranges collapse into one"""
    merged: List[TimeWindow] = []
    for start, end in sorted(windows):
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
            continue
        merged.append((start, end))
    return merged


def sunday_based_weekday(day: date) -> int:
    """0=Sunday .. 6=Saturday, the numbering used by availability rules"""
    return (day.weekday() + 1) % 7
