# tests/test_intervals_and_recurrence.py
"""Pure helpers: half-open overlap, window union and the weekly stride."""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from app.core.exceptions import ValidationError
from app.services.scheduling.intervals import merge_windows, overlaps, sunday_based_weekday
from app.services.scheduling.recurrence import (
    WEEKLY_STRIDE,
    first_weekday_on_or_after,
    weekly_occurrences,
    weekly_series,
)

UTC = timezone.utc
MADRID = ZoneInfo("Europe/Madrid")


class TestOverlaps:

    def test_touching_intervals_do_not_overlap(self):
        a = datetime(2030, 3, 11, 9, tzinfo=UTC)
        b = datetime(2030, 3, 11, 10, tzinfo=UTC)
        c = datetime(2030, 3, 11, 11, tzinfo=UTC)
        assert not overlaps(a, b, b, c)
        assert not overlaps(b, c, a, b)

    def test_partial_and_contained_intervals_overlap(self):
        base = datetime(2030, 3, 11, 9, tzinfo=UTC)
        hour = timedelta(hours=1)
        assert overlaps(base, base + hour, base + hour / 2, base + 2 * hour)
        assert overlaps(base, base + 3 * hour, base + hour, base + 2 * hour)


class TestMergeWindows:

    def test_overlapping_and_touching_windows_collapse(self):
        windows = [(time(10), time(12)), (time(9), time(11)), (time(12), time(13)), (time(15), time(16))]
        assert merge_windows(windows) == [(time(9), time(13)), (time(15), time(16))]

    def test_contained_window_is_absorbed(self):
        assert merge_windows([(time(9), time(17)), (time(10), time(11))]) == [(time(9), time(17))]

    def test_empty(self):
        assert merge_windows([]) == []


def test_sunday_based_weekday():
    assert sunday_based_weekday(date(2030, 3, 3)) == 0  # Sunday
    assert sunday_based_weekday(date(2030, 3, 4)) == 1  # Monday
    assert sunday_based_weekday(date(2030, 3, 9)) == 6  # Saturday


class TestWeeklyOccurrences:

    def test_fixed_168_hour_stride(self):
        start = datetime(2030, 1, 28, 10, tzinfo=UTC)
        occurrences = weekly_occurrences(start, 4)

        assert occurrences[0] == start
        assert all(b - a == timedelta(hours=168) for a, b in zip(occurrences, occurrences[1:]))
        # crosses the month boundary without drifting
        assert occurrences[1] == datetime(2030, 2, 4, 10, tzinfo=UTC)

    def test_stride_is_absolute_across_dst(self):
        """A Madrid 10:00 series keeps its UTC instant, so local time moves after the switch."""
        start = datetime(2030, 3, 25, 10, tzinfo=MADRID)
        first, second = weekly_occurrences(start, 2)

        assert first == start
        assert second.astimezone(UTC) - start.astimezone(UTC) == WEEKLY_STRIDE
        assert second.astimezone(UTC) == datetime(2030, 4, 1, 9, tzinfo=UTC)
        assert second.astimezone(MADRID).hour == 11

    def test_occurrences_are_returned_in_utc(self):
        occurrences = weekly_occurrences(datetime(2030, 10, 21, 10, tzinfo=MADRID), 3)

        assert all(o.utcoffset() == timedelta(0) for o in occurrences)
        assert occurrences[1] == datetime(2030, 10, 28, 8, tzinfo=UTC)
        assert occurrences[1].astimezone(MADRID).hour == 9

    def test_rejects_non_positive_count(self):
        with pytest.raises(ValidationError):
            weekly_occurrences(datetime(2030, 1, 1, tzinfo=UTC), 0)

    def test_rejects_naive_start(self):
        with pytest.raises(ValidationError):
            weekly_occurrences(datetime(2030, 1, 1), 3)


class TestWeeklySeries:

    def test_first_weekday_on_or_after(self):
        assert first_weekday_on_or_after(date(2030, 3, 5), 1) == date(2030, 3, 11)
        assert first_weekday_on_or_after(date(2030, 3, 4), 1) == date(2030, 3, 4)

    def test_series_is_bounded_by_end_date(self):
        series = weekly_series(1, time(10), date(2030, 3, 5), date(2030, 3, 25), MADRID)
        assert [s.astimezone(MADRID).date() for s in series] == [
            date(2030, 3, 11), date(2030, 3, 18), date(2030, 3, 25)
        ]
        assert all(s.astimezone(UTC).hour == 9 for s in series)

    def test_series_across_spring_forward_keeps_the_stride(self):
        series = weekly_series(1, time(10), date(2030, 3, 25), date(2030, 4, 1), MADRID)

        assert series == [datetime(2030, 3, 25, 9, tzinfo=UTC), datetime(2030, 4, 1, 9, tzinfo=UTC)]

    def test_empty_when_no_matching_day(self):
        assert weekly_series(0, time(10), date(2030, 3, 4), date(2030, 3, 9), MADRID) == []
