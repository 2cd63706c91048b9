# tests/test_session_timing.py
"""Derived flags shown by the portal: joinable, starting soon, badge, cancel window."""
from datetime import datetime, timedelta, timezone

import pytest

from app.models import ClassSession, SessionStatus
from app.services.sessions import session_timing

UTC = timezone.utc
START = datetime(2030, 3, 11, 9, tzinfo=UTC)


def make_session(status=SessionStatus.SCHEDULED, meet_link="https://meet.example/xyz"):
    return ClassSession(
        scheduled_at=START,
        duration_minutes=60,
        ends_at=START + timedelta(minutes=60),
        status=status.value,
        meet_link=meet_link,
    )


class TestJoinable:

    @pytest.mark.parametrize("offset_minutes, expected", [
        (-16, False),
        (-15, True),
        (0, True),
        (60, True),
        (61, False),
    ])
    def test_join_window(self, offset_minutes, expected):
        now = START + timedelta(minutes=offset_minutes)
        assert session_timing.is_joinable(make_session(), now) is expected

    def test_requires_meet_link(self):
        assert not session_timing.is_joinable(make_session(meet_link=None), START)

    def test_requires_scheduled_status(self):
        assert not session_timing.is_joinable(make_session(status=SessionStatus.CANCELLED), START)


class TestHighlights:

    def test_starting_soon_uses_two_hours(self):
        session = make_session()
        assert session_timing.is_starting_soon(session, START - timedelta(hours=2))
        assert not session_timing.is_starting_soon(session, START - timedelta(hours=2, minutes=1))

    def test_badge_uses_24_hours(self):
        session = make_session()
        assert session_timing.has_upcoming_badge(session, START - timedelta(hours=23))
        assert not session_timing.is_starting_soon(session, START - timedelta(hours=23))
        assert not session_timing.has_upcoming_badge(session, START - timedelta(hours=25))

    def test_started_sessions_are_not_highlighted(self):
        session = make_session()
        assert not session_timing.is_starting_soon(session, START + timedelta(minutes=1))
        assert not session_timing.has_upcoming_badge(session, START + timedelta(minutes=1))


class TestStudentCancellation:

    def test_boundary(self):
        session = make_session()
        assert session_timing.student_can_cancel(session, START - timedelta(hours=24))
        assert not session_timing.student_can_cancel(session, START - timedelta(hours=23, minutes=59))

    def test_terminal_sessions(self):
        session = make_session(status=SessionStatus.COMPLETED)
        assert not session_timing.student_can_cancel(session, START - timedelta(days=3))


def test_terminal_statuses():
    assert not SessionStatus.SCHEDULED.is_terminal
    assert all(s.is_terminal for s in (SessionStatus.COMPLETED, SessionStatus.CANCELLED, SessionStatus.NO_SHOW))
