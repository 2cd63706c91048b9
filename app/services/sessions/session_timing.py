# app/services/sessions/session_timing.py
"""
Derived timing rules for sessions. Nothing here is stored.

The "starting soon" dashboard highlight and the list-view badge use different
thresholds on purpose and must not be merged.
"""
from datetime import datetime, timedelta

from app.config.settings import get_settings
from app.models.class_session import ClassSession, SessionStatus


def _until(session: ClassSession, now: datetime) -> timedelta:
    return session.scheduled_at - now


def is_joinable(session: ClassSession, now: datetime) -> bool:
    """Meeting link usable from 15 min before start until 60 min after start"""
    if not session.meet_link or session.status != SessionStatus.SCHEDULED.value:
        return False
    settings = get_settings()
    opens = session.scheduled_at - timedelta(minutes=settings.JOIN_WINDOW_LEAD_MINUTES)
    closes = session.scheduled_at + timedelta(minutes=settings.JOIN_WINDOW_GRACE_MINUTES)
    return opens <= now <= closes


def _within(session: ClassSession, now: datetime, hours: int) -> bool:
    if session.status != SessionStatus.SCHEDULED.value:
        return False
    remaining = _until(session, now)
    return timedelta(0) <= remaining <= timedelta(hours=hours)


def is_starting_soon(session: ClassSession, now: datetime) -> bool:
    """Dashboard highlight: starts within the next 2 hours"""
    return _within(session, now, get_settings().DASHBOARD_SOON_HOURS)


def has_upcoming_badge(session: ClassSession, now: datetime) -> bool:
    """List-view badge: starts within the next 24 hours"""
    return _within(session, now, get_settings().LIST_BADGE_HOURS)


def student_can_cancel(session: ClassSession, now: datetime) -> bool:
    if session.status != SessionStatus.SCHEDULED.value:
        return False
    notice = timedelta(hours=get_settings().STUDENT_CANCELLATION_NOTICE_HOURS)
    return _until(session, now) >= notice


def has_started(session: ClassSession, now: datetime) -> bool:
    return now >= session.scheduled_at
