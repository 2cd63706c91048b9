# tests/test_reminders_and_portal.py
"""Day-before reminders, the portal client and task dispatch."""
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
import requests

from app.models import SessionStatus
from app.services.portal.portal_client import PortalClient, PortalClientError
from app.services.sessions.reminder_service import ReminderService
from app.tasks.session_tasks import enqueue
from tests.conftest import NOW, add_session


class FakePortal:
    """Records reminder calls; optionally fails for chosen sessions."""

    def __init__(self, failing=()):
        self.sent = []
        self.failing = set(failing)

    def send_reminder(self, session):
        if session.id in self.failing:
            raise PortalClientError("portal down")
        self.sent.append(session.id)


class TestReminders:

    def test_selects_sessions_about_a_day_away(self, db):
        due = add_session(db, NOW + timedelta(hours=24))
        add_session(db, NOW + timedelta(hours=22))
        add_session(db, NOW + timedelta(hours=26))
        add_session(db, NOW + timedelta(hours=24, minutes=30), status=SessionStatus.CANCELLED)

        assert [s.id for s in ReminderService.find_due_reminders(db, NOW)] == [due.id]

    def test_each_session_reminded_once(self, db):
        session = add_session(db, NOW + timedelta(hours=24))
        portal = FakePortal()

        first = ReminderService.send_due_reminders(db, portal, NOW)
        second = ReminderService.send_due_reminders(db, portal, NOW + timedelta(minutes=30))

        assert first == {"processed": 1, "sent": 1, "failed": 0}
        assert second == {"processed": 0, "sent": 0, "failed": 0}
        assert portal.sent == [session.id]
        db.refresh(session)
        assert session.reminder_sent_at == NOW

    def test_failed_delivery_is_retried_next_run(self, db):
        session = add_session(db, NOW + timedelta(hours=24))

        result = ReminderService.send_due_reminders(db, FakePortal(failing={session.id}), NOW)

        assert result == {"processed": 1, "sent": 0, "failed": 1}
        db.refresh(session)
        assert session.reminder_sent_at is None
        assert ReminderService.find_due_reminders(db, NOW) != []


class TestPortalClient:

    @pytest.fixture
    def http(self):
        return MagicMock(spec=requests.Session)

    @pytest.fixture
    def portal(self, http):
        return PortalClient(base_url="https://portal.example/api/", token="secret", timeout=3, http=http)

    def test_provision_returns_links(self, db, portal, http):
        session = add_session(db, NOW + timedelta(days=2))
        http.post.return_value = MagicMock(
            status_code=200, content=b"{}",
            json=MagicMock(return_value={"meet_link": "https://meet.example/a", "document_url": "https://docs.example/d"}),
        )

        result = portal.provision_session(session)

        assert result == {"meet_link": "https://meet.example/a", "document_url": "https://docs.example/d"}
        url = http.post.call_args.args[0]
        kwargs = http.post.call_args.kwargs
        assert url == "https://portal.example/api/sessions/provision"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["json"]["session_id"] == str(session.id)
        assert kwargs["timeout"] == 3

    def test_error_status_raises(self, db, portal, http):
        session = add_session(db, NOW + timedelta(days=2))
        http.post.return_value = MagicMock(status_code=502, text="bad gateway")

        with pytest.raises(PortalClientError):
            portal.send_reminder(session)

    def test_network_error_raises(self, db, portal, http):
        session = add_session(db, NOW + timedelta(days=2))
        http.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(PortalClientError):
            portal.cancel_session_event(session)

    def test_report_payload(self, db, portal, http):
        session = add_session(db, NOW - timedelta(hours=1))
        http.post.return_value = MagicMock(status_code=204, content=b"")

        portal.submit_class_report(session, {"rating": 5, "homework": "Unit 4"})

        payload = http.post.call_args.kwargs["json"]
        assert payload["report"] == {"rating": 5, "homework": "Unit 4"}


class TestEnqueue:

    def test_disabled_does_not_dispatch(self, settings, monkeypatch):
        monkeypatch.setattr(settings, "BACKGROUND_TASKS_ENABLED", False)
        task = MagicMock()

        enqueue(task, "abc")

        task.delay.assert_not_called()

    def test_dispatches_when_enabled(self, settings, monkeypatch):
        monkeypatch.setattr(settings, "BACKGROUND_TASKS_ENABLED", True)
        task = MagicMock()

        enqueue(task, "abc")

        task.delay.assert_called_once_with("abc")

    def test_broker_failure_is_logged_not_raised(self, settings, monkeypatch):
        monkeypatch.setattr(settings, "BACKGROUND_TASKS_ENABLED", True)
        task = MagicMock()
        task.delay.side_effect = ConnectionError("broker down")

        enqueue(task, "abc")
