# app/services/sessions/reminder_service.py
"""Selects sessions that are due a day-before reminder"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.models.class_session import ClassSession, SessionStatus
from app.models.types import utc_now
from app.services.portal.portal_client import PortalClient, PortalClientError

logger = logging.getLogger(__name__)


class ReminderService:

    @staticmethod
    def find_due_reminders(db: Session, now: Optional[datetime] = None) -> List[ClassSession]:
        """Scheduled sessions starting 23-25h from now that have not been reminded"""
        now = now or utc_now()
        settings = get_settings()
        window_start = now + timedelta(hours=settings.REMINDER_WINDOW_START_HOURS)
        window_end = now + timedelta(hours=settings.REMINDER_WINDOW_END_HOURS)

        logger.info(f"Looking for sessions between {window_start.isoformat()} and {window_end.isoformat()}")

        return db.query(ClassSession).filter(
            ClassSession.status == SessionStatus.SCHEDULED.value,
            ClassSession.reminder_sent_at.is_(None),
            ClassSession.scheduled_at >= window_start,
            ClassSession.scheduled_at <= window_end,
        ).order_by(ClassSession.scheduled_at.asc()).all()

    @staticmethod
    def mark_reminded(db: Session, session: ClassSession, now: Optional[datetime] = None) -> None:
        session.reminder_sent_at = now or utc_now()
        db.commit()

    @staticmethod
    def send_due_reminders(db: Session, portal: PortalClient, now: Optional[datetime] = None) -> Dict[str, int]:
        """Deliver every due reminder; a failed delivery is retried on the next run"""
        now = now or utc_now()
        result = {"processed": 0, "sent": 0, "failed": 0}

        for session in ReminderService.find_due_reminders(db, now):
            result["processed"] += 1
            try:
                portal.send_reminder(session)
            except PortalClientError as exc:
                result["failed"] += 1
                logger.error(f"Reminder failed for session {session.id}: {exc}")
                continue

            ReminderService.mark_reminded(db, session, now)
            result["sent"] += 1

        return result
