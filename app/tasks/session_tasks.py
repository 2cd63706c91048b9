# ===== app/tasks/session_tasks.py =====
from typing import Any, Dict
from uuid import UUID
import logging

from app.config.celery_config import celery_app
from app.config.database import SessionLocal
from app.config.settings import get_settings
from app.models.class_session import ClassSession
from app.services.portal.portal_client import PortalClient, PortalClientError
from app.services.sessions.reminder_service import ReminderService

logger = logging.getLogger(__name__)


def enqueue(task, *args) -> None:
    """Queue a task after the request committed; a broker outage never fails the request"""
    if not get_settings().BACKGROUND_TASKS_ENABLED:
        logger.debug(f"Background tasks disabled, skipping {task.name}")
        return
    try:
        task.delay(*args)
    except Exception as e:
        logger.error(f"Could not enqueue {task.name} for {args}: {e}")


@celery_app.task(bind=True, max_retries=3)
def provision_session_resources(self, session_id: str):
    """Get a meeting link and lesson document for a freshly booked session"""
    db = SessionLocal()
    try:
        session = db.get(ClassSession, UUID(str(session_id)))
        if not session:
            logger.error(f"Session {session_id} not found")
            return {"status": "failed", "reason": "session_not_found"}

        result = PortalClient().provision_session(session)

        if result.get("meet_link") and not session.meet_link:
            session.meet_link = result["meet_link"]
        if result.get("document_url"):
            session.document_url = result["document_url"]
        db.commit()

        logger.info(f"Provisioned session {session_id}: meet_link={bool(session.meet_link)}, "
                    f"document={bool(session.document_url)}")
        return {"status": "success"}

    except PortalClientError as exc:
        logger.error(f"Provisioning failed for session {session_id}: {exc}")
        raise self.retry(countdown=60 * (self.request.retries + 1))
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3)
def release_session_resources(self, session_id: str):
    """Tell the portal a session was cancelled so it can drop the calendar event"""
    db = SessionLocal()
    try:
        session = db.get(ClassSession, UUID(str(session_id)))
        if not session:
            return {"status": "failed", "reason": "session_not_found"}

        PortalClient().cancel_session_event(session)
        return {"status": "success"}

    except PortalClientError as exc:
        logger.error(f"Cancelling portal event failed for session {session_id}: {exc}")
        raise self.retry(countdown=60 * (self.request.retries + 1))
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3)
def submit_class_report(self, session_id: str, report: Dict[str, Any]):
    """Hand the post-class report to the lesson document"""
    db = SessionLocal()
    try:
        session = db.get(ClassSession, UUID(str(session_id)))
        if not session:
            return {"status": "failed", "reason": "session_not_found"}

        PortalClient().submit_class_report(session, report)
        logger.info(f"Class report submitted for session {session_id} (rating {report.get('rating')})")
        return {"status": "success"}

    except PortalClientError as exc:
        logger.error(f"Report submission failed for session {session_id}: {exc}")
        raise self.retry(countdown=60 * (self.request.retries + 1))
    finally:
        db.close()


@celery_app.task
def send_session_reminders():
    """Hourly: remind both parties of sessions starting in about a day"""
    db = SessionLocal()
    try:
        result = ReminderService.send_due_reminders(db, PortalClient())
        logger.info(f"Reminders: {result}")
        return result
    finally:
        db.close()
