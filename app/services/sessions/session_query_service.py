# ============================================================================
# app/services/sessions/session_query_service.py
# Read side of sessions - scoped by role, no FastAPI dependencies
# ============================================================================
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional, List, Tuple
from uuid import UUID

from app.core.exceptions import AuthorizationError, NotFoundError
from app.models.class_session import ClassSession, SessionStatus
from app.models.types import utc_now
from app.schemas.class_session import SessionOut
from app.schemas.identity import Actor, Role
from app.services.sessions import session_timing


class SessionQueryService:
    """Lists and serializes sessions for students, teachers and admins."""

    @staticmethod
    def _scoped(db: Session, actor: Actor):
        query = db.query(ClassSession)
        if actor.role == Role.STUDENT:
            query = query.filter(ClassSession.student_id == actor.user_id)
        elif actor.role == Role.TEACHER:
            query = query.filter(ClassSession.teacher_id == actor.user_id)
        return query

    @staticmethod
    def list_sessions(
            db: Session,
            actor: Actor,
            teacher_id: Optional[UUID] = None,
            student_id: Optional[UUID] = None,
            status: Optional[SessionStatus] = None,
            start: Optional[datetime] = None,
            end: Optional[datetime] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Tuple[int, List[ClassSession]]:
        """Sessions visible to the actor, oldest first; returns (total, page)."""
        query = SessionQueryService._scoped(db, actor)

        if teacher_id:
            query = query.filter(ClassSession.teacher_id == teacher_id)
        if student_id and actor.role != Role.STUDENT:
            query = query.filter(ClassSession.student_id == student_id)
        if status:
            query = query.filter(ClassSession.status == status.value)
        if start:
            query = query.filter(ClassSession.scheduled_at >= start)
        if end:
            query = query.filter(ClassSession.scheduled_at <= end)

        query = query.order_by(ClassSession.scheduled_at.asc())
        total = query.count()
        return total, query.offset(skip).limit(limit).all()

    @staticmethod
    def get_session(db: Session, actor: Actor, session_id: UUID) -> ClassSession:
        session = db.get(ClassSession, session_id)
        if not session:
            raise NotFoundError("Session not found", details={"session_id": str(session_id)})

        visible = (
            actor.role == Role.ADMIN
            or (actor.role == Role.TEACHER and session.teacher_id == actor.user_id)
            or (actor.role == Role.STUDENT and session.student_id == actor.user_id)
        )
        if not visible:
            raise AuthorizationError("You do not have access to this session")
        return session

    @staticmethod
    def next_session(db: Session, actor: Actor, now: Optional[datetime] = None) -> Optional[ClassSession]:
        """The next scheduled class that has not finished yet (next-class card)."""
        now = now or utc_now()
        return SessionQueryService._scoped(db, actor).filter(
            ClassSession.status == SessionStatus.SCHEDULED.value,
            ClassSession.ends_at > now,
        ).order_by(ClassSession.scheduled_at.asc()).first()

    @staticmethod
    def serialize(session: ClassSession, now: Optional[datetime] = None) -> SessionOut:
        now = now or utc_now()
        out = SessionOut.model_validate(session)
        out.joinable = session_timing.is_joinable(session, now)
        out.starting_soon = session_timing.is_starting_soon(session, now)
        out.upcoming_badge = session_timing.has_upcoming_badge(session, now)
        out.student_can_cancel = session_timing.student_can_cancel(session, now)
        return out
