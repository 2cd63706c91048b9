# ============================================================================
# app/services/sessions/session_service.py
# Session lifecycle - creation and status transitions
# ============================================================================
"""
Session lifecycle.

A session starts as ``scheduled`` and ends in exactly one of ``completed``,
``cancelled`` or ``no_show``; nothing leaves a terminal status. Creation
re-checks overlaps inside the writing transaction, under a per-teacher
advisory lock on Postgres, so two concurrent bookings for the same teacher
cannot both commit. The ``sessions_no_overlap_per_teacher`` exclusion
constraint backs this up at the database level.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PolicyError,
    SchedulingError,
    ValidationError,
)
from app.models.class_session import ClassSession, SessionStatus
from app.models.subscription import Subscription
from app.models.types import utc_now
from app.schemas.class_session import SessionAction
from app.schemas.identity import Actor, Role
from app.services.availability.availability_service import AvailabilityService
from app.services.scheduling.intervals import overlaps
from app.services.scheduling.recurrence import weekly_series
from app.services.scheduling.slot_service import SlotService
from app.services.sessions import session_timing

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "sessions_no_overlap_per_teacher"


class SessionService:
    """Creates sessions and drives their status transitions"""

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @staticmethod
    def create_session(
            db: Session,
            actor: Actor,
            teacher_id: UUID,
            student_id: UUID,
            scheduled_at: datetime,
            duration_minutes: int,
            meet_link: Optional[str] = None,
            custom_time: bool = False,
            now: Optional[datetime] = None
    ) -> ClassSession:
        """
        Book one session.

        Normal bookings must land on a slot of the teacher's availability.
        Admins may pass ``custom_time`` to skip that check; the overlap check
        against existing sessions applies either way.
        """
        now = now or utc_now()
        SessionService._ensure_can_book(actor, teacher_id)
        scheduled_at = SessionService._validate_instant(scheduled_at, now)
        SlotService.validate_duration(duration_minutes)

        if custom_time and not actor.is_admin:
            raise AuthorizationError("Only admins can book outside the teacher's availability")

        if not custom_time and not SlotService.fits_availability(db, teacher_id, scheduled_at, duration_minutes):
            raise PolicyError(
                "Requested time is outside the teacher's availability",
                details={"scheduled_at": scheduled_at.isoformat(), "duration_minutes": duration_minutes},
            )

        ends_at = scheduled_at + timedelta(minutes=duration_minutes)

        try:
            SessionService._lock_teacher_schedule(db, teacher_id)
            subscription = SessionService._check_quota(db, student_id, 1, now)
            SessionService._ensure_no_overlap(db, teacher_id, scheduled_at, ends_at)

            session = ClassSession(
                teacher_id=teacher_id,
                student_id=student_id,
                subscription_id=subscription.id if subscription else None,
                scheduled_at=scheduled_at,
                duration_minutes=duration_minutes,
                ends_at=ends_at,
                status=SessionStatus.SCHEDULED.value,
                meet_link=meet_link or None,
                created_by=actor.user_id,
            )
            db.add(session)
            db.flush()
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            SessionService._raise_if_overlap(exc)
            raise
        except SchedulingError:
            db.rollback()
            raise

        db.refresh(session)
        logger.info(f"Session {session.id} booked for teacher {teacher_id} and student {student_id} "
                    f"at {scheduled_at.isoformat()} ({duration_minutes} min, custom_time={custom_time})")
        return session

    @staticmethod
    def create_bulk_sessions(
            db: Session,
            actor: Actor,
            teacher_id: UUID,
            student_id: UUID,
            instants: List[datetime],
            duration_minutes: int,
            meet_link: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> List[ClassSession]:
        """
        Book several occurrences in one transaction: every instant is checked
        before anything is written, and a single conflict rejects the batch.
        """
        now = now or utc_now()
        settings = get_settings()
        SessionService._ensure_can_book(actor, teacher_id)
        SlotService.validate_duration(duration_minutes)

        if not instants:
            raise ValidationError("At least one occurrence is required")
        if len(instants) > settings.MAX_BULK_SESSIONS:
            raise ValidationError(
                f"At most {settings.MAX_BULK_SESSIONS} occurrences can be booked at once",
                details={"requested": len(instants)},
            )

        ordered = sorted(SessionService._validate_instant(instant, now) for instant in instants)
        if len(set(ordered)) != len(ordered):
            raise ValidationError("Occurrences must be unique")

        step = timedelta(minutes=duration_minutes)
        for previous, current in zip(ordered, ordered[1:]):
            if overlaps(previous, previous + step, current, current + step):
                raise ConflictError(
                    "Occurrences overlap each other",
                    details={"scheduled_at": current.isoformat()},
                )

        try:
            SessionService._lock_teacher_schedule(db, teacher_id)
            subscription = SessionService._check_quota(db, student_id, len(ordered), now)
            for instant in ordered:
                SessionService._ensure_no_overlap(db, teacher_id, instant, instant + step)

            sessions = [
                ClassSession(
                    teacher_id=teacher_id,
                    student_id=student_id,
                    subscription_id=subscription.id if subscription else None,
                    scheduled_at=instant,
                    duration_minutes=duration_minutes,
                    ends_at=instant + step,
                    status=SessionStatus.SCHEDULED.value,
                    meet_link=meet_link or None,
                    created_by=actor.user_id,
                )
                for instant in ordered
            ]
            db.add_all(sessions)
            db.flush()
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            SessionService._raise_if_overlap(exc)
            raise
        except SchedulingError:
            db.rollback()
            raise

        for session in sessions:
            db.refresh(session)

        logger.info(f"Bulk booked {len(sessions)} sessions for teacher {teacher_id} and student {student_id} "
                    f"from {ordered[0].isoformat()} to {ordered[-1].isoformat()}")
        return sessions

    @staticmethod
    def create_recurring_sessions(
            db: Session,
            actor: Actor,
            teacher_id: UUID,
            student_id: UUID,
            day_of_week: int,
            local_time: time,
            start_date: date,
            end_date: Optional[date] = None,
            duration_minutes: int = 60,
            meet_link: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> List[ClassSession]:
        """
        Same weekday and local time every week until ``end_date`` (or the end of
        the student's subscription), capped by the sessions the student has left.
        """
        now = now or utc_now()
        settings = get_settings()
        SessionService._ensure_can_book(actor, teacher_id)

        if not 0 <= day_of_week <= 6:
            raise ValidationError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")

        tz = AvailabilityService.get_timezone(db, teacher_id)
        subscription = SessionService.active_subscription(db, student_id, now)

        if end_date is None:
            if subscription is None:
                raise ValidationError("end_date is required when the student has no active subscription")
            end_date = subscription.ends_at.astimezone(tz).date()

        limit = settings.MAX_BULK_SESSIONS
        if settings.ENFORCE_SESSION_QUOTA:
            if subscription is None:
                raise PolicyError("Student has no active subscription")
            remaining = SessionService.remaining_sessions(db, subscription)
            if remaining <= 0:
                raise PolicyError("No sessions remaining in subscription")
            limit = min(limit, remaining)

        occurrences = [
            instant for instant in weekly_series(day_of_week, local_time, start_date, end_date, tz)
            if instant > now
        ][:limit]

        if not occurrences:
            raise ValidationError(
                "No valid dates found in the given range for this day of week",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

        return SessionService.create_bulk_sessions(
            db, actor, teacher_id, student_id, occurrences, duration_minutes,
            meet_link=meet_link, now=now,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @staticmethod
    def cancel_session(
            db: Session,
            session_id: UUID,
            actor: Actor,
            reason: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> ClassSession:
        """
        Students may cancel their own sessions up to 24 hours before the start.
        Teachers (own sessions) and admins may cancel any time before the start.
        """
        now = now or utc_now()
        session = SessionService._get_for_update(db, session_id)
        SessionService._ensure_participant(actor, session)
        SessionService._ensure_scheduled(session)

        if actor.role == Role.STUDENT:
            if not session_timing.student_can_cancel(session, now):
                hours = get_settings().STUDENT_CANCELLATION_NOTICE_HOURS
                raise PolicyError(
                    f"Cancellation window elapsed: sessions must be cancelled at least {hours} hours in advance",
                    details={"scheduled_at": session.scheduled_at.isoformat()},
                )
        elif session_timing.has_started(session, now):
            raise PolicyError("Session has already started and can no longer be cancelled")

        session.status = SessionStatus.CANCELLED.value
        session.cancelled_at = now
        session.cancelled_by = actor.user_id
        session.cancellation_reason = reason or None
        db.commit()
        db.refresh(session)

        logger.info(f"Session {session.id} cancelled by {actor.role.value} {actor.user_id}")
        return session

    @staticmethod
    def complete_session(
            db: Session,
            session_id: UUID,
            actor: Actor,
            notes: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> ClassSession:
        """Mark a past session as given; it counts against the student's quota"""
        return SessionService._close_session(db, session_id, actor, SessionStatus.COMPLETED, notes, now)

    @staticmethod
    def mark_no_show(
            db: Session,
            session_id: UUID,
            actor: Actor,
            now: Optional[datetime] = None
    ) -> ClassSession:
        """Student did not attend; counts against the quota like a completed class"""
        return SessionService._close_session(db, session_id, actor, SessionStatus.NO_SHOW, None, now)

    @staticmethod
    def update_notes(db: Session, session_id: UUID, actor: Actor, notes: Optional[str]) -> ClassSession:
        """Teacher notes can change in any status"""
        session = SessionService._get_for_update(db, session_id)
        SessionService._ensure_staff(actor, session)

        session.notes = notes or ""
        db.commit()
        db.refresh(session)
        return session

    @staticmethod
    def perform_action(
            db: Session,
            actor: Actor,
            session_id: UUID,
            action: SessionAction,
            notes: Optional[str] = None,
            reason: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> ClassSession:
        """Single entry point for the portal's session action surface"""
        if action == SessionAction.CANCEL:
            return SessionService.cancel_session(db, session_id, actor, reason=reason, now=now)
        if action == SessionAction.COMPLETE:
            return SessionService.complete_session(db, session_id, actor, notes=notes, now=now)
        if action == SessionAction.NO_SHOW:
            return SessionService.mark_no_show(db, session_id, actor, now=now)
        if action == SessionAction.UPDATE_NOTES:
            return SessionService.update_notes(db, session_id, actor, notes)
        raise ValidationError("Invalid action", details={"action": str(action)})

    # ------------------------------------------------------------------
    # Subscription quota
    # ------------------------------------------------------------------

    @staticmethod
    def active_subscription(db: Session, student_id: UUID, now: datetime) -> Optional[Subscription]:
        return db.query(Subscription).filter(
            Subscription.student_id == student_id,
            Subscription.status == "active",
            Subscription.ends_at >= now,
        ).order_by(Subscription.created_at.desc()).first()

    @staticmethod
    def remaining_sessions(db: Session, subscription: Subscription) -> int:
        """Sessions left once consumed and still-scheduled ones are counted"""
        pending = db.query(func.count(ClassSession.id)).filter(
            ClassSession.subscription_id == subscription.id,
            ClassSession.status == SessionStatus.SCHEDULED.value,
        ).scalar() or 0
        return (subscription.sessions_total or 0) - (subscription.sessions_used or 0) - pending

    @staticmethod
    def _check_quota(db: Session, student_id: UUID, requested: int, now: datetime) -> Optional[Subscription]:
        subscription = SessionService.active_subscription(db, student_id, now)
        if not get_settings().ENFORCE_SESSION_QUOTA:
            return subscription

        if subscription is None:
            raise PolicyError("Student has no active subscription", details={"student_id": str(student_id)})

        remaining = SessionService.remaining_sessions(db, subscription)
        if requested > remaining:
            raise PolicyError(
                f"Not enough sessions remaining. Tried to schedule {requested}, but only {max(remaining, 0)} available.",
                details={"requested": requested, "remaining": max(remaining, 0)},
            )
        return subscription

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _close_session(
            db: Session,
            session_id: UUID,
            actor: Actor,
            status: SessionStatus,
            notes: Optional[str],
            now: Optional[datetime]
    ) -> ClassSession:
        now = now or utc_now()
        session = SessionService._get_for_update(db, session_id)
        SessionService._ensure_staff(actor, session)
        SessionService._ensure_scheduled(session)

        if not session_timing.has_started(session, now):
            raise PolicyError(
                f"Session cannot be marked {status.value} before it starts",
                details={"scheduled_at": session.scheduled_at.isoformat()},
            )

        session.status = status.value
        session.completed_at = now
        if notes is not None:
            session.notes = notes

        if session.subscription_id:
            db.query(Subscription).filter(Subscription.id == session.subscription_id).update(
                {Subscription.sessions_used: Subscription.sessions_used + 1},
                synchronize_session=False,
            )

        db.commit()
        db.refresh(session)
        logger.info(f"Session {session.id} marked {status.value} by {actor.role.value} {actor.user_id}")
        return session

    @staticmethod
    def _get_for_update(db: Session, session_id: UUID) -> ClassSession:
        session = db.query(ClassSession).filter(ClassSession.id == session_id).with_for_update().first()
        if not session:
            raise NotFoundError("Session not found", details={"session_id": str(session_id)})
        return session

    @staticmethod
    def _ensure_can_book(actor: Actor, teacher_id: UUID) -> None:
        if actor.role == Role.STUDENT:
            raise AuthorizationError("Students cannot schedule sessions")
        if not actor.acts_for_teacher(teacher_id):
            raise AuthorizationError("Teachers can only schedule their own sessions")

    @staticmethod
    def _ensure_participant(actor: Actor, session: ClassSession) -> None:
        if actor.is_admin:
            return
        if actor.role == Role.TEACHER and session.teacher_id == actor.user_id:
            return
        if actor.role == Role.STUDENT and session.student_id == actor.user_id:
            return
        raise AuthorizationError("You do not have access to this session")

    @staticmethod
    def _ensure_staff(actor: Actor, session: ClassSession) -> None:
        if actor.role == Role.STUDENT:
            raise AuthorizationError("Students can only cancel sessions")
        if not actor.acts_for_teacher(session.teacher_id):
            raise AuthorizationError("You do not have access to this session")

    @staticmethod
    def _ensure_scheduled(session: ClassSession) -> None:
        if session.status != SessionStatus.SCHEDULED.value:
            raise InvalidStateError(
                f"Session is already {session.status}",
                details={"session_id": str(session.id), "status": session.status},
            )

    @staticmethod
    def _validate_instant(scheduled_at: datetime, now: datetime) -> datetime:
        """Returns the instant in UTC; durations added to a ZoneInfo-aware value would be wall-clock"""
        if scheduled_at.tzinfo is None:
            raise ValidationError("scheduled_at must include a timezone offset")
        if scheduled_at <= now:
            raise ValidationError(
                "scheduled_at must be in the future",
                details={"scheduled_at": scheduled_at.isoformat()},
            )
        return scheduled_at.astimezone(timezone.utc)

    @staticmethod
    def _ensure_no_overlap(db: Session, teacher_id: UUID, start: datetime, end: datetime) -> None:
        conflict = db.query(ClassSession).filter(
            ClassSession.teacher_id == teacher_id,
            ClassSession.status == SessionStatus.SCHEDULED.value,
            ClassSession.scheduled_at < end,
            ClassSession.ends_at > start,
        ).order_by(ClassSession.scheduled_at.asc()).first()

        if conflict:
            raise ConflictError(
                "Time slot is not available: the teacher already has a session at that time",
                details={
                    "scheduled_at": start.isoformat(),
                    "conflicting_session_id": str(conflict.id),
                    "conflicting_scheduled_at": conflict.scheduled_at.isoformat(),
                },
            )

    @staticmethod
    def _lock_teacher_schedule(db: Session, teacher_id: UUID) -> None:
        """Serialize writers for one teacher until the transaction ends (Postgres only)"""
        if db.get_bind().dialect.name != "postgresql":
            return
        db.execute(
            text("SELECT pg_advisory_xact_lock(hashtextextended(:key, 0))"),
            {"key": f"teacher-schedule:{teacher_id}"},
        )

    @staticmethod
    def _raise_if_overlap(exc: IntegrityError) -> None:
        orig = getattr(exc, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint = getattr(diag, "constraint_name", None) if diag else None
        if constraint == OVERLAP_CONSTRAINT or OVERLAP_CONSTRAINT in str(orig):
            raise ConflictError("Time slot is not available: the teacher already has a session at that time") from exc
