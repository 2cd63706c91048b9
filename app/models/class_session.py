# ===== app/models/class_session.py =====
import enum
import uuid

from sqlalchemy import Column, String, Integer, Text, ForeignKey, Index, CheckConstraint, Uuid

from app.models.base import Base
from app.models.types import UTCDateTime, utc_now


class SessionStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.SCHEDULED


class ClassSession(Base):
    """One tutoring appointment between a teacher and a student"""
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_sessions_duration_positive"),
        CheckConstraint("ends_at > scheduled_at", name="ck_sessions_interval"),
        Index("idx_sessions_teacher_window", "teacher_id", "scheduled_at", "ends_at"),
        Index("idx_sessions_student_scheduled", "student_id", "scheduled_at"),
        Index("idx_sessions_status_scheduled", "status", "scheduled_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    teacher_id = Column(Uuid(as_uuid=True), nullable=False)
    student_id = Column(Uuid(as_uuid=True), nullable=False)
    subscription_id = Column(Uuid(as_uuid=True), ForeignKey("subscriptions.id"), nullable=True)

    # Timing; ends_at is kept so overlap checks and the exclusion constraint stay index-friendly
    scheduled_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    ends_at = Column(UTCDateTime, nullable=False)

    status = Column(String(20), nullable=False, default=SessionStatus.SCHEDULED.value)

    # Links handed back by the portal (opaque strings)
    meet_link = Column(String, nullable=True)
    document_url = Column(String, nullable=True)

    notes = Column(Text, nullable=True)

    # Audit trail
    created_by = Column(Uuid(as_uuid=True), nullable=True)
    cancelled_by = Column(Uuid(as_uuid=True), nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    reminder_sent_at = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False)

    @property
    def session_status(self) -> SessionStatus:
        return SessionStatus(self.status)
