from sqlalchemy import Column, String, Integer, Boolean, Time, Index, CheckConstraint, Uuid
from app.models.base import Base
from app.models.types import UTCDateTime, utc_now
import uuid


class AvailabilityRule(Base):
    """Recurring weekly open time for a teacher, in the teacher's wall-clock time"""
    __tablename__ = "availability_rules"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_rules_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availability_rules_time_range"),
        Index("idx_availability_rules_teacher_day", "teacher_id", "day_of_week"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid(as_uuid=True), nullable=False)

    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)


class TeacherScheduleSettings(Base):
    """Per-teacher scheduling preferences (timezone the rules are expressed in)"""
    __tablename__ = "teacher_schedule_settings"

    teacher_id = Column(Uuid(as_uuid=True), primary_key=True)
    timezone = Column(String(64), nullable=False)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False)
