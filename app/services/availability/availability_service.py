# ===== app/services/availability/availability_service.py =====
from typing import List, Optional
from datetime import time
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from sqlalchemy.orm import Session
from app.config.settings import get_settings
from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.availability import AvailabilityRule, TeacherScheduleSettings
from app.schemas.identity import Actor
import logging

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Stores and serves a teacher's recurring weekly open-time rules"""

    @staticmethod
    def add_rule(
            db: Session,
            teacher_id: UUID,
            day_of_week: int,
            start_time: time,
            end_time: time
    ) -> AvailabilityRule:
        """
        Create a weekly rule. Overlapping rules for the same day are accepted;
        slot generation treats them as a union of free time.
        """
        if not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
            raise ValidationError(
                "day_of_week must be between 0 (Sunday) and 6 (Saturday)",
                details={"day_of_week": day_of_week},
            )
        if start_time >= end_time:
            raise ValidationError(
                "start_time must be before end_time",
                details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
            )

        rule = AvailabilityRule(
            teacher_id=teacher_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_active=True,
        )
        db.add(rule)
        db.commit()
        db.refresh(rule)

        logger.info(f"Added availability rule {rule.id} for teacher {teacher_id} "
                    f"(day {day_of_week}, {start_time}-{end_time})")
        return rule

    @staticmethod
    def remove_rule(db: Session, rule_id: UUID, requesting_teacher_id: UUID, is_admin: bool = False) -> None:
        """Delete a rule owned by the requesting teacher (admins may delete any rule)"""
        rule = db.get(AvailabilityRule, rule_id)
        if not rule:
            raise NotFoundError("Availability rule not found", details={"rule_id": str(rule_id)})

        if not is_admin and rule.teacher_id != requesting_teacher_id:
            raise AuthorizationError("You can only remove your own availability rules")

        db.delete(rule)
        db.commit()
        logger.info(f"Removed availability rule {rule_id} for teacher {rule.teacher_id}")

    @staticmethod
    def list_rules(
            db: Session,
            teacher_id: UUID,
            day_of_week: Optional[int] = None,
            active_only: bool = False
    ) -> List[AvailabilityRule]:
        """Rules for a teacher, ordered by start time (by day first when no day is given)"""
        query = db.query(AvailabilityRule).filter(AvailabilityRule.teacher_id == teacher_id)

        if day_of_week is not None:
            query = query.filter(AvailabilityRule.day_of_week == day_of_week)
        if active_only:
            query = query.filter(AvailabilityRule.is_active.is_(True))

        if day_of_week is not None:
            query = query.order_by(AvailabilityRule.start_time.asc())
        else:
            query = query.order_by(AvailabilityRule.day_of_week.asc(), AvailabilityRule.start_time.asc())

        return query.all()

    @staticmethod
    def get_timezone(db: Session, teacher_id: UUID) -> ZoneInfo:
        """Timezone the teacher's rules are expressed in"""
        record = db.get(TeacherScheduleSettings, teacher_id)
        name = record.timezone if record else get_settings().DEFAULT_TIMEZONE
        return ZoneInfo(name)

    @staticmethod
    def set_timezone(db: Session, teacher_id: UUID, timezone_name: str) -> TeacherScheduleSettings:
        try:
            ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError("Unknown timezone", details={"timezone": timezone_name})

        record = db.get(TeacherScheduleSettings, teacher_id)
        if record:
            record.timezone = timezone_name
        else:
            record = TeacherScheduleSettings(teacher_id=teacher_id, timezone=timezone_name)
            db.add(record)

        db.commit()
        db.refresh(record)
        logger.info(f"Teacher {teacher_id} timezone set to {timezone_name}")
        return record

    @staticmethod
    def ensure_can_manage(actor: Actor, teacher_id: UUID) -> None:
        """Only the teacher themselves or an admin may edit a teacher's availability"""
        if not actor.acts_for_teacher(teacher_id):
            raise AuthorizationError("You cannot manage this teacher's availability")
