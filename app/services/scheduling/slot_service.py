# ============================================================================
# app/services/scheduling/slot_service.py
# Bookable slot generation - read-only, no caching
# ============================================================================
"""
Slots are generated on a grid whose step equals the requested duration,
starting at the beginning of each (merged) availability window. The same grid
is used when a booking is validated, so the option list shown to users and the
server-side check always agree.

Dates are calendar days in the teacher's timezone; everything returned is UTC.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, List, Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo
import logging

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.exceptions import ValidationError
from app.models.class_session import ClassSession, SessionStatus
from app.models.types import utc_now
from app.schemas.scheduling import Slot
from app.services.availability.availability_service import AvailabilityService
from app.services.scheduling.intervals import TimeWindow, merge_windows, overlaps, sunday_based_weekday

logger = logging.getLogger(__name__)


class SlotService:
    """Computes free slots for one teacher, one date, one duration"""

    @staticmethod
    def validate_duration(duration_minutes: int) -> None:
        max_minutes = get_settings().MAX_SESSION_MINUTES
        if not isinstance(duration_minutes, int) or duration_minutes <= 0 or duration_minutes > max_minutes:
            raise ValidationError(
                f"duration_minutes must be between 1 and {max_minutes}",
                details={"duration_minutes": duration_minutes},
            )

    @staticmethod
    def generate_slots(
            db: Session,
            teacher_id: UUID,
            day: date,
            duration_minutes: int,
            now: Optional[datetime] = None
    ) -> List[Slot]:
        """Free start times on ``day`` for a session of ``duration_minutes``, ascending"""
        SlotService.validate_duration(duration_minutes)
        now = now or utc_now()

        tz = AvailabilityService.get_timezone(db, teacher_id)
        windows = SlotService._windows_for_day(db, teacher_id, day)
        if not windows:
            return []

        day_start, day_end = SlotService.local_day_bounds(day, tz)
        busy = SlotService._busy_intervals(db, teacher_id, day_start, day_end)

        slots = []
        for start, end in SlotService._grid(day, windows, duration_minutes, tz):
            if start < now:
                continue
            if any(overlaps(start, end, busy_start, busy_end) for busy_start, busy_end in busy):
                continue
            slots.append(Slot(start=start, end=end))

        slots.sort(key=lambda slot: slot.start)
        logger.debug(f"Generated {len(slots)} slots for teacher {teacher_id} on {day} ({duration_minutes} min)")
        return slots

    @staticmethod
    def fits_availability(
            db: Session,
            teacher_id: UUID,
            start: datetime,
            duration_minutes: int
    ) -> bool:
        """Whether ``start`` is a grid slot inside the teacher's availability (sessions ignored)"""
        tz = AvailabilityService.get_timezone(db, teacher_id)
        day = start.astimezone(tz).date()
        windows = SlotService._windows_for_day(db, teacher_id, day)
        return any(
            candidate == start
            for candidate, _ in SlotService._grid(day, windows, duration_minutes, tz)
        )

    @staticmethod
    def local_day_bounds(day: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
        """UTC instants for local midnight of ``day`` and of the following day"""
        start = datetime.combine(day, time.min, tzinfo=tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
        return start.astimezone(timezone.utc), end.astimezone(timezone.utc)

    @staticmethod
    def _windows_for_day(db: Session, teacher_id: UUID, day: date) -> List[TimeWindow]:
        rules = AvailabilityService.list_rules(
            db, teacher_id, day_of_week=sunday_based_weekday(day), active_only=True
        )
        return merge_windows((rule.start_time, rule.end_time) for rule in rules)

    @staticmethod
    def _busy_intervals(
            db: Session,
            teacher_id: UUID,
            day_start: datetime,
            day_end: datetime
    ) -> List[Tuple[datetime, datetime]]:
        """Scheduled sessions touching the local day, including ones crossing midnight"""
        sessions = db.query(ClassSession.scheduled_at, ClassSession.ends_at).filter(
            ClassSession.teacher_id == teacher_id,
            ClassSession.status == SessionStatus.SCHEDULED.value,
            ClassSession.scheduled_at < day_end,
            ClassSession.ends_at > day_start,
        ).all()
        return [(row.scheduled_at, row.ends_at) for row in sessions]

    @staticmethod
    def _grid(
            day: date,
            windows: List[TimeWindow],
            duration_minutes: int,
            tz: ZoneInfo
    ) -> Iterator[Tuple[datetime, datetime]]:
        """Candidate (start, end) UTC pairs stepping by the duration through each window"""
        step = timedelta(minutes=duration_minutes)

        for window_start, window_end in windows:
            cursor = datetime.combine(day, window_start)
            limit = datetime.combine(day, window_end)
            closes_at = limit.replace(tzinfo=tz).astimezone(timezone.utc)

            while cursor + step <= limit:
                local = cursor.replace(tzinfo=tz)
                start = local.astimezone(timezone.utc)

                # Wall-clock times swallowed by a DST jump do not exist, and a
                # slot spanning the jump can end after the window closes
                if start.astimezone(tz).replace(tzinfo=None) == cursor and start + step <= closes_at:
                    yield start, start + step

                cursor += step
