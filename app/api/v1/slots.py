# ============================================================================
# FILE: app/api/v1/slots.py
# Slot query surface - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from uuid import UUID

from app.config.database import get_db
from app.config.settings import get_settings
from app.api.dependencies import get_current_actor
from app.schemas.identity import Actor
from app.schemas.scheduling import SlotsResponse
from app.services.availability.availability_service import AvailabilityService
from app.services.scheduling.slot_service import SlotService

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("", response_model=SlotsResponse)
async def get_available_slots(
        teacher_id: UUID = Query(..., description="Teacher to book"),
        date: date = Query(..., description="Calendar day in the teacher's timezone (YYYY-MM-DD)"),
        duration_minutes: int = Query(get_settings().DEFAULT_SESSION_MINUTES, description="Session length in minutes"),
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    """
    Bookable start times for a teacher on one day, ascending.
    An empty list means no availability.
    """
    slots = SlotService.generate_slots(db, teacher_id, date, duration_minutes)
    tz = AvailabilityService.get_timezone(db, teacher_id)

    return SlotsResponse(
        teacher_id=teacher_id,
        requested_date=date,
        duration_minutes=duration_minutes,
        timezone=tz.key,
        slots=slots,
    )
