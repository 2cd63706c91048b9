# ============================================================================
# FILE: app/api/v1/availability.py
# Availability mutation surface - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.config.database import get_db
from app.api.dependencies import get_current_actor, require_roles
from app.schemas.identity import Actor, Role
from app.schemas.scheduling import (
    AvailabilityRuleCreate,
    AvailabilityRuleOut,
    TeacherTimezoneOut,
    TeacherTimezoneUpdate,
)
from app.services.availability.availability_service import AvailabilityService

router = APIRouter(prefix="/availability", tags=["availability"])

staff_only = require_roles(Role.TEACHER, Role.ADMIN)


@router.get("/rules", response_model=List[AvailabilityRuleOut])
async def list_rules(
        teacher_id: UUID = Query(..., description="Teacher whose rules to list"),
        day_of_week: Optional[int] = Query(None, ge=0, le=6, description="0=Sunday .. 6=Saturday"),
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    """Weekly availability of a teacher. Any signed-in user may read it."""
    return AvailabilityService.list_rules(db, teacher_id, day_of_week=day_of_week)


@router.post("/rules", response_model=AvailabilityRuleOut, status_code=status.HTTP_201_CREATED)
async def create_rule(
        payload: AvailabilityRuleCreate,
        actor: Actor = Depends(staff_only),
        db: Session = Depends(get_db)
):
    """Add a weekly open-time range. Overlapping ranges are allowed."""
    AvailabilityService.ensure_can_manage(actor, payload.teacher_id)
    return AvailabilityService.add_rule(
        db,
        teacher_id=payload.teacher_id,
        day_of_week=payload.day_of_week,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
        rule_id: UUID = Path(..., description="The rule ID"),
        actor: Actor = Depends(staff_only),
        db: Session = Depends(get_db)
):
    """Remove one of your rules (admins may remove any)."""
    AvailabilityService.remove_rule(db, rule_id, actor.user_id, is_admin=actor.is_admin)


@router.get("/timezone", response_model=TeacherTimezoneOut)
async def get_timezone(
        teacher_id: UUID = Query(...),
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    tz = AvailabilityService.get_timezone(db, teacher_id)
    return TeacherTimezoneOut(teacher_id=teacher_id, timezone=tz.key)


@router.put("/timezone", response_model=TeacherTimezoneOut)
async def set_timezone(
        payload: TeacherTimezoneUpdate,
        actor: Actor = Depends(staff_only),
        db: Session = Depends(get_db)
):
    """Timezone the teacher's weekly rules are expressed in."""
    AvailabilityService.ensure_can_manage(actor, payload.teacher_id)
    record = AvailabilityService.set_timezone(db, payload.teacher_id, payload.timezone)
    return TeacherTimezoneOut(teacher_id=record.teacher_id, timezone=record.timezone)
