# ============================================================================
# FILE: app/api/v1/sessions.py
# Session booking and lifecycle surface - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, Response, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from pydantic import AwareDatetime

from app.config.database import get_db
from app.config.settings import get_settings
from app.api.dependencies import get_current_actor
from app.models.class_session import SessionStatus
from app.schemas.identity import Actor
from app.schemas.scheduling import RecurringPreviewResponse, RecurringSessionsRequest
from app.schemas.class_session import (
    SessionCreate,
    BulkSessionCreate,
    BulkSessionResponse,
    SessionAction,
    SessionActionRequest,
    SessionListResponse,
    SessionOut,
)
from app.services.scheduling.recurrence import weekly_occurrences
from app.services.sessions.session_service import SessionService
from app.services.sessions.session_query_service import SessionQueryService
from app.tasks.session_tasks import (
    enqueue,
    provision_session_resources,
    release_session_resources,
    submit_class_report,
)


router = APIRouter(prefix="/sessions", tags=["sessions"])


# ============================================================================
# Booking
# ============================================================================

@router.post("", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def create_session(
        payload: SessionCreate,
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    """Book a single session on a free slot of the teacher's availability."""
    session = SessionService.create_session(
        db,
        actor,
        teacher_id=payload.teacher_id,
        student_id=payload.student_id,
        scheduled_at=payload.scheduled_at,
        duration_minutes=payload.duration_minutes,
        meet_link=payload.meet_link,
        custom_time=payload.custom_time,
    )
    enqueue(provision_session_resources, str(session.id))
    return SessionQueryService.serialize(session)


@router.post("/bulk", response_model=BulkSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_bulk_sessions(
        payload: BulkSessionCreate,
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    """Book every listed instant, or none of them."""
    sessions = SessionService.create_bulk_sessions(
        db,
        actor,
        teacher_id=payload.teacher_id,
        student_id=payload.student_id,
        instants=list(payload.scheduled_at_list),
        duration_minutes=payload.duration_minutes,
        meet_link=payload.meet_link,
    )
    for session in sessions:
        enqueue(provision_session_resources, str(session.id))

    return BulkSessionResponse(
        message=f"Successfully scheduled {len(sessions)} sessions",
        count=len(sessions),
        sessions=[SessionQueryService.serialize(s) for s in sessions],
    )


@router.get("/recurring/preview", response_model=RecurringPreviewResponse)
async def preview_recurring(
        start: AwareDatetime = Query(..., description="First occurrence (with offset)"),
        count: int = Query(..., gt=0, le=get_settings().MAX_BULK_SESSIONS, description="Number of weekly occurrences"),
        actor: Actor = Depends(get_current_actor)
):
    """Weekly instants starting at ``start``, exactly 168 hours apart."""
    return RecurringPreviewResponse(start=start, count=count, occurrences=weekly_occurrences(start, count))


@router.post("/recurring", response_model=BulkSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring_sessions(
        payload: RecurringSessionsRequest,
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    """Book the same weekday and local time every week within a date range."""
    sessions = SessionService.create_recurring_sessions(
        db,
        actor,
        teacher_id=payload.teacher_id,
        student_id=payload.student_id,
        day_of_week=payload.day_of_week,
        local_time=payload.local_time,
        start_date=payload.start_date,
        end_date=payload.end_date,
        duration_minutes=payload.duration_minutes,
        meet_link=payload.meet_link,
    )
    for session in sessions:
        enqueue(provision_session_resources, str(session.id))

    return BulkSessionResponse(
        message=f"Successfully scheduled {len(sessions)} weekly sessions",
        count=len(sessions),
        sessions=[SessionQueryService.serialize(s) for s in sessions],
    )


# ============================================================================
# Lifecycle
# ============================================================================

@router.post("/action", response_model=SessionOut)
async def session_action(
        payload: SessionActionRequest,
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    """
    Apply one action to a session: cancel, complete, no_show or update_notes.

    Completing with a report forwards it to the student's lesson document.
    """
    session = SessionService.perform_action(
        db,
        actor,
        session_id=payload.session_id,
        action=payload.action,
        notes=payload.notes,
        reason=payload.reason,
    )

    if payload.action == SessionAction.CANCEL:
        enqueue(release_session_resources, str(session.id))
    elif payload.action == SessionAction.COMPLETE and payload.report is not None:
        enqueue(submit_class_report, str(session.id), payload.report.model_dump(mode="json"))

    return SessionQueryService.serialize(session)


# ============================================================================
# Queries
# ============================================================================

@router.get("", response_model=SessionListResponse)
async def list_sessions(
        teacher_id: Optional[UUID] = Query(None),
        student_id: Optional[UUID] = Query(None),
        status_filter: Optional[SessionStatus] = Query(None, alias="status"),
        start: Optional[AwareDatetime] = Query(None, description="Only sessions starting at or after"),
        end: Optional[AwareDatetime] = Query(None, description="Only sessions starting at or before"),
        skip: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=200),
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    """Sessions visible to the caller, oldest first."""
    total, sessions = SessionQueryService.list_sessions(
        db, actor,
        teacher_id=teacher_id,
        student_id=student_id,
        status=status_filter,
        start=start,
        end=end,
        skip=skip,
        limit=limit,
    )
    return SessionListResponse(total=total, sessions=[SessionQueryService.serialize(s) for s in sessions])


@router.get("/next", response_model=Optional[SessionOut])
async def next_session(
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    """The caller's next class, or 204 when there is none."""
    session = SessionQueryService.next_session(db, actor)
    if session is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return SessionQueryService.serialize(session)


@router.get("/{session_id}", response_model=SessionOut)
async def get_session(
        session_id: UUID = Path(..., description="The session ID"),
        actor: Actor = Depends(get_current_actor),
        db: Session = Depends(get_db)
):
    return SessionQueryService.serialize(SessionQueryService.get_session(db, actor, session_id))
