# app/schemas/scheduling.py
from __future__ import annotations
from pydantic import BaseModel, Field, AwareDatetime, field_validator
from typing import List, Optional
from datetime import date, datetime, time
from uuid import UUID


class Slot(BaseModel):
    """Bookable window of exactly the requested duration"""
    model_config = {"frozen": True}

    start: datetime = Field(..., description="Slot start (UTC)")
    end: datetime = Field(..., description="Slot end (UTC)")


class SlotsResponse(BaseModel):
    teacher_id: UUID
    requested_date: date
    duration_minutes: int
    timezone: str = Field(..., description="Teacher timezone the date was resolved in")
    slots: List[Slot] = Field(default_factory=list)


class AvailabilityRuleCreate(BaseModel):
    teacher_id: UUID = Field(..., description="Teacher the rule belongs to")
    day_of_week: int = Field(..., description="0=Sunday .. 6=Saturday")
    start_time: time = Field(..., description="Local wall-clock start, e.g. 09:00")
    end_time: time = Field(..., description="Local wall-clock end, e.g. 12:00")


class AvailabilityRuleOut(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    teacher_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool


class TeacherTimezoneUpdate(BaseModel):
    teacher_id: UUID
    timezone: str = Field(..., min_length=1, description="IANA timezone name, e.g. Europe/Madrid")


class TeacherTimezoneOut(BaseModel):
    teacher_id: UUID
    timezone: str


class RecurringPreviewResponse(BaseModel):
    start: AwareDatetime
    count: int
    occurrences: List[AwareDatetime]


class RecurringSessionsRequest(BaseModel):
    """Book the same weekday and local time every week"""
    teacher_id: UUID
    student_id: UUID
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    local_time: time = Field(..., description="Start time in the teacher's timezone")
    start_date: date
    end_date: Optional[date] = Field(None, description="Defaults to the subscription end")
    duration_minutes: int = Field(60, gt=0)
    meet_link: Optional[str] = None

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, v: Optional[date], info) -> Optional[date]:
        start_date = info.data.get("start_date")
        if v and start_date and v < start_date:
            raise ValueError("end_date must not be before start_date")
        return v
