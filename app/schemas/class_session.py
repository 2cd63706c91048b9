# app/schemas/class_session.py
from __future__ import annotations
from pydantic import BaseModel, Field, AwareDatetime
from typing import Optional, List
from datetime import datetime
from enum import Enum
from uuid import UUID


class SessionCreate(BaseModel):
    """Single session booking"""
    teacher_id: UUID = Field(..., description="Teacher giving the class")
    student_id: UUID = Field(..., description="Student attending the class")
    scheduled_at: AwareDatetime = Field(..., description="Start instant (with offset)")
    duration_minutes: int = Field(60, gt=0, description="Class length in minutes")
    meet_link: Optional[str] = Field(None, description="Pre-existing meeting link, if any")
    custom_time: bool = Field(False, description="Admin only: book outside the availability windows")


class BulkSessionCreate(BaseModel):
    """Several occurrences booked at once; all of them or none are created"""
    teacher_id: UUID
    student_id: UUID
    scheduled_at_list: List[AwareDatetime] = Field(..., min_length=1)
    duration_minutes: int = Field(60, gt=0)
    meet_link: Optional[str] = None


class SessionAction(str, Enum):
    CANCEL = "cancel"
    COMPLETE = "complete"
    NO_SHOW = "no_show"
    UPDATE_NOTES = "update_notes"


class SkillLevel(str, Enum):
    NEEDS_WORK = "Needs Work"
    GOOD = "Good"
    EXCELLENT = "Excellent"


class SkillAssessment(BaseModel):
    grammar: SkillLevel = SkillLevel.GOOD
    vocabulary: SkillLevel = SkillLevel.GOOD
    fluency: SkillLevel = SkillLevel.GOOD
    pronunciation: SkillLevel = SkillLevel.GOOD


class ClassReport(BaseModel):
    """Post-class report, stored in the student's lesson document by the portal"""
    rating: int = Field(..., ge=1, le=5, description="Overall class rating")
    skills: SkillAssessment = Field(default_factory=SkillAssessment)
    teacher_comments: str = Field("", description="Free-text feedback")
    homework: Optional[str] = Field(None, description="Homework appended to the lesson document")


class SessionActionRequest(BaseModel):
    session_id: UUID
    action: SessionAction
    notes: Optional[str] = None
    reason: Optional[str] = Field(None, description="Cancellation reason")
    report: Optional[ClassReport] = Field(None, description="Only used with action=complete")


class SessionOut(BaseModel):
    """Session as returned to the portal, with derived timing flags"""
    model_config = {"from_attributes": True}

    id: UUID
    teacher_id: UUID
    student_id: UUID
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: str
    meet_link: Optional[str] = None
    document_url: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    joinable: bool = False
    starting_soon: bool = False
    upcoming_badge: bool = False
    student_can_cancel: bool = False


class BulkSessionResponse(BaseModel):
    message: str
    count: int
    sessions: List[SessionOut]


class SessionListResponse(BaseModel):
    total: int
    sessions: List[SessionOut]
