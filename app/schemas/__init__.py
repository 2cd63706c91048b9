# app/schemas/__init__.py
from .identity import (
    Role,
    Actor
)

from .scheduling import (
    Slot,
    SlotsResponse,
    AvailabilityRuleCreate,
    AvailabilityRuleOut,
    TeacherTimezoneUpdate,
    TeacherTimezoneOut,
    RecurringPreviewResponse,
    RecurringSessionsRequest
)

from .class_session import (
    SessionCreate,
    BulkSessionCreate,
    SessionAction,
    SkillLevel,
    SkillAssessment,
    ClassReport,
    SessionActionRequest,
    SessionOut,
    BulkSessionResponse,
    SessionListResponse
)
