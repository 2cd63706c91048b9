# app/models/__init__.py
from .base import Base
from .availability import AvailabilityRule, TeacherScheduleSettings
from .subscription import Subscription
from .class_session import ClassSession, SessionStatus

__all__ = [
    "Base",
    "AvailabilityRule",
    "TeacherScheduleSettings",
    "Subscription",
    "ClassSession",
    "SessionStatus",
]
