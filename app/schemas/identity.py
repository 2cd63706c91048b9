# app/schemas/identity.py
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class Actor(BaseModel):
    """The user performing a request, as vouched for by the identity provider"""
    user_id: UUID = Field(..., description="Authenticated user id")
    role: Role = Field(..., description="Portal role of the user")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def acts_for_teacher(self, teacher_id: UUID) -> bool:
        """Admins act for every teacher; teachers only for themselves"""
        return self.is_admin or (self.role == Role.TEACHER and self.user_id == teacher_id)
