# app/models/subscription.py
"""
Student subscription as written by the billing side of the portal.

Only the session balance is used here: quota checks on booking and the
``sessions_used`` counter bumped when a session is consumed.
"""
import uuid

from sqlalchemy import Column, String, Integer, Index, Uuid

from app.models.base import Base
from app.models.types import UTCDateTime, utc_now


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("idx_subscriptions_student_status", "student_id", "status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), nullable=False)

    status = Column(String(20), nullable=False, default="active")  # active, paused, cancelled, expired
    sessions_total = Column(Integer, nullable=False, default=0)
    sessions_used = Column(Integer, nullable=False, default=0)
    ends_at = Column(UTCDateTime, nullable=False)

    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
