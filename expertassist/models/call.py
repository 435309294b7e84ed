"""Call-related models"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text, Integer, Enum, Index, Uuid
from sqlalchemy.orm import relationship

from expertassist.database import Base


class CallStatus(str, enum.Enum):
    """Lifecycle status of an outbound call"""
    PENDING = "pending"
    DIALING = "dialing"
    CONNECTED = "connected"
    IN_PROGRESS = "in_progress"
    SUMMARIZING = "summarizing"
    NEEDS_FOLLOWUP = "needs_followup"  # reserved, never entered
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({CallStatus.COMPLETED, CallStatus.FAILED, CallStatus.CANCELLED})
NON_TERMINAL_STATUSES = frozenset(status for status in CallStatus if status not in TERMINAL_STATUSES)


class Call(Base):
    """Call records"""
    __tablename__ = "calls"
    __table_args__ = (
        Index("ix_calls_user_id_created_at", "user_id", "created_at"),
        Index("ix_calls_expert_id", "expert_id"),
        Index("ix_calls_status", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Experts can be deleted after the call was placed
    expert_id = Column(Uuid, ForeignKey("experts.id", ondelete="SET NULL"))

    # Request
    goal = Column(Text, nullable=False)
    context_links = Column(JSON, default=list)
    context_text = Column(Text)

    # Status and outcome
    status = Column(
        Enum(
            CallStatus,
            name="call_status",
            native_enum=False,
            length=32,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=CallStatus.PENDING,
    )
    failure_reason = Column(Text)

    # Results
    recording_url = Column(String(500))
    transcript = Column(Text)
    summary = Column(Text)
    duration_seconds = Column(Integer)

    # Timing
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime)

    # Relationships
    user = relationship("User", back_populates="calls")
    expert = relationship("Expert", back_populates="calls")
