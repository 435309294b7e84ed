"""Expert contact model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Enum, Index, Uuid
from sqlalchemy.orm import relationship

from expertassist.database import Base


class ExpertType(str, enum.Enum):
    """Kinds of experts a user can call"""
    REALTOR = "realtor"
    LENDER = "lender"
    INSPECTOR = "inspector"
    APPRAISER = "appraiser"
    ATTORNEY = "attorney"
    INSURANCE_AGENT = "insurance_agent"
    OTHER = "other"


class Expert(Base):
    """A callable contact owned by a user"""
    __tablename__ = "experts"
    __table_args__ = (
        Index("ix_experts_user_id_expert_type", "user_id", "expert_type"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(255), nullable=False)
    phone_number = Column(String(30), nullable=False)
    expert_type = Column(
        Enum(
            ExpertType,
            name="expert_type",
            native_enum=False,
            length=32,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=ExpertType.OTHER,
    )
    company = Column(String(255))
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="experts")
    calls = relationship("Call", back_populates="expert", passive_deletes=True)
