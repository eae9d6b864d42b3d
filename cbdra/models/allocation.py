from sqlalchemy import Column, String, Integer, Enum, ForeignKey, Text, DateTime
import enum
from sqlalchemy.orm import relationship

from cbdra.db.base_class import Base


class AllocationStatus(str, enum.Enum):
    ASSIGNED = "ASSIGNED"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    COMPLETED = "COMPLETED"


class ResourceAllocation(Base):
    id = Column(Integer, primary_key=True, index=True)
    resource_type = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(Integer, default=1, nullable=False)
    status = Column(Enum(AllocationStatus), default=AllocationStatus.ASSIGNED, nullable=False, index=True)
    decline_reason = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)

    # Relationships
    incident_id = Column(Integer, ForeignKey("incident.id", ondelete="CASCADE"), nullable=False, index=True)
    incident = relationship("Incident", back_populates="allocations")

    allocated_to_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    allocated_to = relationship("User", foreign_keys=[allocated_to_id], lazy="selectin")

    allocated_by_id = Column(Integer, ForeignKey("user.id"), nullable=False)
    allocated_by = relationship("User", foreign_keys=[allocated_by_id], lazy="selectin")
