from sqlalchemy import Column, Integer, Enum, ForeignKey, Text, JSON
import enum
from sqlalchemy.orm import relationship

from cbdra.db.base_class import Base


class ResponseType(str, enum.Enum):
    STATUS_UPDATE = "STATUS_UPDATE"
    STATUS_REPORT = "STATUS_REPORT"
    FEEDBACK = "FEEDBACK"


class IncidentResponse(Base):
    """Append-only log entry attached to an incident."""
    id = Column(Integer, primary_key=True, index=True)
    message = Column(Text, nullable=False)
    type = Column(Enum(ResponseType), default=ResponseType.STATUS_UPDATE, nullable=False)

    # Status report details
    challenges_faced = Column(Text, nullable=True)
    successes_had = Column(Text, nullable=True)
    recommendations = Column(Text, nullable=True)
    images = Column(JSON, default=list, nullable=False)
    rating = Column(Integer, nullable=True)

    # Relationships
    incident_id = Column(Integer, ForeignKey("incident.id", ondelete="CASCADE"), nullable=False, index=True)
    incident = relationship("Incident", back_populates="responses")

    responder_id = Column(Integer, ForeignKey("user.id"), nullable=False)
    responder = relationship("User", foreign_keys=[responder_id], lazy="selectin")
