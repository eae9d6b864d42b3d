from sqlalchemy import Column, String, Integer, Enum, ForeignKey, Text, Float, DateTime, JSON
import enum
from sqlalchemy.orm import relationship

from cbdra.db.base_class import Base


class IncidentStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"
    CLOSED = "CLOSED"


class IncidentType(str, enum.Enum):
    FIRE = "FIRE"
    FLOOD = "FLOOD"
    EARTHQUAKE = "EARTHQUAKE"
    STORM = "STORM"
    LANDSLIDE = "LANDSLIDE"
    DROUGHT = "DROUGHT"
    EPIDEMIC = "EPIDEMIC"
    OTHER = "OTHER"


class Incident(Base):
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(Enum(IncidentType), nullable=False)
    severity = Column(Integer, default=1, nullable=False)
    status = Column(Enum(IncidentStatus), default=IncidentStatus.PENDING, nullable=False, index=True)

    address = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    images = Column(JSON, default=list, nullable=False)
    affected_people = Column(Integer, nullable=True)
    assigned_to = Column(String(255), nullable=True)

    reporter_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    reporter = relationship("User", back_populates="incidents", foreign_keys=[reporter_id], lazy="selectin")

    verified_by_id = Column(Integer, ForeignKey("user.id"), nullable=True)
    verified_at = Column(DateTime, nullable=True)

    allocations = relationship(
        "ResourceAllocation", back_populates="incident", cascade="all, delete-orphan",
        order_by="ResourceAllocation.id.desc()",
    )
    responses = relationship(
        "IncidentResponse", back_populates="incident", cascade="all, delete-orphan",
        order_by="IncidentResponse.id.desc()",
    )
