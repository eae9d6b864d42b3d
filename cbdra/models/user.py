from sqlalchemy import Boolean, Column, String, Integer, Enum, DateTime, Text
import enum
from sqlalchemy.orm import relationship

from cbdra.db.base_class import Base


class UserRole(str, enum.Enum):
    COMMUNITY_USER = "COMMUNITY_USER"
    VOLUNTEER = "VOLUNTEER"
    NGO = "NGO"
    GOVERNMENT_AGENCY = "GOVERNMENT_AGENCY"
    ADMIN = "ADMIN"


# Roles that can be vetted and receive resource allocations
RESPONDER_ROLES = frozenset({UserRole.VOLUNTEER, UserRole.NGO, UserRole.GOVERNMENT_AGENCY})


class User(Base):
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.COMMUNITY_USER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Admin vetting flag, distinct from email verification
    verified = Column(Boolean, default=False, nullable=False)
    email_verified = Column(DateTime, nullable=True)
    otp = Column(String(6), nullable=True)
    otp_expiry = Column(DateTime, nullable=True)

    image = Column(String(512), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(255), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)

    # Responder organisation details
    organization = Column(String(255), nullable=True)
    government_id = Column(String(100), nullable=True)
    ngo_name = Column(String(255), nullable=True)
    ngo_founder = Column(String(255), nullable=True)
    available_resources = Column(Text, nullable=True)
    distance_willing_to_travel = Column(Integer, nullable=True)

    emergency_contact_name = Column(String(255), nullable=True)
    emergency_contact_phone = Column(String(50), nullable=True)
    emergency_contact_address = Column(String(255), nullable=True)
    emergency_contact_relationship = Column(String(100), nullable=True)

    # Medical ID, community users only
    medications = Column(Text, nullable=True)
    allergies = Column(Text, nullable=True)
    conditions = Column(Text, nullable=True)
    medical_additional_info = Column(Text, nullable=True)

    # Relationships
    incidents = relationship("Incident", back_populates="reporter", foreign_keys="Incident.reporter_id")
