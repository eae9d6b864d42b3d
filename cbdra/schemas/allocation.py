import enum
from typing import Optional
from pydantic import BaseModel, Field, validator
from datetime import datetime

from cbdra.models.allocation import AllocationStatus
from cbdra.schemas.user import UserSummary


class AllocationCreate(BaseModel):
    allocated_to_id: int
    resource_type: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    priority: int = Field(1, ge=1, le=5)

    @validator("priority", pre=True)
    def default_priority(cls, v):
        return 1 if v is None else v

    @validator("resource_type")
    def resource_type_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Resource type is required")
        return v.strip()


class AllocationDecision(str, enum.Enum):
    ACCEPT = "ACCEPT"
    DECLINE = "DECLINE"


class AllocationDecisionRequest(BaseModel):
    allocation_id: int
    decision: AllocationDecision
    reason: Optional[str] = None


class Allocation(BaseModel):
    id: int
    incident_id: int
    allocated_to_id: int
    allocated_by_id: int
    resource_type: str
    description: Optional[str] = None
    priority: int
    status: AllocationStatus
    decline_reason: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    allocated_to: Optional[UserSummary] = None
    allocated_by: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class AllocationStats(BaseModel):
    total: int = 0
    pending: int = 0
    completed: int = 0
