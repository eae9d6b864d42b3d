import re
from typing import Optional, List
from pydantic import BaseModel, Field, validator
from datetime import datetime

from cbdra.models.incident import IncidentStatus, IncidentType
from cbdra.schemas.allocation import Allocation
from cbdra.schemas.response import Response
from cbdra.schemas.user import UserSummary


def normalize_status(value: str) -> str:
    """Turn free text such as ``"in progress"`` into ``IN_PROGRESS``."""
    return re.sub(r"[\s\-]+", "_", value.strip()).upper()


# Shared properties
class IncidentBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    type: IncidentType
    address: str = Field(..., min_length=1, max_length=255)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    affected_people: Optional[int] = Field(None, ge=0)


# Properties to receive on incident creation
class IncidentCreate(IncidentBase):
    severity: int = Field(1, ge=1, le=5)
    images: List[str] = []

    @validator("severity", pre=True)
    def default_severity(cls, v):
        return 1 if v in (None, "", 0) else v


# Properties an administrator may change
class IncidentUpdate(BaseModel):
    status: Optional[IncidentStatus] = None
    severity: Optional[int] = Field(None, ge=1, le=5)
    assigned_to: Optional[str] = Field(None, max_length=255)


# Free-text status change posted by responders and reporters
class IncidentStatusChange(BaseModel):
    status: IncidentStatus
    message: str = Field(..., min_length=1)

    @validator("status", pre=True)
    def normalize(cls, v):
        if isinstance(v, str):
            v = normalize_status(v)
            if v not in IncidentStatus.__members__:
                raise ValueError("Invalid status")
        return v


class StatusReportCreate(BaseModel):
    message: str = Field(..., min_length=1)
    challenges_faced: Optional[str] = None
    successes_had: Optional[str] = None
    recommendations: Optional[str] = None
    images: List[str] = []


class FeedbackCreate(BaseModel):
    message: str = Field(..., min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=5)
    images: List[str] = []


# Properties to return to client
class Incident(IncidentBase):
    id: int
    severity: int
    status: IncidentStatus
    images: List[str] = []
    assigned_to: Optional[str] = None
    reporter_id: int
    reporter: Optional[UserSummary] = None
    verified_by_id: Optional[int] = None
    verified_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Properties to return in a detailed incident
class IncidentDetail(Incident):
    responses: List[Response] = []
    allocations: List[Allocation] = []

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class IncidentPage(BaseModel):
    incidents: List[Incident]
    pagination: Pagination


class StatusChangeResult(BaseModel):
    success: bool = True
    incident: Incident


class StatusReportResult(BaseModel):
    success: bool = True
    status_report: Response


class FeedbackResult(BaseModel):
    success: bool = True
    feedback: Response


class UserIncidentStats(BaseModel):
    count: int
