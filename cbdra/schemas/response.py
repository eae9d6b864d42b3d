from typing import Optional, List
from pydantic import BaseModel
from datetime import datetime

from cbdra.models.response import ResponseType
from cbdra.schemas.user import UserSummary


# Properties to return to client
class Response(BaseModel):
    id: int
    incident_id: int
    responder_id: int
    message: str
    type: ResponseType
    challenges_faced: Optional[str] = None
    successes_had: Optional[str] = None
    recommendations: Optional[str] = None
    images: List[str] = []
    rating: Optional[int] = None
    created_at: datetime
    responder: Optional[UserSummary] = None

    class Config:
        from_attributes = True
