from typing import List, Optional
from pydantic import BaseModel, EmailStr, validator


class Message(BaseModel):
    message: str


class UploadResult(BaseModel):
    message: str
    files: List[str]


class SupportRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    message: str

    @validator("message")
    def message_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Message is required")
        return v


class SupportResult(BaseModel):
    ok: bool = True
