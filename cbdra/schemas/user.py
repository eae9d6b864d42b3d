from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, validator, root_validator
import re

from cbdra.models.user import UserRole


SPECIAL_CHARACTERS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


# Editable profile fields shared by registration and profile updates
class ProfileFields(BaseModel):
    phone: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    organization: Optional[str] = None
    available_resources: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_address: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    distance_willing_to_travel: Optional[int] = Field(None, ge=0)


# Full registration payload accepted by send-otp
class SendOTPRequest(ProfileFields):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.COMMUNITY_USER
    government_id: Optional[str] = None
    ngo_name: Optional[str] = None
    ngo_founder: Optional[str] = None
    medications: Optional[str] = None
    allergies: Optional[str] = None
    conditions: Optional[str] = None
    medical_additional_info: Optional[str] = None

    @validator("role")
    def role_is_self_service(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Administrator accounts cannot be self-registered")
        return v


# Signup applies the stricter form rules before handing off to send-otp
class SignupRequest(SendOTPRequest):
    role: UserRole
    password: str = Field(..., min_length=8)

    @validator("password")
    def password_has_special_character(cls, v):
        if not SPECIAL_CHARACTERS.search(v):
            raise ValueError("Password must contain at least one special character")
        return v

    @root_validator(skip_on_failure=True)
    def role_specific_fields(cls, values):
        role = values.get("role")
        if role == UserRole.GOVERNMENT_AGENCY and not values.get("government_id"):
            raise ValueError("Government ID is required for Government Agency")
        if role == UserRole.NGO and not (values.get("ngo_name") and values.get("ngo_founder")):
            raise ValueError("NGO Name and NGO Founder are required for NGO")
        if role != UserRole.COMMUNITY_USER and not values.get("available_resources"):
            raise ValueError("Available Resources is required for non-community roles")
        if role == UserRole.COMMUNITY_USER and not values.get("allergies"):
            raise ValueError("Allergies is required for Community Users")
        return values


class ResendOTPRequest(BaseModel):
    email: EmailStr


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=12)


class OTPSent(BaseModel):
    message: str
    email: str


class SignupResult(OTPSent):
    requires_verification: bool = True


class VerifiedUser(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    role: UserRole
    email_verified: Optional[datetime] = None

    class Config:
        from_attributes = True


class OTPVerified(BaseModel):
    message: str
    user: VerifiedUser


# Properties to receive on profile update
class ProfileUpdate(ProfileFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    image: Optional[str] = None


# Properties to return to client
class UserProfile(ProfileFields):
    id: int
    name: Optional[str] = None
    email: str
    role: UserRole
    verified: bool
    image: Optional[str] = None

    class Config:
        from_attributes = True


# Admin view of an account
class UserDetail(UserProfile):
    email_verified: Optional[datetime] = None
    government_id: Optional[str] = None
    ngo_name: Optional[str] = None
    ngo_founder: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Compact form embedded in incidents, allocations and responses
class UserSummary(BaseModel):
    id: int
    name: Optional[str] = None
    role: UserRole
    organization: Optional[str] = None

    class Config:
        from_attributes = True


class SessionUser(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    role: UserRole
    image: Optional[str] = None
    verified: bool

    class Config:
        from_attributes = True


# Token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# Token payload
class TokenPayload(BaseModel):
    sub: Optional[int] = None
