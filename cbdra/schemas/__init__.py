from cbdra.schemas.user import (
    SendOTPRequest, SignupRequest, ResendOTPRequest, VerifyOTPRequest, OTPSent, SignupResult,
    OTPVerified, VerifiedUser, ProfileUpdate, UserProfile, UserDetail, UserSummary, SessionUser,
    Token, TokenPayload,
)
from cbdra.schemas.response import Response
from cbdra.schemas.allocation import (
    Allocation, AllocationCreate, AllocationDecision, AllocationDecisionRequest, AllocationStats,
)
from cbdra.schemas.incident import (
    Incident, IncidentCreate, IncidentUpdate, IncidentDetail, IncidentPage, Pagination,
    IncidentStatusChange, StatusReportCreate, FeedbackCreate, StatusChangeResult,
    StatusReportResult, FeedbackResult, UserIncidentStats,
)
from cbdra.schemas.notification import Notification, MarkReadResult
from cbdra.schemas.vetting import VetDecision, VetRequest, VetResult
from cbdra.schemas.misc import Message, UploadResult, SupportRequest, SupportResult
