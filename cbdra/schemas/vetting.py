import enum
from pydantic import BaseModel


class VetDecision(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REVOKE = "REVOKE"
    # Values sent by older clients; resolved against the account state
    ACCEPT = "ACCEPT"
    DECLINE = "DECLINE"


class VetRequest(BaseModel):
    decision: VetDecision


class VetResult(BaseModel):
    success: bool = True
    status: str
