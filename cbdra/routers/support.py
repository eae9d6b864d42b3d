from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from cbdra.api.deps import get_optional_user
from cbdra.models import User
from cbdra.schemas import SupportRequest, SupportResult
from cbdra.services.email import EmailDeliveryError, send_support_email

router = APIRouter()


@router.post("/support", response_model=SupportResult)
async def request_support(
    support_in: SupportRequest,
    current_user: Optional[User] = Depends(get_optional_user),
) -> Any:
    """
    Forward a help request to the support inbox. Signing in is optional.
    """
    try:
        await send_support_email(
            message=support_in.message,
            from_name=support_in.name or (current_user.name if current_user else None),
            from_email=support_in.email or (current_user.email if current_user else None),
            role=current_user.role.value if current_user else None,
            user_id=current_user.id if current_user else None,
        )
    except EmailDeliveryError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send support request",
        )
    return {"ok": True}
