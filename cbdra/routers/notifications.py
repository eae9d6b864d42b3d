from typing import Any, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.api.deps import get_current_active_user
from cbdra.crud.notification import get_user_notifications, mark_notifications_as_read
from cbdra.db.session import get_db
from cbdra.models import User
from cbdra.schemas import MarkReadResult, Notification

router = APIRouter()


@router.get("/notifications", response_model=List[Notification])
async def read_notifications(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Latest notifications of the current user, newest first.
    """
    notifications = await get_user_notifications(db, user_id=current_user.id)
    return [Notification.from_model(n) for n in notifications]


@router.post("/notifications/mark-read", response_model=MarkReadResult)
async def mark_read(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await mark_notifications_as_read(db, user_id=current_user.id)
    return {"success": True}
