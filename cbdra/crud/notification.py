from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.models import Notification, NotificationType


NOTIFICATION_LIST_LIMIT = 50


async def create_notification(
    db: AsyncSession,
    user_id: int,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
    incident_id: Optional[int] = None,
    allocation_id: Optional[int] = None,
    commit: bool = True,
) -> Notification:
    """
    Create a notification for a user.

    With ``commit=False`` the row is only flushed into the caller's transaction.
    """
    db_obj = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        incident_id=incident_id,
        allocation_id=allocation_id,
        read=False,
    )
    db.add(db_obj)
    if not commit:
        await db.flush()
        return db_obj
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def get_user_notifications(
    db: AsyncSession, user_id: int, limit: int = NOTIFICATION_LIST_LIMIT
) -> List[Notification]:
    """
    Get the most recent notifications of a user, newest first.
    """
    result = await db.execute(
        select(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def mark_notifications_as_read(db: AsyncSession, user_id: int) -> None:
    """
    Mark every unread notification of a user as read.
    """
    stmt = (
        update(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.read == False,  # noqa: E712
        )
        .values(read=True)
    )
    await db.execute(stmt)
    await db.commit()
