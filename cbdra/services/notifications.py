import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.core.config import settings
from cbdra.crud.notification import create_notification
from cbdra.models import Notification, NotificationType
from cbdra.services.redis import publish_message, user_channel

logger = logging.getLogger("cbdra.notifications")


async def notify(
    db: AsyncSession,
    user_id: int,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
    incident_id: Optional[int] = None,
    allocation_id: Optional[int] = None,
) -> Optional[Notification]:
    """
    Persist a notification and push it to the user's live channel.

    Best effort: a failure is logged and ``None`` returned, the caller's
    primary operation has already been committed. The insert runs in a
    savepoint so a failure leaves the caller's loaded objects usable.
    """
    try:
        async with db.begin_nested():
            notification = await create_notification(
                db,
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                incident_id=incident_id,
                allocation_id=allocation_id,
                commit=False,
            )
        await db.commit()
    except Exception:
        logger.error(f"Failed to store notification: user_id={user_id}, title={title}", exc_info=True)
        return None

    if settings.NOTIFICATION_PUBSUB_ENABLED:
        try:
            await publish_message(
                user_channel(user_id),
                {
                    "type": "notification",
                    "data": {
                        "id": notification.id,
                        "type": notification.type.value,
                        "title": notification.title,
                        "message": notification.message,
                        "time": notification.created_at.isoformat(),
                        "incident_id": notification.incident_id,
                        "allocation_id": notification.allocation_id,
                    },
                },
            )
        except Exception:
            logger.warning(f"Failed to publish notification: user_id={user_id}, id={notification.id}", exc_info=True)

    return notification
