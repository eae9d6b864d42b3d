"""
Incident status rules and the log entries that go with them.

Forward chain: PENDING -> VERIFIED -> IN_PROGRESS -> RESOLVED. Steps may be
skipped but never reversed. REJECTED and CLOSED can be entered from any
open state, RESOLVED included, and are final.
"""
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.core.errors import InvalidRequestError
from cbdra.crud.incident import get_incident, update_incident
from cbdra.crud.response import create_response
from cbdra.models import Incident, IncidentResponse, IncidentStatus, NotificationType, ResponseType, User
from cbdra.schemas import FeedbackCreate, IncidentStatusChange, IncidentUpdate, StatusReportCreate
from cbdra.services.notifications import notify

logger = logging.getLogger("cbdra.incidents")

FORWARD_CHAIN = [
    IncidentStatus.PENDING,
    IncidentStatus.VERIFIED,
    IncidentStatus.IN_PROGRESS,
    IncidentStatus.RESOLVED,
]
TERMINAL_STATUSES = frozenset({IncidentStatus.REJECTED, IncidentStatus.CLOSED})


def can_transition(current: IncidentStatus, target: IncidentStatus) -> bool:
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if target in TERMINAL_STATUSES:
        return True
    return FORWARD_CHAIN.index(target) > FORWARD_CHAIN.index(current)


def apply_status(incident: Incident, target: IncidentStatus, actor: User) -> bool:
    """
    Move an incident to ``target`` in memory; returns whether anything changed.

    Raises:
        InvalidRequestError: the transition is not allowed
    """
    current = incident.status
    if not can_transition(current, target):
        raise InvalidRequestError(f"Cannot change status from {current.value} to {target.value}")
    if current == target:
        return False
    incident.status = target
    if target == IncidentStatus.VERIFIED:
        incident.verified_by_id = actor.id
        incident.verified_at = datetime.utcnow()
    return True


def _status_notification_type(status: IncidentStatus) -> NotificationType:
    if status == IncidentStatus.REJECTED:
        return NotificationType.ALERT
    if status in (IncidentStatus.RESOLVED, IncidentStatus.VERIFIED):
        return NotificationType.SUCCESS
    return NotificationType.INFO


async def notify_status_change(db: AsyncSession, incident: Incident, actor: User) -> None:
    if actor.id == incident.reporter_id:
        return
    label = incident.status.value.replace("_", " ").lower()
    await notify(
        db,
        user_id=incident.reporter_id,
        title="Incident Status Updated",
        message=f'Your incident "{incident.title}" is now {label}.',
        type=_status_notification_type(incident.status),
        incident_id=incident.id,
    )


async def admin_update(db: AsyncSession, incident: Incident, obj_in: IncidentUpdate, admin: User) -> Incident:
    """
    Apply an administrator's PATCH: status (subject to the transition rules),
    severity and free-text assignee.
    """
    changed = False
    if obj_in.status is not None:
        changed = apply_status(incident, obj_in.status, admin)

    incident = await update_incident(
        db, db_obj=incident, obj_in=obj_in.model_dump(exclude_unset=True, exclude={"status"})
    )
    if changed:
        logger.info(f"Incident status changed: incident_id={incident.id}, status={incident.status.value}, by={admin.id}")
        await notify_status_change(db, incident, admin)
    return incident


async def post_status_update(
    db: AsyncSession, incident: Incident, obj_in: IncidentStatusChange, actor: User
) -> Incident:
    """
    Change status and record it in the response log in one commit.
    """
    changed = apply_status(incident, obj_in.status, actor)
    await create_response(
        db,
        incident_id=incident.id,
        responder_id=actor.id,
        message=f"Status updated to {obj_in.status.value}: {obj_in.message}",
        type=ResponseType.STATUS_UPDATE,
        commit=False,
    )
    await db.commit()
    incident = await get_incident(db, id=incident.id)

    if changed:
        logger.info(f"Incident status posted: incident_id={incident.id}, status={incident.status.value}, by={actor.id}")
        await notify_status_change(db, incident, actor)
    return incident


async def add_status_report(
    db: AsyncSession, incident: Incident, obj_in: StatusReportCreate, actor: User
) -> IncidentResponse:
    if incident.status != IncidentStatus.IN_PROGRESS:
        raise InvalidRequestError("Status reports can only be provided for incidents in progress")
    report = await create_response(
        db,
        incident_id=incident.id,
        responder_id=actor.id,
        message=obj_in.message,
        type=ResponseType.STATUS_REPORT,
        challenges_faced=obj_in.challenges_faced,
        successes_had=obj_in.successes_had,
        recommendations=obj_in.recommendations,
        images=obj_in.images,
    )
    logger.info(f"Status report added: incident_id={incident.id}, by={actor.id}")
    return report


async def add_feedback(
    db: AsyncSession, incident: Incident, obj_in: FeedbackCreate, actor: User
) -> IncidentResponse:
    if incident.status != IncidentStatus.RESOLVED:
        raise InvalidRequestError("Feedback can only be provided for resolved incidents")
    if obj_in.rating is not None:
        message = f"Feedback (Rating: {obj_in.rating}/5): {obj_in.message}"
    else:
        message = f"Feedback: {obj_in.message}"
    feedback = await create_response(
        db,
        incident_id=incident.id,
        responder_id=actor.id,
        message=message,
        type=ResponseType.FEEDBACK,
        rating=obj_in.rating,
        images=obj_in.images,
    )
    logger.info(f"Feedback added: incident_id={incident.id}, by={actor.id}, rating={obj_in.rating}")
    return feedback
