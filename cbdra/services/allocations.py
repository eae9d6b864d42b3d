import logging
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.core.errors import InvalidRequestError, NotFoundError, PermissionDeniedError
from cbdra.crud.allocation import count_user_allocations, create_allocation, get_allocation, record_decision
from cbdra.crud.incident import get_incident
from cbdra.crud.user import get_user
from cbdra.models import (
    RESPONDER_ROLES,
    AllocationStatus,
    Incident,
    NotificationType,
    ResourceAllocation,
    User,
)
from cbdra.schemas import AllocationCreate, AllocationDecision, AllocationDecisionRequest, AllocationStats
from cbdra.services.notifications import notify

logger = logging.getLogger("cbdra.allocations")

ROLE_LABELS = {
    "VOLUNTEER": "volunteer",
    "NGO": "NGO",
    "GOVERNMENT_AGENCY": "government agency",
}


async def allocate(
    db: AsyncSession, incident_id: int, obj_in: AllocationCreate, admin: User
) -> Tuple[ResourceAllocation, Incident, User]:
    """
    Assign a responder to an incident and notify both sides.

    Returns the allocation together with the incident and responder so the
    caller can schedule the assignment email.
    """
    incident = await get_incident(db, id=incident_id)
    if not incident:
        raise NotFoundError("Incident not found")
    responder = await get_user(db, id=obj_in.allocated_to_id)
    if not responder:
        raise NotFoundError("User to allocate not found")
    if responder.role not in RESPONDER_ROLES:
        raise InvalidRequestError("Can only allocate resources to volunteers, NGOs, or government agencies")

    allocation = await create_allocation(db, obj_in=obj_in, incident_id=incident.id, allocated_by_id=admin.id)
    logger.info(
        f"Allocation created: allocation_id={allocation.id}, incident_id={incident.id}, "
        f"allocated_to={responder.id}, by={admin.id}"
    )

    await notify(
        db,
        user_id=responder.id,
        title="New Incident Assignment",
        message=(
            f'You have been assigned to incident "{incident.title}" '
            f"({allocation.resource_type}, priority {allocation.priority})."
        ),
        type=NotificationType.ALERT,
        incident_id=incident.id,
        allocation_id=allocation.id,
    )
    await notify(
        db,
        user_id=incident.reporter_id,
        title="Responders Assigned",
        message=(
            f"A {ROLE_LABELS.get(responder.role.value, 'responder')} has been assigned "
            f'to your incident "{incident.title}".'
        ),
        type=NotificationType.SUCCESS,
        incident_id=incident.id,
        allocation_id=allocation.id,
    )
    return allocation, incident, responder


async def decide(
    db: AsyncSession, incident_id: int, obj_in: AllocationDecisionRequest, responder: User
) -> ResourceAllocation:
    """
    Record a responder's one-time accept/decline of an allocation.

    Raises:
        NotFoundError: unknown allocation, or one that belongs to another incident
        PermissionDeniedError: the caller is not the allocated responder
        InvalidRequestError: the allocation was already decided
    """
    allocation = await get_allocation(db, id=obj_in.allocation_id)
    if not allocation or allocation.incident_id != incident_id:
        raise NotFoundError("Allocation not found")
    if allocation.allocated_to_id != responder.id:
        raise PermissionDeniedError("You can only respond to your own allocations")
    if allocation.status != AllocationStatus.ASSIGNED:
        raise InvalidRequestError("Allocation is not in ASSIGNED state")

    accepted = obj_in.decision == AllocationDecision.ACCEPT
    status = AllocationStatus.ACCEPTED if accepted else AllocationStatus.DECLINED
    allocation = await record_decision(db, db_obj=allocation, status=status, reason=obj_in.reason)
    logger.info(
        f"Allocation {status.value.lower()}: allocation_id={allocation.id}, incident_id={incident_id}, by={responder.id}"
    )

    who = responder.name or responder.email
    if accepted:
        title = "Allocation Accepted"
        message = f"{who} accepted the {allocation.resource_type} allocation for incident #{incident_id}."
    else:
        title = "Allocation Declined"
        message = f"{who} declined the {allocation.resource_type} allocation for incident #{incident_id}."
        if obj_in.reason:
            message += f" Reason: {obj_in.reason}"
    await notify(
        db,
        user_id=allocation.allocated_by_id,
        title=title,
        message=message,
        type=NotificationType.SUCCESS if accepted else NotificationType.ALERT,
        incident_id=incident_id,
        allocation_id=allocation.id,
    )
    return allocation


async def allocation_stats(db: AsyncSession, user: User) -> AllocationStats:
    if user.role not in RESPONDER_ROLES:
        return AllocationStats()
    return AllocationStats(
        total=await count_user_allocations(db, user_id=user.id),
        pending=await count_user_allocations(db, user_id=user.id, status=AllocationStatus.ASSIGNED),
        completed=await count_user_allocations(db, user_id=user.id, status=AllocationStatus.COMPLETED),
    )
