from typing import Any, List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.api.deps import get_current_active_user, get_current_admin_user, require_roles
from cbdra.crud.allocation import get_incident_allocations
from cbdra.crud.incident import get_incident
from cbdra.db.session import get_db
from cbdra.models import RESPONDER_ROLES, User
from cbdra.schemas import Allocation, AllocationCreate, AllocationDecisionRequest, AllocationStats
from cbdra.services.allocations import allocate, allocation_stats, decide
from cbdra.services.email import send_allocation_email

router = APIRouter()


@router.post(
    "/incidents/{incident_id}/allocate",
    response_model=Allocation,
    status_code=status.HTTP_201_CREATED,
)
async def allocate_responder(
    incident_id: int,
    allocation_in: AllocationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Assign a responder to an incident. Only accessible to admin users.
    The assignment email is sent after the response.
    """
    allocation, incident, responder = await allocate(
        db, incident_id=incident_id, obj_in=allocation_in, admin=current_user
    )
    background_tasks.add_task(
        send_allocation_email,
        to_email=responder.email,
        incident_title=incident.title,
        incident_id=incident.id,
        to_name=responder.name,
        allocation_note=allocation.description,
    )
    return allocation


@router.get("/incidents/{incident_id}/allocate", response_model=List[Allocation])
async def read_allocations(
    incident_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    if not await get_incident(db, id=incident_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Incident not found",
        )
    return await get_incident_allocations(db, incident_id=incident_id)


@router.patch("/incidents/{incident_id}/allocate", response_model=Allocation)
async def respond_to_allocation(
    incident_id: int,
    decision_in: AllocationDecisionRequest,
    current_user: User = Depends(require_roles(*RESPONDER_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Accept or decline an allocation. Only the allocated responder may decide, once.
    """
    return await decide(db, incident_id=incident_id, obj_in=decision_in, responder=current_user)


@router.get("/resource-allocations/stats", response_model=AllocationStats)
async def read_allocation_stats(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await allocation_stats(db, user=current_user)
