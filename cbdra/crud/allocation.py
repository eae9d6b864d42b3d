from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.models import AllocationStatus, ResourceAllocation
from cbdra.schemas import AllocationCreate


async def get_allocation(db: AsyncSession, id: int) -> Optional[ResourceAllocation]:
    """
    Get a resource allocation by ID.
    """
    result = await db.execute(
        select(ResourceAllocation)
        .filter(ResourceAllocation.id == id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_incident_allocations(db: AsyncSession, incident_id: int) -> List[ResourceAllocation]:
    """
    Get every allocation made for an incident, newest first.
    """
    result = await db.execute(
        select(ResourceAllocation)
        .filter(ResourceAllocation.incident_id == incident_id)
        .order_by(ResourceAllocation.created_at.desc(), ResourceAllocation.id.desc())
    )
    return result.scalars().all()


async def create_allocation(
    db: AsyncSession, obj_in: AllocationCreate, incident_id: int, allocated_by_id: int
) -> ResourceAllocation:
    """
    Create an allocation in ASSIGNED status.
    """
    db_obj = ResourceAllocation(
        incident_id=incident_id,
        allocated_to_id=obj_in.allocated_to_id,
        allocated_by_id=allocated_by_id,
        resource_type=obj_in.resource_type,
        description=obj_in.description,
        priority=obj_in.priority,
        status=AllocationStatus.ASSIGNED,
    )
    db.add(db_obj)
    await db.commit()
    return await get_allocation(db, id=db_obj.id)


async def record_decision(
    db: AsyncSession,
    db_obj: ResourceAllocation,
    status: AllocationStatus,
    reason: Optional[str] = None,
) -> ResourceAllocation:
    """
    Store the responder's accept/decline decision.
    """
    db_obj.status = status
    db_obj.responded_at = datetime.utcnow()
    if status == AllocationStatus.DECLINED:
        db_obj.decline_reason = reason
    db.add(db_obj)
    await db.commit()
    return await get_allocation(db, id=db_obj.id)


async def count_user_allocations(
    db: AsyncSession, user_id: int, status: Optional[AllocationStatus] = None
) -> int:
    """
    Count allocations assigned to a responder, optionally by status.
    """
    query = select(func.count(ResourceAllocation.id)).filter(
        ResourceAllocation.allocated_to_id == user_id
    )
    if status is not None:
        query = query.filter(ResourceAllocation.status == status)
    count = await db.scalar(query)
    return count or 0
