from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cbdra.models import Incident, IncidentStatus, IncidentType
from cbdra.schemas import IncidentCreate, IncidentUpdate


async def get_incident(db: AsyncSession, id: int, detail: bool = False) -> Optional[Incident]:
    """
    Get an incident by ID.

    With ``detail`` the responses and allocations are loaded as well.
    """
    query = select(Incident).filter(Incident.id == id)
    if detail:
        query = query.options(
            selectinload(Incident.responses),
            selectinload(Incident.allocations),
        )
    result = await db.execute(query.execution_options(populate_existing=True))
    return result.scalars().first()


async def get_incidents(
    db: AsyncSession,
    skip: int = 0,
    limit: int = 10,
    status: Optional[IncidentStatus] = None,
    type: Optional[IncidentType] = None,
    reporter_id: Optional[int] = None,
) -> Tuple[List[Incident], int]:
    """
    Get a page of incidents, newest first, plus the total matching count.

    ``reporter_id`` restricts the result to one reporter's own incidents.
    """
    filters = []
    if reporter_id is not None:
        filters.append(Incident.reporter_id == reporter_id)
    if status:
        filters.append(Incident.status == status)
    if type:
        filters.append(Incident.type == type)

    result = await db.execute(
        select(Incident)
        .filter(*filters)
        .order_by(Incident.created_at.desc(), Incident.id.desc())
        .offset(skip)
        .limit(limit)
    )
    total = await db.scalar(select(func.count(Incident.id)).filter(*filters))
    return result.scalars().all(), total or 0


async def count_user_incidents(db: AsyncSession, user_id: int) -> int:
    """
    Count the incidents reported by a user.
    """
    count = await db.scalar(
        select(func.count(Incident.id)).filter(Incident.reporter_id == user_id)
    )
    return count or 0


async def create_incident(
    db: AsyncSession, obj_in: IncidentCreate, reporter_id: int
) -> Incident:
    """
    Create a new incident in PENDING status.
    """
    db_obj = Incident(
        title=obj_in.title,
        description=obj_in.description,
        type=obj_in.type,
        severity=obj_in.severity,
        address=obj_in.address,
        latitude=obj_in.latitude,
        longitude=obj_in.longitude,
        images=list(obj_in.images),
        affected_people=obj_in.affected_people,
        status=IncidentStatus.PENDING,
        reporter_id=reporter_id,
    )
    db.add(db_obj)
    await db.commit()
    return await get_incident(db, id=db_obj.id)


async def update_incident(
    db: AsyncSession, db_obj: Incident, obj_in: Union[IncidentUpdate, Dict[str, Any]]
) -> Incident:
    """
    Update an incident.
    """
    if isinstance(obj_in, dict):
        update_data = obj_in
    else:
        update_data = obj_in.model_dump(exclude_unset=True)

    for field in update_data:
        if update_data[field] is not None:
            setattr(db_obj, field, update_data[field])

    db.add(db_obj)
    await db.commit()
    return await get_incident(db, id=db_obj.id)


async def delete_incident(db: AsyncSession, id: int) -> None:
    """
    Delete an incident together with its allocations and responses.
    """
    incident = await get_incident(db, id=id, detail=True)
    if incident is None:
        return
    await db.delete(incident)
    await db.commit()
