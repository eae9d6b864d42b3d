from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.models import IncidentResponse, ResponseType


async def get_response(db: AsyncSession, id: int) -> Optional[IncidentResponse]:
    result = await db.execute(
        select(IncidentResponse)
        .filter(IncidentResponse.id == id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def create_response(
    db: AsyncSession,
    incident_id: int,
    responder_id: int,
    message: str,
    type: ResponseType,
    commit: bool = True,
    **details,
) -> IncidentResponse:
    """
    Append an entry to an incident's response log.

    ``details`` carries the optional status report / feedback columns.
    With ``commit=False`` the entry joins the caller's pending transaction.
    """
    db_obj = IncidentResponse(
        incident_id=incident_id,
        responder_id=responder_id,
        message=message,
        type=type,
        challenges_faced=details.get("challenges_faced"),
        successes_had=details.get("successes_had"),
        recommendations=details.get("recommendations"),
        images=list(details.get("images") or []),
        rating=details.get("rating"),
    )
    db.add(db_obj)
    if not commit:
        await db.flush()
        return db_obj
    await db.commit()
    return await get_response(db, id=db_obj.id)
