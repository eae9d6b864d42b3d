from typing import Any, Optional
import math

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.api.deps import get_current_active_user, get_current_admin_user, require_roles
from cbdra.crud.incident import (
    count_user_incidents,
    create_incident,
    delete_incident,
    get_incident,
    get_incidents,
)
from cbdra.db.session import get_db
from cbdra.models import IncidentStatus, IncidentType, User, UserRole
from cbdra.schemas import Incident as IncidentSchema
from cbdra.schemas import (
    FeedbackCreate, FeedbackResult, IncidentCreate, IncidentDetail, IncidentPage, IncidentStatusChange,
    IncidentUpdate, Message, StatusChangeResult, StatusReportCreate, StatusReportResult, UserIncidentStats,
)
from cbdra.services.incidents import add_feedback, add_status_report, admin_update, post_status_update

router = APIRouter()

STATUS_UPDATE_ROLES = (
    UserRole.VOLUNTEER,
    UserRole.NGO,
    UserRole.GOVERNMENT_AGENCY,
    UserRole.ADMIN,
    UserRole.COMMUNITY_USER,
)
STATUS_REPORT_ROLES = (
    UserRole.COMMUNITY_USER,
    UserRole.VOLUNTEER,
    UserRole.NGO,
    UserRole.GOVERNMENT_AGENCY,
)


async def _get_incident_or_404(db: AsyncSession, incident_id: int, detail: bool = False):
    incident = await get_incident(db, id=incident_id, detail=detail)
    if not incident:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Incident not found",
        )
    return incident


@router.post("/incidents", response_model=IncidentSchema, status_code=status.HTTP_201_CREATED)
async def create_new_incident(
    incident_in: IncidentCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Report a new incident. Only community users file reports.
    """
    if current_user.role != UserRole.COMMUNITY_USER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only community users can report incidents",
        )
    incident = await create_incident(db, obj_in=incident_in, reporter_id=current_user.id)
    return incident


@router.get("/incidents", response_model=IncidentPage)
async def read_incidents(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[IncidentStatus] = Query(None, alias="status"),
    type_filter: Optional[IncidentType] = Query(None, alias="type"),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Retrieve incidents, newest first.
    Community users only see their own incidents, every other role sees all.
    """
    reporter_id = current_user.id if current_user.role == UserRole.COMMUNITY_USER else None
    incidents, total = await get_incidents(
        db,
        skip=(page - 1) * limit,
        limit=limit,
        status=status_filter,
        type=type_filter,
        reporter_id=reporter_id,
    )
    return {
        "incidents": incidents,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


@router.get("/incidents/user-stats", response_model=UserIncidentStats)
async def read_user_incident_stats(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return {"count": await count_user_incidents(db, user_id=current_user.id)}


@router.get("/incidents/{incident_id}", response_model=IncidentDetail)
async def read_incident(
    incident_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Get incident by ID with its response log and allocations.
    Community users can only get their own incidents.
    """
    incident = await _get_incident_or_404(db, incident_id, detail=True)
    if current_user.role == UserRole.COMMUNITY_USER and incident.reporter_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return incident


@router.patch("/incidents/{incident_id}", response_model=IncidentSchema)
async def update_incident_by_id(
    incident_id: int,
    incident_in: IncidentUpdate,
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Update status, severity or assignee. Only accessible to admin users.
    """
    incident = await _get_incident_or_404(db, incident_id)
    incident = await admin_update(db, incident=incident, obj_in=incident_in, admin=current_user)
    return incident


@router.delete("/incidents/{incident_id}", response_model=Message)
async def delete_incident_by_id(
    incident_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Delete an incident with its allocations and responses.
    Only admins and the original reporter may delete.
    """
    incident = await _get_incident_or_404(db, incident_id)
    if current_user.role != UserRole.ADMIN and incident.reporter_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    await delete_incident(db, id=incident_id)
    return {"message": "Incident deleted successfully"}


@router.post("/incidents/{incident_id}/status", response_model=StatusChangeResult)
async def post_incident_status(
    incident_id: int,
    status_in: IncidentStatusChange,
    current_user: User = Depends(require_roles(*STATUS_UPDATE_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Change the status and append a STATUS_UPDATE entry to the response log.
    """
    incident = await _get_incident_or_404(db, incident_id)
    incident = await post_status_update(db, incident=incident, obj_in=status_in, actor=current_user)
    return {"success": True, "incident": incident}


@router.post(
    "/incidents/{incident_id}/status-report",
    response_model=StatusReportResult,
    status_code=status.HTTP_201_CREATED,
)
async def post_status_report(
    incident_id: int,
    report_in: StatusReportCreate,
    current_user: User = Depends(require_roles(*STATUS_REPORT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    incident = await _get_incident_or_404(db, incident_id)
    report = await add_status_report(db, incident=incident, obj_in=report_in, actor=current_user)
    return {"success": True, "status_report": report}


@router.post(
    "/incidents/{incident_id}/feedback",
    response_model=FeedbackResult,
    status_code=status.HTTP_201_CREATED,
)
async def post_feedback(
    incident_id: int,
    feedback_in: FeedbackCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    incident = await _get_incident_or_404(db, incident_id)
    feedback = await add_feedback(db, incident=incident, obj_in=feedback_in, actor=current_user)
    return {"success": True, "feedback": feedback}
