from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.api.deps import get_current_active_user, get_current_admin_user
from cbdra.crud.user import get_user, get_users, update_user
from cbdra.db.session import get_db
from cbdra.models import User, UserRole
from cbdra.schemas import ProfileUpdate, UserDetail, UserProfile, VetRequest, VetResult
from cbdra.services.vetting import vet_user

router = APIRouter()


@router.get("/user/profile", response_model=UserProfile)
async def read_profile(
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get current user's profile.
    """
    return current_user


@router.put("/user/profile", response_model=UserProfile)
async def update_profile(
    profile_in: ProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Update current user's editable profile fields.
    """
    user = await update_user(db, db_obj=current_user, obj_in=profile_in)
    return user


@router.get("/users", response_model=List[UserDetail])
async def read_users(
    skip: int = 0,
    limit: int = 100,
    role: Optional[UserRole] = None,
    verified: Optional[bool] = None,
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Retrieve users. Only accessible to admin users.
    """
    users = await get_users(db, skip=skip, limit=limit, role=role, verified=verified)
    return users


@router.get("/users/{user_id}", response_model=UserDetail)
async def read_user(
    user_id: int,
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Get a specific user by id. Only accessible to admin users.
    """
    user = await get_user(db, id=user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.post("/users/{user_id}/vet", response_model=VetResult)
async def vet_user_by_id(
    user_id: int,
    vet_in: VetRequest,
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Approve, reject or revoke a responder's vetting. Only accessible to admin users.
    """
    result = await vet_user(db, user_id=user_id, decision=vet_in.decision, admin=current_user)
    return {"success": True, "status": result}
