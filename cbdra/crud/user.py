from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.core.security import get_password_hash, verify_password
from cbdra.models import User, UserRole
from cbdra.schemas import SendOTPRequest, ProfileUpdate


async def get_user(db: AsyncSession, id: int) -> Optional[User]:
    """
    Get a user by ID.
    """
    result = await db.execute(
        select(User).filter(User.id == id).execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """
    Get a user by email.
    """
    result = await db.execute(select(User).filter(User.email == email.lower()))
    return result.scalars().first()


async def get_users(
    db: AsyncSession,
    skip: int = 0,
    limit: int = 100,
    role: Optional[UserRole] = None,
    verified: Optional[bool] = None,
) -> List[User]:
    """
    Get multiple users with optional role and vetting filters.
    """
    query = select(User)
    if role is not None:
        query = query.filter(User.role == role)
    if verified is not None:
        query = query.filter(User.verified == verified)
    result = await db.execute(query.order_by(User.id).offset(skip).limit(limit))
    return result.scalars().all()


async def save_pending_user(
    db: AsyncSession,
    obj_in: SendOTPRequest,
    otp: str,
    otp_expiry: datetime,
    db_obj: Optional[User] = None,
) -> User:
    """
    Create, or overwrite an unverified, account waiting for its OTP.
    """
    data = obj_in.model_dump(exclude={"password", "email"})
    if db_obj is None:
        db_obj = User(email=obj_in.email.lower())
    for field, value in data.items():
        setattr(db_obj, field, value)
    db_obj.hashed_password = get_password_hash(obj_in.password)
    db_obj.otp = otp
    db_obj.otp_expiry = otp_expiry
    db_obj.email_verified = None
    db_obj.verified = False

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_user(
    db: AsyncSession, db_obj: User, obj_in: Union[ProfileUpdate, Dict[str, Any]]
) -> User:
    """
    Update a user.
    """
    if isinstance(obj_in, dict):
        update_data = obj_in
    else:
        update_data = obj_in.model_dump(exclude_unset=True)

    if "password" in update_data:
        password = update_data.pop("password")
        if password:
            update_data["hashed_password"] = get_password_hash(password)

    for field in update_data:
        setattr(db_obj, field, update_data[field])

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def delete_user(db: AsyncSession, id: int) -> None:
    """
    Delete a user row directly, without loading relationships.
    """
    await db.execute(delete(User).where(User.id == id))
    await db.commit()


async def authenticate_user(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """
    Authenticate a user by email and password.
    """
    user = await get_user_by_email(db, email=email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
