import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.core.config import settings
from cbdra.core.security import decode_access_token
from cbdra.crud.user import get_user
from cbdra.db.session import get_db
from cbdra.models import User, UserRole
from cbdra.schemas import TokenPayload

logger = logging.getLogger("cbdra.auth")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)


def _session_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    return bearer or request.cookies.get(settings.SESSION_COOKIE_NAME)


async def _load_user(db: AsyncSession, token: str) -> Optional[User]:
    try:
        payload = TokenPayload(**decode_access_token(token))
    except (JWTError, ValidationError):
        return None
    if payload.sub is None:
        return None
    return await get_user(db, id=payload.sub)


async def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the signed-in user from the session cookie or a bearer token.

    The token only identifies the account; role and profile come from the
    current database row.

    Raises:
        HTTPException: 401 for a missing, invalid or expired token, or unknown user
    """
    token = _session_token(request, bearer)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    user = await _load_user(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session",
        )
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account disabled",
        )
    return current_user


async def get_optional_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Like ``get_current_user`` but anonymous callers get ``None``."""
    token = _session_token(request, bearer)
    if not token:
        return None
    user = await _load_user(db, token)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_admin_user(current_user: User = Depends(get_current_active_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        logger.warning(f"Admin access denied: user_id={current_user.id}, role={current_user.role.value}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory admitting only the given roles."""
    allowed = frozenset(roles)

    async def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return current_user

    return checker
