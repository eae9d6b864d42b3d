from datetime import timedelta
from typing import Any
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.api.deps import get_current_active_user
from cbdra.core.config import settings
from cbdra.core.security import create_access_token
from cbdra.crud.user import authenticate_user
from cbdra.db.session import get_db
from cbdra.models import User, UserRole
from cbdra.schemas import (
    Message, OTPSent, OTPVerified, ResendOTPRequest, SendOTPRequest, SessionUser,
    SignupRequest, SignupResult, Token, VerifyOTPRequest,
)
from cbdra.services.otp import confirm_code, resend_code, start_verification

logger = logging.getLogger("cbdra.auth")

router = APIRouter()


@router.post("/auth/login", response_model=Token)
async def login_access_token(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Get a session token for a user from login credentials.
    The token is also set as an httponly session cookie.
    """
    logger.info(f"Login attempt: username={form_data.username}")
    user = await authenticate_user(db, email=form_data.username, password=form_data.password)

    if not user:
        logger.warning(f"Login failed - incorrect credentials: username={form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )
    elif not user.is_active:
        logger.warning(f"Login failed - inactive account: username={form_data.username}, user_id={user.id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is not active",
        )
    elif user.email_verified is None and user.role != UserRole.ADMIN:
        logger.warning(f"Login failed - email not verified: username={form_data.username}, user_id={user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email before signing in.",
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(subject=user.id, expires_delta=access_token_expires)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=int(access_token_expires.total_seconds()),
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )

    logger.info(f"Login successful: username={form_data.username}, user_id={user.id}")
    return {
        "access_token": token,
        "token_type": "bearer",
    }


@router.post("/auth/logout", response_model=Message)
async def logout(response: Response) -> Any:
    """
    Clear the session cookie.
    """
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "Logged out"}


@router.get("/auth/session", response_model=SessionUser)
async def read_session(current_user: User = Depends(get_current_active_user)) -> Any:
    """
    Current session user, as stored in the database right now.
    """
    return current_user


@router.post("/auth/send-otp", response_model=OTPSent)
async def send_otp(
    user_in: SendOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Register an unverified account and email its verification code.
    """
    logger.info(f"OTP request: email={user_in.email}, role={user_in.role.value}")
    user = await start_verification(db, obj_in=user_in)
    return {"message": "OTP sent successfully", "email": user.email}


@router.post("/auth/signup", response_model=SignupResult)
async def signup(
    user_in: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Validate the full signup form, then start email verification.
    """
    logger.info(f"Signup attempt: email={user_in.email}, role={user_in.role.value}")
    user = await start_verification(db, obj_in=user_in)
    return {
        "message": "Registration initiated. Please check your email for the verification code.",
        "email": user.email,
        "requires_verification": True,
    }


@router.post("/auth/resend-otp", response_model=OTPSent)
async def resend_otp(
    request_in: ResendOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Issue a fresh verification code for an unverified account.
    """
    user = await resend_code(db, email=request_in.email)
    return {"message": "OTP resent successfully", "email": user.email}


@router.post("/auth/verify-otp", response_model=OTPVerified)
async def verify_otp(
    request_in: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Confirm an emailed verification code.
    """
    user = await confirm_code(db, email=request_in.email, otp=request_in.otp)
    return {"message": "Email verified successfully", "user": user}
