"""
Email verification by one-time code.

An account moves from OTP_PENDING (code on file, ``email_verified`` null)
to EMAIL_VERIFIED once the emailed code is confirmed before it expires.
"""
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.core.errors import ConflictError, ExternalServiceError, InvalidRequestError, NotFoundError
from cbdra.core.security import generate_otp, generate_otp_expiry, otp_matches
from cbdra.crud.user import delete_user, get_user_by_email, save_pending_user, update_user
from cbdra.models import User
from cbdra.schemas import SendOTPRequest
from cbdra.services.email import EmailDeliveryError, send_otp_email

logger = logging.getLogger("cbdra.otp")

SEND_FAILED_MESSAGE = "Failed to send verification email. Please try again."


async def start_verification(db: AsyncSession, obj_in: SendOTPRequest) -> User:
    """
    Register (or re-register) an unverified account and email its code.

    Raises:
        ConflictError: the email belongs to an already verified account
        ExternalServiceError: the code could not be emailed; the account is removed
    """
    existing = await get_user_by_email(db, email=obj_in.email)
    if existing and existing.email_verified is not None:
        logger.warning(f"Registration rejected - email already verified: email={obj_in.email}")
        raise ConflictError("User with this email already exists")

    otp = generate_otp()
    user = await save_pending_user(
        db, obj_in=obj_in, otp=otp, otp_expiry=generate_otp_expiry(), db_obj=existing
    )

    try:
        await send_otp_email(user.email, otp, name=user.name)
    except EmailDeliveryError:
        await delete_user(db, id=user.id)
        logger.warning(f"Registration rolled back - OTP email failed: email={user.email}, user_id={user.id}")
        raise ExternalServiceError(SEND_FAILED_MESSAGE)

    logger.info(f"OTP issued: email={user.email}, user_id={user.id}, role={user.role.value}")
    return user


async def resend_code(db: AsyncSession, email: str) -> User:
    user = await get_user_by_email(db, email=email)
    if not user:
        raise NotFoundError("User not found")
    if user.email_verified is not None:
        raise InvalidRequestError("Email already verified")

    otp = generate_otp()
    user = await update_user(db, db_obj=user, obj_in={"otp": otp, "otp_expiry": generate_otp_expiry()})
    try:
        await send_otp_email(user.email, otp, name=user.name)
    except EmailDeliveryError:
        raise ExternalServiceError(SEND_FAILED_MESSAGE)

    logger.info(f"OTP re-issued: email={user.email}, user_id={user.id}")
    return user


async def confirm_code(db: AsyncSession, email: str, otp: str) -> User:
    """
    Check a submitted code and mark the email as verified.

    The stored code is cleared on success so it cannot be replayed.
    """
    user = await get_user_by_email(db, email=email)
    if not user:
        raise NotFoundError("User not found")
    if user.email_verified is not None:
        raise InvalidRequestError("Email already verified")
    if not user.otp or not user.otp_expiry:
        raise InvalidRequestError("No OTP found. Please request a new one.")

    now = datetime.utcnow()
    if now > user.otp_expiry:
        logger.info(f"OTP expired: email={user.email}, user_id={user.id}")
        raise InvalidRequestError("OTP has expired. Please request a new one.")
    if not otp_matches(user.otp, otp):
        logger.info(f"OTP mismatch: email={user.email}, user_id={user.id}")
        raise InvalidRequestError("Invalid OTP")

    user = await update_user(
        db, db_obj=user, obj_in={"email_verified": now, "otp": None, "otp_expiry": None}
    )
    logger.info(f"Email verified: email={user.email}, user_id={user.id}")
    return user
