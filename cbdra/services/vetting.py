import logging

from sqlalchemy.ext.asyncio import AsyncSession

from cbdra.core.errors import InvalidRequestError, NotFoundError
from cbdra.crud.user import get_user, update_user
from cbdra.models import RESPONDER_ROLES, NotificationType, User
from cbdra.schemas import VetDecision
from cbdra.services.notifications import notify

logger = logging.getLogger("cbdra.vetting")


def resolve_decision(decision: VetDecision, verified: bool) -> VetDecision:
    """Map the ACCEPT/DECLINE aliases onto APPROVE/REJECT/REVOKE."""
    if decision == VetDecision.ACCEPT:
        return VetDecision.APPROVE
    if decision == VetDecision.DECLINE:
        return VetDecision.REVOKE if verified else VetDecision.REJECT
    return decision


async def vet_user(db: AsyncSession, user_id: int, decision: VetDecision, admin: User) -> str:
    """
    Approve, reject or revoke a responder's vetting.

    Returns the resulting status label: ``verified``, ``declined`` or ``revoked``.
    """
    user = await get_user(db, id=user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.role not in RESPONDER_ROLES:
        raise InvalidRequestError("User role not eligible for vetting")

    decision = resolve_decision(decision, user.verified)

    if decision == VetDecision.APPROVE:
        if user.verified:
            raise InvalidRequestError("User already verified")
        await update_user(db, db_obj=user, obj_in={"verified": True})
        await notify(
            db,
            user_id=user.id,
            title="Verification Approved",
            message="Your account has been verified by the administrator.",
            type=NotificationType.SUCCESS,
        )
        result = "verified"
    elif decision == VetDecision.REJECT:
        if user.verified:
            raise InvalidRequestError("User already verified; revoke instead")
        await notify(
            db,
            user_id=user.id,
            title="Verification Declined",
            message="Your verification request was declined by the administrator.",
            type=NotificationType.ALERT,
        )
        result = "declined"
    else:
        if not user.verified:
            raise InvalidRequestError("User is not verified")
        await update_user(db, db_obj=user, obj_in={"verified": False})
        await notify(
            db,
            user_id=user.id,
            title="Verification Revoked",
            message="Your verification status has been revoked by the administrator.",
            type=NotificationType.ALERT,
        )
        result = "revoked"

    logger.info(f"User vetted: user_id={user.id}, decision={decision.value}, status={result}, by={admin.id}")
    return result
