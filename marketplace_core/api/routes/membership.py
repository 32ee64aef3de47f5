"""Membership and creator status for the calling user."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from marketplace_core.api.dependencies import get_audit_logger, get_current_user_id, get_evaluator
from marketplace_core.entitlements.service import EntitlementEvaluator
from marketplace_core.platform.audit import AuditAction, AuditLogger

router = APIRouter(prefix="/api/membership", tags=["membership"])


class MembershipStatusResponse(BaseModel):
    is_active_member: bool
    is_eligible_creator: bool


@router.get("/status", response_model=MembershipStatusResponse)
async def get_membership_status(
    user_id: str = Depends(get_current_user_id),
    evaluator: EntitlementEvaluator = Depends(get_evaluator),
    audit: AuditLogger = Depends(get_audit_logger),
):
    creator = evaluator.evaluate_creator(user_id)
    is_member = creator.allowed or creator.reason == "creator_disabled"
    audit.record(
        user_id,
        AuditAction.CREATOR_CHECK,
        "profile",
        creator.profile_id,
        {"allowed": creator.allowed, "reason": creator.reason},
    )
    return MembershipStatusResponse(
        is_active_member=is_member,
        is_eligible_creator=creator.allowed,
    )
