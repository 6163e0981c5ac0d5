# Proof of Work Router for Ziyara Marketplace
# Handles proof submission by influencers and review by campaign owners

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.config import get_db
from database.models import User
from schemas.marketplace import (
    InvitationResponse,
    ProofSubmitRequest,
    ProofReviewRequest,
    ProofStatusResponse,
)
from auth.roles import UserType as UserTypeRole
from auth.decorators import require_user_type, get_user_type
from services.errors import PermissionDeniedError
from services.invitation_service import InvitationService, is_proof_approved

router = APIRouter(prefix="/proof-of-work", tags=["Proof of Work"])


# ============================================================================
# INFLUENCER ENDPOINTS
# ============================================================================

@router.post("/{invitation_id}/submit", response_model=InvitationResponse)
async def submit_proof(
    invitation_id: str,
    request: ProofSubmitRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.INFLUENCER))
):
    """
    Submit the content URL for an accepted invitation.
    Also used to resubmit after a rejection.
    """
    return InvitationService(db).submit_proof(invitation_id, current_user, request.proof_url)


# ============================================================================
# OWNER ENDPOINTS
# ============================================================================

@router.post("/{invitation_id}/review", response_model=InvitationResponse)
async def review_proof(
    invitation_id: str,
    request: ProofReviewRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER))
):
    service = InvitationService(db)
    if request.approved:
        return service.approve_proof(invitation_id, current_user)
    return service.reject_proof(invitation_id, current_user, request.rejection_reason)


@router.get("/{invitation_id}/status", response_model=ProofStatusResponse)
async def get_proof_status(
    invitation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER, UserTypeRole.INFLUENCER))
):
    """Proof state with payment eligibility, counting the auto-approval window."""
    invitation = InvitationService(db).get_invitation(invitation_id)

    is_party = current_user.id in (invitation.campaign.owner_id, invitation.influencer.user_id)
    if not is_party and get_user_type(current_user) != UserTypeRole.ADMIN:
        raise PermissionDeniedError("You are not part of this invitation")

    approved = is_proof_approved(invitation)
    return ProofStatusResponse(
        invitation_id=invitation.id,
        proof_status=invitation.proof_status.value,
        proof_url=invitation.proof_url,
        proof_submitted_at=invitation.proof_submitted_at,
        is_approved=approved,
        auto_approved=bool(invitation.proof_auto_approved) or (
            approved and invitation.proof_approved_at is None
        ),
        payment_completed=bool(invitation.payment_completed),
    )
