# Invitations Router for Ziyara Marketplace
# Influencer side of the invitation lifecycle: list, accept, decline

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from database.config import get_db
from database.models import User
from database.marketplace_models import InfluencerProfile, InfluencerInvitation
from schemas.marketplace import InvitationResponse
from auth.roles import UserType as UserTypeRole
from auth.decorators import require_user_type, require_influencer_profile
from services.invitation_service import InvitationService

router = APIRouter(prefix="/invitations", tags=["Invitations"])


@router.get("/mine", response_model=List[InvitationResponse])
async def list_my_invitations(
    db: Session = Depends(get_db),
    profile: InfluencerProfile = Depends(require_influencer_profile())
):
    return db.query(InfluencerInvitation).filter(
        InfluencerInvitation.influencer_id == profile.id
    ).order_by(InfluencerInvitation.created_at.desc()).all()


@router.post("/{invitation_id}/accept", response_model=InvitationResponse)
async def accept_invitation(
    invitation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.INFLUENCER))
):
    """Accept a pending invitation. Next steps: visit, record, upload proof, get paid."""
    return InvitationService(db).accept(invitation_id, current_user)


@router.post("/{invitation_id}/decline")
async def decline_invitation(
    invitation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.INFLUENCER))
):
    """Decline a pending invitation. A replacement is looked for immediately."""
    outcome = InvitationService(db).decline(invitation_id, current_user)
    return {
        "invitation": InvitationResponse.model_validate(outcome["invitation"]),
        "replacement": outcome["replacement"],
    }
