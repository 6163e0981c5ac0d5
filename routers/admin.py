"""
Admin Router
Influencer approval, payment tracking and on-demand timeout sweeps
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
import logging

from database.config import get_db
from database.models import User
from database.marketplace_models import InfluencerProfile
from schemas.marketplace import (
    CampaignResponse,
    InfluencerProfileResponse,
    InvitationResponse,
    PaymentUpdateRequest,
    PlanApprovalResponse,
)
from config.app_config import EXPIRY_BATCH_SIZE
from auth.roles import Permission
from auth.decorators import require_admin, require_permission
from services.errors import NotFoundError
from services.invitation_service import InvitationService
from services.notification_service import get_notification_service
from services.sweeper import SweepReport, expire_pending_invitations, auto_approve_proofs

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# INFLUENCER APPROVAL
# ============================================================================

@router.get("/influencers/pending", response_model=List[InfluencerProfileResponse])
async def get_pending_influencers(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin())
):
    return db.query(InfluencerProfile).filter(
        InfluencerProfile.is_approved == False
    ).order_by(InfluencerProfile.created_at).all()


@router.post("/influencers/{influencer_id}/approve", response_model=InfluencerProfileResponse)
async def approve_influencer(
    influencer_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.APPROVE_INFLUENCERS))
):
    """Make an influencer visible to matching."""
    profile = db.query(InfluencerProfile).filter(InfluencerProfile.id == influencer_id).first()
    if not profile:
        raise NotFoundError("Influencer not found")

    if not profile.is_approved:
        profile.is_approved = True
        get_notification_service(db).notify_profile_approved(profile.user_id)
        db.commit()
        db.refresh(profile)
        logging.info(f"[ADMIN] Influencer {influencer_id} approved by {current_user.email}")

    return profile


# ============================================================================
# PAYMENTS
# ============================================================================

@router.get("/payments/pending", response_model=List[InvitationResponse])
async def get_pending_payments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_PAYMENTS))
):
    """Invitations with an approved proof (explicit or auto) that are not paid yet."""
    return InvitationService(db).pending_payments()


@router.post("/invitations/{invitation_id}/payment", response_model=InvitationResponse)
async def set_payment_status(
    invitation_id: str,
    request: PaymentUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_PAYMENTS))
):
    return InvitationService(db).set_payment_completed(invitation_id, request.payment_completed)


# ============================================================================
# CAMPAIGN PAYMENTS
# ============================================================================

@router.get("/campaigns/payments/pending", response_model=List[CampaignResponse])
async def get_pending_campaign_payments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_PAYMENTS))
):
    """Campaigns whose owners submitted payment for their plan."""
    return InvitationService(db).pending_campaign_payments()


@router.post("/campaigns/{campaign_id}/approve-payment", response_model=PlanApprovalResponse)
async def approve_campaign_payment(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_PAYMENTS))
):
    """Approve a campaign payment and send the invitations it was holding back."""
    result = InvitationService(db).approve_campaign_payment(campaign_id)
    logging.info(f"[ADMIN] Campaign {campaign_id} payment approved by {current_user.email}")
    return result


# ============================================================================
# SWEEPS
# ============================================================================

@router.post("/sweeps/expire-invitations", response_model=SweepReport)
async def run_expiration_sweep(
    batch_size: int = Query(EXPIRY_BATCH_SIZE, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.RUN_SWEEPS))
):
    return expire_pending_invitations(db, batch_size=batch_size)


@router.post("/sweeps/auto-approve-proofs", response_model=SweepReport)
async def run_auto_approval_sweep(
    batch_size: int = Query(EXPIRY_BATCH_SIZE, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.RUN_SWEEPS))
):
    return auto_approve_proofs(db, batch_size=batch_size)
