# Campaigns Router for Ziyara Marketplace
# Campaign creation, influencer matching and suggestion approval

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database.config import get_db
from database.models import User, Branch
from database.marketplace_models import (
    Campaign, CampaignStatusDB, CampaignGoalDB,
    CampaignInfluencerSuggestion,
    InfluencerInvitation,
)
from schemas.marketplace import (
    CampaignCreate,
    CampaignResponse,
    SuggestionResponse,
    ApproveSuggestionRequest,
    ApproveAllRequest,
    InvitationResponse,
    PlanApprovalResponse,
)
from auth.roles import UserType as UserTypeRole
from auth.decorators import require_user_type
from core.matching import InfluencerScorer, format_views_count
from services.campaign_guard import remaining_budget
from services.errors import NotFoundError, ValidationError
from services.invitation_service import InvitationService
from services.matching_service import MatchingService

router = APIRouter(prefix="/campaigns", tags=["Campaigns"])

from config.app_config import MIN_CAMPAIGN_BUDGET


def get_scorer() -> Optional[InfluencerScorer]:
    """Scorer used by the matching endpoint. None selects the deterministic default."""
    return None


def _suggestion_response(suggestion: CampaignInfluencerSuggestion) -> SuggestionResponse:
    response = SuggestionResponse.model_validate(suggestion)
    response.views_display = format_views_count(suggestion.avg_views_val)
    return response


# ============================================================================
# OWNER ENDPOINTS (Create & Match)
# ============================================================================

@router.post("", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    campaign_data: CampaignCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER))
):
    """Create a campaign awaiting its match plan."""
    if campaign_data.budget < MIN_CAMPAIGN_BUDGET:
        raise ValidationError(f"Campaign budget must be at least {MIN_CAMPAIGN_BUDGET} SAR")

    if campaign_data.branch_id:
        branch = db.query(Branch).filter(
            Branch.id == campaign_data.branch_id,
            Branch.owner_id == current_user.id
        ).first()
        if not branch:
            raise NotFoundError("Branch not found")

    campaign = Campaign(
        owner_id=current_user.id,
        branch_id=campaign_data.branch_id,
        title=campaign_data.title,
        description=campaign_data.description,
        content_requirements=campaign_data.content_requirements,
        goal=CampaignGoalDB(campaign_data.goal.value) if campaign_data.goal else None,
        budget=campaign_data.budget,
        status=CampaignStatusDB.WAITING_MATCH_PLAN,
        start_date=campaign_data.start_date,
        duration_days=campaign_data.duration_days,
        add_bonus_hospitality=campaign_data.add_bonus_hospitality,
    )
    db.add(campaign)
    db.commit()
    db.refresh(campaign)

    logging.info(f"[CAMPAIGN] Created campaign {campaign.id} with budget {campaign.budget} SAR")
    return campaign


@router.get("/{campaign_id}")
async def get_campaign(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER))
):
    """Campaign detail with its strategy summary and live remaining budget."""
    campaign = InvitationService(db).get_owned_campaign(campaign_id, current_user)
    return {
        "campaign": CampaignResponse.model_validate(campaign),
        "remaining_budget": remaining_budget(db, campaign),
    }


@router.post("/{campaign_id}/match", response_model=CampaignResponse)
async def run_matching(
    campaign_id: str,
    db: Session = Depends(get_db),
    scorer: Optional[InfluencerScorer] = Depends(get_scorer),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER))
):
    """Match influencers to the campaign. Re-running replaces the previous suggestions."""
    InvitationService(db).get_owned_campaign(campaign_id, current_user)
    return MatchingService(db, scorer=scorer).run_matching(campaign_id)


@router.get("/{campaign_id}/suggestions", response_model=List[SuggestionResponse])
async def list_suggestions(
    campaign_id: str,
    in_plan: Optional[bool] = Query(None, description="Only plan (true) or reserve (false) rows"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER))
):
    InvitationService(db).get_owned_campaign(campaign_id, current_user)

    query = db.query(CampaignInfluencerSuggestion).filter(
        CampaignInfluencerSuggestion.campaign_id == campaign_id
    )
    if in_plan is not None:
        query = query.filter(CampaignInfluencerSuggestion.in_plan == in_plan)

    suggestions = query.order_by(CampaignInfluencerSuggestion.match_score.desc()).all()
    return [_suggestion_response(s) for s in suggestions]


# ============================================================================
# APPROVAL ENDPOINTS (Suggestions -> Invitations)
# ============================================================================

@router.post("/{campaign_id}/suggestions/{suggestion_id}/approve",
             response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
async def approve_suggestion(
    campaign_id: str,
    suggestion_id: str,
    request: ApproveSuggestionRequest = ApproveSuggestionRequest(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER))
):
    return InvitationService(db).approve_suggestion(
        campaign_id, suggestion_id, current_user, scheduled_date=request.scheduled_date
    )


@router.post("/{campaign_id}/approve-all", response_model=PlanApprovalResponse)
async def approve_all(
    campaign_id: str,
    request: ApproveAllRequest = ApproveAllRequest(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER))
):
    """
    Approve the whole plan. An unpaid campaign is submitted for payment and
    its invitations go out once an admin approves it.
    """
    service = InvitationService(db)
    invitations = service.approve_all(
        campaign_id, current_user, date_overrides=request.scheduled_dates
    )
    return {
        "campaign": service.get_owned_campaign(campaign_id, current_user),
        "invitations": invitations,
    }


@router.get("/{campaign_id}/invitations", response_model=List[InvitationResponse])
async def list_campaign_invitations(
    campaign_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.OWNER))
):
    InvitationService(db).get_owned_campaign(campaign_id, current_user)
    return db.query(InfluencerInvitation).filter(
        InfluencerInvitation.campaign_id == campaign_id
    ).order_by(InfluencerInvitation.created_at).all()
