# Replacement Service for Ziyara Marketplace
# Finds and invites a substitute when an influencer declines or lets an invitation expire

from sqlalchemy.orm import Session
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel
import logging

from core.matching import CampaignContext, DeterministicScorer, influencer_serves_city
from core.matching_constants import TYPE_LABEL_PAID
from core.scheduling import next_visit_date
from database.marketplace_models import (
    Campaign,
    CampaignInfluencerSuggestion,
    InfluencerInvitation, InvitationStatusDB,
    InfluencerProfile,
)
from services.campaign_guard import (
    BUDGET_HOLDING_STATUSES,
    campaign_lock,
    invited_influencer_ids,
    lock_campaign,
    remaining_budget,
)
from services.errors import ConflictError, NotFoundError
from services.matching_service import (
    PLATFORM_MATCHING_CONFIG,
    MatchingService,
    campaign_city,
    suggestion_from_scored,
)
from services.notification_service import NotificationService


class ReplacementInfo(BaseModel):
    invitation_id: str
    influencer_id: str
    name: Optional[str] = None
    cost: int = 0
    offered_price: Optional[int] = None
    match_score: float = 0.0
    scheduled_date: Optional[date] = None


class ReplacementResult(BaseModel):
    replaced: bool
    replacement: Optional[ReplacementInfo] = None
    remaining_budget: int
    message: Optional[str] = None


NO_CANDIDATE_MESSAGE = "No available influencer fits the remaining budget"


def candidate_order(suggestion: CampaignInfluencerSuggestion):
    """Best score first, then lower cost, then the earlier suggestion."""
    return (
        -(suggestion.match_score or 0.0),
        suggestion.cost,
        suggestion.created_at or datetime.min,
    )


class ReplacementService:
    """
    Replaces a declined invitation with the best affordable reserve suggestion,
    or failing that with a new approved influencer from the campaign city.

    Runs under the campaign lock, and a replacement is linked to the
    invitation it substitutes so a second call returns the first result.
    """

    def __init__(self, db: Session, notifier: Optional[NotificationService] = None):
        self.db = db
        self.notifier = notifier or NotificationService(db)

    def handle_rejection(self, campaign_id: str, rejected_influencer_id: str,
                         now: Optional[datetime] = None) -> ReplacementResult:
        now = now or datetime.utcnow()
        logging.info(f"[REPLACE] Campaign {campaign_id}: handling rejection of influencer {rejected_influencer_id}")

        with campaign_lock(campaign_id):
            try:
                result = self._replace(campaign_id, rejected_influencer_id, now)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        if result.replaced:
            logging.info(f"[REPLACE] Campaign {campaign_id}: invited {result.replacement.influencer_id}, "
                         f"remaining budget {result.remaining_budget}")
        else:
            logging.info(f"[REPLACE] Campaign {campaign_id}: {result.message}")
        return result

    def _replace(self, campaign_id: str, rejected_influencer_id: str, now: datetime) -> ReplacementResult:
        campaign = lock_campaign(self.db, campaign_id)

        rejected = self.db.query(InfluencerInvitation).filter(
            InfluencerInvitation.campaign_id == campaign_id,
            InfluencerInvitation.influencer_id == rejected_influencer_id
        ).first()
        if not rejected:
            raise NotFoundError("Rejected invitation not found")
        if rejected.status in BUDGET_HOLDING_STATUSES:
            raise ConflictError("Invitation has not been declined")

        existing = self.db.query(InfluencerInvitation).filter(
            InfluencerInvitation.replaces_invitation_id == rejected.id
        ).first()
        if existing:
            logging.info(f"[REPLACE] Invitation {rejected.id} already replaced by {existing.id}")
            return self._result(campaign, existing)

        budget_left = remaining_budget(self.db, campaign)
        already_invited = invited_influencer_ids(self.db, campaign_id)

        suggestions = self.db.query(CampaignInfluencerSuggestion).filter(
            CampaignInfluencerSuggestion.campaign_id == campaign_id,
            CampaignInfluencerSuggestion.selected == False
        ).all()
        candidates = sorted(
            [s for s in suggestions if s.influencer_id not in already_invited],
            key=candidate_order
        )

        chosen = next((s for s in candidates if s.cost <= budget_left), None)
        if chosen:
            updated = self.db.query(CampaignInfluencerSuggestion).filter(
                CampaignInfluencerSuggestion.id == chosen.id,
                CampaignInfluencerSuggestion.selected == False
            ).update({"selected": True}, synchronize_session=False)
            if updated == 0:
                raise ConflictError("Suggestion was selected concurrently")
        else:
            chosen = self._suggest_new_influencer(campaign, budget_left, already_invited)

        if not chosen:
            return ReplacementResult(
                replaced=False,
                remaining_budget=budget_left,
                message=NO_CANDIDATE_MESSAGE if candidates else "No more suggested influencers for this campaign",
            )

        if chosen.scheduled_date is None:
            chosen.scheduled_date = self._next_free_date(campaign)

        invitation = InfluencerInvitation(
            campaign_id=campaign_id,
            influencer_id=chosen.influencer_id,
            replaces_invitation_id=rejected.id,
            status=InvitationStatusDB.PENDING,
            scheduled_date=chosen.scheduled_date,
            offered_price=chosen.cost or None,
            created_at=now,
        )
        self.db.add(invitation)
        self.db.flush()

        profile = self.db.query(InfluencerProfile).filter(InfluencerProfile.id == chosen.influencer_id).first()
        if profile:
            self.notifier.notify_invitation_received(
                profile.user_id, campaign.title, invitation.id,
                invitation.offered_price, invitation.scheduled_date
            )
        self.notifier.notify_replacement_invited(campaign.owner_id, campaign_id, chosen.name)

        return self._result(campaign, invitation, chosen)

    def _suggest_new_influencer(self, campaign: Campaign, budget_left: int,
                                already_invited: set) -> Optional[CampaignInfluencerSuggestion]:
        """
        Look past the stored suggestions when none of them is affordable.

        Every approved influencer serving the campaign city who was never
        invited or suggested is scored. Hospitality-only influencers count
        only when the campaign takes a hospitality bonus. The best affordable
        one is stored as a selected suggestion.
        """
        suggested = {row[0] for row in self.db.query(CampaignInfluencerSuggestion.influencer_id).filter(
            CampaignInfluencerSuggestion.campaign_id == campaign.id
        ).all()}
        excluded = already_invited | suggested

        city = campaign_city(campaign)
        pool = [
            c for c in MatchingService(self.db).load_pool()
            if c.id not in excluded and influencer_serves_city(c, city)
        ]
        if not pool:
            logging.info(f"[REPLACE] Campaign {campaign.id}: no new influencers serve {city}")
            return None

        context = CampaignContext(
            id=campaign.id,
            budget=budget_left,
            city=city,
            add_bonus_hospitality=bool(campaign.add_bonus_hospitality),
        )
        scored = DeterministicScorer(PLATFORM_MATCHING_CONFIG).score_pool(context, pool)
        if not campaign.add_bonus_hospitality:
            scored = [s for s in scored if s.type_label == TYPE_LABEL_PAID and s.cost > 0]
        affordable = sorted(
            [s for s in scored if s.cost <= budget_left],
            key=lambda s: (-s.match_score, s.cost, s.candidate.id)
        )
        if not affordable:
            return None

        suggestion = suggestion_from_scored(campaign.id, affordable[0], in_plan=False, scheduled_date=None)
        suggestion.selected = True
        self.db.add(suggestion)
        self.db.flush()
        logging.info(f"[REPLACE] Campaign {campaign.id}: found new influencer {suggestion.influencer_id} "
                     f"outside the stored suggestions ({len(pool)} searched)")
        return suggestion

    def _next_free_date(self, campaign: Campaign) -> Optional[date]:
        booked = self.db.query(InfluencerInvitation.scheduled_date).filter(
            InfluencerInvitation.campaign_id == campaign.id,
            InfluencerInvitation.status.in_(BUDGET_HOLDING_STATUSES)
        ).all()
        return next_visit_date(campaign.start_date, campaign.duration_days, [row[0] for row in booked])

    def _result(self, campaign: Campaign, invitation: InfluencerInvitation,
                suggestion: Optional[CampaignInfluencerSuggestion] = None) -> ReplacementResult:
        if suggestion is None:
            suggestion = self.db.query(CampaignInfluencerSuggestion).filter(
                CampaignInfluencerSuggestion.campaign_id == campaign.id,
                CampaignInfluencerSuggestion.influencer_id == invitation.influencer_id
            ).first()

        return ReplacementResult(
            replaced=True,
            replacement=ReplacementInfo(
                invitation_id=invitation.id,
                influencer_id=invitation.influencer_id,
                name=suggestion.name if suggestion else None,
                cost=suggestion.cost if suggestion else (invitation.offered_price or 0),
                offered_price=invitation.offered_price,
                match_score=suggestion.match_score if suggestion else 0.0,
                scheduled_date=invitation.scheduled_date,
            ),
            remaining_budget=remaining_budget(self.db, campaign),
        )
