# Matching Service for Ziyara Marketplace
# Runs influencer matching for a campaign and stores the plan as suggestions

from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from config.app_config import ALGORITHM_VERSION, DEFAULT_CAMPAIGN_CITY, PLATFORM_FEE_PERCENT
from core.matching import (
    CampaignContext,
    InfluencerCandidate,
    InfluencerScorer,
    MatchResult,
    ScoredInfluencer,
    build_strategy_summary,
    match_influencers,
)
from core.matching_constants import DEFAULT_PLATFORM, MatchingConfig
from core.scheduling import assign_influencer_dates
from database.marketplace_models import (
    Campaign, CampaignStatusDB,
    CampaignInfluencerSuggestion,
    InfluencerProfile,
)
from services.errors import ConflictError, NotFoundError, ScorerError


# Matching is refused once invitations are out
MATCHABLE_STATUSES = (
    CampaignStatusDB.DRAFT,
    CampaignStatusDB.WAITING_MATCH_PLAN,
    CampaignStatusDB.PLAN_READY,
)

PLATFORM_MATCHING_CONFIG = MatchingConfig(service_fee_percent=PLATFORM_FEE_PERCENT)


def _enum_value(value):
    return getattr(value, "value", value)


def profile_to_candidate(profile: InfluencerProfile) -> InfluencerCandidate:
    """Flatten an ORM profile into the plain values the matcher reads."""
    return InfluencerCandidate(
        id=profile.id,
        display_name=profile.display_name,
        city_served=profile.city_served,
        cities=profile.cities or [],
        content_type=profile.content_type,
        category=_enum_value(profile.category),
        avg_views_val=profile.avg_views_val,
        avg_views_tiktok=_enum_value(profile.avg_views_tiktok),
        avg_views_instagram=_enum_value(profile.avg_views_instagram),
        avg_views_snapchat=_enum_value(profile.avg_views_snapchat),
        accept_hospitality=profile.accept_hospitality,
        accept_paid=profile.accept_paid,
        min_price=profile.min_price,
        max_price=profile.max_price,
        type_label=profile.type_label,
        primary_platforms=profile.primary_platforms or [],
    )


def campaign_city(campaign: Campaign) -> str:
    if campaign.branch and campaign.branch.city:
        return campaign.branch.city
    return DEFAULT_CAMPAIGN_CITY


def suggestion_from_scored(campaign_id: str, scored: ScoredInfluencer, in_plan: bool,
                           scheduled_date) -> CampaignInfluencerSuggestion:
    """Snapshot a scored influencer as a suggestion row."""
    candidate = scored.candidate
    platforms = candidate.primary_platforms or []
    return CampaignInfluencerSuggestion(
        campaign_id=campaign_id,
        influencer_id=candidate.id,
        name=candidate.display_name,
        city_served=scored.matched_city,
        platform=platforms[0] if platforms else DEFAULT_PLATFORM,
        content_type=candidate.content_type or candidate.category,
        min_price=candidate.min_price,
        avg_views_val=scored.estimated_views,
        type_label=scored.type_label,
        match_score=scored.match_score,
        is_hospitality_bonus=scored.is_hospitality_bonus,
        in_plan=in_plan,
        selected=False,
        scheduled_date=scheduled_date,
    )


class MatchingService:
    """
    Produces a campaign's suggestion rows.

    The scorer is injectable; it defaults to the deterministic scorer.
    """

    def __init__(self, db: Session, scorer: Optional[InfluencerScorer] = None,
                 config: MatchingConfig = PLATFORM_MATCHING_CONFIG):
        self.db = db
        self.scorer = scorer
        self.config = config

    def load_pool(self) -> List[InfluencerCandidate]:
        profiles = self.db.query(InfluencerProfile).filter(
            InfluencerProfile.is_approved == True,
            InfluencerProfile.agreement_accepted == True
        ).all()
        return [profile_to_candidate(p) for p in profiles]

    def run_matching(self, campaign_id: str) -> Campaign:
        """
        Match influencers to a campaign and replace its suggestions.

        On scorer failure the campaign and its previous suggestions are left
        untouched and ScorerError is raised.
        """
        campaign = self.db.query(Campaign).filter(Campaign.id == campaign_id).first()
        if not campaign:
            raise NotFoundError("Campaign not found")
        if campaign.status not in MATCHABLE_STATUSES:
            raise ConflictError(f"Campaign cannot be matched in status {campaign.status.value}")
        if campaign.payment_submitted_at:
            raise ConflictError("Campaign plan was already submitted for payment")

        context = CampaignContext(
            id=campaign.id,
            budget=campaign.budget or 0,
            city=campaign_city(campaign),
            add_bonus_hospitality=bool(campaign.add_bonus_hospitality),
            goal=_enum_value(campaign.goal),
        )
        pool = self.load_pool()

        try:
            result = match_influencers(context, pool, scorer=self.scorer, config=self.config)
        except Exception as e:
            self.db.rollback()
            logging.error(f"[MATCH] Scorer failed for campaign {campaign_id}: {e}")
            raise ScorerError(f"Matching failed: {e}")

        try:
            self._store_suggestions(campaign, result)
            campaign.strategy_summary = build_strategy_summary(context.budget, result.plan, self.config)
            campaign.algorithm_version = ALGORITHM_VERSION
            campaign.status = CampaignStatusDB.PLAN_READY
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(campaign)
        logging.info(f"[MATCH] Campaign {campaign_id} plan ready: {len(result.plan)} in plan, "
                     f"{len(result.reserve)} reserve, fallback={result.used_fallback}")
        return campaign

    def _store_suggestions(self, campaign: Campaign, result: MatchResult):
        self.db.query(CampaignInfluencerSuggestion).filter(
            CampaignInfluencerSuggestion.campaign_id == campaign.id
        ).delete(synchronize_session=False)

        dates = assign_influencer_dates(len(result.plan), campaign.start_date, campaign.duration_days)
        for scored, visit_date in zip(result.plan, dates):
            self.db.add(suggestion_from_scored(campaign.id, scored, in_plan=True, scheduled_date=visit_date))
        for scored in result.reserve:
            self.db.add(suggestion_from_scored(campaign.id, scored, in_plan=False, scheduled_date=None))
        self.db.flush()
