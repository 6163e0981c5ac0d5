"""Tests for running matching against the database."""

from datetime import date

import pytest

from core.matching import InfluencerScorer
from database.marketplace_models import (
    CampaignInfluencerSuggestion,
    CampaignStatusDB,
    InfluencerCategoryDB,
)
from services.errors import ConflictError, NotFoundError, ScorerError
from services.matching_service import MatchingService

RIYADH = "الرياض"


class ExplodingScorer(InfluencerScorer):
    def score_pool(self, context, candidates):
        raise RuntimeError("provider unavailable")


@pytest.fixture
def pool(make_influencer):
    return {
        "a": make_influencer("A", min_price=2000, avg_views_val=100_000),
        "b": make_influencer("B", min_price=1500, category=InfluencerCategoryDB.LIFESTYLE, avg_views_val=50_000),
        "c": make_influencer("C", min_price=1000, avg_views_val=10_000),
        "d": make_influencer("D", min_price=None, category=InfluencerCategoryDB.GENERAL,
                             avg_views_val=20_000, accept_hospitality=True),
        "e": make_influencer("E", city="Jeddah", min_price=500, avg_views_val=5_000),
    }


def suggestions_for(db_session, campaign):
    return db_session.query(CampaignInfluencerSuggestion).filter(
        CampaignInfluencerSuggestion.campaign_id == campaign.id
    ).order_by(CampaignInfluencerSuggestion.match_score.desc()).all()


class TestRunMatching:

    def test_stores_plan_and_reserve(self, db_session, owner, make_campaign, pool):
        campaign = make_campaign(owner, budget=3500, status=CampaignStatusDB.WAITING_MATCH_PLAN,
                                 start_date=date(2026, 4, 1), duration_days=10,
                                 add_bonus_hospitality=True)

        result = MatchingService(db_session).run_matching(campaign.id)

        assert result.status == CampaignStatusDB.PLAN_READY
        assert result.algorithm_version == "v2.0"
        assert result.strategy_summary["total_cost"] == 3000
        assert result.strategy_summary["service_fee"] == 450

        rows = suggestions_for(db_session, campaign)
        plan = {r.influencer_id for r in rows if r.in_plan}
        reserve = {r.influencer_id for r in rows if not r.in_plan}
        assert plan == {pool["a"].id, pool["c"].id, pool["d"].id}
        assert reserve == {pool["b"].id}

    def test_plan_rows_get_spread_dates(self, db_session, owner, make_campaign, pool):
        campaign = make_campaign(owner, budget=3500, start_date=date(2026, 4, 1), duration_days=10,
                                 add_bonus_hospitality=True)
        MatchingService(db_session).run_matching(campaign.id)

        rows = suggestions_for(db_session, campaign)
        plan_dates = sorted(r.scheduled_date for r in rows if r.in_plan)
        assert plan_dates == [date(2026, 4, 1), date(2026, 4, 6), date(2026, 4, 10)]
        assert all(r.scheduled_date is None for r in rows if not r.in_plan)

    def test_snapshot_fields(self, db_session, owner, make_campaign, pool):
        campaign = make_campaign(owner, budget=2000)
        MatchingService(db_session).run_matching(campaign.id)

        top = suggestions_for(db_session, campaign)[0]
        assert top.influencer_id == pool["a"].id
        assert top.name == "A"
        assert top.platform == "Instagram"
        assert top.match_score == 100
        assert top.type_label == "Paid"
        assert top.avg_views_val == 100_000
        assert top.selected is False

    def test_unapproved_influencers_are_not_considered(self, db_session, owner, make_campaign,
                                                       make_influencer, pool):
        hidden = make_influencer("Hidden", min_price=100, avg_views_val=900_000, is_approved=False)
        unsigned = make_influencer("Unsigned", min_price=100, avg_views_val=900_000, agreement_accepted=False)
        campaign = make_campaign(owner, budget=10_000)

        MatchingService(db_session).run_matching(campaign.id)

        ids = {r.influencer_id for r in suggestions_for(db_session, campaign)}
        assert hidden.id not in ids
        assert unsigned.id not in ids

    def test_rerun_replaces_previous_suggestions(self, db_session, owner, make_campaign, pool):
        campaign = make_campaign(owner, budget=3500)
        service = MatchingService(db_session)

        service.run_matching(campaign.id)
        first = len(suggestions_for(db_session, campaign))
        service.run_matching(campaign.id)

        assert len(suggestions_for(db_session, campaign)) == first

    def test_scorer_failure_leaves_campaign_untouched(self, db_session, owner, make_campaign, pool):
        campaign = make_campaign(owner, budget=3500, status=CampaignStatusDB.WAITING_MATCH_PLAN)
        MatchingService(db_session).run_matching(campaign.id)
        campaign.status = CampaignStatusDB.WAITING_MATCH_PLAN
        db_session.commit()
        before = {r.id for r in suggestions_for(db_session, campaign)}

        with pytest.raises(ScorerError) as exc:
            MatchingService(db_session, scorer=ExplodingScorer()).run_matching(campaign.id)

        assert exc.value.status_code == 502
        db_session.refresh(campaign)
        assert campaign.status == CampaignStatusDB.WAITING_MATCH_PLAN
        assert {r.id for r in suggestions_for(db_session, campaign)} == before

    def test_campaign_without_branch_uses_default_city(self, db_session, owner, make_campaign, pool):
        campaign = make_campaign(owner, budget=2000, city=None)
        MatchingService(db_session).run_matching(campaign.id)

        ids = {r.influencer_id for r in suggestions_for(db_session, campaign)}
        assert pool["a"].id in ids
        assert pool["e"].id not in ids

    def test_missing_campaign(self, db_session):
        with pytest.raises(NotFoundError):
            MatchingService(db_session).run_matching("nope")

    def test_refused_once_invitations_are_out(self, db_session, owner, make_campaign, pool):
        campaign = make_campaign(owner, status=CampaignStatusDB.IN_PROGRESS)

        with pytest.raises(ConflictError):
            MatchingService(db_session).run_matching(campaign.id)
