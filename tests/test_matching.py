"""Tests for the pure matching helpers, the deterministic scorer and plan selection."""

import pytest

from core.matching import (
    CampaignContext,
    DeterministicScorer,
    InfluencerCandidate,
    InfluencerScorer,
    ScoredInfluencer,
    build_strategy_summary,
    cities_match,
    content_type_weight,
    determine_type_label,
    estimate_views,
    format_views_count,
    get_numeric_views,
    influencer_serves_city,
    match_influencers,
    normalize_city,
    reach_score,
)
from core.matching_constants import DEFAULT_MATCHING_CONFIG, MatchingConfig
from database.marketplace_models import AvgRangeDB

RIYADH = "الرياض"

CITY_SAMPLES = [
    "الرياض", "رياض", "Riyadh", "  riyadh ", "RIYADH", "جده", "Jeddah", "مكه", "Makkah",
    "Al Khobar", "Unknown Town", "  Springfield  ", "", "جيزان", "حايل",
]


def candidate(id, city=RIYADH, min_price=1000, category="food_reviews", views=None, **kwargs):
    return InfluencerCandidate(
        id=id,
        display_name=id.upper(),
        city_served=city,
        cities=[city] if city else [],
        category=category,
        min_price=min_price,
        avg_views_val=views,
        **kwargs
    )


class TestCityNormalizer:
    """City name normalization."""

    @pytest.mark.parametrize("variant", ["الرياض", "رياض", "Riyadh", "riyadh", " RIYADH "])
    def test_riyadh_variants_map_to_canonical(self, variant):
        assert normalize_city(variant) == RIYADH

    def test_jeddah_spellings(self):
        assert normalize_city("جده") == "جدة"
        assert normalize_city("Jidda") == "جدة"

    def test_unknown_city_passes_through_trimmed(self):
        assert normalize_city("  Springfield  ") == "Springfield"

    def test_no_partial_matching(self):
        assert normalize_city("Riyadh North") == "Riyadh North"

    def test_missing_city_is_empty(self):
        assert normalize_city(None) == ""
        assert normalize_city("") == ""

    @pytest.mark.parametrize("city", CITY_SAMPLES)
    def test_normalize_is_idempotent(self, city):
        once = normalize_city(city)
        assert normalize_city(once) == once

    @pytest.mark.parametrize("a", CITY_SAMPLES)
    @pytest.mark.parametrize("b", ["Riyadh", "جدة", "Springfield", ""])
    def test_cities_match_is_symmetric(self, a, b):
        assert cities_match(a, b) == cities_match(b, a)

    def test_cities_match_across_languages(self):
        assert cities_match("Dammam", "الدمام")
        assert not cities_match("Dammam", "Riyadh")

    def test_influencer_serves_city_checks_city_list(self):
        profile = InfluencerCandidate(id="x", city_served="Jeddah", cities=["جدة", "riyadh"])
        assert influencer_serves_city(profile, RIYADH)
        assert not influencer_serves_city(profile, "تبوك")


class TestViewCountEstimator:
    """Numeric view estimation and display formatting."""

    @pytest.mark.parametrize("views_range", [None, "0-10k", "500k+", "unknown"])
    @pytest.mark.parametrize("override", [1, 999, 42_000, 3_000_000])
    def test_positive_override_always_wins(self, override, views_range):
        assert get_numeric_views(override, views_range) == override

    def test_known_range_returns_midpoint(self):
        assert get_numeric_views(None, "50k-100k") == 75000
        assert get_numeric_views(0, "10k-50k") == 30000

    def test_unknown_range_returns_default(self):
        assert get_numeric_views(None, "unknown") == 5000
        assert get_numeric_views(None, None) == 5000

    def test_enum_member_range(self):
        assert get_numeric_views(None, AvgRangeDB.RANGE_100K_500K) == 300000

    def test_estimate_prefers_tiktok_range(self):
        profile = InfluencerCandidate(id="x", avg_views_tiktok="500k+", avg_views_instagram="0-10k")
        assert estimate_views(profile) == 750000

    @pytest.mark.parametrize("views,expected", [
        (1_200_000, "1.2M"),
        (1_250_000, "1.3M"),
        (1_000_000, "1.0M"),
        (50_000, "50K"),
        (1_500, "2K"),
        (999, "999"),
        (0, "—"),
        (-5, "—"),
        (None, "—"),
    ])
    def test_format_views_count(self, views, expected):
        assert format_views_count(views) == expected


class TestDeterministicScorer:
    """Content weight plus linear reach."""

    def test_content_weights(self):
        assert content_type_weight(None, "food_reviews") == 40
        assert content_type_weight("مراجعات مطاعم", None) == 40
        assert content_type_weight(None, "lifestyle") == 15
        assert content_type_weight("سفر", "general") == 5
        assert content_type_weight(None, "comedy") == 0
        assert content_type_weight(None, None) == 0

    def test_content_type_is_checked_before_category(self):
        assert content_type_weight("lifestyle vlogs", "food_reviews") == 15

    def test_reach_is_linear_and_capped(self):
        assert reach_score(50_000, 100_000) == 30
        assert reach_score(100_000, 100_000) == 60
        assert reach_score(200_000, 100_000) == 60
        assert reach_score(10, 0) == 0

    def test_top_food_influencer_scores_100(self):
        scorer = DeterministicScorer()
        assert scorer.score(candidate("a", views=100_000), 100_000) == 100

    def test_score_is_rounded_to_two_decimals(self):
        scorer = DeterministicScorer()
        assert scorer.score(candidate("a", category="general", views=1), 3) == 20.0
        assert scorer.score(candidate("b", category="general", views=1), 7) == 8.57

    def test_custom_config(self):
        config = MatchingConfig(food_reviews_weight=10, max_reach_score=90)
        scorer = DeterministicScorer(config)
        assert scorer.score(candidate("a", views=100), 100) == 100

    def test_config_is_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_MATCHING_CONFIG.food_reviews_weight = 1


class TestTypeLabel:
    def test_explicit_labels(self):
        assert determine_type_label(InfluencerCandidate(id="x", type_label="ضيافة", min_price=500)) == "Hospitality"
        assert determine_type_label(InfluencerCandidate(id="x", type_label="Paid collab")) == "Paid"

    def test_priced_influencer_is_paid(self):
        assert determine_type_label(InfluencerCandidate(id="x", min_price=800, accept_hospitality=True)) == "Paid"

    def test_free_influencer_accepting_hospitality(self):
        assert determine_type_label(InfluencerCandidate(id="x", min_price=0, accept_hospitality=True)) == "Hospitality"

    def test_defaults_to_paid(self):
        assert determine_type_label(InfluencerCandidate(id="x")) == "Paid"


class TestMatchInfluencers:
    """Budget-constrained plan selection."""

    @pytest.fixture
    def pool(self):
        return [
            candidate("a", min_price=2000, views=100_000),                     # 100
            candidate("b", min_price=1500, category="lifestyle", views=50_000),  # 45
            candidate("c", min_price=1000, views=10_000),                      # 46
            candidate("d", min_price=None, category="general", views=20_000, accept_hospitality=True),  # 12
            candidate("e", city="Jeddah", min_price=500, views=5_000),
        ]

    def context(self, **kwargs):
        values = {"id": "camp-1", "budget": 3500, "city": "Riyadh"}
        values.update(kwargs)
        return CampaignContext(**values)

    def test_greedy_paid_selection_within_budget(self, pool):
        result = match_influencers(self.context(), pool)

        assert [s.candidate.id for s in result.plan] == ["a", "c"]
        assert [s.candidate.id for s in result.reserve] == ["b"]
        assert not result.used_fallback

    def test_influencers_outside_city_are_ignored(self, pool):
        result = match_influencers(self.context(budget=100_000), pool)
        ids = {s.candidate.id for s in result.plan + result.reserve}
        assert "e" not in ids

    def test_hospitality_bonus_appended_regardless_of_budget(self, pool):
        result = match_influencers(self.context(budget=3000, add_bonus_hospitality=True), pool)

        assert [s.candidate.id for s in result.plan] == ["a", "c", "d"]
        bonus = result.plan[-1]
        assert bonus.is_hospitality_bonus
        assert bonus.type_label == "Hospitality"
        assert bonus.cost == 0

    def test_hospitality_bonus_slots_are_limited(self):
        hosts = [candidate(f"h{i}", min_price=None, accept_hospitality=True, views=1000 * (i + 1))
                 for i in range(7)]
        result = match_influencers(self.context(add_bonus_hospitality=True), hosts)

        assert len(result.plan) == 5
        assert [s.candidate.id for s in result.plan] == ["h6", "h5", "h4", "h3", "h2"]
        assert [s.candidate.id for s in result.reserve] == ["h1", "h0"]

    def test_fallback_when_nobody_serves_the_city(self, pool):
        result = match_influencers(self.context(city="تبوك", budget=100_000), pool)

        assert result.used_fallback
        top = result.plan[0]
        assert top.candidate.id == "a"
        assert top.match_score == 50
        assert {s.matched_city for s in result.plan} <= {RIYADH, "Jeddah"}

    def test_fallback_limits_paid_candidates(self):
        pool = [candidate(f"p{i}", city="Jeddah", min_price=10, views=100 + i) for i in range(25)]
        config = MatchingConfig(fallback_limit=20)
        result = match_influencers(self.context(budget=1_000_000), pool, config=config)

        assert len(result.plan) + len(result.reserve) == 20

    def test_empty_pool(self):
        result = match_influencers(self.context(), [])
        assert result.plan == []
        assert result.reserve == []

    def test_injected_scorer_is_used(self, pool):
        class ReverseAlphabetScorer(InfluencerScorer):
            def score_pool(self, context, candidates):
                return [
                    ScoredInfluencer(
                        candidate=c,
                        match_score=float(ord(c.id)),
                        type_label=determine_type_label(c),
                        estimated_views=estimate_views(c),
                        matched_city=context.city,
                    )
                    for c in candidates
                ]

        result = match_influencers(self.context(budget=2500), pool, scorer=ReverseAlphabetScorer())
        assert [s.candidate.id for s in result.plan] == ["c", "b"]

    def test_strategy_summary(self, pool):
        result = match_influencers(self.context(add_bonus_hospitality=True), pool)
        summary = build_strategy_summary(3500, result.plan)

        assert summary == {
            "total_influencers": 3,
            "paid_influencers": 2,
            "hospitality_influencers": 1,
            "total_cost": 3000,
            "service_fee": 450,
            "total_cost_with_fee": 3450,
            "total_reach": 130_000,
            "remaining_budget": 500,
        }
