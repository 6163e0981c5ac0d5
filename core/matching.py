"""
Influencer matching for campaigns.

Pure helpers (city normalization, view estimation, type labels), a pluggable
scoring strategy and the budget-constrained selection that turns a pool of
approved influencers into a campaign plan plus reserve candidates.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
import logging

from pydantic import BaseModel

from core.matching_constants import (
    MatchingConfig,
    DEFAULT_MATCHING_CONFIG,
    VIEWS_RANGE_TO_VALUE,
    DEFAULT_VIEWS_VALUE,
    CONTENT_TYPE_KEYWORDS,
    CITY_NORMALIZATIONS,
    HOSPITALITY_LABEL_KEYWORDS,
    PAID_LABEL_KEYWORDS,
    TYPE_LABEL_PAID,
    TYPE_LABEL_HOSPITALITY,
    UNKNOWN_CITY_LABEL,
)


# ============================================================================
# TYPES
# ============================================================================

class InfluencerCandidate(BaseModel):
    """The subset of an influencer profile the matching step reads."""
    id: str
    display_name: Optional[str] = None
    city_served: Optional[str] = None
    cities: Optional[List[str]] = None
    content_type: Optional[str] = None
    category: Optional[str] = None
    avg_views_val: Optional[int] = None
    avg_views_tiktok: Optional[str] = None
    avg_views_instagram: Optional[str] = None
    avg_views_snapchat: Optional[str] = None
    accept_hospitality: Optional[bool] = None
    accept_paid: Optional[bool] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    type_label: Optional[str] = None
    primary_platforms: Optional[List[str]] = None

    class Config:
        from_attributes = True


class CampaignContext(BaseModel):
    """Campaign inputs for matching."""
    id: str
    budget: int = 0
    city: str
    add_bonus_hospitality: bool = False
    goal: Optional[str] = None


class ScoredInfluencer(BaseModel):
    candidate: InfluencerCandidate
    match_score: float
    type_label: str
    estimated_views: int
    matched_city: str
    is_hospitality_bonus: bool = False

    @property
    def cost(self) -> int:
        if self.type_label == TYPE_LABEL_HOSPITALITY:
            return 0
        return self.candidate.min_price or 0


class MatchResult(BaseModel):
    plan: List[ScoredInfluencer] = []
    reserve: List[ScoredInfluencer] = []
    used_fallback: bool = False


# ============================================================================
# CITY NORMALIZATION
# ============================================================================

def normalize_city(city: Optional[str]) -> str:
    """
    Normalize a city name so spelling variations compare equal.
    Returns the canonical Arabic name, or the trimmed input if unknown.
    """
    if not city:
        return ""
    lower_city = city.lower().strip()

    for canonical, variations in CITY_NORMALIZATIONS.items():
        if any(v.lower() == lower_city for v in variations):
            return canonical

    return city.strip()


def cities_match(city_a: Optional[str], city_b: Optional[str]) -> bool:
    """Check if two cities match, accounting for spelling variations."""
    return normalize_city(city_a) == normalize_city(city_b)


def influencer_serves_city(candidate: InfluencerCandidate, target_city: str) -> bool:
    target = normalize_city(target_city)

    if candidate.city_served and normalize_city(candidate.city_served) == target:
        return True

    for city in candidate.cities or []:
        if normalize_city(city) == target:
            return True

    return False


# ============================================================================
# VIEWS
# ============================================================================

def get_numeric_views(avg_views_val: Optional[int], avg_views_range: Optional[str]) -> int:
    """
    Convert an explicit value or an avg_views range into a single number.
    An explicit positive value always wins; unknown ranges fall back to the default.
    """
    if avg_views_val and avg_views_val > 0:
        return avg_views_val

    avg_views_range = getattr(avg_views_range, "value", avg_views_range)
    if avg_views_range and avg_views_range in VIEWS_RANGE_TO_VALUE:
        return VIEWS_RANGE_TO_VALUE[avg_views_range]

    return DEFAULT_VIEWS_VALUE


def estimate_views(candidate: InfluencerCandidate) -> int:
    views_range = candidate.avg_views_tiktok or candidate.avg_views_instagram or candidate.avg_views_snapchat
    return get_numeric_views(candidate.avg_views_val, views_range)


def format_views_count(views: Optional[int]) -> str:
    """Format a view count as "1.2M", "50K" or the plain number."""
    if not views or views <= 0:
        return "—"

    if views >= 1_000_000:
        millions = (Decimal(views) / Decimal(1_000_000)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{millions}M"
    if views >= 1_000:
        thousands = (Decimal(views) / Decimal(1_000)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return f"{thousands}K"
    return str(views)


# ============================================================================
# SCORING
# ============================================================================

def content_type_weight(content_type: Optional[str], category: Optional[str],
                        config: MatchingConfig = DEFAULT_MATCHING_CONFIG) -> int:
    text = (content_type or category or "").lower()
    if not text:
        return 0

    if any(keyword in text for keyword in CONTENT_TYPE_KEYWORDS["food"]):
        return config.food_reviews_weight
    if any(keyword in text for keyword in CONTENT_TYPE_KEYWORDS["lifestyle"]):
        return config.lifestyle_weight
    if any(keyword in text for keyword in CONTENT_TYPE_KEYWORDS["travel"]):
        return config.travel_weight
    return 0


def reach_score(estimated_views: int, max_views: int,
                config: MatchingConfig = DEFAULT_MATCHING_CONFIG) -> float:
    """Linear share of max_reach_score relative to the best reach in the pool."""
    if max_views <= 0:
        return 0.0
    return min(config.max_reach_score, estimated_views / max_views * config.max_reach_score)


def determine_type_label(candidate: InfluencerCandidate) -> str:
    if candidate.type_label:
        label = candidate.type_label.lower()
        if any(keyword in label for keyword in HOSPITALITY_LABEL_KEYWORDS):
            return TYPE_LABEL_HOSPITALITY
        if any(keyword in label for keyword in PAID_LABEL_KEYWORDS):
            return TYPE_LABEL_PAID

    if not candidate.min_price and candidate.accept_hospitality:
        return TYPE_LABEL_HOSPITALITY

    if candidate.min_price and candidate.min_price > 0:
        return TYPE_LABEL_PAID

    if candidate.accept_hospitality:
        return TYPE_LABEL_HOSPITALITY

    return TYPE_LABEL_PAID


class InfluencerScorer:
    """
    Strategy interface for ranking a pool of influencers against a campaign.
    Implementations return one ScoredInfluencer per candidate.
    """

    def score_pool(self, context: CampaignContext,
                   candidates: List[InfluencerCandidate]) -> List[ScoredInfluencer]:
        raise NotImplementedError


class DeterministicScorer(InfluencerScorer):
    """score = content type weight + linear reach score, rounded to 2 decimals."""

    def __init__(self, config: MatchingConfig = DEFAULT_MATCHING_CONFIG):
        self.config = config

    def score(self, candidate: InfluencerCandidate, max_views: int) -> float:
        score = content_type_weight(candidate.content_type, candidate.category, self.config)
        score += reach_score(estimate_views(candidate), max_views, self.config)
        return round(score, 2)

    def score_pool(self, context, candidates):
        max_views = max([estimate_views(c) for c in candidates] + [1])
        return [
            ScoredInfluencer(
                candidate=c,
                match_score=self.score(c, max_views),
                type_label=determine_type_label(c),
                estimated_views=estimate_views(c),
                matched_city=context.city,
            )
            for c in candidates
        ]


# ============================================================================
# SELECTION
# ============================================================================

def _is_paid(scored: ScoredInfluencer) -> bool:
    return scored.type_label == TYPE_LABEL_PAID and scored.cost > 0


def _by_score(items: List[ScoredInfluencer]) -> List[ScoredInfluencer]:
    return sorted(items, key=lambda s: s.match_score, reverse=True)


def match_influencers(
    context: CampaignContext,
    candidates: List[InfluencerCandidate],
    scorer: Optional[InfluencerScorer] = None,
    config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
) -> MatchResult:
    """
    Select influencers for a campaign.

    Paid influencers are taken best-score-first while they fit the budget.
    If the campaign asks for it, up to ``hospitality_bonus_slots`` hospitality
    influencers are appended regardless of budget. When nobody serves the
    campaign city the whole pool is scored with a penalty instead.
    Everything scored but not picked is returned as reserve.
    """
    scorer = scorer or DeterministicScorer(config)
    logging.info(f"[MATCH] Campaign {context.id}: city='{context.city}', budget={context.budget}, "
                 f"hospitality_bonus={context.add_bonus_hospitality}, pool={len(candidates)}")

    in_city = [c for c in candidates if influencer_serves_city(c, context.city)]
    used_fallback = not in_city

    if used_fallback:
        logging.info("[MATCH] No influencers in city, using fallback")
        scored = scorer.score_pool(context, candidates)
        for s in scored:
            s.match_score = round(s.match_score * config.fallback_score_penalty, 2)
            s.matched_city = s.candidate.city_served or (s.candidate.cities or [UNKNOWN_CITY_LABEL])[0]
    else:
        scored = scorer.score_pool(context, in_city)

    paid = _by_score([s for s in scored if _is_paid(s)])
    if used_fallback:
        paid = paid[:config.fallback_limit]
    hospitality = _by_score([s for s in scored if not _is_paid(s)])

    plan: List[ScoredInfluencer] = []
    remaining_budget = context.budget
    for s in paid:
        if remaining_budget >= s.cost:
            plan.append(s)
            remaining_budget -= s.cost

    if context.add_bonus_hospitality:
        for s in hospitality[:config.hospitality_bonus_slots]:
            s.is_hospitality_bonus = True
            plan.append(s)

    picked = {s.candidate.id for s in plan}
    reserve = [s for s in paid if s.candidate.id not in picked]
    if context.add_bonus_hospitality:
        reserve += [s for s in hospitality if s.candidate.id not in picked]

    logging.info(f"[MATCH] Selected {len(plan)} influencers, {len(reserve)} in reserve, "
                 f"remaining budget {remaining_budget}")
    return MatchResult(plan=plan, reserve=_by_score(reserve), used_fallback=used_fallback)


def build_strategy_summary(budget: int, plan: List[ScoredInfluencer],
                           config: MatchingConfig = DEFAULT_MATCHING_CONFIG) -> dict:
    """Aggregate the plan into the campaign's strategy summary."""
    paid = [s for s in plan if s.type_label == TYPE_LABEL_PAID]
    total_cost = sum(s.cost for s in paid)
    service_fee = int((Decimal(total_cost) * config.service_fee_percent / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return {
        "total_influencers": len(plan),
        "paid_influencers": len(paid),
        "hospitality_influencers": len(plan) - len(paid),
        "total_cost": total_cost,
        "service_fee": service_fee,
        "total_cost_with_fee": total_cost + service_fee,
        "total_reach": sum(s.estimated_views for s in plan),
        "remaining_budget": budget - total_cost,
    }
