"""
Influencer matching constants.

These values control how influencers are scored and selected for a campaign.
Content type weights are additive and reach is scored separately, so the
maximum score is food_reviews_weight (40) + max_reach_score (60) = 100.
"""

from pydantic import BaseModel


class MatchingConfig(BaseModel):
    """Tunable parameters of the matching algorithm."""

    # Content type scoring (max 40 points)
    food_reviews_weight: int = 40
    lifestyle_weight: int = 15
    travel_weight: int = 5

    # Reach scoring (max 60 points)
    max_reach_score: int = 60

    # Hospitality-only influencers appended to the paid selection
    hospitality_bonus_slots: int = 5

    # Used when nobody in the pool serves the campaign city
    fallback_score_penalty: float = 0.5
    fallback_limit: int = 20

    service_fee_percent: int = 15

    class Config:
        frozen = True


DEFAULT_MATCHING_CONFIG = MatchingConfig()


# Midpoint estimates for each avg_views range
VIEWS_RANGE_TO_VALUE = {
    "0-10k": 5000,
    "10k-50k": 30000,
    "50k-100k": 75000,
    "100k-500k": 300000,
    "500k+": 750000,
}

DEFAULT_VIEWS_VALUE = 5000


# Keywords used to detect the content type from free-form strings
CONTENT_TYPE_KEYWORDS = {
    "food": ["food", "food_reviews", "طعام", "مراجعات", "أكل", "مطاعم"],
    "lifestyle": ["lifestyle", "نمط حياة", "لايف ستايل"],
    "travel": ["travel", "سفر", "سياحة"],
}

HOSPITALITY_LABEL_KEYWORDS = ["hospitality", "ضيافة"]
PAID_LABEL_KEYWORDS = ["paid", "مدفوع"]

TYPE_LABEL_PAID = "Paid"
TYPE_LABEL_HOSPITALITY = "Hospitality"

DEFAULT_PLATFORM = "TikTok"
UNKNOWN_CITY_LABEL = "غير محدد"


# Canonical Arabic city name -> known spellings
CITY_NORMALIZATIONS = {
    "الرياض": ["الرياض", "رياض", "Riyadh", "riyadh"],
    "جدة": ["جدة", "جده", "Jeddah", "jeddah", "Jidda"],
    "مكة المكرمة": ["مكة المكرمة", "مكة", "مكه", "Mecca", "mecca", "Makkah"],
    "المدينة المنورة": ["المدينة المنورة", "المدينة", "المدينه", "Medina", "medina", "Madinah"],
    "الدمام": ["الدمام", "دمام", "Dammam", "dammam"],
    "الخبر": ["الخبر", "خبر", "Khobar", "khobar", "Al Khobar"],
    "الطائف": ["الطائف", "طائف", "Taif", "taif"],
    "بريدة": ["بريدة", "بريده", "Buraydah", "buraydah"],
    "تبوك": ["تبوك", "Tabuk", "tabuk"],
    "خميس مشيط": ["خميس مشيط", "خميس", "Khamis Mushait", "khamis mushait"],
    "الهفوف": ["الهفوف", "هفوف", "Hofuf", "hofuf"],
    "حائل": ["حائل", "حايل", "Hail", "hail"],
    "نجران": ["نجران", "Najran", "najran"],
    "الجبيل": ["الجبيل", "جبيل", "Jubail", "jubail"],
    "ينبع": ["ينبع", "Yanbu", "yanbu"],
    "أبها": ["أبها", "ابها", "Abha", "abha"],
    "عرعر": ["عرعر", "Arar", "arar"],
    "سكاكا": ["سكاكا", "Sakaka", "sakaka"],
    "جازان": ["جازان", "جيزان", "Jazan", "jazan", "Jizan"],
    "القطيف": ["القطيف", "قطيف", "Qatif", "qatif"],
}
