# Pydantic Schemas for Ziyara Marketplace
# Request and response models shared by the routers

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict
from datetime import date, datetime
from enum import Enum


# ============================================================================
# ENUMS
# ============================================================================

class CampaignGoal(str, Enum):
    OPENING = "opening"
    PROMOTIONS = "promotions"
    NEW_PRODUCTS = "new_products"
    OTHER = "other"


class InfluencerCategory(str, Enum):
    FOOD_REVIEWS = "food_reviews"
    LIFESTYLE = "lifestyle"
    FASHION = "fashion"
    TRAVEL = "travel"
    COMEDY = "comedy"
    GENERAL = "general"


class AvgViewsRange(str, Enum):
    RANGE_0_10K = "0-10k"
    RANGE_10K_50K = "10k-50k"
    RANGE_50K_100K = "50k-100k"
    RANGE_100K_500K = "100k-500k"
    RANGE_500K_PLUS = "500k+"


# ============================================================================
# INFLUENCER SCHEMAS
# ============================================================================

class InfluencerProfileCreate(BaseModel):
    """Schema for influencer onboarding."""
    display_name: str = Field(..., min_length=2, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    city_served: Optional[str] = Field(None, max_length=100)
    cities: List[str] = []
    category: InfluencerCategory = InfluencerCategory.GENERAL
    content_type: Optional[str] = Field(None, max_length=100)

    primary_platforms: List[str] = []
    instagram_handle: Optional[str] = None
    tiktok_username: Optional[str] = None
    snapchat_username: Optional[str] = None

    avg_views_instagram: Optional[AvgViewsRange] = None
    avg_views_tiktok: Optional[AvgViewsRange] = None
    avg_views_snapchat: Optional[AvgViewsRange] = None
    avg_views_val: Optional[int] = Field(None, ge=0)

    accept_hospitality: bool = False
    accept_paid: bool = True
    type_label: Optional[str] = Field(None, max_length=50)
    min_price: Optional[int] = Field(None, ge=0)
    max_price: Optional[int] = Field(None, ge=0)
    agreement_accepted: bool = False

    @validator('instagram_handle', 'tiktok_username', 'snapchat_username')
    def strip_at_sign(cls, v):
        if v:
            return v.strip().lstrip('@')
        return v


class InfluencerProfileResponse(BaseModel):
    id: str
    user_id: str
    display_name: str
    bio: Optional[str] = None
    city_served: Optional[str] = None
    cities: Optional[List[str]] = None
    category: Optional[str] = None
    content_type: Optional[str] = None
    primary_platforms: Optional[List[str]] = None
    instagram_handle: Optional[str] = None
    tiktok_username: Optional[str] = None
    snapchat_username: Optional[str] = None
    avg_views_val: Optional[int] = None
    accept_hospitality: Optional[bool] = None
    accept_paid: Optional[bool] = None
    type_label: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    is_approved: bool = False
    agreement_accepted: bool = False
    bank_name: Optional[str] = None
    iban: Optional[str] = None

    class Config:
        from_attributes = True

    @validator("category", pre=True)
    def enum_to_value(cls, v):
        return getattr(v, "value", v)


class BankDetailsUpdate(BaseModel):
    bank_name: str = Field(..., min_length=2, max_length=100)
    iban: str

    @validator('iban')
    def normalize_iban(cls, v):
        return v.replace(" ", "").upper()


# ============================================================================
# CAMPAIGN SCHEMAS
# ============================================================================

class CampaignCreate(BaseModel):
    """Schema for creating a campaign. Budget is in SAR."""
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    content_requirements: Optional[str] = None
    branch_id: Optional[str] = None
    goal: Optional[CampaignGoal] = None
    budget: int
    start_date: Optional[date] = None
    duration_days: Optional[int] = Field(None, ge=1)
    add_bonus_hospitality: bool = False


class CampaignResponse(BaseModel):
    id: str
    owner_id: str
    branch_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    goal: Optional[str] = None
    budget: int
    status: str
    start_date: Optional[date] = None
    duration_days: Optional[int] = None
    add_bonus_hospitality: bool = False
    payment_amount: Optional[int] = None
    payment_submitted_at: Optional[datetime] = None
    payment_approved: Optional[bool] = False
    payment_approved_at: Optional[datetime] = None
    strategy_summary: Optional[dict] = None
    algorithm_version: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator("status", "goal", pre=True)
    def enum_to_value(cls, v):
        return getattr(v, "value", v)


class SuggestionResponse(BaseModel):
    id: str
    campaign_id: str
    influencer_id: str
    name: Optional[str] = None
    city_served: Optional[str] = None
    platform: Optional[str] = None
    content_type: Optional[str] = None
    min_price: Optional[int] = None
    avg_views_val: Optional[int] = None
    views_display: Optional[str] = None
    type_label: Optional[str] = None
    match_score: float = 0.0
    is_hospitality_bonus: bool = False
    in_plan: bool = False
    selected: bool = False
    scheduled_date: Optional[date] = None

    class Config:
        from_attributes = True


class ApproveSuggestionRequest(BaseModel):
    scheduled_date: Optional[date] = None


class ApproveAllRequest(BaseModel):
    # suggestion id -> owner-edited visit date
    scheduled_dates: Dict[str, date] = {}


# ============================================================================
# INVITATION SCHEMAS
# ============================================================================

class InvitationResponse(BaseModel):
    id: str
    campaign_id: str
    influencer_id: str
    replaces_invitation_id: Optional[str] = None
    status: str
    scheduled_date: Optional[date] = None
    offered_price: Optional[int] = None
    responded_at: Optional[datetime] = None
    proof_url: Optional[str] = None
    proof_status: str
    proof_submitted_at: Optional[datetime] = None
    proof_rejected_reason: Optional[str] = None
    proof_approved_at: Optional[datetime] = None
    proof_auto_approved: bool = False
    payment_completed: bool = False
    created_at: datetime

    class Config:
        from_attributes = True

    @validator("status", "proof_status", pre=True)
    def enum_to_value(cls, v):
        return getattr(v, "value", v)


class ProofSubmitRequest(BaseModel):
    proof_url: str = Field(..., max_length=1000)


class ProofReviewRequest(BaseModel):
    approved: bool = Field(..., description="Whether to approve the proof")
    rejection_reason: Optional[str] = Field(None, description="Reason for rejection (if rejecting)")


class ProofStatusResponse(BaseModel):
    invitation_id: str
    proof_status: str
    proof_url: Optional[str] = None
    proof_submitted_at: Optional[datetime] = None
    is_approved: bool
    auto_approved: bool
    payment_completed: bool


class PaymentUpdateRequest(BaseModel):
    payment_completed: bool


class PlanApprovalResponse(BaseModel):
    """Campaign state after approving its plan or its payment, with the invitations sent."""
    campaign: CampaignResponse
    invitations: List[InvitationResponse] = []
