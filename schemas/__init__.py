# Schemas module for Ziyara Platform
# Organizes all Pydantic schemas in a modular structure

from schemas.marketplace import (
    # Enums
    CampaignGoal,
    InfluencerCategory,
    AvgViewsRange,

    # Influencer schemas
    InfluencerProfileCreate,
    InfluencerProfileResponse,
    BankDetailsUpdate,

    # Campaign schemas
    CampaignCreate,
    CampaignResponse,
    SuggestionResponse,
    ApproveSuggestionRequest,
    ApproveAllRequest,

    # Invitation schemas
    InvitationResponse,
    ProofSubmitRequest,
    ProofReviewRequest,
    ProofStatusResponse,
    PaymentUpdateRequest,
)

__all__ = [
    "CampaignGoal",
    "InfluencerCategory",
    "AvgViewsRange",
    "InfluencerProfileCreate",
    "InfluencerProfileResponse",
    "BankDetailsUpdate",
    "CampaignCreate",
    "CampaignResponse",
    "SuggestionResponse",
    "ApproveSuggestionRequest",
    "ApproveAllRequest",
    "InvitationResponse",
    "ProofSubmitRequest",
    "ProofReviewRequest",
    "ProofStatusResponse",
    "PaymentUpdateRequest",
]
