# Influencer Router for Ziyara Marketplace
# Handles influencer onboarding and payout details

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging
import re

from database.config import get_db
from database.models import User
from database.marketplace_models import InfluencerProfile, InfluencerCategoryDB, AvgRangeDB
from schemas.marketplace import (
    InfluencerProfileCreate,
    InfluencerProfileResponse,
    BankDetailsUpdate,
)
from auth.roles import UserType as UserTypeRole
from auth.decorators import require_user_type, require_influencer_profile
from services.errors import ConflictError, ValidationError

router = APIRouter(prefix="/influencers", tags=["Influencers"])

# SA + 2 check digits + 20 alphanumerics
SAUDI_IBAN_PATTERN = re.compile(r"^SA\d{2}[0-9A-Z]{20}$")


def is_valid_saudi_iban(iban: str) -> bool:
    return bool(SAUDI_IBAN_PATTERN.match(iban or ""))


def _range(value):
    return AvgRangeDB(value.value) if value else None


# ============================================================================
# PRIVATE ENDPOINTS (Authenticated)
# ============================================================================

@router.post("/profile", response_model=InfluencerProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    profile_data: InfluencerProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserTypeRole.INFLUENCER))
):
    """
    Influencer onboarding. The profile stays hidden from matching until an
    admin approves it and the agreement is accepted.
    """
    existing_profile = db.query(InfluencerProfile).filter(
        InfluencerProfile.user_id == current_user.id
    ).first()
    if existing_profile:
        raise ConflictError("You already have an influencer profile")

    if not profile_data.cities and not profile_data.city_served:
        raise ValidationError("At least one city is required")

    profile = InfluencerProfile(
        user_id=current_user.id,
        display_name=profile_data.display_name,
        bio=profile_data.bio,
        city_served=profile_data.city_served or profile_data.cities[0],
        cities=profile_data.cities or [profile_data.city_served],
        category=InfluencerCategoryDB(profile_data.category.value),
        content_type=profile_data.content_type,
        primary_platforms=profile_data.primary_platforms,
        instagram_handle=profile_data.instagram_handle,
        tiktok_username=profile_data.tiktok_username,
        snapchat_username=profile_data.snapchat_username,
        avg_views_instagram=_range(profile_data.avg_views_instagram),
        avg_views_tiktok=_range(profile_data.avg_views_tiktok),
        avg_views_snapchat=_range(profile_data.avg_views_snapchat),
        avg_views_val=profile_data.avg_views_val,
        accept_hospitality=profile_data.accept_hospitality,
        accept_paid=profile_data.accept_paid,
        type_label=profile_data.type_label,
        min_price=profile_data.min_price,
        max_price=profile_data.max_price,
        agreement_accepted=profile_data.agreement_accepted,
        is_approved=False,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)

    logging.info(f"[INFLUENCER] Profile {profile.id} created for user {current_user.id}")
    return profile


@router.get("/me", response_model=InfluencerProfileResponse)
async def get_my_profile(
    profile: InfluencerProfile = Depends(require_influencer_profile())
):
    return profile


@router.put("/me/bank", response_model=InfluencerProfileResponse)
async def update_bank_details(
    bank_data: BankDetailsUpdate,
    db: Session = Depends(get_db),
    profile: InfluencerProfile = Depends(require_influencer_profile())
):
    """Store payout details. Only Saudi IBANs are accepted."""
    if not is_valid_saudi_iban(bank_data.iban):
        raise ValidationError("IBAN must be a Saudi IBAN: SA followed by 22 characters")

    profile.bank_name = bank_data.bank_name
    profile.iban = bank_data.iban
    db.commit()
    db.refresh(profile)

    logging.info(f"[INFLUENCER] Bank details updated for profile {profile.id}")
    return profile
