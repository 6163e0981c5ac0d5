# Marketplace Database Models for Ziyara
# Campaigns, influencer profiles, matching suggestions and invitations

from sqlalchemy import Column, String, Integer, Date, DateTime, ForeignKey, Text, JSON, Enum, Boolean, Float, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from datetime import datetime
import enum

# Use the same Base from core models
from database.models import Base, generate_uuid


# ============================================================================
# ENUMS
# ============================================================================

class CampaignStatusDB(str, enum.Enum):
    DRAFT = "draft"
    WAITING_MATCH_PLAN = "waiting_match_plan"
    PLAN_READY = "plan_ready"
    WAITING_INFLUENCER_RESPONSES = "waiting_influencer_responses"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CampaignGoalDB(str, enum.Enum):
    OPENING = "opening"
    PROMOTIONS = "promotions"
    NEW_PRODUCTS = "new_products"
    OTHER = "other"


class InfluencerCategoryDB(str, enum.Enum):
    FOOD_REVIEWS = "food_reviews"
    LIFESTYLE = "lifestyle"
    FASHION = "fashion"
    TRAVEL = "travel"
    COMEDY = "comedy"
    GENERAL = "general"


class AvgRangeDB(str, enum.Enum):
    RANGE_0_10K = "0-10k"
    RANGE_10K_50K = "10k-50k"
    RANGE_50K_100K = "50k-100k"
    RANGE_100K_500K = "100k-500k"
    RANGE_500K_PLUS = "500k+"


class InvitationStatusDB(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class ProofStatusDB(str, enum.Enum):
    PENDING_SUBMISSION = "pending_submission"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationTypeDB(str, enum.Enum):
    INVITATION_RECEIVED = "invitation_received"
    INVITATION_ACCEPTED = "invitation_accepted"
    INVITATION_DECLINED = "invitation_declined"
    INVITATION_EXPIRED = "invitation_expired"
    REPLACEMENT_INVITED = "replacement_invited"
    PROOF_SUBMITTED = "proof_submitted"
    PROOF_APPROVED = "proof_approved"
    PROOF_REJECTED = "proof_rejected"
    PAYMENT_COMPLETED = "payment_completed"
    PROFILE_APPROVED = "profile_approved"
    CAMPAIGN_PAYMENT_APPROVED = "campaign_payment_approved"
    SYSTEM = "system"


def _enum(enum_cls, name):
    return Enum(enum_cls, values_callable=lambda x: [e.value for e in x], name=name)


# Shared by the three per-platform view range columns
AVG_RANGE_TYPE = _enum(AvgRangeDB, "avgrangedb")


# ============================================================================
# INFLUENCER PROFILE
# ============================================================================

class InfluencerProfile(Base):
    """Extended profile for influencer users."""
    __tablename__ = "influencer_profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Basic info
    display_name = Column(String(100), nullable=False)
    bio = Column(Text)
    city_served = Column(String(100))  # Legacy single-city field
    cities = Column(JSON, default=list)
    category = Column(_enum(InfluencerCategoryDB, "influencercategorydb"), default=InfluencerCategoryDB.GENERAL)
    content_type = Column(String(100))  # Free-form description, may be Arabic

    # Platforms
    primary_platforms = Column(JSON, default=list)
    instagram_handle = Column(String(100))
    tiktok_username = Column(String(100))
    snapchat_username = Column(String(100))

    # Reach
    avg_views_instagram = Column(AVG_RANGE_TYPE)
    avg_views_tiktok = Column(AVG_RANGE_TYPE)
    avg_views_snapchat = Column(AVG_RANGE_TYPE)
    avg_views_val = Column(Integer)  # Explicit numeric override

    # Collaboration terms
    accept_hospitality = Column(Boolean, default=False)
    accept_paid = Column(Boolean, default=True)
    type_label = Column(String(50))
    min_price = Column(Integer)  # SAR
    max_price = Column(Integer)  # SAR

    # Approval and payouts
    is_approved = Column(Boolean, default=False)
    agreement_accepted = Column(Boolean, default=False)
    bank_name = Column(String(100))
    iban = Column(String(34))

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", backref="influencer_profile")
    invitations = relationship("InfluencerInvitation", back_populates="influencer")


# ============================================================================
# CAMPAIGN
# ============================================================================

class Campaign(Base):
    """Marketing campaign created by an owner for one of their branches."""
    __tablename__ = "campaigns"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    branch_id = Column(String(36), ForeignKey("branches.id"), nullable=True)

    title = Column(String(200), nullable=False)
    description = Column(Text)
    content_requirements = Column(Text)
    goal = Column(_enum(CampaignGoalDB, "campaigngoaldb"))

    budget = Column(Integer, default=0)  # SAR
    status = Column(_enum(CampaignStatusDB, "campaignstatusdb"), default=CampaignStatusDB.DRAFT, nullable=False)

    # Scheduling
    start_date = Column(Date)
    duration_days = Column(Integer)

    add_bonus_hospitality = Column(Boolean, default=False)

    # Payment for the approved plan; invitations wait for admin approval
    payment_amount = Column(Integer)  # SAR
    payment_submitted_at = Column(DateTime)
    payment_approved = Column(Boolean, default=False)
    payment_approved_at = Column(DateTime)

    # Matching output
    strategy_summary = Column(JSON)
    algorithm_version = Column(String(20))

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", backref="campaigns")
    branch = relationship("Branch", back_populates="campaigns")
    suggestions = relationship("CampaignInfluencerSuggestion", back_populates="campaign", cascade="all, delete-orphan")
    invitations = relationship("InfluencerInvitation", back_populates="campaign")


# ============================================================================
# SUGGESTION
# ============================================================================

class CampaignInfluencerSuggestion(Base):
    """A scored candidate produced by the matching step.

    Carries a snapshot of the influencer at matching time. ``in_plan`` marks
    the budget-fit selection; the remaining rows are reserve candidates for
    the replacement flow.
    """
    __tablename__ = "campaign_influencer_suggestions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(36), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    influencer_id = Column(String(36), ForeignKey("influencer_profiles.id", ondelete="CASCADE"), nullable=False)

    # Snapshot
    name = Column(String(100))
    city_served = Column(String(100))
    platform = Column(String(50))
    content_type = Column(String(100))
    min_price = Column(Integer)
    avg_views_val = Column(Integer)
    type_label = Column(String(20))  # Paid / Hospitality

    match_score = Column(Float, default=0.0)
    is_hospitality_bonus = Column(Boolean, default=False)
    in_plan = Column(Boolean, default=False)
    selected = Column(Boolean, default=False)
    scheduled_date = Column(Date)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    campaign = relationship("Campaign", back_populates="suggestions")
    influencer = relationship("InfluencerProfile")

    @property
    def is_hospitality(self) -> bool:
        return self.type_label == "Hospitality"

    @property
    def cost(self) -> int:
        """Budget cost: min_price for paid influencers, 0 for hospitality."""
        if self.is_hospitality:
            return 0
        return self.min_price or 0


# ============================================================================
# INVITATION
# ============================================================================

class InfluencerInvitation(Base):
    """A confirmed offer to one influencer for one campaign."""
    __tablename__ = "influencer_invitations"
    __table_args__ = (
        UniqueConstraint("campaign_id", "influencer_id", name="uq_invitation_campaign_influencer"),
        Index("ix_influencer_invitations_status_created", "status", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(36), ForeignKey("campaigns.id"), nullable=False, index=True)
    influencer_id = Column(String(36), ForeignKey("influencer_profiles.id"), nullable=False, index=True)
    replaces_invitation_id = Column(String(36), ForeignKey("influencer_invitations.id"), nullable=True, unique=True)

    status = Column(_enum(InvitationStatusDB, "invitationstatusdb"), default=InvitationStatusDB.PENDING, nullable=False)
    scheduled_date = Column(Date)
    offered_price = Column(Integer)  # NULL means hospitality only
    responded_at = Column(DateTime)

    # Proof of content
    proof_url = Column(String(1000))
    proof_status = Column(_enum(ProofStatusDB, "proofstatusdb"), default=ProofStatusDB.PENDING_SUBMISSION, nullable=False)
    proof_submitted_at = Column(DateTime)
    proof_rejected_reason = Column(Text)
    proof_approved_at = Column(DateTime)
    proof_auto_approved = Column(Boolean, default=False)

    payment_completed = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    campaign = relationship("Campaign", back_populates="invitations")
    influencer = relationship("InfluencerProfile", back_populates="invitations")
    replaces = relationship("InfluencerInvitation", remote_side=[id], uselist=False)


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class Notification(Base):
    """In-app notifications for users."""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(_enum(NotificationTypeDB, "notificationtypedb"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    action_url = Column(String(500))
    data = Column(JSON)

    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", backref="notifications")
