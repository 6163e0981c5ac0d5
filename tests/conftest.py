"""
Shared fixtures: an in-memory SQLite database per test, model factories and
a TestClient whose database and current user are overridden.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime
from uuid import uuid4

import pytest
from fastapi import HTTPException, status
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth.dependencies import get_current_user
from database.config import get_db
from database.models import Base, Branch, User, UserType
from database.marketplace_models import (
    Campaign,
    CampaignInfluencerSuggestion,
    CampaignStatusDB,
    InfluencerCategoryDB,
    InfluencerInvitation,
    InfluencerProfile,
    InvitationStatusDB,
    ProofStatusDB,
)

RIYADH = "الرياض"


@pytest.fixture
def db_session():
    """Fresh schema in a private in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, 0)


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_user(db_session):
    def _make(user_type=UserType.OWNER, name="Test User", email=None):
        user = User(
            email=email or f"{uuid4().hex[:10]}@example.com",
            name=name,
            user_type=user_type,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def owner(make_user):
    return make_user(UserType.OWNER, name="Owner")


@pytest.fixture
def admin(make_user):
    return make_user(UserType.ADMIN, name="Admin")


@pytest.fixture
def make_influencer(db_session, make_user):
    def _make(
        name="Influencer",
        city=RIYADH,
        min_price=1000,
        category=InfluencerCategoryDB.FOOD_REVIEWS,
        content_type=None,
        avg_views_val=None,
        avg_views_tiktok=None,
        accept_hospitality=False,
        type_label=None,
        is_approved=True,
        agreement_accepted=True,
    ):
        user = make_user(UserType.INFLUENCER, name=name)
        profile = InfluencerProfile(
            user_id=user.id,
            display_name=name,
            city_served=city,
            cities=[city] if city else [],
            category=category,
            content_type=content_type,
            primary_platforms=["Instagram"],
            avg_views_val=avg_views_val,
            avg_views_tiktok=avg_views_tiktok,
            accept_hospitality=accept_hospitality,
            accept_paid=bool(min_price),
            type_label=type_label,
            min_price=min_price,
            is_approved=is_approved,
            agreement_accepted=agreement_accepted,
        )
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


@pytest.fixture
def make_campaign(db_session):
    def _make(
        owner,
        budget=5000,
        city=RIYADH,
        status=CampaignStatusDB.PLAN_READY,
        start_date=None,
        duration_days=None,
        add_bonus_hospitality=False,
        payment_approved=True,
    ):
        branch = None
        if city:
            branch = Branch(owner_id=owner.id, name="Main Branch", city=city)
            db_session.add(branch)
            db_session.flush()
        campaign = Campaign(
            owner_id=owner.id,
            branch_id=branch.id if branch else None,
            title="Grand Opening",
            budget=budget,
            status=status,
            start_date=start_date,
            duration_days=duration_days,
            add_bonus_hospitality=add_bonus_hospitality,
            payment_approved=payment_approved,
        )
        db_session.add(campaign)
        db_session.commit()
        return campaign

    return _make


@pytest.fixture
def make_suggestion(db_session):
    def _make(
        campaign,
        influencer,
        match_score=50.0,
        min_price=None,
        in_plan=True,
        selected=False,
        type_label="Paid",
        scheduled_date=None,
        created_at=None,
    ):
        suggestion = CampaignInfluencerSuggestion(
            campaign_id=campaign.id,
            influencer_id=influencer.id,
            name=influencer.display_name,
            city_served=influencer.city_served,
            platform="Instagram",
            min_price=influencer.min_price if min_price is None else min_price,
            type_label=type_label,
            match_score=match_score,
            in_plan=in_plan,
            selected=selected,
            scheduled_date=scheduled_date,
            created_at=created_at or datetime(2026, 3, 1, 9, 0, 0),
        )
        db_session.add(suggestion)
        db_session.commit()
        return suggestion

    return _make


@pytest.fixture
def make_invitation(db_session):
    def _make(
        campaign,
        influencer,
        status=InvitationStatusDB.PENDING,
        offered_price=None,
        created_at=None,
        responded_at=None,
        proof_status=ProofStatusDB.PENDING_SUBMISSION,
        proof_submitted_at=None,
        proof_url=None,
        scheduled_date=None,
    ):
        invitation = InfluencerInvitation(
            campaign_id=campaign.id,
            influencer_id=influencer.id,
            status=status,
            offered_price=offered_price,
            created_at=created_at or datetime.utcnow(),
            responded_at=responded_at,
            proof_status=proof_status,
            proof_submitted_at=proof_submitted_at,
            proof_url=proof_url,
            scheduled_date=scheduled_date,
        )
        db_session.add(invitation)
        db_session.commit()
        return invitation

    return _make


# ============================================================================
# API CLIENT
# ============================================================================


@pytest.fixture
def auth_state():
    return {"user": None}


@pytest.fixture
def login(auth_state):
    """Make subsequent requests act as the given user."""
    def _login(user):
        auth_state["user"] = user

    return _login


@pytest.fixture
def client(db_session, auth_state):
    from server import app

    def override_get_db():
        yield db_session

    def override_current_user():
        if auth_state["user"] is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
        return auth_state["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    yield TestClient(app)
    app.dependency_overrides.clear()

