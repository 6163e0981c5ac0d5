# Campaign Guard for Ziyara Marketplace
# Per-campaign serialization and budget accounting shared by approval and replacement

from contextlib import contextmanager
from sqlalchemy.orm import Session
from typing import Dict, Tuple
import threading

from database.marketplace_models import (
    Campaign,
    CampaignInfluencerSuggestion,
    InfluencerInvitation, InvitationStatusDB,
)
from services.errors import NotFoundError


# Invitations in these states hold part of the campaign budget
BUDGET_HOLDING_STATUSES = (InvitationStatusDB.PENDING, InvitationStatusDB.ACCEPTED)

_locks_guard = threading.Lock()
# campaign id -> (lock, number of threads holding or waiting on it)
_campaign_locks: Dict[str, Tuple[threading.Lock, int]] = {}


@contextmanager
def campaign_lock(campaign_id: str):
    """
    Serialize budget-spending work for one campaign inside this process.
    Combine with lock_campaign() for a row lock across processes.

    A campaign's lock is dropped once no thread holds or waits on it.
    """
    with _locks_guard:
        lock, users = _campaign_locks.get(campaign_id, (None, 0))
        if lock is None:
            lock = threading.Lock()
        _campaign_locks[campaign_id] = (lock, users + 1)
    try:
        with lock:
            yield
    finally:
        with _locks_guard:
            lock, users = _campaign_locks[campaign_id]
            if users <= 1:
                del _campaign_locks[campaign_id]
            else:
                _campaign_locks[campaign_id] = (lock, users - 1)


def active_campaign_locks() -> int:
    with _locks_guard:
        return len(_campaign_locks)


def lock_campaign(db: Session, campaign_id: str) -> Campaign:
    """Load the campaign with SELECT ... FOR UPDATE (a no-op on SQLite)."""
    campaign = db.query(Campaign).filter(
        Campaign.id == campaign_id
    ).with_for_update().first()

    if not campaign:
        raise NotFoundError("Campaign not found")
    return campaign


def invitation_cost(invitation: InfluencerInvitation, suggestion_costs: dict) -> int:
    if invitation.offered_price:
        return invitation.offered_price
    return suggestion_costs.get(invitation.influencer_id, 0)


def remaining_budget(db: Session, campaign: Campaign) -> int:
    """Campaign budget minus the cost of pending and accepted invitations."""
    invitations = db.query(InfluencerInvitation).filter(
        InfluencerInvitation.campaign_id == campaign.id,
        InfluencerInvitation.status.in_(BUDGET_HOLDING_STATUSES)
    ).all()

    suggestions = db.query(CampaignInfluencerSuggestion).filter(
        CampaignInfluencerSuggestion.campaign_id == campaign.id
    ).all()
    suggestion_costs = {s.influencer_id: s.cost for s in suggestions}

    spent = sum(invitation_cost(inv, suggestion_costs) for inv in invitations)
    return (campaign.budget or 0) - spent


def invited_influencer_ids(db: Session, campaign_id: str) -> set:
    rows = db.query(InfluencerInvitation.influencer_id).filter(
        InfluencerInvitation.campaign_id == campaign_id
    ).all()
    return {row[0] for row in rows}
