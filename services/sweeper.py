# Timeout Sweeps for Ziyara Marketplace
# Invitation expiration and proof auto-approval as one parameterized batch job

from sqlalchemy.orm import Session
from typing import Callable, List, Optional
from datetime import datetime, timedelta
from pydantic import BaseModel
import logging

from config.app_config import EXPIRY_BATCH_SIZE, INVITATION_EXPIRY_HOURS, PROOF_AUTO_APPROVE_HOURS
from database.marketplace_models import InfluencerInvitation, InvitationStatusDB, ProofStatusDB
from services.errors import ConflictError
from services.invitation_service import cas_update_invitation
from services.notification_service import NotificationService
from services.replacement_service import ReplacementService


class FollowUpError(Exception):
    """The row was transitioned and committed, but a step after it failed."""


class SweepReport(BaseModel):
    sweep: str
    processed: int = 0
    successful: int = 0
    skipped: int = 0
    errors: int = 0
    results: List[dict] = []


class TimeoutSweep:
    """
    Moves rows that have waited longer than ``threshold_hours`` to a new state.

    ``find_due(db, cutoff, batch_size)`` returns candidate ids, and
    ``transition(db, row_id, now, cutoff)`` performs one conditional update
    and returns a result dict. Every row is committed on its own; a row that
    was transitioned by someone else in the meantime (ConflictError from the
    conditional update) is counted as skipped. Transitions that commit and then
    fail in a later step raise FollowUpError, which is reported as an error.
    """

    def __init__(self, name: str, threshold_hours: int, batch_size: int,
                 find_due: Callable, transition: Callable):
        self.name = name
        self.threshold_hours = threshold_hours
        self.batch_size = batch_size
        self.find_due = find_due
        self.transition = transition

    def run(self, db: Session, now: Optional[datetime] = None) -> SweepReport:
        now = now or datetime.utcnow()
        cutoff = now - timedelta(hours=self.threshold_hours)
        report = SweepReport(sweep=self.name)

        row_ids = self.find_due(db, cutoff, self.batch_size)
        if not row_ids:
            logging.info(f"[SWEEP] {self.name}: nothing to process")
            return report

        logging.info(f"[SWEEP] {self.name}: {len(row_ids)} rows due (cutoff {cutoff.isoformat()})")
        for row_id in row_ids:
            report.processed += 1
            try:
                result = self.transition(db, row_id, now, cutoff)
                db.commit()
                report.successful += 1
                report.results.append({"id": row_id, "success": True, **result})
            except ConflictError:
                db.rollback()
                report.skipped += 1
                logging.info(f"[SWEEP] {self.name}: row {row_id} already transitioned, skipping")
            except Exception as e:
                db.rollback()
                report.errors += 1
                report.results.append({"id": row_id, "success": False, "error": str(e)})
                logging.error(f"[SWEEP] {self.name}: failed on row {row_id}: {e}")

        logging.info(f"[SWEEP] {self.name}: processed={report.processed} successful={report.successful} "
                     f"skipped={report.skipped} errors={report.errors}")
        return report


# ============================================================================
# INVITATION EXPIRATION
# ============================================================================

def _find_expired_invitations(db: Session, cutoff: datetime, batch_size: int) -> List[str]:
    rows = db.query(InfluencerInvitation.id).filter(
        InfluencerInvitation.status == InvitationStatusDB.PENDING,
        InfluencerInvitation.responded_at.is_(None),
        InfluencerInvitation.created_at < cutoff
    ).order_by(InfluencerInvitation.created_at).limit(batch_size).all()
    return [row[0] for row in rows]


def _expire_invitation(db: Session, invitation_id: str, now: datetime, cutoff: datetime) -> dict:
    cas_update_invitation(db, invitation_id, [
        InfluencerInvitation.status == InvitationStatusDB.PENDING,
        InfluencerInvitation.responded_at.is_(None),
        InfluencerInvitation.created_at < cutoff,
    ], {
        "status": InvitationStatusDB.DECLINED,
        "responded_at": now,
        "updated_at": now,
    })

    invitation = db.query(InfluencerInvitation).filter(InfluencerInvitation.id == invitation_id).first()
    notifier = NotificationService(db)
    notifier.notify_invitation_declined(
        invitation.campaign.owner_id, invitation.influencer.display_name,
        invitation.campaign_id, expired=True
    )
    db.commit()
    logging.info(f"[SWEEP] Invitation {invitation_id} expired")

    try:
        result = ReplacementService(db, notifier).handle_rejection(
            invitation.campaign_id, invitation.influencer_id, now=now
        )
    except ConflictError as e:
        raise FollowUpError(f"Invitation expired but replacement conflicted: {e.detail}") from e
    return {
        "campaign_id": invitation.campaign_id,
        "influencer_id": invitation.influencer_id,
        "replacement": result.model_dump(mode="json"),
    }


def expire_pending_invitations(db: Session, now: Optional[datetime] = None,
                               batch_size: int = EXPIRY_BATCH_SIZE,
                               threshold_hours: int = INVITATION_EXPIRY_HOURS) -> SweepReport:
    """Decline invitations left pending past the expiry window and replace them."""
    sweep = TimeoutSweep(
        name="expire_invitations",
        threshold_hours=threshold_hours,
        batch_size=batch_size,
        find_due=_find_expired_invitations,
        transition=_expire_invitation,
    )
    return sweep.run(db, now)


# ============================================================================
# PROOF AUTO-APPROVAL
# ============================================================================

def _find_stale_proofs(db: Session, cutoff: datetime, batch_size: int) -> List[str]:
    rows = db.query(InfluencerInvitation.id).filter(
        InfluencerInvitation.proof_status == ProofStatusDB.SUBMITTED,
        InfluencerInvitation.proof_submitted_at < cutoff
    ).order_by(InfluencerInvitation.proof_submitted_at).limit(batch_size).all()
    return [row[0] for row in rows]


def _auto_approve_proof(db: Session, invitation_id: str, now: datetime, cutoff: datetime) -> dict:
    cas_update_invitation(db, invitation_id, [
        InfluencerInvitation.proof_status == ProofStatusDB.SUBMITTED,
        InfluencerInvitation.proof_submitted_at < cutoff,
    ], {
        "proof_status": ProofStatusDB.APPROVED,
        "proof_approved_at": now,
        "proof_auto_approved": True,
        "proof_rejected_reason": None,
        "updated_at": now,
    })

    invitation = db.query(InfluencerInvitation).filter(InfluencerInvitation.id == invitation_id).first()
    NotificationService(db).notify_proof_approved(invitation.influencer.user_id, invitation_id, automatic=True)
    logging.info(f"[SWEEP] Proof for invitation {invitation_id} auto-approved")
    return {"campaign_id": invitation.campaign_id}


def auto_approve_proofs(db: Session, now: Optional[datetime] = None,
                        batch_size: int = EXPIRY_BATCH_SIZE,
                        threshold_hours: int = PROOF_AUTO_APPROVE_HOURS) -> SweepReport:
    """Approve submitted proofs the owner has not reviewed within the window."""
    sweep = TimeoutSweep(
        name="auto_approve_proofs",
        threshold_hours=threshold_hours,
        batch_size=batch_size,
        find_due=_find_stale_proofs,
        transition=_auto_approve_proof,
    )
    return sweep.run(db, now)
