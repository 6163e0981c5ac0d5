# Invitation Service for Ziyara Marketplace
# Invitation lifecycle: creation from suggestions, responses, proof review and payment

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from datetime import date, datetime, timedelta
from urllib.parse import urlparse
import logging

from config.app_config import PROOF_AUTO_APPROVE_HOURS
from database.models import User, UserType
from database.marketplace_models import (
    Campaign, CampaignStatusDB,
    CampaignInfluencerSuggestion,
    InfluencerInvitation, InvitationStatusDB, ProofStatusDB,
    InfluencerProfile,
)
from services.campaign_guard import campaign_lock, lock_campaign, remaining_budget, invited_influencer_ids
from services.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from services.notification_service import NotificationService
from services.replacement_service import ReplacementService, ReplacementResult


DEFAULT_PROOF_REJECTION_REASON = "لم يتم تقديم سبب"

# Campaign statuses that move to waiting_influencer_responses once invitations go out
PRE_INVITATION_STATUSES = (
    CampaignStatusDB.DRAFT,
    CampaignStatusDB.WAITING_MATCH_PLAN,
    CampaignStatusDB.PLAN_READY,
)


# ============================================================================
# HELPERS
# ============================================================================

def is_valid_proof_url(url: Optional[str]) -> bool:
    """Absolute http(s) URL with a host. Reachability is not checked."""
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    if any(ch.isspace() for ch in parsed.netloc):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def is_proof_approved(invitation: InfluencerInvitation, now: Optional[datetime] = None,
                      auto_approve_hours: int = PROOF_AUTO_APPROVE_HOURS) -> bool:
    """
    Payment eligibility of an invitation's proof.

    Explicit approval counts, and so does a submitted proof that has waited
    more than ``auto_approve_hours`` without an owner decision.
    """
    if invitation.proof_status == ProofStatusDB.APPROVED:
        return True
    if invitation.proof_status != ProofStatusDB.SUBMITTED or not invitation.proof_submitted_at:
        return False
    now = now or datetime.utcnow()
    return now - invitation.proof_submitted_at > timedelta(hours=auto_approve_hours)


def cas_update_invitation(db: Session, invitation_id: str, conditions: list, values: dict) -> None:
    """
    Conditionally update one invitation.
    Raises ConflictError when the row no longer matches ``conditions``.
    """
    updated = db.query(InfluencerInvitation).filter(
        InfluencerInvitation.id == invitation_id,
        *conditions
    ).update(values, synchronize_session=False)

    if updated == 0:
        db.rollback()
        raise ConflictError("Invitation is no longer in the expected state")


def _is_admin(user: User) -> bool:
    return user.user_type == UserType.ADMIN


# ============================================================================
# SERVICE
# ============================================================================

class InvitationService:
    """
    Drives invitations through their states.

    Every transition is a conditional update on the current status, so a
    concurrent response or review surfaces as ConflictError instead of an
    overwrite.
    """

    def __init__(self, db: Session, notifier: Optional[NotificationService] = None,
                 replacement: Optional[ReplacementService] = None):
        self.db = db
        self.notifier = notifier or NotificationService(db)
        self.replacement = replacement or ReplacementService(db, self.notifier)

    # ------------------------------------------------------------------------
    # Lookups and ownership
    # ------------------------------------------------------------------------

    def get_invitation(self, invitation_id: str) -> InfluencerInvitation:
        invitation = self.db.query(InfluencerInvitation).filter(
            InfluencerInvitation.id == invitation_id
        ).first()
        if not invitation:
            raise NotFoundError("Invitation not found")
        return invitation

    def get_owned_campaign(self, campaign_id: str, user: User) -> Campaign:
        campaign = self.db.query(Campaign).filter(Campaign.id == campaign_id).first()
        if not campaign:
            raise NotFoundError("Campaign not found")
        if campaign.owner_id != user.id and not _is_admin(user):
            raise PermissionDeniedError("You don't own this campaign")
        return campaign

    def _influencer_invitation(self, invitation_id: str, user: User) -> InfluencerInvitation:
        invitation = self.get_invitation(invitation_id)
        if invitation.influencer.user_id != user.id:
            raise PermissionDeniedError("This invitation is not addressed to you")
        return invitation

    def _owner_invitation(self, invitation_id: str, user: User) -> InfluencerInvitation:
        invitation = self.get_invitation(invitation_id)
        if invitation.campaign.owner_id != user.id and not _is_admin(user):
            raise PermissionDeniedError("You don't own this campaign")
        return invitation

    def _reload(self, invitation_id: str) -> InfluencerInvitation:
        self.db.commit()
        return self.get_invitation(invitation_id)

    # ------------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------------

    def approve_suggestion(self, campaign_id: str, suggestion_id: str, user: User,
                           scheduled_date: Optional[date] = None) -> InfluencerInvitation:
        """Turn one suggestion into a pending invitation. The campaign must already be paid."""
        self.get_owned_campaign(campaign_id, user)

        with campaign_lock(campaign_id):
            try:
                campaign = lock_campaign(self.db, campaign_id)
                if not campaign.payment_approved:
                    raise ValidationError("Campaign payment must be approved before single invitations are sent")
                suggestion = self.db.query(CampaignInfluencerSuggestion).filter(
                    CampaignInfluencerSuggestion.id == suggestion_id,
                    CampaignInfluencerSuggestion.campaign_id == campaign_id
                ).first()
                if not suggestion:
                    raise NotFoundError("Suggestion not found")

                self._select_suggestion(suggestion, remaining_budget(self.db, campaign))
                invitation = self._invite(campaign, suggestion, scheduled_date)
                self._mark_waiting_for_responses(campaign)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        logging.info(f"[INVITE] Campaign {campaign_id}: invitation {invitation.id} created from suggestion {suggestion_id}")
        return self.get_invitation(invitation.id)

    def approve_all(self, campaign_id: str, user: User,
                    date_overrides: Optional[Dict[str, date]] = None,
                    now: Optional[datetime] = None) -> List[InfluencerInvitation]:
        """
        Approve every plan suggestion not yet invited.

        On an unpaid campaign this submits the plan for payment: the
        suggestions are marked selected, the amount due is recorded and no
        invitation is sent until an admin approves the payment. On a paid
        campaign the invitations are created right away.
        ``date_overrides`` maps suggestion id to an owner-edited visit date.
        """
        self.get_owned_campaign(campaign_id, user)
        date_overrides = date_overrides or {}
        now = now or datetime.utcnow()

        with campaign_lock(campaign_id):
            try:
                campaign = lock_campaign(self.db, campaign_id)
                suggestions = self.db.query(CampaignInfluencerSuggestion).filter(
                    CampaignInfluencerSuggestion.campaign_id == campaign_id,
                    CampaignInfluencerSuggestion.in_plan == True,
                    CampaignInfluencerSuggestion.selected == False
                ).order_by(CampaignInfluencerSuggestion.match_score.desc()).all()

                already_invited = invited_influencer_ids(self.db, campaign_id)
                pending = []
                for suggestion in suggestions:
                    if suggestion.influencer_id in already_invited:
                        logging.info(f"[INVITE] Skipping influencer {suggestion.influencer_id}: already invited")
                        continue
                    pending.append(suggestion)

                budget_left = remaining_budget(self.db, campaign)
                created = []
                if campaign.payment_approved:
                    for suggestion in pending:
                        self._select_suggestion(suggestion, budget_left)
                        budget_left -= suggestion.cost
                        invitation = self._invite(campaign, suggestion, date_overrides.get(suggestion.id))
                        created.append(invitation.id)
                    if created:
                        self._mark_waiting_for_responses(campaign)
                else:
                    self._submit_payment(campaign, pending, budget_left, date_overrides, now)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        logging.info(f"[INVITE] Campaign {campaign_id}: {len(created)} invitations created")
        return [self.get_invitation(invitation_id) for invitation_id in created]

    def _submit_payment(self, campaign: Campaign, suggestions: List[CampaignInfluencerSuggestion],
                        budget_left: int, date_overrides: Dict[str, date], now: datetime):
        if campaign.payment_submitted_at:
            raise ConflictError("Payment for this campaign was already submitted")
        if not suggestions:
            raise ValidationError("Campaign has no plan suggestions to approve")

        amount = 0
        for suggestion in suggestions:
            self._select_suggestion(suggestion, budget_left - amount)
            amount += suggestion.cost
            if suggestion.id in date_overrides:
                suggestion.scheduled_date = date_overrides[suggestion.id]

        campaign.payment_amount = amount
        campaign.payment_submitted_at = now
        logging.info(f"[PAYMENT] Campaign {campaign.id}: payment of {amount} SAR submitted "
                     f"for {len(suggestions)} influencers")

    def approve_campaign_payment(self, campaign_id: str, now: Optional[datetime] = None) -> dict:
        """
        Admin approval of a campaign payment.

        Sends invitations to every selected suggestion that has none yet.
        Approving again only sends what is still missing.
        """
        now = now or datetime.utcnow()

        with campaign_lock(campaign_id):
            try:
                campaign = lock_campaign(self.db, campaign_id)
                if not campaign.payment_submitted_at:
                    raise ValidationError("Campaign payment has not been submitted")
                if not campaign.payment_approved:
                    campaign.payment_approved = True
                    campaign.payment_approved_at = now

                already_invited = invited_influencer_ids(self.db, campaign_id)
                selected = self.db.query(CampaignInfluencerSuggestion).filter(
                    CampaignInfluencerSuggestion.campaign_id == campaign_id,
                    CampaignInfluencerSuggestion.selected == True
                ).order_by(CampaignInfluencerSuggestion.match_score.desc()).all()

                created = []
                for suggestion in selected:
                    if suggestion.influencer_id in already_invited:
                        continue
                    created.append(self._invite(campaign, suggestion, None).id)

                if created:
                    self._mark_waiting_for_responses(campaign)
                    self.notifier.notify_campaign_payment_approved(
                        campaign.owner_id, campaign.id, campaign.title, len(created)
                    )
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        logging.info(f"[PAYMENT] Campaign {campaign_id}: payment approved, {len(created)} invitations sent")
        campaign = self.db.query(Campaign).filter(Campaign.id == campaign_id).first()
        return {
            "campaign": campaign,
            "invitations": [self.get_invitation(invitation_id) for invitation_id in created],
        }

    def pending_campaign_payments(self) -> List[Campaign]:
        """Campaigns whose owners submitted payment that no admin has approved yet."""
        return self.db.query(Campaign).filter(
            Campaign.payment_submitted_at.isnot(None),
            Campaign.payment_approved == False
        ).order_by(Campaign.payment_submitted_at).all()

    def _select_suggestion(self, suggestion: CampaignInfluencerSuggestion, budget_left: int):
        if suggestion.selected:
            raise ConflictError("Suggestion was already approved")
        if suggestion.cost > budget_left:
            raise ValidationError(
                f"Suggestion costs {suggestion.cost} SAR but only {budget_left} SAR of the budget is left"
            )

        updated = self.db.query(CampaignInfluencerSuggestion).filter(
            CampaignInfluencerSuggestion.id == suggestion.id,
            CampaignInfluencerSuggestion.selected == False
        ).update({"selected": True}, synchronize_session=False)
        if updated == 0:
            raise ConflictError("Suggestion was already approved")

    def _invite(self, campaign: Campaign, suggestion: CampaignInfluencerSuggestion,
                scheduled_date: Optional[date]) -> InfluencerInvitation:
        duplicate = self.db.query(InfluencerInvitation).filter(
            InfluencerInvitation.campaign_id == campaign.id,
            InfluencerInvitation.influencer_id == suggestion.influencer_id
        ).first()
        if duplicate:
            raise ConflictError("Influencer was already invited to this campaign")

        invitation = InfluencerInvitation(
            campaign_id=campaign.id,
            influencer_id=suggestion.influencer_id,
            status=InvitationStatusDB.PENDING,
            scheduled_date=scheduled_date or suggestion.scheduled_date,
            offered_price=suggestion.cost or None,
        )
        self.db.add(invitation)
        try:
            self.db.flush()
        except IntegrityError:
            raise ConflictError("Influencer was already invited to this campaign")

        profile = self.db.query(InfluencerProfile).filter(InfluencerProfile.id == suggestion.influencer_id).first()
        if profile:
            self.notifier.notify_invitation_received(
                profile.user_id, campaign.title, invitation.id,
                invitation.offered_price, invitation.scheduled_date
            )
        return invitation

    def _mark_waiting_for_responses(self, campaign: Campaign):
        self.db.query(Campaign).filter(
            Campaign.id == campaign.id,
            Campaign.status.in_(PRE_INVITATION_STATUSES)
        ).update({"status": CampaignStatusDB.WAITING_INFLUENCER_RESPONSES}, synchronize_session=False)

    # ------------------------------------------------------------------------
    # Influencer responses
    # ------------------------------------------------------------------------

    def accept(self, invitation_id: str, user: User, now: Optional[datetime] = None) -> InfluencerInvitation:
        invitation = self._influencer_invitation(invitation_id, user)
        now = now or datetime.utcnow()

        cas_update_invitation(self.db, invitation_id, [
            InfluencerInvitation.status == InvitationStatusDB.PENDING,
        ], {
            "status": InvitationStatusDB.ACCEPTED,
            "responded_at": now,
            "updated_at": now,
        })
        self.db.query(Campaign).filter(
            Campaign.id == invitation.campaign_id,
            Campaign.status == CampaignStatusDB.WAITING_INFLUENCER_RESPONSES
        ).update({"status": CampaignStatusDB.IN_PROGRESS}, synchronize_session=False)

        self.notifier.notify_invitation_accepted(
            invitation.campaign.owner_id, invitation.influencer.display_name, invitation.campaign_id
        )
        logging.info(f"[INVITE] Invitation {invitation_id} accepted")
        return self._reload(invitation_id)

    def decline(self, invitation_id: str, user: User, now: Optional[datetime] = None) -> dict:
        """
        Decline a pending invitation and look for a replacement.

        The decline is committed before the replacement runs. If the
        replacement fails, the decline stands and the failure is reported as
        ``replaced=False`` with the error in ``message``.
        """
        invitation = self._influencer_invitation(invitation_id, user)
        now = now or datetime.utcnow()

        cas_update_invitation(self.db, invitation_id, [
            InfluencerInvitation.status == InvitationStatusDB.PENDING,
        ], {
            "status": InvitationStatusDB.DECLINED,
            "responded_at": now,
            "updated_at": now,
        })
        self.notifier.notify_invitation_declined(
            invitation.campaign.owner_id, invitation.influencer.display_name, invitation.campaign_id
        )
        self.db.commit()
        logging.info(f"[INVITE] Invitation {invitation_id} declined")

        try:
            result: ReplacementResult = self.replacement.handle_rejection(
                invitation.campaign_id, invitation.influencer_id, now=now
            )
        except Exception as e:
            error = getattr(e, "detail", None) or str(e)
            logging.error(f"[INVITE] Replacement for declined invitation {invitation_id} failed: {error}")
            campaign = self.db.query(Campaign).filter(Campaign.id == invitation.campaign_id).first()
            result = ReplacementResult(
                replaced=False,
                remaining_budget=remaining_budget(self.db, campaign),
                message=f"Replacement failed: {error}",
            )
        return {
            "invitation": self.get_invitation(invitation_id),
            "replacement": result,
        }

    # ------------------------------------------------------------------------
    # Proof of content
    # ------------------------------------------------------------------------

    def submit_proof(self, invitation_id: str, user: User, proof_url: str,
                     now: Optional[datetime] = None) -> InfluencerInvitation:
        invitation = self._influencer_invitation(invitation_id, user)
        if not is_valid_proof_url(proof_url):
            raise ValidationError("Proof URL must be an absolute http(s) URL")
        now = now or datetime.utcnow()

        cas_update_invitation(self.db, invitation_id, [
            InfluencerInvitation.status == InvitationStatusDB.ACCEPTED,
            InfluencerInvitation.proof_status.in_([ProofStatusDB.PENDING_SUBMISSION, ProofStatusDB.REJECTED]),
        ], {
            "proof_url": proof_url.strip(),
            "proof_status": ProofStatusDB.SUBMITTED,
            "proof_submitted_at": now,
            "proof_rejected_reason": None,
            "updated_at": now,
        })

        self.notifier.notify_proof_submitted(
            invitation.campaign.owner_id, invitation.influencer.display_name, invitation_id
        )
        logging.info(f"[PROOF] Proof submitted for invitation {invitation_id}")
        return self._reload(invitation_id)

    def approve_proof(self, invitation_id: str, user: User, now: Optional[datetime] = None) -> InfluencerInvitation:
        invitation = self._owner_invitation(invitation_id, user)
        now = now or datetime.utcnow()

        cas_update_invitation(self.db, invitation_id, [
            InfluencerInvitation.proof_status == ProofStatusDB.SUBMITTED,
        ], {
            "proof_status": ProofStatusDB.APPROVED,
            "proof_approved_at": now,
            "proof_rejected_reason": None,
            "updated_at": now,
        })

        self.notifier.notify_proof_approved(invitation.influencer.user_id, invitation_id)
        logging.info(f"[PROOF] Proof approved for invitation {invitation_id}")
        return self._reload(invitation_id)

    def reject_proof(self, invitation_id: str, user: User, reason: Optional[str] = None,
                     now: Optional[datetime] = None) -> InfluencerInvitation:
        invitation = self._owner_invitation(invitation_id, user)
        reason = (reason or "").strip() or DEFAULT_PROOF_REJECTION_REASON
        now = now or datetime.utcnow()

        cas_update_invitation(self.db, invitation_id, [
            InfluencerInvitation.proof_status == ProofStatusDB.SUBMITTED,
        ], {
            "proof_status": ProofStatusDB.REJECTED,
            "proof_rejected_reason": reason,
            "proof_approved_at": None,
            "updated_at": now,
        })

        self.notifier.notify_proof_rejected(invitation.influencer.user_id, invitation_id, reason)
        logging.info(f"[PROOF] Proof rejected for invitation {invitation_id}: {reason}")
        return self._reload(invitation_id)

    # ------------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------------

    def set_payment_completed(self, invitation_id: str, completed: bool,
                              now: Optional[datetime] = None) -> InfluencerInvitation:
        """
        Set the payment flag. Marking paid requires an approved proof,
        explicit or past the auto-approval window; clearing is always allowed.
        """
        invitation = self.get_invitation(invitation_id)
        now = now or datetime.utcnow()

        if not completed:
            cas_update_invitation(self.db, invitation_id, [], {
                "payment_completed": False,
                "updated_at": now,
            })
            logging.info(f"[PAYMENT] Payment flag cleared for invitation {invitation_id}")
            return self._reload(invitation_id)

        if not is_proof_approved(invitation, now):
            raise ValidationError("Proof must be approved before payment")

        cutoff = now - timedelta(hours=PROOF_AUTO_APPROVE_HOURS)
        cas_update_invitation(self.db, invitation_id, [
            or_(
                InfluencerInvitation.proof_status == ProofStatusDB.APPROVED,
                and_(
                    InfluencerInvitation.proof_status == ProofStatusDB.SUBMITTED,
                    InfluencerInvitation.proof_submitted_at < cutoff,
                ),
            ),
        ], {
            "payment_completed": True,
            "updated_at": now,
        })

        self.notifier.notify_payment_completed(
            invitation.influencer.user_id, invitation_id, invitation.offered_price
        )
        logging.info(f"[PAYMENT] Invitation {invitation_id} marked as paid")
        return self._reload(invitation_id)

    def pending_payments(self, now: Optional[datetime] = None) -> List[InfluencerInvitation]:
        """Accepted invitations whose proof is approved (explicit or auto) and still unpaid."""
        now = now or datetime.utcnow()
        candidates = self.db.query(InfluencerInvitation).filter(
            InfluencerInvitation.status == InvitationStatusDB.ACCEPTED,
            InfluencerInvitation.payment_completed == False,
            InfluencerInvitation.proof_status.in_([ProofStatusDB.APPROVED, ProofStatusDB.SUBMITTED])
        ).order_by(InfluencerInvitation.proof_submitted_at).all()
        return [inv for inv in candidates if is_proof_approved(inv, now)]
