# Notification Service for Ziyara Marketplace
# Creates in-app notifications for invitation and proof events

from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime, date
from enum import Enum

from database.marketplace_models import Notification, NotificationTypeDB


class NotificationType(str, Enum):
    """Notification types matching NotificationTypeDB."""
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


class NotificationService:
    """
    Service for creating and managing user notifications.
    Notifications are flushed, never committed; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: str,
        type: NotificationType | str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        data: Optional[dict] = None,
    ) -> Notification:
        """
        Create a new notification for a user.

        Unknown type strings are stored as ``system``.
        """
        value = type.value if isinstance(type, Enum) else type
        try:
            type_db = NotificationTypeDB(value)
        except ValueError:
            type_db = NotificationTypeDB.SYSTEM

        notification = Notification(
            user_id=user_id,
            type=type_db,
            title=title,
            message=message,
            action_url=action_url,
            data=data or {},
        )
        self.db.add(notification)
        self.db.flush()
        return notification

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).first()

        if notification:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
            return True
        return False

    def get_unread_count(self, user_id: str) -> int:
        return self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).count()

    # =========================================================================
    # INVITATION NOTIFICATION HELPERS
    # =========================================================================

    def notify_invitation_received(
        self,
        influencer_user_id: str,
        campaign_title: str,
        invitation_id: str,
        offered_price: Optional[int],
        scheduled_date: Optional[date],
    ):
        """Notify influencer of a new campaign invitation."""
        terms = f"{offered_price:,} SAR" if offered_price else "hospitality"
        when = f" on {scheduled_date.isoformat()}" if scheduled_date else ""
        return self.create(
            user_id=influencer_user_id,
            type=NotificationType.INVITATION_RECEIVED,
            title="New Campaign Invitation! 🎯",
            message=f"You were invited to {campaign_title} ({terms}){when}",
            action_url=f"/invitations/{invitation_id}",
            data={
                "invitation_id": invitation_id,
                "offered_price": offered_price,
                "scheduled_date": scheduled_date.isoformat() if scheduled_date else None,
            }
        )

    def notify_invitation_accepted(
        self,
        owner_user_id: str,
        influencer_name: str,
        campaign_id: str,
    ):
        return self.create(
            user_id=owner_user_id,
            type=NotificationType.INVITATION_ACCEPTED,
            title="Invitation Accepted! ✅",
            message=f"{influencer_name} accepted your campaign invitation.",
            action_url=f"/campaigns/{campaign_id}",
            data={"campaign_id": campaign_id, "influencer_name": influencer_name}
        )

    def notify_invitation_declined(
        self,
        owner_user_id: str,
        influencer_name: str,
        campaign_id: str,
        expired: bool = False,
    ):
        """Notify owner that an invitation was declined or timed out."""
        if expired:
            type_ = NotificationType.INVITATION_EXPIRED
            title = "Invitation Expired ⏰"
            message = f"{influencer_name} did not respond in time. Looking for a replacement."
        else:
            type_ = NotificationType.INVITATION_DECLINED
            title = "Invitation Declined"
            message = f"{influencer_name} declined your invitation. Looking for a replacement."

        return self.create(
            user_id=owner_user_id,
            type=type_,
            title=title,
            message=message,
            action_url=f"/campaigns/{campaign_id}",
            data={"campaign_id": campaign_id, "influencer_name": influencer_name}
        )

    def notify_replacement_invited(
        self,
        owner_user_id: str,
        campaign_id: str,
        replacement_name: str,
    ):
        return self.create(
            user_id=owner_user_id,
            type=NotificationType.REPLACEMENT_INVITED,
            title="Replacement Invited 🔄",
            message=f"{replacement_name} was invited as a replacement.",
            action_url=f"/campaigns/{campaign_id}",
            data={"campaign_id": campaign_id, "replacement_name": replacement_name}
        )

    # =========================================================================
    # PROOF NOTIFICATION HELPERS
    # =========================================================================

    def notify_proof_submitted(
        self,
        owner_user_id: str,
        influencer_name: str,
        invitation_id: str,
    ):
        return self.create(
            user_id=owner_user_id,
            type=NotificationType.PROOF_SUBMITTED,
            title="Proof Submitted! 📤",
            message=f"{influencer_name} submitted proof of content for your review.",
            action_url=f"/proof-of-work/{invitation_id}",
            data={"invitation_id": invitation_id}
        )

    def notify_proof_approved(
        self,
        influencer_user_id: str,
        invitation_id: str,
        automatic: bool = False,
    ):
        message = "Your proof of content was approved."
        if automatic:
            message = "Your proof of content was approved automatically after the review window."
        return self.create(
            user_id=influencer_user_id,
            type=NotificationType.PROOF_APPROVED,
            title="Proof Approved! 🎉",
            message=message,
            action_url=f"/proof-of-work/{invitation_id}",
            data={"invitation_id": invitation_id, "automatic": automatic}
        )

    def notify_proof_rejected(
        self,
        influencer_user_id: str,
        invitation_id: str,
        reason: str,
    ):
        return self.create(
            user_id=influencer_user_id,
            type=NotificationType.PROOF_REJECTED,
            title="Proof Rejected",
            message=f"Your proof was rejected: {reason}",
            action_url=f"/proof-of-work/{invitation_id}",
            data={"invitation_id": invitation_id, "reason": reason}
        )

    # =========================================================================
    # PAYMENT / PROFILE NOTIFICATION HELPERS
    # =========================================================================

    def notify_payment_completed(
        self,
        influencer_user_id: str,
        invitation_id: str,
        amount: Optional[int],
    ):
        message = "Your campaign payment has been sent."
        if amount:
            message = f"{amount:,} SAR has been sent to your bank account."
        return self.create(
            user_id=influencer_user_id,
            type=NotificationType.PAYMENT_COMPLETED,
            title="Payment Sent! 💰",
            message=message,
            action_url=f"/invitations/{invitation_id}",
            data={"invitation_id": invitation_id, "amount": amount}
        )

    def notify_campaign_payment_approved(
        self,
        owner_user_id: str,
        campaign_id: str,
        campaign_title: str,
        invitations_sent: int,
    ):
        return self.create(
            user_id=owner_user_id,
            type=NotificationType.CAMPAIGN_PAYMENT_APPROVED,
            title="Payment Approved! ✅",
            message=f"Payment for {campaign_title} was approved and {invitations_sent} invitations were sent.",
            action_url=f"/campaigns/{campaign_id}",
            data={"campaign_id": campaign_id, "invitations_sent": invitations_sent}
        )

    def notify_profile_approved(self, user_id: str):
        return self.create(
            user_id=user_id,
            type=NotificationType.PROFILE_APPROVED,
            title="Profile Approved! ✓",
            message="Your profile has been approved. You can now receive campaign invitations.",
            action_url="/influencers/me",
            data={}
        )


# Convenience function to get service
def get_notification_service(db: Session) -> NotificationService:
    """Get NotificationService instance."""
    return NotificationService(db)
