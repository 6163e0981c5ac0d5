# Services Module for Ziyara Platform
# Contains business logic services

from services.notification_service import NotificationService, NotificationType, get_notification_service
from services.matching_service import MatchingService
from services.replacement_service import ReplacementService, ReplacementResult
from services.invitation_service import InvitationService, is_proof_approved
from services.sweeper import TimeoutSweep, SweepReport, expire_pending_invitations, auto_approve_proofs

__all__ = [
    'NotificationService',
    'NotificationType',
    'get_notification_service',
    'MatchingService',
    'ReplacementService',
    'ReplacementResult',
    'InvitationService',
    'is_proof_approved',
    'TimeoutSweep',
    'SweepReport',
    'expire_pending_invitations',
    'auto_approve_proofs',
]
