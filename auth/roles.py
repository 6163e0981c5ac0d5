# Role-Based Access Control for Ziyara Platform
# This module defines user roles and permissions for the marketplace

from enum import Enum
from typing import List, Set


class UserType(str, Enum):
    """User types in the marketplace."""
    OWNER = "owner"
    INFLUENCER = "influencer"
    ADMIN = "admin"


class Permission(str, Enum):
    """Fine-grained permissions for the platform."""

    # Owner permissions
    MANAGE_CAMPAIGNS = "manage_campaigns"
    RUN_MATCHING = "run_matching"
    APPROVE_SUGGESTIONS = "approve_suggestions"
    REVIEW_PROOFS = "review_proofs"

    # Influencer permissions
    EDIT_INFLUENCER_PROFILE = "edit_influencer_profile"
    RESPOND_TO_INVITATIONS = "respond_to_invitations"
    SUBMIT_PROOFS = "submit_proofs"

    # Common permissions
    VIEW_CAMPAIGNS = "view_campaigns"
    VIEW_NOTIFICATIONS = "view_notifications"

    # Admin permissions
    APPROVE_INFLUENCERS = "approve_influencers"
    MANAGE_PAYMENTS = "manage_payments"
    RUN_SWEEPS = "run_sweeps"


# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserType, Set[Permission]] = {
    UserType.OWNER: {
        Permission.MANAGE_CAMPAIGNS,
        Permission.RUN_MATCHING,
        Permission.APPROVE_SUGGESTIONS,
        Permission.REVIEW_PROOFS,
        # Common
        Permission.VIEW_CAMPAIGNS,
        Permission.VIEW_NOTIFICATIONS,
    },

    UserType.INFLUENCER: {
        Permission.EDIT_INFLUENCER_PROFILE,
        Permission.RESPOND_TO_INVITATIONS,
        Permission.SUBMIT_PROOFS,
        # Common
        Permission.VIEW_NOTIFICATIONS,
    },

    UserType.ADMIN: {
        # Admin has ALL permissions
        *Permission.__members__.values()
    },
}


def get_permissions_for_role(user_type: UserType) -> Set[Permission]:
    """Get all permissions for a given user type."""
    return ROLE_PERMISSIONS.get(user_type, set())


def has_permission(user_type: UserType, permission: Permission) -> bool:
    """Check if a user type has a specific permission."""
    return permission in get_permissions_for_role(user_type)


def has_any_permission(user_type: UserType, permissions: List[Permission]) -> bool:
    user_permissions = get_permissions_for_role(user_type)
    return any(p in user_permissions for p in permissions)
