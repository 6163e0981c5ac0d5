# Auth module for Ziyara Platform
# Provides role-based access control and authentication dependencies

from auth.roles import (
    UserType,
    Permission,
    ROLE_PERMISSIONS,
    get_permissions_for_role,
    has_permission,
    has_any_permission,
)

from auth.decorators import (
    AuthError,
    require_user_type,
    require_permission,
    require_admin,
    require_influencer_profile,
    get_user_type,
)

from auth.dependencies import get_current_user, create_access_token

__all__ = [
    # Roles
    "UserType",
    "Permission",
    "ROLE_PERMISSIONS",
    "get_permissions_for_role",
    "has_permission",
    "has_any_permission",

    # Dependencies
    "AuthError",
    "require_user_type",
    "require_permission",
    "require_admin",
    "require_influencer_profile",
    "get_user_type",
    "get_current_user",
    "create_access_token",
]
