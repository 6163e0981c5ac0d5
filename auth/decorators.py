# Authentication and Authorization Decorators for Ziyara Platform
# These dependencies provide easy-to-use access control for API endpoints

from fastapi import HTTPException, status, Depends
from sqlalchemy.orm import Session

from database.config import get_db
from database.models import User
from database.marketplace_models import InfluencerProfile
from auth.roles import UserType, Permission, has_any_permission
from auth.dependencies import get_current_user


class AuthError(HTTPException):
    """Custom exception for authentication/authorization errors."""

    def __init__(self, detail: str, status_code: int = status.HTTP_403_FORBIDDEN):
        super().__init__(status_code=status_code, detail=detail)


def require_user_type(*allowed_types: UserType):
    """
    Dependency that requires the user to be one of the specified types.

    Usage:
        @router.post("/campaigns")
        async def create_campaign(
            user: User = Depends(require_user_type(UserType.OWNER))
        ):
            ...
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        user_type = get_user_type(current_user)

        # Admin can access everything
        if user_type == UserType.ADMIN:
            return current_user

        if user_type not in allowed_types:
            allowed_names = ", ".join(t.value for t in allowed_types)
            raise AuthError(
                detail=f"This endpoint requires user type: {allowed_names}",
                status_code=status.HTTP_403_FORBIDDEN
            )

        return current_user

    return dependency


def require_permission(*permissions: Permission):
    """Dependency that requires the user to have any of the given permissions."""
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_any_permission(get_user_type(current_user), list(permissions)):
            raise AuthError(
                detail="You don't have permission to perform this action",
                status_code=status.HTTP_403_FORBIDDEN
            )
        return current_user

    return dependency


def require_admin():
    """
    Dependency that requires the user to be an admin.

    Usage:
        @router.post("/admin/sweeps/expire-invitations")
        async def run_sweep(user: User = Depends(require_admin())):
            ...
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if get_user_type(current_user) != UserType.ADMIN:
            raise AuthError(
                detail="Admin access required",
                status_code=status.HTTP_403_FORBIDDEN
            )
        return current_user

    return dependency


def require_influencer_profile():
    """
    Dependency that resolves the current influencer's profile.
    Raises 400 when the influencer has not onboarded yet.
    """
    async def dependency(
        current_user: User = Depends(require_user_type(UserType.INFLUENCER)),
        db: Session = Depends(get_db)
    ) -> InfluencerProfile:
        profile = db.query(InfluencerProfile).filter(
            InfluencerProfile.user_id == current_user.id
        ).first()

        if not profile:
            raise AuthError(
                detail="Please complete your influencer profile first",
                status_code=status.HTTP_400_BAD_REQUEST
            )

        return profile

    return dependency


def get_user_type(user: User) -> UserType:
    """Extract the UserType from a User whether the column holds an enum or a raw string."""
    val = user.user_type.value if hasattr(user.user_type, 'value') else user.user_type
    if val:
        try:
            return UserType(str(val).lower())
        except ValueError:
            pass

    # Default to owner
    return UserType.OWNER
