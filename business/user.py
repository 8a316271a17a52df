import logging

from database.postgres import user as user_repo
from database.postgres.user import User
from models.auth_user import AuthUser
from models.user import UserProfileResponse, UserSummary
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def to_user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        username=user.username,
        profile_picture=user.profile_picture,
    )


def get_or_create_user_from_auth(auth_user: AuthUser) -> str:
    """
    Business logic to get or create a user from an authenticated user.

    Accounts are owned by the external auth service; the first verified
    request from a new subject creates the local user record from the token
    claims.

    Args:
        auth_user: Authenticated user from JWT token

    Returns:
        ID (string) of the user in the database
    """
    existing_user = user_repo.get_user_by_id(auth_user.id)

    if existing_user:
        return existing_user.id

    new_user = user_repo.create_user(
        user_id=auth_user.id,
        username=auth_user.username,
        profile_picture=auth_user.picture,
    )

    logger.info(f"Created new user {new_user.username} with ID: {new_user.id}")
    return new_user.id


def get_profile(user_id: str) -> UserProfileResponse:
    user = user_repo.get_user_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")

    friends = user_repo.list_friends(user_id)
    return UserProfileResponse(
        id=user.id,
        username=user.username,
        profile_picture=user.profile_picture,
        friends=[to_user_summary(friend) for friend in friends],
    )


def update_profile_picture(user_id: str, blob_ref: str) -> UserProfileResponse:
    """Overwrite the stored picture reference. The blob itself is not checked."""
    updated = user_repo.update_profile_picture(user_id, blob_ref)
    if not updated:
        raise NotFoundError("User not found")

    logger.info(f"Updated profile picture for user {user_id}")
    return get_profile(user_id)
