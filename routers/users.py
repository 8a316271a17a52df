import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status

from business import friends as friends_service
from business import user as user_service
from integrations.blob_store import LocalBlobStore, get_blob_store
from models.auth_user import AuthUser
from models.friend import (
    FriendRequestCreate,
    FriendRequestResponse,
    PendingFriendRequestResponse,
)
from models.user import UserProfileResponse
from utils.middlewares.auth_user import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=UserProfileResponse)
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
) -> UserProfileResponse:
    """
    Get the current user's profile with their friends' public details.
    """
    return user_service.get_profile(current_user.id)


@router.post("/profile-picture", response_model=UserProfileResponse)
async def upload_profile_picture(
    profile_picture: UploadFile = File(...),
    current_user: AuthUser = Depends(get_current_user),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> UserProfileResponse:
    data = await profile_picture.read()
    blob_ref = blob_store.save(profile_picture.filename, data)
    return user_service.update_profile_picture(current_user.id, blob_ref)


@router.post(
    "/friend-request",
    response_model=FriendRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_friend_request(
    payload: FriendRequestCreate,
    current_user: AuthUser = Depends(get_current_user),
) -> FriendRequestResponse:
    return friends_service.send_friend_request(current_user.id, payload.recipient_id)


@router.get("/friend-requests", response_model=List[PendingFriendRequestResponse])
async def list_friend_requests(
    current_user: AuthUser = Depends(get_current_user),
) -> List[PendingFriendRequestResponse]:
    """
    Pending friend requests addressed to the current user.
    """
    return friends_service.list_pending_requests(current_user.id)


@router.post("/friend-request/{request_id}/accept", response_model=FriendRequestResponse)
async def accept_friend_request(
    request_id: str,
    current_user: AuthUser = Depends(get_current_user),
) -> FriendRequestResponse:
    return friends_service.accept_friend_request(request_id, current_user.id)


@router.post("/friend-request/{request_id}/decline", response_model=FriendRequestResponse)
async def decline_friend_request(
    request_id: str,
    current_user: AuthUser = Depends(get_current_user),
) -> FriendRequestResponse:
    return friends_service.decline_friend_request(request_id, current_user.id)
