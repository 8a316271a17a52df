import logging
from typing import List

from database.postgres import friend_request as friend_request_repo
from database.postgres import user as user_repo
from database.postgres.friend_request import FriendRequest, PendingFriendRequest
from models.friend import FriendRequestResponse, PendingFriendRequestResponse
from models.user import UserSummary
from utils.errors import AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _to_response(request: FriendRequest) -> FriendRequestResponse:
    return FriendRequestResponse(
        id=request.id,
        requester_id=request.requester_id,
        recipient_id=request.recipient_id,
        status=request.status,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


def _to_pending_response(request: PendingFriendRequest) -> PendingFriendRequestResponse:
    return PendingFriendRequestResponse(
        id=request.id,
        requester=UserSummary(
            id=request.requester_id,
            username=request.requester_username,
            profile_picture=request.requester_profile_picture,
        ),
        recipient_id=request.recipient_id,
        status=request.status,
        created_at=request.created_at,
    )


def _load_for_recipient(request_id: str, acting_user_id: str) -> FriendRequest:
    request = friend_request_repo.get_friend_request(request_id)
    if not request:
        raise NotFoundError("Friend request not found")

    if request.recipient_id != acting_user_id:
        raise AuthorizationError("Only the recipient can respond to a friend request")

    return request


def send_friend_request(requester_id: str, recipient_id: str) -> FriendRequestResponse:
    """
    Create a pending friend request from ``requester_id`` to ``recipient_id``.

    Self requests, a second pending request between the same two users (in
    either direction) and requests between existing friends are rejected.
    """
    if requester_id == recipient_id:
        raise ValidationError("Cannot send a friend request to yourself")

    if not user_repo.get_user_by_id(recipient_id):
        raise NotFoundError("User not found")

    if user_repo.are_friends(requester_id, recipient_id):
        raise ValidationError("You are already friends")

    existing = friend_request_repo.get_pending_between(requester_id, recipient_id)
    if existing:
        if existing.requester_id == requester_id:
            raise ValidationError("Friend request already sent")
        raise ValidationError("Friend request already pending from this user")

    request = friend_request_repo.create_friend_request(requester_id, recipient_id)
    logger.info(f"Friend request {request.id} sent from {requester_id} to {recipient_id}")
    return _to_response(request)


def list_pending_requests(recipient_id: str) -> List[PendingFriendRequestResponse]:
    pending = friend_request_repo.list_pending_for_recipient(recipient_id)
    return [_to_pending_response(request) for request in pending]


def accept_friend_request(request_id: str, acting_user_id: str) -> FriendRequestResponse:
    """
    Accept a request addressed to ``acting_user_id``.

    Accepting an already accepted request is a no-op on the friend sets.
    """
    request = _load_for_recipient(request_id, acting_user_id)
    if request.status == "declined":
        raise ValidationError("Friend request was declined")

    accepted = friend_request_repo.accept_friend_request(request_id)
    if not accepted:
        # Declined between the read above and the update
        raise ValidationError("Friend request was declined")

    if request.status == "accepted":
        logger.info(f"Friend request {request_id} was already accepted")
    else:
        logger.info(
            f"Friend request {request_id} accepted: {accepted.requester_id} <-> {accepted.recipient_id}"
        )
    return _to_response(accepted)


def decline_friend_request(request_id: str, acting_user_id: str) -> FriendRequestResponse:
    request = _load_for_recipient(request_id, acting_user_id)
    if request.status == "accepted":
        raise ValidationError("Friend request was already accepted")
    if request.status == "declined":
        return _to_response(request)

    declined = friend_request_repo.decline_friend_request(request_id)
    if not declined:
        # Answered between the read above and the update
        current = friend_request_repo.get_friend_request(request_id)
        if current and current.status == "declined":
            return _to_response(current)
        raise ValidationError("Friend request was already accepted")

    logger.info(f"Friend request {request_id} declined by {acting_user_id}")
    return _to_response(declined)
