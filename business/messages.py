import logging
from typing import List, Optional

from database.postgres import message as message_repo
from database.postgres import user as user_repo
from database.postgres.message import ConversationMessage
from models.message import MessageAck, MessageResponse
from models.user import UserSummary
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _to_message_response(message: ConversationMessage) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        sender=UserSummary(
            id=message.sender_id,
            username=message.sender_username,
            profile_picture=message.sender_profile_picture,
        ),
        receiver=UserSummary(
            id=message.receiver_id,
            username=message.receiver_username,
            profile_picture=message.receiver_profile_picture,
        ),
        content=message.content,
        media=message.media,
        timestamp=message.created_at,
    )


def send_message(
    sender_id: str,
    receiver_id: str,
    content: Optional[str] = None,
    media_ref: Optional[str] = None,
) -> MessageAck:
    """
    Persist a direct message.

    ``sender_id`` always comes from the verified token. Blank content counts
    as absent; a message needs content, media, or both.
    """
    if content is not None and not content.strip():
        content = None
    if content is None and not media_ref:
        raise ValidationError("A message needs content or media")

    if not user_repo.get_user_by_id(receiver_id):
        raise NotFoundError("Receiver not found")

    message = message_repo.create_message(sender_id, receiver_id, content, media_ref or None)
    logger.info(f"Message {message.id} stored from {sender_id} to {receiver_id}")
    return MessageAck(message="Message sent", id=message.id, timestamp=message.created_at)


def get_conversation(user_id: str, other_user_id: str) -> List[MessageResponse]:
    messages = message_repo.list_conversation(user_id, other_user_id)
    return [_to_message_response(message) for message in messages]
