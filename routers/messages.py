import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from business import messages as message_service
from integrations.blob_store import LocalBlobStore, get_blob_store
from models.auth_user import AuthUser
from models.message import MessageAck, MessageResponse
from utils.middlewares.auth_user import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.post("", response_model=MessageAck, status_code=status.HTTP_201_CREATED)
async def send_message(
    receiver: str = Form(...),
    content: Optional[str] = Form(default=None),
    media: Optional[UploadFile] = File(default=None),
    current_user: AuthUser = Depends(get_current_user),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> MessageAck:
    """
    Send a direct message. The sender is always the authenticated user.
    """
    media_ref = None
    if media is not None and media.filename:
        media_ref = blob_store.save(media.filename, await media.read())

    return message_service.send_message(current_user.id, receiver, content, media_ref)


@router.get("/{other_user_id}", response_model=List[MessageResponse])
async def get_conversation(
    other_user_id: str,
    current_user: AuthUser = Depends(get_current_user),
) -> List[MessageResponse]:
    """
    Messages exchanged with ``other_user_id``, oldest first.
    """
    return message_service.get_conversation(current_user.id, other_user_id)
