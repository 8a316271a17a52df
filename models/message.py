from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from models.user import UserSummary


class MessageAck(BaseModel):
    message: str
    id: int
    timestamp: datetime


class MessageResponse(BaseModel):
    id: int
    sender: UserSummary
    receiver: UserSummary
    content: Optional[str]
    media: Optional[str]
    timestamp: datetime


class RelayMessage(BaseModel):
    """Event shape accepted and re-emitted by the broadcast relay."""

    sender: Any = None
    receiver: Any = None
    content: Any = None
    media: Any = None
