from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from models.user import UserSummary


class FriendRequestCreate(BaseModel):
    recipient_id: str


class FriendRequestResponse(BaseModel):
    id: str
    requester_id: str
    recipient_id: str
    status: Literal["pending", "accepted", "declined"]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class PendingFriendRequestResponse(BaseModel):
    id: str
    requester: UserSummary
    recipient_id: str
    status: Literal["pending", "accepted", "declined"]
    created_at: Optional[datetime]
