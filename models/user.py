from typing import List, Optional

from pydantic import BaseModel


class UserSummary(BaseModel):
    """Public profile fields exposed wherever another user is referenced."""

    id: str
    username: Optional[str] = None
    profile_picture: Optional[str] = None


class UserProfileResponse(BaseModel):
    id: str
    username: str
    profile_picture: Optional[str]
    friends: List[UserSummary]
