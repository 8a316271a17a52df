from dataclasses import dataclass
from typing import Optional


@dataclass
class AuthUser:
    id: str
    username: str
    picture: Optional[str] = None
    exp: Optional[int] = None
