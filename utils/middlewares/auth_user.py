import logging
from typing import Optional

import jwt
from fastapi import Request
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from business.user import get_or_create_user_from_auth
from models.auth_user import AuthUser
from utils.constants import JWT_ALGORITHM, JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET
from utils.errors import AuthenticationInvalid, AuthenticationMissing

logger = logging.getLogger(__name__)


def extract_token_from_request(request: Request) -> Optional[str]:
    """Extract the token from the Authorization header, with or without a Bearer prefix"""
    auth_header = request.headers.get("authorization")
    if not auth_header:
        return None

    auth_header = auth_header.strip()
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return auth_header


def verify_token(token: str) -> AuthUser:
    """Verify JWT token and return user data"""
    if not JWT_SECRET:
        raise RuntimeError("JWT_SECRET is not configured")

    try:
        decoded = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise AuthenticationInvalid()
    except InvalidTokenError as e:
        logger.info(f"Rejected invalid token: {e}")
        raise AuthenticationInvalid()

    user_id = decoded.get("sub") or decoded.get("id")
    if not user_id:
        raise AuthenticationInvalid()

    return AuthUser(
        id=str(user_id),
        username=decoded.get("username") or str(user_id),
        picture=decoded.get("picture"),
        exp=decoded.get("exp"),
    )


# Dependency function for route-level authentication
def get_current_user(request: Request) -> AuthUser:
    """Dependency to get current authenticated user"""
    token = extract_token_from_request(request)

    if not token:
        raise AuthenticationMissing()

    auth_user = verify_token(token)

    # The first request of a new subject creates its local record
    auth_user.id = get_or_create_user_from_auth(auth_user)

    return auth_user
