"""
Domain errors shared by the repositories, the business layer and the routers.

Each error carries the HTTP status it is rendered with by the handler
registered in ``main.py``.
"""
from typing import Optional


class MessagingError(Exception):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthenticationMissing(MessagingError):
    status_code = 401
    default_detail = "Access denied"


class AuthenticationInvalid(MessagingError):
    status_code = 401
    default_detail = "Invalid token"


class AuthorizationError(MessagingError):
    status_code = 403
    default_detail = "Not allowed"


class NotFoundError(MessagingError):
    status_code = 404
    default_detail = "Not found"


class ValidationError(MessagingError):
    status_code = 400
    default_detail = "Invalid request"


class StoreError(MessagingError):
    """Persistence failure. The detail is logged, never sent to the client."""

    status_code = 500
    default_detail = "Internal server error"
