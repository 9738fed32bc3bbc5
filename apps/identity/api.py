"""
Identity API endpoints with JWT authentication.

POST /token issues a bearer token for a username; BearerAuth validates the
token on every other route and exposes the principal as request.auth.
"""
import logging
from typing import Optional

from django.http import HttpRequest, HttpResponse
from ninja import Router
from ninja.errors import HttpError
from ninja.security import HttpBearer

from .dtos import TokenRequest
from .jwt_auth import create_access_token, get_principal_from_token

logger = logging.getLogger(__name__)

router = Router(tags=["Identity"])


class BearerAuth(HttpBearer):
    """
    Validates `Authorization: Bearer <jwt>`.

    request.auth is the token subject, which is the owner of every task
    the request touches.
    """

    def authenticate(self, request: HttpRequest, token: str) -> Optional[str]:
        return get_principal_from_token(token)


def get_owner(request: HttpRequest) -> str:
    """Principal of an authenticated request."""
    if not request.auth:
        raise HttpError(401, "Authentication required")
    return request.auth


@router.post("/token", auth=None)
def issue_token(request: HttpRequest, payload: TokenRequest):
    """
    Issue a bearer token for a username.

    Returns the compact JWT as text/plain.
    """
    username = payload.username.strip()
    if not username or '/' in username:
        raise HttpError(400, "Invalid username")

    token = create_access_token(username)
    logger.info(f"Issued token for {username}")
    return HttpResponse(token, content_type='text/plain')
