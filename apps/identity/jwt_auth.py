"""
JWT Authentication utilities.

Provides token generation and validation for stateless bearer
authentication compatible with AWS Lambda. The token subject is the
principal identifier used as the task owner.
"""
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from django.conf import settings


JWT_ALGORITHM = 'HS256'
TOKEN_SCOPE = 'tasks'


def _secret() -> str:
    return settings.JWT_SECRET


def create_access_token(principal: str, expires_in: Optional[timedelta] = None) -> str:
    """
    Create a signed access token for a principal.

    Contains the principal as `sub`. Expires after TOKEN_EXPIRE_MINUTES
    unless `expires_in` is given.
    """
    now = datetime.now(timezone.utc)
    if expires_in is None:
        expires_in = timedelta(minutes=settings.TOKEN_EXPIRE_MINUTES)
    payload = {
        'iss': settings.TOKEN_ISSUER,
        'sub': principal,
        'scope': TOKEN_SCOPE,
        'iat': now,
        'exp': now + expires_in,
    }
    return jwt.encode(payload, _secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            _secret(),
            algorithms=[JWT_ALGORITHM],
            issuer=settings.TOKEN_ISSUER,
            options={'require': ['sub', 'exp']},
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_principal_from_token(token: str) -> Optional[str]:
    """
    Extract the principal from a valid token.

    Returns:
        Principal identifier if token valid, None otherwise.
    """
    payload = decode_token(token)
    if payload and payload.get('sub'):
        return str(payload['sub'])
    return None
