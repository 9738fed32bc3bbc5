"""
API Gateway request authorizer.

Maps an `Authorization: Bearer <jwt>` header to a principal and an IAM
policy that allows or denies execute-api:Invoke on the whole API stage.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .jwt_auth import decode_token

logger = logging.getLogger(__name__)

POLICY_VERSION = '2012-10-17'
ANONYMOUS_PRINCIPAL = 'anonymous'


class Unauthorized(Exception):
    """Raised for a missing or malformed credential; API Gateway answers 401."""

    def __init__(self):
        # API Gateway matches on this exact message
        super().__init__('Unauthorized')


class Effect(str, Enum):
    ALLOW = 'Allow'
    DENY = 'Deny'


@dataclass(frozen=True)
class AuthorizerResult:
    principal_id: str
    effect: Effect
    resource: str
    context: dict = field(default_factory=dict)

    @property
    def allowed(self) -> bool:
        return self.effect is Effect.ALLOW

    def to_policy(self) -> dict:
        """Render the response document API Gateway expects from an authorizer."""
        policy = {
            'principalId': self.principal_id,
            'policyDocument': {
                'Version': POLICY_VERSION,
                'Statement': [
                    {
                        'Action': 'execute-api:Invoke',
                        'Effect': self.effect.value,
                        'Resource': self.resource,
                    }
                ],
            },
        }
        if self.allowed:
            policy['context'] = dict(self.context)
        return policy


def api_resource(method_arn: str) -> str:
    """
    Widen a method ARN to every method of the same API.

    arn:aws:execute-api:us-west-2:123:abc/prod/GET/tasks -> arn:aws:execute-api:us-west-2:123:abc/prod/*
    """
    return '/'.join(method_arn.split('/', 2)[:2]) + '/*'


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token of a `Bearer <token>` header or raise Unauthorized."""
    if not authorization:
        raise Unauthorized()
    scheme, _, token = authorization.strip().partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        raise Unauthorized()
    return token.strip()


def authorize(authorization: Optional[str], method_arn: str) -> AuthorizerResult:
    """
    Authorize one API Gateway request.

    Raises:
        Unauthorized: no credential, or not a bearer credential

    Returns:
        Allow result carrying the token subject as principal, or a Deny
        result when the token is invalid or expired.
    """
    token = extract_bearer_token(authorization)
    resource = api_resource(method_arn)

    payload = decode_token(token)
    if not payload or not payload.get('sub'):
        logger.info(f"Denying request to {resource}: invalid or expired token")
        return AuthorizerResult(
            principal_id=ANONYMOUS_PRINCIPAL,
            effect=Effect.DENY,
            resource=resource,
        )

    principal = str(payload['sub'])
    logger.info(f"Allowing principal {principal} on {resource}")
    return AuthorizerResult(
        principal_id=principal,
        effect=Effect.ALLOW,
        resource=resource,
        context={
            'principalId': principal,
            'issuedAt': datetime.now(timezone.utc).isoformat(),
        },
    )
