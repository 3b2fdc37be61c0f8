"""Session tokens and access control.

Tokens are HS256 JWTs carrying ``{id, username, role}`` and expire one hour
after issuance. Access control is split in two stages: authentication
(a valid bearer token) and authorization (the token's role is in the
route's allow-list).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, FrozenSet, Optional

import pytz
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from config import Settings
from core.dependencies import SettingsDep
from core.exceptions import ForbiddenError, UnauthenticatedError
from schemas.user import Role, TokenIdentity

logger = logging.getLogger(__name__)

# Missing credentials are reported as 401 by authorize, not by HTTPBearer
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(
    identity: TokenIdentity, settings: Settings, now: Optional[datetime] = None
) -> str:
    """Create a signed session token.

    Args:
        identity: Verified identity to encode.
        settings: Application settings holding the signing secret.
        now: Issuance time; defaults to the current UTC time.

    Returns:
        Encoded JWT token string.
    """
    issued_at = now or datetime.now(pytz.utc)
    claims = {
        "id": identity.id,
        "username": identity.username,
        "role": identity.role.value,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.token_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> TokenIdentity:
    """Verify a session token and return the identity it carries.

    Args:
        token: Encoded JWT token string.
        settings: Application settings holding the signing secret.

    Returns:
        The decoded identity.

    Raises:
        UnauthenticatedError: If the token is expired, badly signed or does
            not carry a complete identity.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError:
        raise UnauthenticatedError("Token expired")
    except JWTError:
        raise UnauthenticatedError("Invalid token")

    try:
        return TokenIdentity(
            id=payload["id"], username=payload["username"], role=payload["role"]
        )
    except (KeyError, ValidationError):
        raise UnauthenticatedError("Invalid token")


@dataclass(frozen=True)
class AccessRequirement:
    """Declarative capability requirement attached to a route.

    An empty ``roles`` set admits any authenticated user.
    """

    authenticated: bool = True
    roles: FrozenSet[Role] = frozenset()


def authorize(
    identity: Optional[TokenIdentity], requirement: AccessRequirement
) -> None:
    """Check a request's identity against a route requirement.

    Args:
        identity: Identity decoded from the bearer token, or None if the
            request carried no token.
        requirement: The route's capability requirement.

    Raises:
        UnauthenticatedError: If the route needs a login and there is none.
        ForbiddenError: If the identity's role is not allowed.
    """
    if identity is None:
        if requirement.authenticated:
            raise UnauthenticatedError("Access denied: no token provided")
        return
    if requirement.roles and identity.role not in requirement.roles:
        logger.info(
            "Denied %s (role=%s); requires one of %s",
            identity.username,
            identity.role.value,
            sorted(role.value for role in requirement.roles),
        )
        raise ForbiddenError("Access denied: insufficient permissions")


def get_token_identity(
    settings: SettingsDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[TokenIdentity]:
    """Decode the bearer token of a request, if it has one.

    Args:
        settings: Injected application settings.
        credentials: HTTP Bearer token credentials, if any.

    Returns:
        Decoded token identity, or None when no bearer token was sent.

    Raises:
        UnauthenticatedError: If a token was sent but is invalid or expired.
    """
    if credentials is None or not credentials.credentials:
        return None
    return decode_access_token(credentials.credentials, settings)


def require_access(
    *roles: Role, authenticated: bool = True
) -> Callable[..., Optional[TokenIdentity]]:
    """Build a route dependency for an AccessRequirement.

    ``require_access()`` admits any logged-in user and
    ``require_access(Role.ADMIN)`` admits admins only.

    Args:
        roles: Roles allowed on the route; none means any role.
        authenticated: Whether the route needs a login at all.

    Returns:
        A dependency that yields the authenticated identity.
    """
    requirement = AccessRequirement(authenticated=authenticated, roles=frozenset(roles))

    def dependency(
        identity: Optional[TokenIdentity] = Depends(get_token_identity),
    ) -> Optional[TokenIdentity]:
        authorize(identity, requirement)
        return identity

    return dependency
