"""
Security utilities for authentication and authorization
Resolves bearer credentials to identities and enforces roles
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import (
    AuthenticationException,
    ExternalServiceException,
    ForbiddenException,
    InvalidTokenException,
)
from app.models.user import Identity, UserRole

logger = logging.getLogger(__name__)

# HTTP Bearer scheme; a missing header is reported by get_current_user
security = HTTPBearer(auto_error=False)


def identity_from_claims(claims: Dict[str, Any]) -> Identity:
    """Build an Identity from token claims or an auth-service user record"""
    user_id = claims.get("id") or claims.get("_id") or claims.get("sub")
    role = claims.get("role")
    if not user_id or not role:
        raise InvalidTokenException("Token is missing the user id or role")
    try:
        role = UserRole(role)
    except ValueError:
        raise InvalidTokenException(f"Unknown role: {role}")
    return Identity(
        id=str(user_id),
        role=role,
        first_name=claims.get("firstName"),
        last_name=claims.get("lastName"),
    )


class IdentityResolver(ABC):
    """Turns a bearer credential into the caller's identity"""

    @abstractmethod
    async def resolve(self, credential: str) -> Identity:
        """Return the identity or raise InvalidTokenException"""


class JWTIdentityResolver(IdentityResolver):
    """Verifies tokens signed with the shared secret"""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    async def resolve(self, credential: str) -> Identity:
        try:
            claims = jwt.decode(credential, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"Token rejected: {e}")
            raise InvalidTokenException()
        return identity_from_claims(claims)


class RemoteIdentityResolver(IdentityResolver):
    """Asks the auth service who the token belongs to"""

    def __init__(self, base_url: str, timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def resolve(self, credential: str) -> Identity:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url}/auth/me",
                    headers={"Authorization": f"Bearer {credential}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Auth service unreachable: {e}")
            raise ExternalServiceException("Auth service", "Identity lookup failed")

        if response.status_code in (401, 403):
            raise InvalidTokenException()
        if response.status_code != 200:
            raise ExternalServiceException(
                "Auth service", f"Unexpected status {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError:
            raise ExternalServiceException("Auth service", "Malformed identity response")

        user = (body.get("data") or {}).get("user") if isinstance(body, dict) else None
        if not user:
            raise InvalidTokenException("Auth service returned no user")
        return identity_from_claims(user)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token

    Args:
        data: Claims to encode; must carry ``id`` and ``role``
        expires_delta: Token expiration time

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def get_identity_resolver() -> IdentityResolver:
    if settings.AUTH_MODE == "remote":
        return RemoteIdentityResolver(settings.AUTH_SERVICE_URL, settings.AUTH_SERVICE_TIMEOUT)
    return JWTIdentityResolver(settings.SECRET_KEY, settings.ALGORITHM)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Identity:
    """Dependency resolving the bearer token to an Identity"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Access token required")
    return await resolver.resolve(credentials.credentials)


def require_role(allowed_roles: List[str]):
    """
    Dependency factory restricting a route to the given roles

    Args:
        allowed_roles: Role values allowed through
    """
    allowed = {UserRole(role) for role in allowed_roles}

    async def role_checker(current_user: Identity = Depends(get_current_user)) -> Identity:
        if current_user.role not in allowed:
            logger.warning(
                "Role check failed",
                extra={"user_id": current_user.id, "role": current_user.role.value},
            )
            raise ForbiddenException(
                f"Access denied. Required role: {' or '.join(sorted(r.value for r in allowed))}"
            )
        return current_user

    return role_checker


require_creator = require_role([UserRole.CREATOR.value])
