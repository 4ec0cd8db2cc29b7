from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from uuid import UUID

import requests
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from yuthub.core.config import settings
from yuthub.core.context import set_current_organization_id
from yuthub.core.db import get_db_session
from yuthub.models.user_organization import UserOrganization

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=True)

PLATFORM_ADMIN_ROLE = "platform_admin"


@dataclass(slots=True)
class AuthContext:
    user_id: UUID
    organization_id: UUID
    role: str
    subject: str
    claims: dict = field(default_factory=dict)


class JwksCache:
    def __init__(self, ttl_seconds: int = 300) -> None:
        self.ttl_seconds = ttl_seconds
        self._jwks: dict | None = None
        self._fetched_at = 0.0

    def get(self, url: str) -> dict:
        now = time.time()
        if self._jwks is None or (now - self._fetched_at) > self.ttl_seconds:
            response = requests.get(url, timeout=5)
            response.raise_for_status()
            self._jwks = response.json()
            self._fetched_at = now
        return self._jwks


jwks_cache = JwksCache()


def _get_signing_key(token: str) -> dict:
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication header",
        ) from exc

    kid = unverified_header.get("kid")
    if not kid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="JWT is missing key id",
        )

    jwks = jwks_cache.get(settings.auth_jwks_url)
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No matching signing key found",
    )


def decode_access_token(token: str) -> dict:
    key = _get_signing_key(token)

    options = {"verify_aud": bool(settings.auth_audience)}
    try:
        return jwt.decode(
            token,
            key,
            algorithms=["RS256", "ES256"],
            issuer=settings.auth_issuer,
            audience=settings.auth_audience or None,
            options=options,
        )
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from exc


async def _resolve_membership(session: AsyncSession, user_id: UUID) -> UserOrganization | None:
    stmt = (
        select(UserOrganization)
        .where(UserOrganization.user_id == user_id, UserOrganization.status == "active")
        .order_by(UserOrganization.is_primary.desc(), UserOrganization.created_at)
        .limit(1)
    )
    return await session.scalar(stmt)


async def require_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> AuthContext:
    claims = decode_access_token(credentials.credentials)

    subject = claims.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing required claims",
        )
    try:
        user_id = UUID(subject)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token subject is not a user id",
        ) from exc

    membership = await _resolve_membership(session, user_id)
    if membership is None:
        logger.info("No active organization for user=%s", user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active organization found",
        )

    role = membership.role
    if subject in settings.platform_admin_subjects():
        role = PLATFORM_ADMIN_ROLE

    request.state.organization_id = membership.organization_id
    request.state.user_id = user_id
    request.state.user_role = role
    set_current_organization_id(membership.organization_id)

    return AuthContext(
        user_id=user_id,
        organization_id=membership.organization_id,
        role=role,
        subject=subject,
        claims=claims,
    )


async def require_platform_admin(
    context: AuthContext = Depends(require_auth_context),
) -> AuthContext:
    if context.role != PLATFORM_ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Platform admin access required",
        )
    return context
