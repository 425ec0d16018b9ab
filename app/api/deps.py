# =============================================================================
# API Dependencies — Identity, Store, and File Storage Injection
# =============================================================================
#
# 1. get_current_owner() — verify the Bearer JWT and return the owner id
# 2. get_file_storage()  — the image storage collaborator
# 3. get_car_service()   — CarService bound to this request's session
#
# DESIGN DECISION: FastAPI dependency (not middleware) for identity.
# - Each endpoint opts-in via Depends(get_current_owner)
# - The verified owner id is passed explicitly into every store call; there
#   is no request-global "current user"
# - Testable via dependency_overrides
#
# DESIGN DECISION: Verification only. Tokens are issued by the identity
# service with a shared HS256 secret and the user id in the `userId` claim.
# This module never mints tokens.
#
# DESIGN DECISION: HTTPBearer(auto_error=False) so that when auth is
# disabled, missing headers don't cause errors. Every request then acts as
# settings.anonymous_owner_id.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.engine import get_async_session
from app.services.cars import CarService
from app.services.rate_limiter import check_rate_limit
from app.services.storage import FileStorage, LocalFileStorage
from app.services.store import CarStore

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI docs (shows "Authorize" button in Swagger UI)
_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_owner_id(token: str) -> str:
    """
    Verify a JWT and extract the owner id.

    Raises:
        HTTPException 401: Bad signature, expired, or no user id claim.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning("JWT validation failed: %s", e)
        raise _unauthorized("Unauthorized")

    owner_id = payload.get(settings.jwt_user_claim) or payload.get("sub")
    if not owner_id:
        logger.warning("JWT token missing '%s' claim", settings.jwt_user_claim)
        raise _unauthorized("Invalid token: missing user ID")
    return str(owner_id)


async def get_current_owner(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(
        _bearer_scheme,
    ),
) -> str:
    """
    FastAPI dependency that resolves the verified owner id.

    When auth_enabled=False: returns settings.anonymous_owner_id.
    When auth_enabled=True:
    - Extracts Bearer token from Authorization header
    - Verifies signature and expiry, reads the user id claim
    - Checks the per-owner rate limit via Redis
    - Stores the owner id on request.state for audit logging

    Raises:
        HTTPException 401: Missing or invalid token
        HTTPException 429: Rate limit exceeded
    """
    if not settings.auth_enabled:
        owner_id = settings.anonymous_owner_id
    else:
        if credentials is None:
            raise _unauthorized(
                "Missing token. Provide 'Authorization: Bearer <token>' header.",
            )
        owner_id = decode_owner_id(credentials.credentials)
        await check_rate_limit(owner_id)

    request.state.owner_id = owner_id
    return owner_id


def get_file_storage() -> FileStorage:
    """Image storage rooted at settings.upload_dir."""
    return LocalFileStorage(settings.upload_dir)


async def get_car_service(
    session: AsyncSession = Depends(get_async_session),
    storage: FileStorage = Depends(get_file_storage),
) -> CarService:
    """CarService bound to the request's DB session."""
    return CarService(CarStore(session), storage)
