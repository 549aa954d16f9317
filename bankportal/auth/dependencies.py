"""
FastAPI dependency functions for authentication.

These functions are used as FastAPI dependencies to verify tokens
and extract authenticated user_id from Supabase Auth.

Uses Supabase's JWT Signing Keys system with ECC (P-256) public key verification.
Admin routes additionally require the caller's profile to carry is_admin.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Optional, Tuple

from fastapi import Depends, Header, HTTPException, status
from jwt import PyJWKClient, decode
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError, PyJWKClientError

from bankportal.config import settings
from bankportal.db.client import get_supabase_client
from bankportal.services.profile_service import is_admin

logger = logging.getLogger(__name__)

# JWKS client for fetching and caching Supabase's public keys (lazy)
_jwks_client: PyJWKClient | None = None


@dataclass
class AuthenticatedUser:
    """
    Represents an authenticated user with their token.

    Attributes:
        user_id: The user's UUID from the JWT token's 'sub' claim
        access_token: The full JWT access token (for creating authenticated Supabase clients)
        email: The token's email claim, used to create a profile on first login
    """
    user_id: str
    access_token: str
    email: Optional[str] = None


def get_jwks_client() -> PyJWKClient:
    """
    Get or create the JWKS client instance.

    Returns:
        PyJWKClient: Configured JWKS client for Supabase

    Raises:
        ValueError: If SUPABASE_URL is not configured
    """
    global _jwks_client

    if _jwks_client is None:
        jwks_url = settings.SUPABASE_JWKS_URL
        if not jwks_url:
            raise ValueError(
                "SUPABASE_URL is not configured. "
                "Cannot construct JWKS URL for JWT verification."
            )

        logger.info(f"Initializing JWKS client with URL: {jwks_url}")
        _jwks_client = PyJWKClient(
            jwks_url,
            cache_keys=True,
            max_cached_keys=16,
        )

    return _jwks_client


def _unauthorized(error: str, details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "details": details}
    )


def _verify_bearer(authorization: str | None) -> Tuple[str, str, Dict[str, Any]]:
    """
    Validate a "Bearer <token>" header.

    Returns:
        (user_id, token, claims)

    Raises:
        HTTPException: 401 if the header is missing, malformed, expired or invalid
    """
    if not authorization:
        logger.warning("Missing Authorization header")
        raise _unauthorized("unauthorized", "Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Invalid Authorization header format")
        raise _unauthorized("unauthorized", "Invalid Authorization header format")

    token = parts[1]

    try:
        jwks_client = get_jwks_client()
        signing_key = jwks_client.get_signing_key_from_jwt(token)

        # Supabase issuers include the /auth/v1 path
        issuer = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1"

        payload = decode(
            token,
            signing_key.key,
            algorithms=["ES256"],
            audience="authenticated",
            issuer=issuer,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_aud": True,
                "verify_iss": True,
            }
        )

    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise _unauthorized("token_expired", "Authentication token has expired")

    except PyJWKClientError as e:
        logger.error(f"JWKS client error: {str(e)}")
        raise _unauthorized("jwks_error", "Unable to verify token signature")

    except InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise _unauthorized("invalid_token", "Invalid authentication token")

    except Exception as e:
        logger.error(f"Unexpected error during token verification: {str(e)}")
        raise _unauthorized("unauthorized", "Token verification failed")

    user_id = payload.get("sub")
    if not user_id:
        logger.error("Token payload missing 'sub' claim")
        raise _unauthorized("unauthorized", "Invalid token: missing user ID")

    logger.info(f"Token verified successfully for user_id={user_id}")

    return str(user_id), token, payload


async def verify_token(authorization: Annotated[str | None, Header()] = None) -> str:
    """
    Verify Supabase Auth Bearer token and extract user_id.

    Security:
        - This is the ONLY source of truth for user_id
        - Any user_id sent in request body is ignored
        - All downstream DB operations assume RLS enforces user_id = auth.uid()
    """
    user_id, _, _ = _verify_bearer(authorization)
    return user_id


async def get_authenticated_user(
    authorization: Annotated[str | None, Header()] = None
) -> AuthenticatedUser:
    """
    Verify token and return authenticated user with token.

    Usage:
        @router.get("/accounts")
        async def list_accounts(
            auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
        ):
            supabase_client = get_supabase_client(auth_user.access_token)
    """
    return authenticate_token(authorization)


def authenticate_token(authorization: str | None) -> AuthenticatedUser:
    """
    Verify a bearer value outside of dependency injection.

    WebSocket handlers call this directly; browsers cannot set headers on a
    WebSocket handshake, so the token may also arrive as a query parameter.

    Raises:
        HTTPException: 401, same details as get_authenticated_user
    """
    user_id, token, claims = _verify_bearer(authorization)
    return AuthenticatedUser(user_id=user_id, access_token=token, email=claims.get("email"))


async def require_admin(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AuthenticatedUser:
    """
    Allow the request only if the caller's profile has is_admin set.

    Raises:
        HTTPException: 403 for non-admin callers
    """
    supabase_client = get_supabase_client(auth_user.access_token)

    if not await is_admin(supabase_client, auth_user.user_id):
        logger.warning(f"Non-admin user {auth_user.user_id} attempted an admin operation")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "forbidden", "details": "Administrator privileges required"}
        )

    return auth_user
