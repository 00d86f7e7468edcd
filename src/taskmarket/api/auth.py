"""Keycloak authentication using fastapi-keycloak-middleware.

The middleware validates bearer tokens on REST routes and exposes the
token subject as the caller's user ID. WebSocket clients present the same
token in their ``identify`` message, validated against the realm's JWKS.
Token issuance and passwords live entirely in Keycloak.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog
from fastapi import Request
from fastapi_keycloak_middleware import KeycloakConfiguration, get_user
from jwcrypto import jwt
from jwcrypto.jwk import JWKSet

from .config import get_auth_settings
from .exceptions import AuthenticationError

logger = structlog.get_logger()

DEV_USER_HEADER = "X-User-ID"


async def user_mapper(userinfo: dict[str, Any]) -> str:
    """Extract user_id (sub claim) from token.

    Args:
        userinfo: Token claims dictionary

    Returns:
        User ID string (sub claim)
    """
    return str(userinfo.get("sub", ""))


def get_keycloak_config() -> KeycloakConfiguration:
    """Get Keycloak middleware configuration.

    Returns:
        KeycloakConfiguration for middleware setup
    """
    settings = get_auth_settings()
    return KeycloakConfiguration(
        url=settings.keycloak_url,
        realm=settings.keycloak_realm,
        client_id=settings.keycloak_client_id,
        client_secret=settings.keycloak_client_secret,
        claims=["sub"],
        reject_on_missing_claim=False,
    )


async def get_current_user_id(request: Request) -> str:
    """Get the caller's user ID.

    With authentication enabled the middleware stores the mapped user in
    request.scope["user"]. With it disabled the ID is read from the
    X-User-ID header.

    Args:
        request: FastAPI request object

    Returns:
        User ID string

    Raises:
        AuthenticationError: If the caller is not authenticated
    """
    if not get_auth_settings().auth_enabled:
        user_id = request.headers.get(DEV_USER_HEADER)
    else:
        user_id = await get_user(request)

    if not user_id:
        raise AuthenticationError(detail=f"Send a bearer token or the {DEV_USER_HEADER} header")
    return str(user_id)


async def authenticate_websocket(token: str) -> str:
    """Validate a bearer token presented over the WebSocket.

    Args:
        token: JWT token string

    Returns:
        User ID from the token's ``sub`` claim

    Raises:
        AuthenticationError: If the token is invalid or has no subject
    """
    try:
        settings = get_auth_settings()

        async with httpx.AsyncClient() as client:
            jwks_url = (
                f"{settings.keycloak_url}/realms/{settings.keycloak_realm}"
                "/protocol/openid-connect/certs"
            )
            response = await client.get(jwks_url)
            jwks = JWKSet.from_json(response.text)

        decoded = jwt.JWT(key=jwks, jwt=token)
        claims = decoded.claims
        if isinstance(claims, str):
            claims = json.loads(claims)
    except Exception as e:
        logger.warning("ws_token_invalid", error=str(e))
        raise AuthenticationError("Invalid token") from e

    subject = claims.get("sub")
    if not subject:
        logger.warning("ws_token_without_subject")
        raise AuthenticationError("Invalid token", detail="Token has no subject")
    return str(subject)


async def resolve_websocket_identity(payload: dict[str, Any]) -> str:
    """Resolve the user behind an ``identify`` message.

    Args:
        payload: Message payload ({"token": ...}, or {"user_id": ...}
            when authentication is disabled)

    Returns:
        User ID

    Raises:
        AuthenticationError: If no usable credential is present or it is invalid
    """
    token = payload.get("token")
    if token:
        return await authenticate_websocket(token)

    if not get_auth_settings().auth_enabled and payload.get("user_id"):
        return str(payload["user_id"])

    raise AuthenticationError("Token required")
