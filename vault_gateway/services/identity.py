"""Bearer identity verification.

User identity is established by an external identity provider that signs
JWTs. This module only verifies them and extracts the user id (``sub``).
"""

from __future__ import annotations

from typing import Any

import structlog
from jose import JWTError, jwt

from vault_gateway.config import IdentityConfig
from vault_gateway.errors import UnauthorizedError

logger = structlog.get_logger()


def parse_bearer(auth_header: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer`` header.

    Raises:
        UnauthorizedError: Header missing or not a bearer credential
    """
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedError("Unauthorized")
    token = auth_header[7:].strip()
    if not token:
        raise UnauthorizedError("Unauthorized")
    return token


def decode_identity_token(token: str, config: IdentityConfig) -> dict[str, Any]:
    """Verify signature, expiry and (optionally) audience; return the claims.

    Raises:
        UnauthorizedError: Token invalid or carries no subject
    """
    options = {"verify_aud": config.audience is not None}
    try:
        claims = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.algorithm],
            audience=config.audience,
            options=options,
        )
    except JWTError as e:
        logger.info("identity.rejected", error=str(e))
        raise UnauthorizedError("Invalid token") from e

    if not claims.get("sub"):
        raise UnauthorizedError("Invalid token claims")
    return claims


def authenticate_user(auth_header: str | None, config: IdentityConfig) -> str:
    """Return the verified user id for a bearer header."""
    token = parse_bearer(auth_header)
    claims = decode_identity_token(token, config)
    return str(claims["sub"])
