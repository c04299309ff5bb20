"""Utilities for issuing and validating the bearer JWTs that identify a caller."""

from __future__ import annotations

import time
from typing import Any

import jwt

from ..config import get_settings
from ..domain.account import AccountKey


def issue_access_token(*, email: str, app_name: str) -> tuple[str, int]:
    """Create a signed JWT identifying an account session.

    Parameters
    ----------
    email:
        Account email embedded in the token ``sub`` claim.
    app_name:
        Application namespace the account belongs to.

    Returns
    -------
    tuple[str, int]
        A tuple containing the encoded JWT string and its TTL (in seconds).
    """

    settings = get_settings()
    now = int(time.time())
    expires_in = settings.jwt_ttl_seconds
    payload: dict[str, Any] = {
        "iss": settings.jwt_issuer,
        "sub": email,
        "app_name": app_name,
        "iat": now,
        "exp": now + expires_in,
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm="HS256")
    return token, expires_in


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT returning its payload.

    Raises
    ------
    jwt.PyJWTError
        Propagated when the token is invalid, expired, or signed by another issuer.
    """

    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "exp"]},
    )


def account_key_from_token(token: str) -> AccountKey:
    """Resolve the :class:`AccountKey` a bearer token was issued for."""
    claims = decode_access_token(token)
    app_name = claims.get("app_name") or get_settings().default_app_name
    return AccountKey.of(claims["sub"], app_name)
