"""
JWT token creation for the task manager.

Tokens are signed with RS256 (RSA-SHA256): the private key signs at
registration/login, the public key verifies on every protected request.

Token structure (claims):
    - ``user_id`` -- integer primary key of the authenticated user.
    - ``email``   -- the user's login email, carried for convenience.
    - ``iat``     -- issued-at timestamp (UTC epoch seconds).
    - ``exp``     -- expiration timestamp (UTC epoch seconds).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt


def create_token(
    user_id: int,
    email: str,
    private_key: str,
    expiry_hours: int,
) -> str:
    """
    Create an RS256-signed JWT containing the canonical auth claims.

    Args:
        user_id: Primary key of the authenticated user.  Must be positive.
        email: Email of the user.  Must be a non-empty string.
        private_key: RSA private key in PEM format.
        expiry_hours: Number of hours from now until the token expires.

    Returns:
        A compact JWS string suitable for an ``Authorization: Bearer``
        header.

    Raises:
        ValueError: If *user_id* is not positive or *email* is blank.
    """
    if int(user_id) <= 0:
        raise ValueError("user_id must be a positive integer")
    if not isinstance(email, str) or not email.strip():
        raise ValueError("email must be a non-empty string")

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=int(expiry_hours))

    payload: dict[str, Any] = {
        "user_id": int(user_id),
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, private_key, algorithm="RS256")
