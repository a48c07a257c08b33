"""
JWT Verification Helpers for the Task Manager API.

Provides token verification and a decorator for protecting Flask endpoints
that require an authenticated user.  On success the decorator stores the
resolved ``User`` on ``flask.g.current_user``; every task operation takes
its owner from there, never from the request body.

Key Concepts Demonstrated:
- JWT verification with the ``PyJWT`` library
- Decorator pattern for endpoint authentication (``require_auth``)
- Using ``flask.g`` to store request-scoped user identity
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

import jwt
from flask import Response, current_app, g, request

from .errors import UnauthenticatedError
from .services.user_service import UserService

DEFAULT_ALLOWED_ALGORITHMS = ["RS256"]
REQUIRED_TOKEN_CLAIMS = ["user_id", "email", "iat", "exp"]


def verify_token(
    token: str,
    public_key: str,
    algorithms: list[str] | None = None,
) -> dict[str, Any] | None:
    """
    Decode and validate a JWT, returning the payload on success.

    Performs signature, ``exp`` and ``iat`` checks, requires every claim in
    ``REQUIRED_TOKEN_CLAIMS``, and validates that ``user_id`` is a positive
    integer and ``email`` a non-empty string.

    Returns:
        The decoded payload, or ``None`` if verification fails for any
        reason.
    """
    try:
        decoded = jwt.decode(
            token,
            public_key,
            algorithms=algorithms or DEFAULT_ALLOWED_ALGORITHMS,
            options={"require": REQUIRED_TOKEN_CLAIMS},
            leeway=int(current_app.config.get("JWT_CLOCK_SKEW_SECONDS", 30)),
        )
    except jwt.InvalidTokenError:
        return None

    user_id = decoded.get("user_id")
    email = decoded.get("email")

    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        return None
    if not isinstance(email, str) or not email.strip():
        return None
    return decoded


def _extract_bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def require_auth(view_func: Callable[..., tuple[Response, int] | Response]):
    """
    Decorator that enforces Bearer-token authentication on API endpoints.

    Raises ``UnauthenticatedError`` (rendered as 401 by the app error
    handler) when the header is missing, the token fails verification, or
    the token's user no longer exists.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        token = _extract_bearer_token()
        if token is None:
            raise UnauthenticatedError("Missing or invalid Authorization header")

        payload = verify_token(
            token,
            current_app.config["JWT_PUBLIC_KEY"],
            algorithms=DEFAULT_ALLOWED_ALGORITHMS,
        )
        if payload is None:
            raise UnauthenticatedError("Invalid or expired token")

        user = UserService().get_user(payload["user_id"])
        if user is None:
            raise UnauthenticatedError("Invalid or expired token")

        g.current_user = user
        return view_func(*args, **kwargs)

    return wrapper
