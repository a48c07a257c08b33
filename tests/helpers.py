"""Test helper functions shared by the unit and integration suites."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from task_app.keys import generate_key_pair

DEFAULT_TEST_USER_ID = 1
DEFAULT_TEST_EMAIL = "test_user@example.com"
DEFAULT_PASSWORD = "correct-horse-battery"

# Stable for one Python process: generated once on import, reused everywhere in tests.
TEST_PRIVATE_KEY, TEST_PUBLIC_KEY = generate_key_pair()


def generate_throwaway_key_pair() -> tuple[str, str]:
    """Generate a fresh RSA key pair for negative-path tests."""
    return generate_key_pair()


def create_test_token(
    user_id: int = DEFAULT_TEST_USER_ID,
    email: str = DEFAULT_TEST_EMAIL,
    private_key: str = TEST_PRIVATE_KEY,
    expired: bool = False,
) -> str:
    """Create a signed RS256 test token with required claims."""
    now = datetime.now(timezone.utc)
    expiry_time = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload: dict[str, Any] = {
        "user_id": int(user_id),
        "email": str(email),
        "iat": int(now.timestamp()),
        "exp": int(expiry_time.timestamp()),
    }
    return jwt.encode(payload, private_key, algorithm="RS256")


def auth_headers(token: str) -> dict[str, str]:
    """Build common JSON API headers with bearer token auth."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
