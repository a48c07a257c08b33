"""
User registration and credential checks.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import db
from ..errors import DuplicateEmailError, ValidationFailedError
from ..models import DEFAULT_ROLES, EMAIL_MAX_LENGTH, User
from ..repositories import UserRepository

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration(email: object, password: object) -> dict[str, list[str]]:
    """
    Collect per-field validation messages for a registration attempt.

    Returns:
        A mapping of field name to messages; empty when the input is valid.
    """
    errors: dict[str, list[str]] = {}

    if not isinstance(email, str) or not email.strip():
        errors.setdefault("email", []).append("This value should not be blank.")
    else:
        email = normalize_email(email)
        if len(email) > EMAIL_MAX_LENGTH:
            errors.setdefault("email", []).append(
                f"This value is too long. It should have {EMAIL_MAX_LENGTH} characters or less."
            )
        if not _EMAIL_PATTERN.match(email):
            errors.setdefault("email", []).append("This value is not a valid email address.")

    if not isinstance(password, str) or not password:
        errors.setdefault("password", []).append("This value should not be blank.")
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors.setdefault("password", []).append(
            f"This value is too short. It should have {PASSWORD_MIN_LENGTH} characters or more."
        )

    return errors


class UserService:
    """Registers users and verifies their credentials."""

    def __init__(self, session: Session | None = None) -> None:
        self._session = session if session is not None else db.session
        self._users = UserRepository(self._session)

    def register(self, email: object, password: object) -> User:
        """
        Create a user, storing only a one-way hash of the password.

        Raises:
            ValidationFailedError: Input rejected; ``errors`` carries
                per-field messages.
            DuplicateEmailError: The email is already registered.
        """
        errors = validate_registration(email, password)
        if errors:
            raise ValidationFailedError(errors)

        email = normalize_email(email)
        if self._users.find_by_email(email) is not None:
            raise DuplicateEmailError(email)

        user = User(email=email, roles=list(DEFAULT_ROLES))
        user.set_password(password)
        try:
            self._users.add(user)
            self._session.commit()
        except IntegrityError as exc:
            # A concurrent registration won the unique index.
            self._session.rollback()
            raise DuplicateEmailError(email) from exc
        except Exception:
            self._session.rollback()
            raise

        logger.info("Registered user id=%s", user.id)
        return user

    def authenticate(self, email: object, password: object) -> User | None:
        """Return the user for valid credentials, otherwise ``None``."""
        if not isinstance(email, str) or not isinstance(password, str):
            return None
        user = self._users.find_by_email(normalize_email(email))
        if user is None or not user.check_password(password):
            return None
        return user

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)
