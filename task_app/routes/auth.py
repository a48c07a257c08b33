"""
Registration and login endpoints.

Endpoints:
    POST /api/register  -- Create a user and return a JWT.
    POST /api/login     -- Authenticate and receive a JWT.

Both endpoints answer with ``{"token": ..., "user": {...}}``; the user
payload never contains the password hash.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from ..errors import MissingFieldError, UnauthenticatedError, ValidationError
from ..jwt import create_token
from ..models import User
from ..services import UserService

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_api", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _issue_token(user: User) -> str:
    return create_token(
        user_id=user.id,
        email=user.email,
        private_key=current_app.config["JWT_PRIVATE_KEY"],
        expiry_hours=current_app.config["JWT_EXPIRY_HOURS"],
    )


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    """
    Register a new user account.

    Returns:
        201 with ``token`` and ``user`` on success.
        400 if validation fails (``errors`` lists messages per field).
        409 if the email is already registered.
    """
    data = _json_body()
    user = UserService().register(data.get("email"), data.get("password"))
    return jsonify({"token": _issue_token(user), "user": user.to_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate a user and issue a JWT.

    The deliberately vague ``"Invalid email or password"`` message avoids
    revealing whether the email exists.
    """
    data = _json_body()
    for field in ("email", "password"):
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise MissingFieldError(field)

    user = UserService().authenticate(data["email"], data["password"])
    if user is None:
        logger.info("Failed login attempt")
        raise UnauthenticatedError("Invalid email or password")

    return jsonify({"token": _issue_token(user), "user": user.to_dict()}), 200
