"""
REST API Endpoints for tasks.

Exposes a full CRUD interface for tasks plus a health-check endpoint.  Every
task endpoint is protected by JWT authentication (``require_auth``) and
scoped to the authenticated user: another user's task is indistinguishable
from a missing one.

Endpoints:
    GET    /api/health          - Service health check (public)
    GET    /api/tasks           - List tasks (filter[status]=, sort=, order=,
                                  limit=, offset=)
    GET    /api/tasks/<id>      - Retrieve a single task
    POST   /api/tasks           - Create a new task
    PUT    /api/tasks/<id>      - Full replace of a task
    PATCH  /api/tasks/<id>      - Partial update of a task
    DELETE /api/tasks/<id>      - Delete a task

Validation and business rules live in ``TaskService``; these handlers only
parse the request, call the service and pick the status code.  Service
exceptions are rendered by the application-level error handler.
"""

from __future__ import annotations

import logging
import os
import re

from flask import Blueprint, Response, g, jsonify, request

from ..auth import require_auth
from ..errors import InvalidNumberError, ValidationError
from ..services import TaskService

logger = logging.getLogger(__name__)

api_bp = Blueprint("task_api", __name__)

_FILTER_ARG = re.compile(r"^filter\[(\w+)\]$")
# LIMIT / OFFSET are bound as 64-bit integers.
_QUERY_INT_MAX = 2**63 - 1


# =====================================================================
# Helper Functions
# =====================================================================


def _json_body() -> dict:
    """Return the request body as a JSON object or raise a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _filter_args() -> dict[str, str]:
    """Collect ``filter[<field>]=<value>`` query arguments."""
    filters = {}
    for key, value in request.args.items():
        match = _FILTER_ARG.match(key)
        if match:
            filters[match.group(1)] = value
    return filters


def _optional_non_negative_int(name: str) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidNumberError(name, raw) from exc
    if not 0 <= value <= _QUERY_INT_MAX:
        raise InvalidNumberError(name, raw)
    return value


def _not_found() -> tuple[Response, int]:
    return jsonify({"error": "Task not found"}), 404


# =====================================================================
# API Endpoints
# =====================================================================


@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Public liveness probe for load balancers and orchestrators."""
    return (
        jsonify(
            {
                "status": "healthy",
                "service": "tasks",
                "environment": os.getenv("ENVIRONMENT", "unknown"),
            }
        ),
        200,
    )


@api_bp.route("/tasks", methods=["GET"])
@require_auth
def list_tasks() -> tuple[Response, int]:
    """
    List the authenticated user's tasks.

    Returns:
        A JSON array of tasks in the requested order.
    """
    user = g.current_user
    logger.info("GET /api/tasks - Fetching tasks for owner_id=%s", user.id)

    tasks = TaskService().list_tasks(
        _filter_args(),
        request.args.get("sort", "createdAt"),
        request.args.get("order", "ASC"),
        owner=user,
        limit=_optional_non_negative_int("limit"),
        offset=_optional_non_negative_int("offset"),
    )
    return jsonify([task.to_dict() for task in tasks]), 200


@api_bp.route("/tasks/<int:task_id>", methods=["GET"])
@require_auth
def get_task(task_id: int) -> tuple[Response, int]:
    task = TaskService().get_task(task_id, owner=g.current_user)
    if task is None:
        return _not_found()
    return jsonify(task.to_dict()), 200


@api_bp.route("/tasks", methods=["POST"])
@require_auth
def create_task() -> tuple[Response, int]:
    """
    Create a new task owned by the authenticated user.

    Expects a JSON object with at least ``title``.  Optional fields:
    ``description``, ``dueAt``, ``priority``, ``status``, ``position``,
    ``tags``.
    """
    task = TaskService().create_task(_json_body(), owner=g.current_user)
    return jsonify(task.to_dict()), 201


@api_bp.route("/tasks/<int:task_id>", methods=["PUT"])
@require_auth
def replace_task(task_id: int) -> tuple[Response, int]:
    """
    Full replace of a task.

    ``title`` and ``position`` are mandatory; other omitted fields are reset
    to their defaults.
    """
    task = TaskService().update_task(
        task_id, _json_body(), is_full_replace=True, owner=g.current_user
    )
    if task is None:
        return _not_found()
    return jsonify(task.to_dict()), 200


@api_bp.route("/tasks/<int:task_id>", methods=["PATCH"])
@require_auth
def patch_task(task_id: int) -> tuple[Response, int]:
    """Partial update: only fields present in the body are changed."""
    task = TaskService().update_task(
        task_id, _json_body(), is_full_replace=False, owner=g.current_user
    )
    if task is None:
        return _not_found()
    return jsonify(task.to_dict()), 200


@api_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@require_auth
def delete_task(task_id: int) -> tuple[Response, int]:
    if not TaskService().delete_task(task_id, owner=g.current_user):
        return _not_found()
    return Response(status=204), 204
