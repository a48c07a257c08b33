"""
Task Manager Flask Application Factory.

Provides the ``create_app`` factory function that assembles the task
manager API.  The factory pattern allows multiple application instances
with different configurations (development, testing, production) to coexist
in the same process.

The application registers two blueprints, both mounted at ``/api``:
  * **auth_bp** -- registration and login, issuing RS256 JWTs.
  * **api_bp** -- task CRUD plus the health check, protected by
    ``require_auth``.

Key Concepts Demonstrated:
- Application factory pattern (``create_app``)
- SQLAlchemy integration with Flask via ``flask_sqlalchemy``
- One JSON error envelope for every service exception
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from flask import Flask, Response, jsonify
from flask_sqlalchemy import SQLAlchemy
from werkzeug.exceptions import HTTPException

from .config import get_config, load_jwt_keys

db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix) :].split("?", 1)[0]
    if sqlite_path in ("", ":memory:"):
        return

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def _register_error_handlers(app: Flask) -> None:
    """Map service exceptions and HTTP errors onto JSON responses."""
    from .errors import TaskManagerError

    @app.errorhandler(TaskManagerError)
    def handle_task_manager_error(error: TaskManagerError) -> tuple[Response, int]:
        logger.warning("%s: %s", error.__class__.__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> tuple[Response, int]:
        return jsonify({"error": error.description}), error.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> tuple[Response, int]:
        # Never leak internal detail to the client.
        logger.exception("Internal server error: %s", error)
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the task manager application.

    Instantiates the Flask app, loads the appropriate configuration object
    and JWT key pair, initialises SQLAlchemy, registers the blueprints and
    error handlers, and ensures that all database tables exist.

    Args:
        config_name: Optional configuration environment name
            (``"development"``, ``"testing"``, ``"production"``).  When *None*,
            the value is read from the ``FLASK_ENV`` environment variable,
            defaulting to ``"development"``.

    Returns:
        A fully configured Flask application instance ready to serve requests.
    """
    app = Flask(__name__, instance_relative_config=True)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    private_key, public_key = load_jwt_keys(testing=bool(app.config.get("TESTING")))
    app.config["JWT_PRIVATE_KEY"] = private_key
    app.config["JWT_PUBLIC_KEY"] = public_key

    logging.getLogger().setLevel(app.config.get("LOG_LEVEL", "INFO"))
    logger.info("Creating task manager app with config: %s", config_class.__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    db.init_app(app)

    # Imported here so the models see the initialised ``db`` instance.
    from . import models  # noqa: F401
    from .routes.api import api_bp
    from .routes.auth import auth_bp

    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(api_bp, url_prefix="/api")
    _register_error_handlers(app)

    with app.app_context():
        db.create_all()
        logger.info("Task manager database tables created")

    return app
