"""
Configuration Classes for the Task Manager API.

Centralises all environment-dependent settings (database URI, JWT keys,
token lifetime, log level) into a hierarchy of configuration classes.  The
base ``Config`` class defines development defaults, while subclasses
override only what differs per environment.

Key Concepts Demonstrated:
- Class-based configuration with inheritance
- Environment-variable overrides for twelve-factor app compliance
- JWT key material loaded from raw PEM variables or key-file paths
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _load_key(raw_env_var: str, path_env_var: str) -> str:
    """
    Load a PEM key from raw environment variable or file-path variable.

    The raw PEM variable takes precedence over the path variable so
    orchestrators can inject secrets directly without mounting files.
    """
    raw_key = os.environ.get(raw_env_var, "").strip()
    if raw_key:
        return raw_key

    key_path = os.environ.get(path_env_var, "").strip()
    if key_path:
        try:
            return Path(key_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(
                f"Unable to read JWT key file at '{key_path}' from {path_env_var}."
            ) from exc

    raise RuntimeError(
        f"Missing JWT key configuration: set {raw_env_var} or {path_env_var}."
    )


def _has_key_source(raw_env_var: str, path_env_var: str) -> bool:
    """Return True when at least one key source variable is configured."""
    return bool(
        os.environ.get(raw_env_var, "").strip()
        or os.environ.get(path_env_var, "").strip()
    )


def load_jwt_keys(*, testing: bool) -> tuple[str, str]:
    """
    Resolve the JWT private/public key pair for the selected environment.

    In testing mode, TEST_* vars are used when configured; otherwise it falls
    back to the standard JWT_* variables.
    """
    if testing and (
        _has_key_source("TEST_JWT_PRIVATE_KEY", "TEST_JWT_PRIVATE_KEY_PATH")
        or _has_key_source("TEST_JWT_PUBLIC_KEY", "TEST_JWT_PUBLIC_KEY_PATH")
    ):
        return (
            _load_key("TEST_JWT_PRIVATE_KEY", "TEST_JWT_PRIVATE_KEY_PATH"),
            _load_key("TEST_JWT_PUBLIC_KEY", "TEST_JWT_PUBLIC_KEY_PATH"),
        )

    return (
        _load_key("JWT_PRIVATE_KEY", "JWT_PRIVATE_KEY_PATH"),
        _load_key("JWT_PUBLIC_KEY", "JWT_PUBLIC_KEY_PATH"),
    )


class Config:
    """
    Base configuration with development-safe defaults.

    Attributes:
        SECRET_KEY: Flask session signing key.
        SQLALCHEMY_TRACK_MODIFICATIONS: Disabled to save memory.
        SQLALCHEMY_DATABASE_URI: Database connection string (default: local
            SQLite file).
        JWT_EXPIRY_HOURS: Lifetime of tokens issued at register/login.
        JWT_CLOCK_SKEW_SECONDS: Allowed clock drift when validating
            ``exp`` / ``iat`` claims.
        LOG_LEVEL: Root log level applied by the application factory.
    """

    SECRET_KEY: str = os.environ.get(
        "SECRET_KEY", "task-manager-dev-secret-change-in-production"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'tasks.db'}",
    )

    JWT_EXPIRY_HOURS: int = int(os.environ.get("JWT_EXPIRY_HOURS", "24"))
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("JWT_CLOCK_SKEW_SECONDS", "30"))

    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Testing environment configuration.

    Uses an isolated SQLite database so that tests do not pollute
    development data, and short-lived tokens.
    """

    DEBUG: bool = True
    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'test_tasks.db'}?check_same_thread=False",
    )
    SQLALCHEMY_ENGINE_OPTIONS: dict = {"pool_pre_ping": True}
    JWT_EXPIRY_HOURS: int = int(os.environ.get("TEST_JWT_EXPIRY_HOURS", "1"))


class ProductionConfig(Config):
    """
    Production environment configuration.

    All secrets and URIs should be supplied exclusively through environment
    variables in production.
    """

    DEBUG: bool = False
    TESTING: bool = False


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Look up and return the configuration class for the given environment.

    Args:
        env: Environment name (``"development"``, ``"testing"``,
            ``"production"``).  When ``None``, falls back to the
            ``FLASK_ENV`` environment variable, defaulting to
            ``"development"``.

    Returns:
        The configuration class (not an instance) corresponding to the
        requested environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
