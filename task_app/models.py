"""
Database Models for the Task Manager API.

Defines the SQLAlchemy ORM models for users, tasks and tags, the
``tasks_tags`` association table, and the enumerations used for task status
and priority.  Every task is owned by exactly one user via ``owner_id``.

Key Concepts Demonstrated:
- SQLAlchemy declarative ORM models with typed columns
- ``str, Enum`` inheritance for JSON-friendly enumeration values
- Total (``parse``) and best-effort (``try_parse``) enum parsing
- Many-to-many association with cascade deletes on both parents
- Timezone-aware datetime handling (UTC normalisation)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db
from .errors import InvalidEnumValueError

TITLE_MAX_LENGTH = 255
EMAIL_MAX_LENGTH = 180
# Bounds of the 64-bit integer ``position`` column.
POSITION_MIN = -(2**63)
POSITION_MAX = 2**63 - 1
DEFAULT_ROLES = ["ROLE_USER"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to UTC.

    Naive datetimes (no ``tzinfo``) are assumed to already represent UTC
    and have the timezone attached.  Aware datetimes are converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_iso(value: datetime | None) -> str | None:
    """
    Convert a datetime to a UTC ISO-8601 string.

    SQLite does not store timezone information, so values read back from
    the database may be naive even though they were written in UTC.
    """
    if value is None:
        return None
    return ensure_utc(value).isoformat()


# =====================================================================
# Enumerations
# =====================================================================


class ParsableEnum(str, Enum):
    """
    String enumeration with total and best-effort parsing.

    Inherits from ``str`` so that each member's value is a plain string,
    which serialises directly to JSON and compares equal to the raw value
    stored in the database column.
    """

    def __str__(self) -> str:
        return self.value

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def try_parse(cls, value: Any):
        """
        Return the member whose value equals *value*, or ``None``.

        Matching is exact and case-sensitive; non-string input never
        matches.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def parse(cls, value: Any, field: str | None = None):
        """
        Return the member whose value equals *value*.

        Raises:
            InvalidEnumValueError: If *value* is not a canonical member value.
        """
        member = cls.try_parse(value)
        if member is None:
            raise InvalidEnumValueError(field or cls.__name__, value, cls.values())
        return member


class TaskStatus(ParsableEnum):
    """Enumeration of possible task lifecycle statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DONE = "done"


_PRIORITY_RANKS = {"high": 3, "medium": 2, "low": 1}


class TaskPriority(ParsableEnum):
    """
    Enumeration of task priority levels.

    Ordering by priority uses ``rank`` (high > medium > low), never the
    lexical order of the values.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANKS[self.value]


# =====================================================================
# Models
# =====================================================================


tasks_tags = db.Table(
    "tasks_tags",
    db.Column(
        "task_id",
        db.Integer,
        db.ForeignKey("tasks.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "tag_id",
        db.Integer,
        db.ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class User(db.Model):
    """
    Registered user who owns tasks.

    Passwords are never stored in plain text -- only a salted one-way hash
    is persisted, and ``to_dict`` omits it.

    Attributes:
        id: Auto-incrementing primary key.
        email: Unique login identifier (max 180 chars).
        roles: JSON list of role strings.
        password_hash: Werkzeug-generated hash of the user's password.
        created_at: Timestamp of account creation (UTC).
        updated_at: Timestamp of last modification (UTC).
    """

    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    email: str = db.Column(
        db.String(EMAIL_MAX_LENGTH), unique=True, nullable=False, index=True
    )
    roles: list = db.Column(
        db.JSON, nullable=False, default=lambda: list(DEFAULT_ROLES)
    )
    password_hash: str = db.Column(db.String(256), nullable=False)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    tasks = db.relationship("Task", back_populates="owner")

    def set_password(self, password: str) -> None:
        """Hash and store a plain-text password (PBKDF2/scrypt via Werkzeug)."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        """
        Return a user-safe dictionary representation.

        The ``password_hash`` field is excluded so this output can be
        returned directly in JSON API responses.
        """
        return {
            "id": self.id,
            "email": self.email,
            "roles": list(self.roles or []),
            "createdAt": to_utc_iso(self.created_at),
            "updatedAt": to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"


class Tag(db.Model):
    """Free-form label shared between tasks."""

    __tablename__ = "tags"

    id: int = db.Column(db.Integer, primary_key=True)
    name: str = db.Column(db.String(255), unique=True, nullable=False)

    tasks = db.relationship("Task", secondary=tasks_tags, back_populates="tags")

    def __repr__(self) -> str:
        return f"<Tag {self.id}: {self.name}>"


class Task(db.Model):
    """
    Task owned by a single user.

    Attributes:
        id: Auto-incrementing primary key.
        owner_id: Foreign key to the owning user.  Indexed for fast
            per-user queries.
        title: Short summary of the task (max 255 characters).
        description: Optional longer text.
        due_at: Optional timezone-aware deadline.
        priority: Importance level (see ``TaskPriority``).
        position: Integer used for manual ordering.
        status: Current lifecycle status (see ``TaskStatus``).
        created_at: Timestamp of task creation (UTC), never modified.
        updated_at: Timestamp of the last change that altered a value (UTC).
            Maintained by the task service rather than an ``onupdate`` hook
            so that no-op updates leave it untouched.
    """

    __tablename__ = "tasks"

    id: int = db.Column(db.Integer, primary_key=True)
    owner_id: int = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    title: str = db.Column(db.String(TITLE_MAX_LENGTH), nullable=False)
    description: str | None = db.Column(db.Text, nullable=True)
    due_at: datetime | None = db.Column(db.DateTime(timezone=True), nullable=True)
    priority: str = db.Column(
        db.String(50),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
    )
    position: int = db.Column(db.Integer, nullable=False, default=0)
    status: str = db.Column(
        db.String(50),
        nullable=False,
        default=TaskStatus.PENDING.value,
    )
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow
    )

    owner = db.relationship("User", back_populates="tasks")
    tags = db.relationship("Tag", secondary=tasks_tags, back_populates="tasks")

    def touch(self) -> None:
        """Refresh ``updated_at`` after a change."""
        self.updated_at = utcnow()

    def to_dict(self) -> dict[str, Any]:
        """
        Serialise the task to a JSON-safe dictionary.

        Returns:
            A dictionary containing all task fields with datetime values
            converted to UTC ISO-8601 strings and tags as a sorted list of
            names.
        """
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueAt": to_utc_iso(self.due_at),
            "priority": str(self.priority),
            "position": self.position,
            "status": str(self.status),
            "ownerId": self.owner_id,
            "tags": sorted(tag.name for tag in self.tags),
            "createdAt": to_utc_iso(self.created_at),
            "updatedAt": to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title}>"
