"""
Task payload decoding.

A create or update request body is decoded exactly once into a
``TaskPatch``.  Every field is tri-state:

* ``UNSET`` -- the key was absent from the payload; leave the task alone.
* ``None`` -- the key was present with an explicit ``null``.
* a value -- the key was present and its value passed validation.

Validation happens entirely inside ``TaskPatch.from_payload`` so that a
rejected request never leaves a half-modified task behind.  Applying the
patch is a separate, side-effect-only step (``TaskPatch.apply_to``) that
reports whether any stored value actually changed.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .errors import (
    InvalidDateFormatError,
    InvalidFieldValueError,
    InvalidNumberError,
    MissingFieldError,
)
from .models import (
    POSITION_MAX,
    POSITION_MIN,
    TITLE_MAX_LENGTH,
    Tag,
    Task,
    TaskPriority,
    TaskStatus,
    ensure_utc,
)


class _Unset:
    """Marker for a field that was absent from the payload."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()

# Payload key -> Task attribute, in validation order.
CANONICAL_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "dueAt": "due_at",
    "priority": "priority",
    "status": "status",
    "position": "position",
}

# Values a full replace assigns to canonical fields missing from the payload.
FULL_REPLACE_DEFAULTS: dict[str, Any] = {
    "description": None,
    "dueAt": None,
    "priority": TaskPriority.MEDIUM,
    "status": TaskStatus.PENDING,
}

FULL_REPLACE_REQUIRED = ("title", "position")


# =====================================================================
# Field parsers
# =====================================================================


def parse_title(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingFieldError("title", "'title' cannot be empty")
    if not isinstance(value, str):
        raise InvalidFieldValueError("title", "'title' must be a string")
    if len(value) > TITLE_MAX_LENGTH:
        raise InvalidFieldValueError(
            "title", f"Title must be {TITLE_MAX_LENGTH} characters or less"
        )
    return value


def parse_description(value: Any) -> str | None:
    if value is not None and not isinstance(value, str):
        raise InvalidFieldValueError("description", "'description' must be a string")
    return value


def parse_due_at(value: Any) -> datetime | None:
    """
    Parse an optional ISO-8601 string into a UTC datetime.

    ``None`` and the empty string both clear the deadline.  A trailing
    ``Z`` is accepted as UTC.
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise InvalidDateFormatError("dueAt", value)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidDateFormatError("dueAt", value) from exc
    return ensure_utc(parsed)


def parse_position(value: Any) -> int:
    """
    Coerce a numeric value to an integer position.

    Accepts integers, finite floats and numeric strings (``"3"``,
    ``"2.5"``); fractional values are truncated.  Booleans are rejected even
    though Python treats them as integers, and so is anything outside the
    range of the ``position`` column.
    """
    position = _coerce_int(value)
    if position is None or not POSITION_MIN <= position <= POSITION_MAX:
        raise InvalidNumberError("position", value)
    return position


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) else None
    return None


def parse_tags(value: Any) -> list[str]:
    """Validate a list of tag names, stripping whitespace and dropping duplicates."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidFieldValueError("tags", "'tags' must be a list of tag names")

    names: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise InvalidFieldValueError("tags", "Tag names must be non-empty strings")
        name = item.strip()
        if len(name) > 255:
            raise InvalidFieldValueError("tags", "Tag names must be 255 characters or less")
        if name not in names:
            names.append(name)
    return names


_PARSERS: dict[str, Callable[[Any], Any]] = {
    "title": parse_title,
    "description": parse_description,
    "dueAt": parse_due_at,
    "priority": lambda value: TaskPriority.parse(value, "priority"),
    "status": lambda value: TaskStatus.parse(value, "status"),
    "position": parse_position,
}


def _same_value(current: Any, new: Any) -> bool:
    if isinstance(current, datetime) and isinstance(new, datetime):
        return ensure_utc(current) == ensure_utc(new)
    if current is None or new is None:
        return current is None and new is None
    if isinstance(new, (TaskPriority, TaskStatus)):
        return str(current) == new.value
    return current == new


# =====================================================================
# Patch
# =====================================================================


@dataclass
class TaskPatch:
    """Validated, tri-state view of a task create/update payload."""

    title: Any = UNSET
    description: Any = UNSET
    due_at: Any = UNSET
    priority: Any = UNSET
    status: Any = UNSET
    position: Any = UNSET
    tags: Any = UNSET

    @classmethod
    def from_payload(
        cls, data: Mapping[str, Any], *, full_replace: bool = False
    ) -> TaskPatch:
        """
        Decode and validate a request body.

        Args:
            data: The deserialised JSON object.
            full_replace: When ``True`` every canonical field must be
                resolved: absent optional fields take their defaults and
                absent ``title``/``position`` raise ``MissingFieldError``.

        Returns:
            A ``TaskPatch`` whose set fields are all valid.

        Raises:
            ValidationError: The first field that fails validation.
        """
        patch = cls()
        for key, attr in CANONICAL_FIELDS.items():
            if key in data:
                setattr(patch, attr, _PARSERS[key](data[key]))
            elif full_replace:
                if key in FULL_REPLACE_REQUIRED:
                    raise MissingFieldError(
                        key, f"Missing required field: {key} for full replace"
                    )
                setattr(patch, attr, FULL_REPLACE_DEFAULTS[key])

        if "tags" in data:
            patch.tags = parse_tags(data["tags"])
        return patch

    def fields(self) -> dict[str, Any]:
        """Return the set (non-``UNSET``) scalar fields keyed by Task attribute."""
        return {
            attr: getattr(self, attr)
            for attr in CANONICAL_FIELDS.values()
            if getattr(self, attr) is not UNSET
        }

    def apply_to(
        self,
        task: Task,
        resolve_tags: Callable[[list[str]], list[Tag]] | None = None,
    ) -> bool:
        """
        Assign every set field that differs from the task's current value.

        Args:
            task: The entity to mutate.
            resolve_tags: Turns tag names into ``Tag`` rows.  Required when
                the patch carries tags.

        Returns:
            ``True`` if at least one stored value changed.
        """
        changed = False
        for attr, value in self.fields().items():
            if _same_value(getattr(task, attr), value):
                continue
            if isinstance(value, (TaskPriority, TaskStatus)):
                value = value.value
            setattr(task, attr, value)
            changed = True

        if self.tags is not UNSET:
            current_names = {tag.name for tag in task.tags}
            if current_names != set(self.tags):
                if resolve_tags is None:
                    raise RuntimeError("resolve_tags is required to apply tag changes")
                task.tags = resolve_tags(self.tags)
                changed = True
        return changed
