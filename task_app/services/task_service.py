"""
Task business rules.

``TaskService`` owns every rule about creating, listing, updating and
deleting tasks: filter parsing, the sort allow-list, create defaults, the
difference between full-replace (PUT) and partial (PATCH) updates, and when
``updated_at`` moves.  Each mutating operation runs inside one explicit
transaction that is rolled back if anything raises.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy.orm import Session

from .. import db
from ..errors import InvalidFilterValueError, MissingFieldError
from ..models import Task, TaskPriority, TaskStatus, User
from ..patch import UNSET, TaskPatch
from ..repositories import TagRepository, TaskRepository

logger = logging.getLogger(__name__)

# Public sort name -> Task attribute.
SORTABLE_FIELDS = {
    "createdAt": "created_at",
    "dueAt": "due_at",
    "priority": "priority",
    "title": "title",
    "position": "position",
}
DEFAULT_SORT_FIELD = "createdAt"

FILTERABLE_FIELDS = {
    "status": TaskStatus,
    "priority": TaskPriority,
}


def resolve_ordering(sort_field: str | None, sort_direction: str | None) -> list[tuple[str, str]]:
    """
    Translate a public sort name and direction into repository ordering.

    Unknown sort fields fall back to ``createdAt`` ascending without error.
    The direction is descending only for ``"DESC"`` in any case.  ``id``
    is appended as a final tie-breaker so equal keys keep insertion order.
    """
    if sort_field in SORTABLE_FIELDS:
        direction = "DESC" if str(sort_direction or "").upper() == "DESC" else "ASC"
    else:
        sort_field, direction = DEFAULT_SORT_FIELD, "ASC"
    return [(SORTABLE_FIELDS[sort_field], direction), ("id", "ASC")]


class TaskService:
    """Validates and applies task operations against the store."""

    def __init__(self, session: Session | None = None) -> None:
        self._session = session if session is not None else db.session
        self._tasks = TaskRepository(self._session)
        self._tags = TagRepository(self._session)

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        try:
            yield self._session
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def list_tasks(
        self,
        filters: Mapping[str, Any] | None = None,
        sort_field: str | None = DEFAULT_SORT_FIELD,
        sort_direction: str | None = "ASC",
        owner: User | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Task]:
        """
        Return tasks matching *filters*, ordered by *sort_field*.

        Args:
            filters: Field name to raw value.  ``status`` and ``priority``
                are recognised; other keys are ignored.
            sort_field: One of ``createdAt``, ``dueAt``, ``priority``,
                ``title``, ``position``.
            sort_direction: ``"DESC"`` (any case) or ascending.
            owner: When given, only this user's tasks are returned.
            limit: Optional maximum number of tasks.
            offset: Optional number of tasks to skip.

        Raises:
            InvalidFilterValueError: A filter value is not a valid member.
        """
        criteria: dict[str, Any] = {}
        if owner is not None:
            criteria["owner_id"] = owner.id

        for field, enum_cls in FILTERABLE_FIELDS.items():
            raw = (filters or {}).get(field)
            if raw is None:
                continue
            member = enum_cls.try_parse(raw)
            if member is None:
                raise InvalidFilterValueError(field, raw)
            criteria[field] = member.value

        return self._tasks.find_by(
            criteria,
            resolve_ordering(sort_field, sort_direction),
            limit=limit,
            offset=offset,
        )

    def get_task(self, task_id: int, owner: User | None = None) -> Task | None:
        """Look up a task; another owner's task is reported as absent."""
        task = self._tasks.find(task_id)
        if task is None:
            return None
        if owner is not None and task.owner_id != owner.id:
            return None
        return task

    def create_task(self, fields: Mapping[str, Any], owner: User) -> Task:
        """
        Validate *fields* and persist a new task owned by *owner*.

        The owner always comes from the caller; any owner key in *fields*
        is ignored.  Absent ``priority``/``status``/``position`` take the
        entity defaults.

        Raises:
            MissingFieldError: ``title`` is absent or blank.
            ValidationError: Any other field is invalid.
        """
        patch = TaskPatch.from_payload(fields)
        if patch.title is UNSET:
            raise MissingFieldError("title")

        with self._transaction():
            task = Task(owner=owner)
            patch.apply_to(task, self._tags.get_or_create)
            self._tasks.add(task)

        logger.info("Created task id=%s for owner_id=%s", task.id, owner.id)
        return task

    def update_task(
        self,
        task_id: int,
        fields: Mapping[str, Any],
        is_full_replace: bool = False,
        owner: User | None = None,
    ) -> Task | None:
        """
        Apply a full-replace (PUT) or partial (PATCH) update.

        ``updated_at`` is refreshed only when a stored value actually
        changes.

        Returns:
            The updated task, or ``None`` if no such task exists for
            *owner*.

        Raises:
            MissingFieldError: Full replace without ``title``/``position``,
                or a blank title.
            ValidationError: Any other field is invalid.
        """
        task = self.get_task(task_id, owner)
        if task is None:
            return None

        patch = TaskPatch.from_payload(fields, full_replace=is_full_replace)
        with self._transaction():
            changed = patch.apply_to(task, self._tags.get_or_create)
            if changed:
                task.touch()

        logger.info(
            "Updated task id=%s (%s, changed=%s)",
            task_id,
            "replace" if is_full_replace else "partial",
            changed,
        )
        return task

    def delete_task(self, task_id: int, owner: User | None = None) -> bool:
        """Delete a task, returning whether one existed."""
        task = self.get_task(task_id, owner)
        if task is None:
            return False

        with self._transaction():
            self._tasks.delete(task)

        logger.info("Deleted task id=%s", task_id)
        return True
