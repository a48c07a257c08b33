"""
Query construction over the task manager store.

Repositories wrap a SQLAlchemy session and expose the handful of queries
the services need.  They never commit; transaction boundaries belong to the
service layer.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import case, select
from sqlalchemy.orm import Session

from .models import Tag, Task, TaskPriority, User

# Task attributes that may appear in criteria or ordering.
TASK_FIELDS = frozenset(
    {
        "id",
        "owner_id",
        "title",
        "description",
        "due_at",
        "priority",
        "position",
        "status",
        "created_at",
        "updated_at",
    }
)


def priority_rank():
    """
    SQL expression ranking priorities by ``TaskPriority.rank``.

    Stored values that are not a ``TaskPriority`` member rank 0, below low.
    """
    return case(
        {priority.value: priority.rank for priority in TaskPriority},
        value=Task.priority,
        else_=0,
    )


def _task_column(field: str):
    if field not in TASK_FIELDS:
        raise ValueError(f"Unknown task field: {field!r}")
    return getattr(Task, field)


class TaskRepository:
    """Data access for ``Task`` rows."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find(self, task_id: int) -> Task | None:
        return self._session.get(Task, task_id)

    def find_by(
        self,
        criteria: Mapping[str, Any],
        order_by: Sequence[tuple[str, str]] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Task]:
        """
        Return tasks matching every criterion, in the requested order.

        Args:
            criteria: Field name to required value; all entries are AND-ed
                as equality predicates.
            order_by: ``(field, direction)`` pairs applied in order (primary,
                secondary, ...).  Direction is ``"DESC"`` (any case) for
                descending, anything else ascending.  ``priority`` orders by
                ``priority_rank()`` rather than the stored string.
            limit: Maximum number of rows, when not ``None``.
            offset: Number of rows to skip, when not ``None``.

        Raises:
            ValueError: If a field name is not a Task column.
        """
        stmt = select(Task)

        for field, value in criteria.items():
            stmt = stmt.where(_task_column(field) == value)

        for field, direction in order_by or ():
            expression = priority_rank() if field == "priority" else _task_column(field)
            descending = str(direction).upper() == "DESC"
            stmt = stmt.order_by(expression.desc() if descending else expression.asc())

        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)

        return list(self._session.scalars(stmt).all())

    def add(self, task: Task) -> None:
        self._session.add(task)

    def delete(self, task: Task) -> None:
        self._session.delete(task)


class TagRepository:
    """Data access for ``Tag`` rows."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_or_create(self, names: Iterable[str]) -> list[Tag]:
        """Return tags for *names* in the given order, creating missing ones."""
        names = list(names)
        if not names:
            return []

        # The task being built may already be pending via its owner backref.
        with self._session.no_autoflush:
            existing = {
                tag.name: tag
                for tag in self._session.scalars(select(Tag).where(Tag.name.in_(names)))
            }
        tags = []
        for name in names:
            tag = existing.get(name)
            if tag is None:
                tag = Tag(name=name)
                self._session.add(tag)
                existing[name] = tag
            tags.append(tag)
        return tags


class UserRepository:
    """Data access for ``User`` rows."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: int) -> User | None:
        return self._session.get(User, user_id)

    def find_by_email(self, email: str) -> User | None:
        return self._session.scalar(select(User).where(User.email == email))

    def add(self, user: User) -> None:
        self._session.add(user)
