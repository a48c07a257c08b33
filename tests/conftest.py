"""
Shared pytest fixtures for the Task Manager test suite.

Provides the Flask application, test client, database session, users,
JWT tokens, and reusable data factories used by the unit and integration
suites.

Key Concepts Demonstrated:
- Session-scoped vs function-scoped fixtures for performance and isolation
- Factory pattern (user_factory, task_factory) for flexible test data
- Fixture teardown to prevent test pollution
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from faker import Faker

# Set testing environment before importing the app
os.environ["FLASK_ENV"] = "testing"

from tests.helpers import (  # noqa: E402
    DEFAULT_PASSWORD,
    TEST_PRIVATE_KEY,
    TEST_PUBLIC_KEY,
    auth_headers,
    create_test_token,
)

os.environ["TEST_JWT_PRIVATE_KEY"] = TEST_PRIVATE_KEY
os.environ["TEST_JWT_PUBLIC_KEY"] = TEST_PUBLIC_KEY

from task_app import create_app, db  # noqa: E402
from task_app.models import Task, TaskPriority, TaskStatus, User  # noqa: E402
from task_app.repositories import TagRepository  # noqa: E402
from task_app.services import TaskService, UserService  # noqa: E402

fake = Faker()



# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def app():
    """
    Provide the Flask application instance for the entire test session.

    Creates the app once using the 'testing' configuration and shares it
    across all tests so the application factory is not invoked repeatedly.
    """
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """Provide a Flask test client scoped to a single test function."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database for each test function.

    Creates all tables before the test, yields the db instance for use,
    then rolls back any uncommitted changes and drops all tables.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


@pytest.fixture
def task_service(db_session) -> TaskService:
    return TaskService(db_session.session)


@pytest.fixture
def user_service(db_session) -> UserService:
    return UserService(db_session.session)


# -----------------------------------------------------------------------------
# Users and Tokens
# -----------------------------------------------------------------------------


@pytest.fixture
def user_factory(db_session):
    """
    Factory fixture that creates User rows with a hashed password.

    Returns a callable ``_create_user(email=None, password=...)``.
    """

    def _create_user(*, email: str | None = None, password: str = DEFAULT_PASSWORD) -> User:
        user = User(email=(email or fake.unique.email()).lower())
        user.set_password(password)
        db_session.session.add(user)
        db_session.session.commit()
        return user

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """The default task owner."""
    return user_factory(email="owner@example.com")


@pytest.fixture
def other_user(user_factory) -> User:
    """A second user, used for tenant-isolation assertions."""
    return user_factory(email="someone.else@example.com")


@pytest.fixture
def test_token(user) -> str:
    return create_test_token(user_id=user.id, email=user.email)


@pytest.fixture
def api_headers(test_token) -> dict[str, str]:
    """HTTP headers (Authorization + Content-Type) for the default user."""
    return auth_headers(test_token)


@pytest.fixture
def second_user_headers(other_user) -> dict[str, str]:
    """HTTP headers for ``other_user``."""
    return auth_headers(create_test_token(user_id=other_user.id, email=other_user.email))


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def task_factory(db_session, user):
    """
    Factory fixture that creates Task rows directly through the ORM.

    Defaults the owner to ``user`` and generates a title with Faker.
    """

    def _create_task(
        *,
        owner: User | None = None,
        title: str | None = None,
        description: str | None = None,
        status: str = TaskStatus.PENDING.value,
        priority: str = TaskPriority.MEDIUM.value,
        due_at: datetime | None = None,
        position: int = 0,
        tags: list[str] | None = None,
    ) -> Task:
        task = Task(
            owner=owner or user,
            title=title or fake.sentence(nb_words=4),
            description=description,
            status=status,
            priority=priority,
            due_at=due_at,
            position=position,
        )
        if tags:
            task.tags = TagRepository(db_session.session).get_or_create(tags)
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def sample_task(task_factory) -> Task:
    """A single task with known, predictable values."""
    return task_factory(
        title="Sample Task",
        description="This is a sample task for testing",
        status=TaskStatus.PENDING.value,
        priority=TaskPriority.MEDIUM.value,
        position=3,
        due_at=datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def multiple_tasks(task_factory) -> list[Task]:
    """
    Create a varied set of four tasks for the default user.

    Covers different combinations of status, priority, due date and
    position so filter and sort tests need no extra setup.
    """
    now = datetime.now(timezone.utc)
    return [
        task_factory(
            title="Bravo",
            status=TaskStatus.PENDING.value,
            priority=TaskPriority.LOW.value,
            due_at=now + timedelta(days=3),
            position=2,
        ),
        task_factory(
            title="Alpha",
            status=TaskStatus.IN_PROGRESS.value,
            priority=TaskPriority.HIGH.value,
            due_at=now + timedelta(days=1),
            position=4,
        ),
        task_factory(
            title="Delta",
            status=TaskStatus.COMPLETED.value,
            priority=TaskPriority.MEDIUM.value,
            due_at=now + timedelta(days=7),
            position=1,
        ),
        task_factory(
            title="Charlie",
            status=TaskStatus.PENDING.value,
            priority=TaskPriority.HIGH.value,
            due_at=now + timedelta(days=2),
            position=3,
        ),
    ]


@pytest.fixture
def valid_task_data() -> dict[str, Any]:
    """A complete, valid task payload."""
    return {
        "title": "Test Task",
        "description": "This is a test task description",
        "dueAt": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
        "priority": TaskPriority.HIGH.value,
        "status": TaskStatus.IN_PROGRESS.value,
        "position": 5,
        "tags": ["work", "urgent"],
    }


@pytest.fixture
def minimal_task_data() -> dict[str, str]:
    """The smallest valid task payload (title only)."""
    return {"title": "Minimal Task"}
