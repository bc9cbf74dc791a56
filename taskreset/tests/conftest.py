"""Pytest configuration and fixtures for TaskReset tests."""

from itertools import count

import pytest

from taskreset.app import create_app
from taskreset.models import db, Task
from taskreset.utils.timezone import CalendarClock
from taskreset.tests.helpers import JST, FixedClock, jst


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing."""
    app = create_app('testing')

    # Create database tables
    with app.app_context():
        db.create_all()

    yield app

    # Clean up
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for making requests."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create database session for tests."""
    with app.app_context():
        yield db.session


@pytest.fixture
def admin_headers():
    """Headers carrying the testing admin token."""
    return {'Authorization': 'Bearer test-admin-token'}


@pytest.fixture
def clock():
    """Fixed clock at 05:30 on Friday 2025-09-05 in Tokyo."""
    return FixedClock(jst(2025, 9, 5, 5, 30))


@pytest.fixture
def calendar():
    return CalendarClock(JST)


@pytest.fixture
def make_task(db_session):
    """Factory that persists a Task and returns its id."""
    ids = count(1)

    def _make(**fields):
        fields.setdefault('id', f'task-{next(ids):04d}')
        fields.setdefault('name', 'Household task')
        task = Task(**fields)
        db_session.add(task)
        db_session.commit()
        return fields['id']

    return _make
