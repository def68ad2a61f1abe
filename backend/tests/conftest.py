# backend/tests/conftest.py
"""
Pytest configuration for the scheduling backend.

Every test gets its own in-memory SQLite database (StaticPool keeps the one
connection alive across threads) and a frozen clock. Tests that need real
cross-connection locking use ``file_engine`` instead.
"""

import os
import sys

# Set test mode BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("BOOKING_LOCK_REDIS_URL", None)

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from datetime import date, datetime, time, timezone
from typing import Callable, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tutorhub.api.dependencies import (
    get_availability_service,
    get_booking_scheduler,
    get_booking_store,
    get_db,
)
from tutorhub.core import booking_lock
from tutorhub.database import build_engine, init_db
from tutorhub.events.publisher import EventPublisher
from tutorhub.main import create_app
from tutorhub.services.availability_service import AvailabilityService
from tutorhub.services.booking_scheduler import BookingScheduler
from tutorhub.services.booking_store import BookingStore

# Monday 2024-06-10, 08:00 in America/New_York
FROZEN_NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)

TEACHER_ID = "teacher-1"
STUDENT_ID = "student-1"


class FrozenClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingListener:
    def __init__(self) -> None:
        self.events: List[object] = []

    def __call__(self, event: object) -> None:
        self.events.append(event)


@pytest.fixture(autouse=True)
def _no_redis_lock():
    """Slot locks stay process-local unless a test opts in."""
    booking_lock.reset_sync_redis()
    yield
    booking_lock.reset_sync_redis()


@pytest.fixture
def db_engine():
    engine = build_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def unit_db(db_engine) -> Session:
    """Session on a fresh in-memory database."""
    factory = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False, future=True)
    session = factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed engine for tests that open several connections at once."""
    engine = build_engine(f"sqlite+pysqlite:///{tmp_path / 'scheduling.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def recorder() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def publisher(recorder) -> EventPublisher:
    publisher = EventPublisher()
    publisher.register(recorder)
    return publisher


@pytest.fixture
def availability_service(unit_db, clock) -> AvailabilityService:
    return AvailabilityService(unit_db, clock=clock)


@pytest.fixture
def booking_store(unit_db, publisher, clock) -> BookingStore:
    return BookingStore(unit_db, publisher=publisher, clock=clock)


@pytest.fixture
def scheduler(availability_service, booking_store) -> BookingScheduler:
    return BookingScheduler(availability_service, booking_store)


@pytest.fixture
def book(scheduler) -> Callable[..., object]:
    """Book a default-template slot for a student."""

    def _book(
        booking_date: date = date(2024, 6, 11),
        start: time = time(9, 0),
        end: time = time(10, 0),
        student_id: str = STUDENT_ID,
        teacher_id: str = TEACHER_ID,
        subject: str = "Algebra",
    ):
        return scheduler.book_slot(
            teacher_id, student_id, booking_date, start, end, None, subject
        )

    return _book


@pytest.fixture
def client(unit_db, clock, publisher) -> TestClient:
    """API client wired to the test session and frozen clock."""
    app = create_app()

    def _availability_service() -> AvailabilityService:
        return AvailabilityService(unit_db, clock=clock)

    def _booking_store() -> BookingStore:
        return BookingStore(unit_db, publisher=publisher, clock=clock)

    def _scheduler() -> BookingScheduler:
        return BookingScheduler(_availability_service(), _booking_store())

    app.dependency_overrides[get_db] = lambda: unit_db
    app.dependency_overrides[get_availability_service] = _availability_service
    app.dependency_overrides[get_booking_store] = _booking_store
    app.dependency_overrides[get_booking_scheduler] = _scheduler
    return TestClient(app)
