"""
Pytest configuration and fixtures for labadmin tests.

Tests run against a throwaway SQLite file per test (aiosqlite driver).
"""

import os

# Must be set before labadmin settings are imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-session-tokens"
os.environ["AUDIT_ENABLED"] = "true"

import datetime  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from labadmin.core.permissions import Actor  # noqa: E402
from labadmin.core.security import create_session_token  # noqa: E402
from labadmin.db.base import Base  # noqa: E402
from labadmin.db.session import get_db  # noqa: E402
from labadmin.main import app  # noqa: E402
from labadmin.models import LabDay, LabUser, Shift, Student, StudentInternship  # noqa: E402

COHORT_A = "0b6c5d2e-1f3a-4c7d-9e8f-112233445566"
COHORT_B = "7d8e9f00-aaaa-4bbb-8ccc-ddddeeeeffff"


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine per test function."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'labadmin-test.db'}",
        poolclass=NullPool,
    )

    # pysqlite's implicit transactions break SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Users
# =============================================================================


async def _create_user(db: AsyncSession, email: str, name: str, role: str) -> LabUser:
    user = LabUser(email=email, name=name, role=role, is_active=True)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> LabUser:
    """Create an admin staff member."""
    return await _create_user(db_session, "admin@example.com", "Admin User", "admin")


@pytest_asyncio.fixture
async def instructor_user(db_session: AsyncSession) -> LabUser:
    """Create an instructor (below admin level)."""
    return await _create_user(db_session, "instructor@example.com", "Instructor User", "instructor")


@pytest.fixture
def admin_actor(admin_user: LabUser) -> Actor:
    return Actor(email=admin_user.email, role=admin_user.role, user_id=admin_user.id)


@pytest.fixture
def admin_headers(admin_user: LabUser) -> dict[str, str]:
    """Authorization headers for the admin user."""
    return {"Authorization": f"Bearer {create_session_token(admin_user.email)}"}


@pytest.fixture
def instructor_headers(instructor_user: LabUser) -> dict[str, str]:
    """Authorization headers for the instructor user."""
    return {"Authorization": f"Bearer {create_session_token(instructor_user.email)}"}


# =============================================================================
# Program data
# =============================================================================


def _student(first: str, last: str, agency: str | None, status: str, cohort_id: str | None) -> Student:
    return Student(
        first_name=first, last_name=last, agency=agency, status=status, cohort_id=cohort_id
    )


@pytest_asyncio.fixture
async def students(db_session: AsyncSession) -> list[Student]:
    """Six students: three withdrawn in cohort A, two active in cohort B, one graduated."""
    rows = [
        _student("Ana", "Alvarez", "Metro Fire", "withdrawn", COHORT_A),
        _student("Ben", "Baker", "County EMS", "withdrawn", COHORT_A),
        _student("Cara", "Chen", "Metro Fire", "withdrawn", COHORT_A),
        _student("Dev", "Desai", "100% Rescue", "active", COHORT_B),
        _student("Eli", "Evans", None, "active", COHORT_B),
        _student("Fay", "Fox", "County EMS", "graduated", None),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


@pytest_asyncio.fixture
async def lab_days(db_session: AsyncSession) -> list[LabDay]:
    rows = [
        LabDay(date=datetime.date(2025, 1, 10), title="Airway", cohort_id=COHORT_A, is_active=True),
        LabDay(date=datetime.date(2025, 2, 14), title="Trauma", cohort_id=COHORT_A, is_active=False),
        LabDay(date=datetime.date(2025, 3, 20), title="Cardiac", cohort_id=COHORT_B, is_active=True),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


@pytest_asyncio.fixture
async def shifts(db_session: AsyncSession) -> list[Shift]:
    rows = [
        Shift(title="Lab assist", date=datetime.date(2025, 4, 1), department="EMS", status="open"),
        Shift(title="Skills check", date=datetime.date(2025, 4, 2), department="EMS", status="filled"),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


@pytest_asyncio.fixture
async def internships(db_session: AsyncSession, students: list[Student]) -> list[StudentInternship]:
    rows = [
        StudentInternship(
            student_id=students[3].id, cohort_id=COHORT_B, status="pending", current_phase="phase_1"
        ),
        StudentInternship(
            student_id=students[4].id, cohort_id=COHORT_B, status="active", current_phase="phase_2"
        ),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows
