"""Shared pytest fixtures for backend tests."""

import os
import sys
from datetime import datetime, timedelta
from typing import AsyncGenerator
from uuid import uuid4

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-pytest-only")

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from teamdesk.constants import TeamRole
from teamdesk.database import Base, get_db
from teamdesk.main import app
from teamdesk.models import Attendance, Project, Task, TaskAssignee, TeamMember, User
from teamdesk.services.auth_service import create_token_for_user
from teamdesk.services.permission_cache_service import clear_all_caches
from teamdesk.services.permission_service import sync_default_permissions
from teamdesk.services.project_service import build_initial_statuses, get_project_statuses


def get_test_password_hash(password: str) -> str:
    """
    Generate a password hash for testing.

    Uses bcrypt directly to avoid passlib version detection issues.
    """
    import bcrypt
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "TestPassword123!"


@pytest.fixture(autouse=True)
def reset_permission_caches():
    """Permission caches are module-level; isolate every test."""
    clear_all_caches()
    yield
    clear_all_caches()


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Create a test database engine with SQLite."""
    engine = create_async_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session with the default permissions seeded."""
    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        await sync_default_permissions(session)
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database dependency override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# Users
# ============================================================================


async def make_user(
    db: AsyncSession,
    email: str,
    role: str = "user",
    name: str = "Test User",
    active: bool = True,
) -> User:
    user = User(
        id=uuid4(),
        email=email,
        password_hash=get_test_password_hash(TEST_PASSWORD),
        name=name,
        role=role,
        active=active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "admin@example.com", role="admin", name="Admin User")


@pytest_asyncio.fixture
async def manager_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "manager@example.com", role="manager", name="Manager User")


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A regular member-level user."""
    return await make_user(db_session, "test@example.com", role="user", name="Test User")


@pytest_asyncio.fixture
async def test_user_2(db_session: AsyncSession) -> User:
    return await make_user(db_session, "test2@example.com", role="user", name="Second User")


@pytest_asyncio.fixture
async def guest_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "guest@example.com", role="guest", name="Guest User")


def headers_for(user: User) -> dict:
    """Authorization headers carrying a fresh token for the user."""
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return headers_for(admin_user)


@pytest.fixture
def manager_headers(manager_user: User) -> dict:
    return headers_for(manager_user)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Authorization headers for the regular test user."""
    return headers_for(test_user)


@pytest.fixture
def auth_headers_2(test_user_2: User) -> dict:
    return headers_for(test_user_2)


@pytest.fixture
def guest_headers(guest_user: User) -> dict:
    return headers_for(guest_user)


# ============================================================================
# Projects and tasks
# ============================================================================


async def make_project(
    db: AsyncSession,
    creator: User,
    title: str = "Test Project",
    members=(),
) -> Project:
    """A project with the default statuses, its creator as owner and extra members."""
    project = Project(id=uuid4(), title=title, description="A test project", created_by_id=creator.id)
    db.add(project)
    await db.flush()
    for row in build_initial_statuses(project.id):
        db.add(row)
    db.add(TeamMember(user_id=creator.id, project_id=project.id, role=TeamRole.OWNER.value))
    for member in members:
        db.add(TeamMember(user_id=member.id, project_id=project.id, role=TeamRole.MEMBER.value))
    await db.commit()
    await db.refresh(project)
    return project


@pytest_asyncio.fixture
async def test_project(db_session: AsyncSession, manager_user: User, test_user: User) -> Project:
    """Project created by the manager with the regular test user as member."""
    return await make_project(db_session, manager_user, members=[test_user])


async def make_task(
    db: AsyncSession,
    project: Project,
    creator: User,
    title: str = "Test Task",
    parent: Task = None,
    assignees=(),
    priority: str = "medium",
    order: int = 1000,
    completed: bool = False,
) -> Task:
    statuses = await get_project_statuses(db, project.id)
    status_row = next(s for s in statuses if s.is_completed_status == completed)
    task = Task(
        id=uuid4(),
        title=title,
        project_id=project.id,
        status_id=status_row.id,
        parent_id=parent.id if parent else None,
        created_by_id=creator.id,
        priority=priority,
        order=order,
    )
    db.add(task)
    await db.flush()
    for user in assignees:
        db.add(TaskAssignee(task_id=task.id, user_id=user.id))
    await db.commit()
    await db.refresh(task)
    return task


@pytest_asyncio.fixture
async def test_task(db_session: AsyncSession, test_project: Project, manager_user: User, test_user: User) -> Task:
    """Task in the test project assigned to the regular test user."""
    return await make_task(db_session, test_project, manager_user, assignees=[test_user])


# ============================================================================
# Attendance
# ============================================================================


async def make_attendance(
    db: AsyncSession,
    user: User,
    check_in: datetime,
    hours: float = None,
    auto_checkout: bool = False,
) -> Attendance:
    """Attendance record; open when hours is None."""
    record = Attendance(
        id=uuid4(),
        user_id=user.id,
        check_in_time=check_in,
        check_out_time=check_in + timedelta(hours=hours) if hours is not None else None,
        total_hours=hours,
        auto_checkout=auto_checkout,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record
