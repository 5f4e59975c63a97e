"""Shared fixtures: in-memory database, seeded users and an API client."""

import os
import uuid
from types import SimpleNamespace

# Keep the app from touching SMTP or starting background jobs under test
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from app import models  # noqa: F401
from app.core.security import Principal, Role, create_access_token
from app.db.base import Base
from app.models.company import Company
from app.models.job_posting import JobPosting
from app.models.student import Student
from app.models.user import User
from app.utils.constants import JobStatus

# Stable test IDs
ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
COMPANY_ID = uuid.UUID("00000000-0000-0000-0000-0000000000c1")
OTHER_COMPANY_ID = uuid.UUID("00000000-0000-0000-0000-0000000000c2")
STUDENT_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b1")
OTHER_STUDENT_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b2")
JOB_ID = uuid.UUID("00000000-0000-0000-0000-0000000000f1")
SECOND_JOB_ID = uuid.UUID("00000000-0000-0000-0000-0000000000f2")
OTHER_COMPANY_JOB_ID = uuid.UUID("00000000-0000-0000-0000-0000000000f3")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


def make_session_factory(engine, **kwargs):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False, **kwargs
    )


@pytest_asyncio.fixture
async def session_factory(engine):
    return make_session_factory(engine)


async def seed_database(session_factory) -> SimpleNamespace:
    """Admin, two companies (approved), two students and three published jobs."""
    async with session_factory() as session, session.begin():
        session.add_all(
            [
                User(id=ADMIN_ID, email="admin@example.com", name="Admin", role=Role.ADMIN.value),
                User(id=COMPANY_ID, email="hr@acme.example.com", name="Acme HR", role=Role.COMPANY.value),
                User(
                    id=OTHER_COMPANY_ID,
                    email="jobs@globex.example.com",
                    name="Globex HR",
                    role=Role.COMPANY.value,
                ),
                User(id=STUDENT_ID, email="taro@example.com", name="Taro", role=Role.STUDENT.value),
                User(
                    id=OTHER_STUDENT_ID,
                    email="hana@example.com",
                    name="Hana",
                    role=Role.STUDENT.value,
                    email_notifications=False,
                ),
            ]
        )
        session.add_all(
            [
                Company(user_id=COMPANY_ID, name="Acme", industry="Software", is_approved=True),
                Company(user_id=OTHER_COMPANY_ID, name="Globex", industry="Energy", is_approved=True),
                Student(user_id=STUDENT_ID, name="Taro Yamada", university="Tokyo Tech"),
                Student(user_id=OTHER_STUDENT_ID, name="Hana Sato", university="Kyoto Univ"),
            ]
        )
        session.add_all(
            [
                JobPosting(
                    id=JOB_ID,
                    company_id=COMPANY_ID,
                    title="Backend Intern",
                    content="Build APIs",
                    requirements=["Python"],
                    status=JobStatus.PUBLISHED.value,
                ),
                JobPosting(
                    id=SECOND_JOB_ID,
                    company_id=COMPANY_ID,
                    title="Data Intern",
                    content="Build pipelines",
                    requirements=["SQL"],
                    status=JobStatus.PUBLISHED.value,
                ),
                JobPosting(
                    id=OTHER_COMPANY_JOB_ID,
                    company_id=OTHER_COMPANY_ID,
                    title="Ops Intern",
                    content="Keep the lights on",
                    status=JobStatus.PUBLISHED.value,
                ),
            ]
        )

    return SimpleNamespace(
        admin=Principal(ADMIN_ID, Role.ADMIN),
        company=Principal(COMPANY_ID, Role.COMPANY),
        other_company=Principal(OTHER_COMPANY_ID, Role.COMPANY),
        student=Principal(STUDENT_ID, Role.STUDENT),
        other_student=Principal(OTHER_STUDENT_ID, Role.STUDENT),
        job_id=JOB_ID,
        second_job_id=SECOND_JOB_ID,
        other_company_job_id=OTHER_COMPANY_JOB_ID,
    )


@pytest_asyncio.fixture
async def seed(session_factory):
    return await seed_database(session_factory)


@pytest_asyncio.fixture
async def serialized_engine(tmp_path):
    """
    File-backed SQLite where each session has its own connection and every
    transaction opens with BEGIN IMMEDIATE.

    Concurrent transactions queue on the database write lock, the way
    SELECT ... FOR UPDATE queues them on one row in PostgreSQL.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}", poolclass=NullPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _manual_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def auth_headers():
    """Build a Bearer header for a principal."""

    def _headers(principal: Principal) -> dict:
        token = create_access_token(principal.user_id, principal.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def client(session_factory, seed):
    from app.db.session import get_session_factory
    from app.main import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
