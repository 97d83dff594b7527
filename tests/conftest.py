"""
Shared fixtures for the commission ledger test suite.

Every test gets its own SQLite database file under tmp_path, so services,
concurrency tests and the HTTP client all run without PostgreSQL.
"""

import os
import tempfile
import uuid
from dataclasses import dataclass
from decimal import Decimal

# Settings are read at import time; configure before importing the app.
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{tempfile.gettempdir()}/commission_ledger_health.db"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.security import create_access_token
from app.database import build_engine, build_session_factory, get_db, init_db
from app.main import app
from app.models import (
    Payment, PaymentStatus, PaymentType, Project, ProjectStatus, User, UserType,
)


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine(tmp_path):
    """Async engine on a fresh SQLite file with all ledger tables."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    """A session for calling services directly."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Ledger data fixtures
# ---------------------------------------------------------------------------

@dataclass
class LedgerIds:
    admin_id: uuid.UUID
    associate_id: uuid.UUID
    other_associate_id: uuid.UUID
    project_id: uuid.UUID


@pytest.fixture
async def ledger(session_factory):
    """One admin, two associates and an ACTIVE project at 2%."""
    ids = LedgerIds(
        admin_id=uuid.uuid4(),
        associate_id=uuid.uuid4(),
        other_associate_id=uuid.uuid4(),
        project_id=uuid.uuid4(),
    )
    async with session_factory() as session:
        session.add_all([
            User(id=ids.admin_id, name="Ledger Admin", email="admin@spcity.in", role=UserType.ADMIN.value),
            User(id=ids.associate_id, name="Asha Verma", email="asha@spcity.in", phone="+919812345670"),
            User(id=ids.other_associate_id, name="Ravi Menon", email="ravi@spcity.in"),
        ])
        await session.flush()
        session.add(Project(
            id=ids.project_id,
            name="SP City Greens",
            location="Noida Sector 150",
            status=ProjectStatus.ACTIVE.value,
            commission_rate=Decimal("2"),
        ))
        await session.commit()
    return ids


@pytest.fixture
def add_project(session_factory):
    """Factory: insert a project and return its id."""
    async def _add(commission_rate=Decimal("2"), status=ProjectStatus.ACTIVE.value, name="SP City Heights"):
        project_id = uuid.uuid4()
        async with session_factory() as session:
            session.add(Project(
                id=project_id,
                name=name,
                location="Gurugram Sector 65",
                status=status,
                commission_rate=commission_rate,
            ))
            await session.commit()
        return project_id
    return _add


@pytest.fixture
def add_payment(session_factory):
    """Factory: insert a payment and return its id."""
    async def _add(project_id, associate_id, amount, status=PaymentStatus.RECEIVED.value,
                   customer_name="Karan Malhotra"):
        payment_id = uuid.uuid4()
        async with session_factory() as session:
            session.add(Payment(
                id=payment_id,
                customer_name=customer_name,
                project_id=project_id,
                associate_id=associate_id,
                amount=Decimal(str(amount)),
                payment_type=PaymentType.INSTALLMENT.value,
                status=status,
            ))
            await session.commit()
        return payment_id
    return _add


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def client(session_factory):
    """httpx client bound to the app, with get_db pointed at the test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user_id) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def admin_headers(ledger):
    return auth_headers(ledger.admin_id)


@pytest.fixture
def associate_headers(ledger):
    return auth_headers(ledger.associate_id)


@pytest.fixture
def other_associate_headers(ledger):
    return auth_headers(ledger.other_associate_id)
