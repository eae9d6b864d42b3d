"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database (aiosqlite + StaticPool), fresh per test
- HTTPX AsyncClient with the get_db dependency overridden
- Recorders standing in for SMTP delivery and redis publish
- User factory and bearer-token helper
"""
import os
from datetime import datetime
from typing import AsyncGenerator, Callable, List

# Configure before the application modules read settings
os.environ["DATABASE_URI"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_FILE"] = ""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import app
from cbdra.core.security import create_access_token, get_password_hash
from cbdra.db.base_class import Base
from cbdra.db.session import get_db
from cbdra.models import Incident, IncidentStatus, IncidentType, User, UserRole
from cbdra.services import email as email_service
from cbdra.services import notifications as notification_service
from cbdra.services.email import EmailDeliveryError


TEST_PASSWORD = "Secret!123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
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


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging data and asserting on it directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# Side-effect recorders
# =============================================================================

class Outbox:
    """Collects messages handed to SMTP; can be told to fail instead."""

    def __init__(self):
        self.messages = []
        self.fail = False

    def deliver(self, msg):
        if self.fail:
            raise EmailDeliveryError("SMTP unavailable")
        self.messages.append(msg)

    def to(self, address: str) -> list:
        return [m for m in self.messages if m["To"] == address]

    @staticmethod
    def body(msg) -> str:
        return msg.get_body(preferencelist=("plain",)).get_content()


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> Outbox:
    box = Outbox()
    monkeypatch.setattr(email_service, "_deliver", box.deliver)
    return box


@pytest.fixture(autouse=True)
def published(monkeypatch) -> List[tuple]:
    messages = []

    async def fake_publish(channel, message):
        messages.append((channel, message))
        return 1

    monkeypatch.setattr(notification_service, "publish_message", fake_publish)
    return messages


# =============================================================================
# Data factories
# =============================================================================

@pytest.fixture
def make_user(db: AsyncSession) -> Callable:
    counter = {"n": 0}

    async def _make_user(
        role: UserRole = UserRole.COMMUNITY_USER,
        email: str = None,
        name: str = None,
        verified: bool = False,
        email_verified: bool = True,
        **fields,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role.value.lower()}{counter['n']}@example.com",
            name=name or f"{role.value.title()} {counter['n']}",
            hashed_password=TEST_PASSWORD_HASH,
            role=role,
            is_active=True,
            verified=verified,
            email_verified=datetime.utcnow() if email_verified else None,
            **fields,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_incident(db: AsyncSession) -> Callable:
    async def _make_incident(
        reporter: User,
        status: IncidentStatus = IncidentStatus.PENDING,
        title: str = "Flooded street",
        **fields,
    ) -> Incident:
        incident = Incident(
            title=title,
            description=fields.pop("description", "Water is rising near the market"),
            type=fields.pop("type", IncidentType.FLOOD),
            severity=fields.pop("severity", 3),
            address=fields.pop("address", "12 River Road"),
            images=fields.pop("images", []),
            status=status,
            reporter_id=reporter.id,
            **fields,
        )
        db.add(incident)
        await db.commit()
        await db.refresh(incident)
        return incident

    return _make_incident


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN, email="admin@example.com", name="Admin", verified=True)


@pytest.fixture
async def reporter(make_user) -> User:
    return await make_user(UserRole.COMMUNITY_USER, email="reporter@example.com", name="Rita Reporter")


@pytest.fixture
async def volunteer(make_user) -> User:
    return await make_user(UserRole.VOLUNTEER, email="volunteer@example.com", name="Val Volunteer", verified=True)


@pytest.fixture
def auth() -> Callable[[User], dict]:
    return auth_headers
