"""
Pytest fixtures for testing.
"""
import pytest
import pytest_asyncio
from dataclasses import dataclass, field
from typing import AsyncGenerator, Optional

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Import database module BEFORE app to allow override
import app.database
from app.database import Base
# Import ALL models so Base.metadata knows about all tables
from app.models import Category, Location, Skill, User, AccountType
from app.models.job import BillingType, ExperienceLevel, ProjectType
from app.schemas.job import JobCreate
from app.services.email import email_service
from app.services import job_lifecycle

# Now import app (after we can override database)
from app.main import app as fastapi_app


# Test database URL (use in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@dataclass
class SentEmail:
    to: str
    subject: str
    html: str
    text: Optional[str] = None


@dataclass
class Outbox:
    """Captures outgoing email. Addresses in `failing` simulate delivery errors."""
    messages: list[SentEmail] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)

    def to(self, email: str) -> list[SentEmail]:
        return [message for message in self.messages if message.to == email]

    def clear(self) -> None:
        self.messages.clear()


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> Outbox:
    """Replace email delivery for every test."""
    box = Outbox()

    async def fake_send(to_email, subject, html_content, text_content=None):
        if to_email in box.failing:
            return False
        box.messages.append(SentEmail(to_email, subject, html_content, text_content))
        return True

    monkeypatch.setattr(email_service, "send", fake_send)
    return box


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test.
    Ensures cleanup happens even if test fails.
    """
    # Use StaticPool to keep single connection alive and reuse it
    # This ensures all sessions see the same in-memory database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables FIRST
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # THEN replace the app's engine and sessionmaker
    # This ensures get_db() uses sessions connected to DB with tables
    original_engine = app.database.engine
    original_sessionmaker = app.database.AsyncSessionLocal

    app.database.engine = test_engine
    app.database.AsyncSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    # Create session for direct test use
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    session = async_session()

    try:
        yield session
    finally:
        # Step 1: Close session
        try:
            await session.close()
        except Exception as e:
            print(f"Warning: Failed to close session: {e}")

        # Step 2: Drop tables (best effort)
        try:
            async with test_engine.begin() as conn:
                await conn.run_sync(Base.metadata.drop_all)
        except Exception as e:
            print(f"Warning: Failed to drop tables: {e}")

        # Step 3: Dispose test engine
        try:
            await test_engine.dispose()
        except Exception as e:
            print(f"Warning: Failed to dispose engine: {e}")

        # Step 4: Restore original engine
        app.database.engine = original_engine
        app.database.AsyncSessionLocal = original_sessionmaker


@pytest_asyncio.fixture
async def async_client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing endpoints.

    The db fixture already replaced app.database.engine with test engine,
    so all endpoints will automatically use the test database.
    """
    transport = ASGITransport(app=fastapi_app)

    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=True  # Follow 307 redirects for trailing slashes
    ) as client:
        yield client


def login(client: AsyncClient, user: User) -> AsyncClient:
    """Authenticate the client as `user` (cookie contains just the user_id)."""
    client.cookies.set("auth_token", str(user.id))
    return client


async def create_user(
    db: AsyncSession,
    email: str,
    account_type: Optional[AccountType],
    skills: Optional[list[Skill]] = None,
    **fields
) -> User:
    user = User(email=email, account_type=account_type, skills=list(skills or []), **fields)
    db.add(user)
    await db.commit()
    return user


def job_data(category: Category, skills: Optional[list[Skill]] = None, **overrides) -> JobCreate:
    """Valid job draft payload; override any field by keyword."""
    values = {
        "title": "Logo design",
        "description": "A clean logo for a coffee shop.",
        "category_id": category.id,
        "billing_type": BillingType.FIXED,
        "rate": 1500,
        "experience_level": ExperienceLevel.MID,
        "project_type": ProjectType.ONE_TIME,
        "skill_ids": [skill.id for skill in (skills or [])],
    }
    values.update(overrides)
    return JobCreate(**values)


# ============================================================
# REFERENCE DATA
# ============================================================

@pytest_asyncio.fixture
async def category(db: AsyncSession) -> Category:
    category = Category(slug="graphic-design", name="Graphic design")
    db.add(category)
    await db.commit()
    return category


@pytest_asyncio.fixture
async def other_category(db: AsyncSession) -> Category:
    category = Category(slug="programming", name="Programming")
    db.add(category)
    await db.commit()
    return category


@pytest_asyncio.fixture
async def location(db: AsyncSession) -> Location:
    location = Location(name="Warszawa")
    db.add(location)
    await db.commit()
    return location


@pytest_asyncio.fixture
async def logo_skill(db: AsyncSession) -> Skill:
    skill = Skill(name="Logo design")
    db.add(skill)
    await db.commit()
    return skill


@pytest_asyncio.fixture
async def python_skill(db: AsyncSession) -> Skill:
    skill = Skill(name="Python")
    db.add(skill)
    await db.commit()
    return skill


# ============================================================
# USERS
# ============================================================

@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    return await create_user(db, "admin@example.com", AccountType.ADMIN, name="Ada", surname="Admin")


@pytest_asyncio.fixture
async def client_user(db: AsyncSession) -> User:
    return await create_user(
        db, "client@example.com", AccountType.CLIENT, name="Celina", surname="Klient", language="pl"
    )


@pytest_asyncio.fixture
async def freelancer(db: AsyncSession, logo_skill: Skill) -> User:
    return await create_user(
        db,
        "freelancer@example.com",
        AccountType.FREELANCER,
        skills=[logo_skill],
        name="Jan",
        surname="Kowalski",
    )


@pytest_asyncio.fixture
async def draft_job(db: AsyncSession, client_user: User, category: Category, logo_skill: Skill):
    """A client's draft with one skill attached."""
    return await job_lifecycle.create_draft(db, client_user, job_data(category, [logo_skill]))


@pytest_asyncio.fixture
async def published_job(db: AsyncSession, draft_job, admin_user: User, outbox: Outbox):
    """A published job. Emails sent while publishing are cleared."""
    job = await job_lifecycle.publish_job(db, draft_job.id, admin_user)
    outbox.clear()
    return job
