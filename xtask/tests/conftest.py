"""Async test fixtures for xtask tests using SQLite."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from xtask.config import settings
from xtask.database import enable_sqlite_foreign_keys, get_db
from xtask.models import Base, User, UserCategory
from xtask.security.auth import AuthUser, hash_password, issue_session_token
from xtask.security.rate_limit import login_limiter

PASSWORD = "password123"
# Hashing at full strength for every fixture user makes the suite crawl.
_PASSWORD_HASH = hash_password(PASSWORD, iterations=1_000)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _auth_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "auth_secret", "test-secret")
    login_limiter.reset()
    yield
    login_limiter.reset()


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine):
    """HTTPX async test client against the xtask app."""
    from xtask.app import app

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


async def make_user(
    db: AsyncSession,
    name: str,
    seniority_level: int,
    categories: list[str] | tuple[str, ...] = (),
    email: str | None = None,
) -> User:
    user = User(
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        name=name,
        seniority_level=seniority_level,
        password_hash=_PASSWORD_HASH,
        categories=[UserCategory(category=c) for c in categories],
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def as_actor(user: User) -> AuthUser:
    return AuthUser(
        id=user.id,
        email=user.email,
        name=user.name,
        seniority_level=user.seniority_level,
    )


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_session_token(settings, as_actor(user))}"}


@pytest_asyncio.fixture
async def admin(db: AsyncSession) -> User:
    return await make_user(
        db, "Alice Chen", 1, ["Projects", "Pre-Sales", "Admin", "Miscellaneous"]
    )


@pytest_asyncio.fixture
async def manager(db: AsyncSession) -> User:
    return await make_user(db, "Bob Martinez", 2, ["Projects", "Pre-Sales"])


@pytest_asyncio.fixture
async def staff(db: AsyncSession) -> User:
    return await make_user(db, "David Kim", 3, ["Projects", "Admin"])
