import sys
import os
import tempfile
import pytest
import pytest_asyncio
from typing import AsyncGenerator

# Add the backend directory to the Python path
# This is necessary for pytest to find the 'main' module and other packages
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

# Settings are read at import time; point them at throwaway resources first
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="delivery-admin-uploads-"))
os.environ.setdefault("S3_BUCKET", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  registers every table on Base.metadata
from main import app
from core.database import get_db, Base
from core.utils.encryption import PasswordManager
from models.user import User, UserRole
from services.auth import AuthService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_PASSWORD = "adminpass123"


@pytest_asyncio.fixture
async def db_engine():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


async def create_user(
    db: AsyncSession,
    email: str,
    password: str = ADMIN_PASSWORD,
    role: str = UserRole.USER,
    approved: bool = False,
    is_active: bool = True,
) -> User:
    user = User(
        email=email,
        name="Test User",
        hashed_password=PasswordManager.hash_password(password),
        role=role,
        approved=approved,
        is_active=is_active,
        phone="+2348000000000",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory for users stored in the test database."""
    async def _make_user(email: str, **kwargs) -> User:
        return await create_user(db_session, email, **kwargs)
    return _make_user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin@example.com", role=UserRole.ADMIN, approved=True)


@pytest_asyncio.fixture
async def regular_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "user@example.com", approved=True)


@pytest.fixture
def admin_headers(db_session: AsyncSession, admin_user: User) -> dict:
    token = AuthService(db_session).create_access_token(admin_user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(db_session: AsyncSession, regular_user: User) -> dict:
    token = AuthService(db_session).create_access_token(regular_user)
    return {"Authorization": f"Bearer {token}"}
