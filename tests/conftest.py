"""
Shared fixtures.

Each test gets a fresh in-memory SQLite database with two departments and
one user per role, and an HTTP client wired to that database.

Run with: PYTHONPATH=. uv run pytest tests -v
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-chars")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"

from dataclasses import dataclass
from typing import AsyncIterator, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import portal.models  # noqa: F401
from main import app
from portal.apps.auth.models import Role, User
from portal.apps.auth.schemas import Caller
from portal.apps.auth.services import caller_for
from portal.apps.departments.models import Department
from portal.db.base_model import Base
from portal.db.database import get_db
from portal.utils.security import create_access_token, hash_password

PASSWORD = "Password123!"


@dataclass
class Org:
    """Seeded organisation: departments, users and their callers."""

    hr: Department
    it: Department
    users: Dict[str, User]

    def caller(self, key: str) -> Caller:
        return caller_for(self.users[key])


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as s:
        yield s


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(PASSWORD)


@pytest_asyncio.fixture
async def org(session: AsyncSession, password_hash: str) -> Org:
    hr = await Department.create(session, name="Nhân sự", description="Tuyển dụng và phúc lợi")
    it = await Department.create(session, name="Công nghệ thông tin")

    specs = {
        "admin": ("admin@portal.com.vn", Role.ADMIN, None),
        "head_hr": ("head.hr@portal.com.vn", Role.DEPARTMENT_HEAD, hr.id),
        "head_it": ("head.it@portal.com.vn", Role.DEPARTMENT_HEAD, it.id),
        "emp_hr": ("emp.hr@portal.com.vn", Role.EMPLOYEE, hr.id),
        "emp_it": ("emp.it@portal.com.vn", Role.EMPLOYEE, it.id),
    }
    users = {}
    for key, (email, role, department_id) in specs.items():
        users[key] = await User.create(
            session,
            email=email,
            name=key.replace("_", " ").title(),
            hashed_password=password_hash,
            role=role,
            department_id=department_id,
        )

    return Org(hr=hr, it=it, users=users)


@pytest_asyncio.fixture
async def async_client(session_factory) -> AsyncIterator[AsyncClient]:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def bearer(user: User) -> Dict[str, str]:
    token = create_access_token(
        user_id=str(user.id),
        role=user.role.value,
        department_id=str(user.department_id) if user.department_id else None,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth(org: Org):
    """`auth("head_hr")` -> Authorization header for that seeded user."""
    def _headers(key: str) -> Dict[str, str]:
        return bearer(org.users[key])
    return _headers
