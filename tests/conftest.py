"""
Pytest fixtures for DKN tests.

Every test gets its own file-backed SQLite database (in-memory SQLite is
per-connection, and the concurrency tests need several connections on the
same database).
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional

# Configure the application for tests before any dkn module reads settings
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp.name}"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-32-chars"
os.environ["BOOTSTRAP_ADMIN_EMAIL"] = "root@dkn.test"

from dkn.config import get_settings
get_settings.cache_clear()

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from dkn.database import build_engine
from dkn.kernel.identity.jwt import TokenVerifier
from dkn.kernel.identity.principal import AccountStatus, Principal
from dkn.kernel.models import Account, Base
from dkn.kernel.permissions.catalog import Role


AccountFactory = Callable[..., Awaitable[Account]]


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on a fresh SQLite file with the full schema."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'dkn_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield engine
    
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def make_account(session_maker: async_sessionmaker) -> AccountFactory:
    """Factory that stores an account with the given role and returns it."""
    
    async def _make(
        role: Role = Role.CONSULTANT,
        email: Optional[str] = None,
        region_code: str = "GLOBAL",
        status: str = AccountStatus.ACTIVE.value,
    ) -> Account:
        account_id = uuid.uuid4()
        account = Account(
            id=account_id,
            email=email or f"{role.value.lower()}-{account_id.hex[:8]}@dkn.test",
            username=role.value,
            role_code=role.value,
            region_code=region_code,
            status=status,
        )
        async with session_maker() as session:
            session.add(account)
            await session.commit()
        return account
    
    return _make


@pytest_asyncio.fixture
async def principals(make_account: AccountFactory) -> Dict[Role, Principal]:
    """One active principal per role."""
    result = {}
    for role in Role:
        account = await make_account(role)
        result[role] = account.to_principal()
    return result


@pytest.fixture
def token_verifier() -> TokenVerifier:
    return TokenVerifier()


@pytest.fixture
def bearer(token_verifier: TokenVerifier) -> Callable[[Account], Dict[str, str]]:
    """Build Authorization headers for a stored account."""
    
    def _headers(account: Account) -> Dict[str, str]:
        token = token_verifier.issue(
            subject=account.id,
            email=account.email,
            name=account.username,
            region=account.region_code,
        )
        return {"Authorization": f"Bearer {token}"}
    
    return _headers
