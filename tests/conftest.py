import itertools
import os

# 必须在导入 jread 之前设置，Settings 在导入时读取环境变量
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ANON_KEY"] = "test-anon-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AUTO_MIGRATE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from jread.core.permissions import UserRole
from jread.core.security import create_access_token, get_password_hash
from jread.db.base import Base
from jread.db.database import get_db
from jread.db.redis import get_redis
from jread.main import create_app
from jread.models.user import User
import jread.models  # noqa: F401

ANON_KEY = "test-anon-key"
PASSWORD = "password123"


class FakeRedis:
    """进程内的 Redis 替身，只实现用到的命令（不处理过期）"""

    def __init__(self):
        self.store = {}

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def get(self, key):
        return self.store.get(key)

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def ping(self):
        return True


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


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def app(session_factory, fake_redis):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    return app


@pytest.fixture
def transport(app):
    return httpx.ASGITransport(app=app)


@pytest_asyncio.fixture
async def client(transport):
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver/api/v1",
        headers={"apikey": ANON_KEY},
    ) as client:
        yield client


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(PASSWORD)


@pytest.fixture
def make_user(session_factory, password_hash):
    """直接写库创建任意角色的用户，返回 (user, 认证头)"""
    counter = itertools.count(1)

    async def _make(role=UserRole.USER, username=None, pen_name=None, **fields):
        n = next(counter)
        user = User(
            username=username or f"user{n}",
            email=f"user{n}@example.com",
            password=password_hash,
            role=role,
            pen_name=pen_name,
            profile_picture="",
            **fields,
        )
        async with session_factory() as db:
            db.add(user)
            await db.commit()
            await db.refresh(user)
        token = create_access_token(data={"sub": str(user.id)})
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def make_novel(client):
    async def _make(headers, **fields):
        payload = {"title": "A Novel", "genre": "Fantasy"}
        payload.update(fields)
        response = await client.post("/novels", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def make_chapter(client):
    async def _make(headers, novel_id, **fields):
        payload = {"title": "Chapter", "content": "Once upon a time", "is_published": True}
        payload.update(fields)
        response = await client.post(f"/novels/{novel_id}/chapters", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
