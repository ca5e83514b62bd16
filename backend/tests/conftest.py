"""
Test Configuration — Fixtures for async DB, test client, and a scripted chat backend.

Each test gets its own in-memory SQLite database, so commits made by the
gateway (one per write) never leak between tests.
"""

import json
import os
import uuid

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401  registers tables on Base.metadata
from api.deps import get_chat_client, get_current_user, get_db
from api.main import app
from assistant.llm_client import ChatReply, ToolCall
from db.gateway import StoreGateway
from db.session import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ACTOR_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
OTHER_ACTOR_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


# ── Scripted chat backend ─────────────────────────────────────────────────


class FakeChatClient:
    """Returns queued replies in order and records every request it saw."""

    def __init__(self, replies: list[ChatReply] | None = None):
        self.replies = list(replies or [])
        self.requests: list[dict] = []

    async def complete(self, messages, tools=None, response_format=None) -> ChatReply:
        self.requests.append(
            {
                "messages": [dict(m) for m in messages],
                "tools": tools,
                "response_format": response_format,
            }
        )
        if not self.replies:
            return ChatReply()
        return self.replies.pop(0)


def text_reply(text: str) -> ChatReply:
    return ChatReply(content=text)


def tool_reply(*calls: tuple[str, dict]) -> ChatReply:
    """Build an assistant turn requesting the given (tool_name, arguments) calls."""
    tool_calls = [
        ToolCall(id=f"call_{uuid.uuid4().hex[:8]}", name=name, arguments=json.dumps(args))
        for name, args in calls
    ]
    return ChatReply(content=None, tool_calls=tool_calls)


def call(name: str, arguments: str | dict) -> ToolCall:
    raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return ToolCall(id="call_test", name=name, arguments=raw)


# ── Database ──────────────────────────────────────────────────────────────


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway(test_db):
    return StoreGateway(test_db, ACTOR_ID)


@pytest.fixture
def other_gateway(test_db):
    return StoreGateway(test_db, OTHER_ACTOR_ID)


# ── API ───────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user():
    """Mock authenticated user."""
    return {"sub": str(ACTOR_ID), "email": "maker@speed.sales"}


@pytest.fixture
def fake_llm():
    return FakeChatClient()


@pytest.fixture
async def client(test_db, mock_user, fake_llm):
    """Async test client with DB, auth and chat backend overridden."""

    async def override_get_db():
        yield test_db

    def override_get_current_user():
        return mock_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_chat_client] = lambda: fake_llm

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def anon_client(test_db, fake_llm):
    """Test client with the real auth dependency (no user override)."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chat_client] = lambda: fake_llm

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def seeded_db(gateway, other_gateway):
    """A few products and inquiries for the main actor, plus one foreign row."""
    mug = await gateway.insert_product("Blue Mug", "MUG-001", 50)
    bowl = await gateway.insert_product("Ceramic Bowl", None, 3)
    vase = await gateway.insert_product("Tall Vase", "VASE-9", 12)
    foreign = await other_gateway.insert_product("Blue Mug", "MUG-001", 999)
    return {"mug": mug, "bowl": bowl, "vase": vase, "foreign": foreign}
