# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Environment variables are set before any marketplace import because the
# settings object is built on first use and cached.
# =============================================================================

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import time
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from marketplace.core.config import get_settings
from marketplace.db.models import (
    Agent,
    AgentStatus,
    Base,
    Category,
    Purchase,
    PurchaseStatus,
    SellerProfile,
    User,
    UserRole,
)
from marketplace.db.session import create_sessionmaker
from marketplace.main import create_app
from marketplace.services.identity import IdentityClient


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the cache helpers."""

    def __init__(self):
        self.store: dict[str, str] = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


# =============================================================================
# Database
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
def sessionmaker(engine):
    return create_sessionmaker(engine)


@pytest.fixture
async def db(sessionmaker):
    async with sessionmaker() as session:
        yield session


# =============================================================================
# Application
# =============================================================================

@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def identity():
    return MagicMock(spec=IdentityClient)


@pytest.fixture
def app(sessionmaker, fake_redis, identity):
    app = create_app()
    app.state.sessionmaker = sessionmaker
    app.state.redis = fake_redis
    app.state.identity = identity
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


def make_token(user_id: str, email: str = "user@example.com", **claims) -> str:
    payload = {
        "sub": user_id,
        "email": email,
        "aud": get_settings().JWT_AUDIENCE,
        "exp": int(time.time()) + 3600,
        "user_metadata": {},
        **claims,
    }
    return jwt.encode(payload, get_settings().SUPABASE_JWT_SECRET, algorithm="HS256")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user.id, user.email)}"}


# =============================================================================
# Factories
# =============================================================================

async def create_user(db, email="buyer@example.com", role=UserRole.BUYER, name=None) -> User:
    user = User(email=email, role=role, name=name)
    db.add(user)
    if role in (UserRole.SELLER, UserRole.ADMIN):
        db.add(SellerProfile(user=user, portfolio_url_slug=email.split("@")[0]))
    await db.commit()
    return user


async def create_category(db, name="Productivity", slug=None, display_order=0) -> Category:
    category = Category(name=name, slug=slug or name.lower().replace(" ", "-"), display_order=display_order)
    db.add(category)
    await db.commit()
    return category


async def create_agent(db, seller, category, title="Lead Qualifier", **fields) -> Agent:
    values = {
        "slug": title.lower().replace(" ", "-"),
        "status": AgentStatus.APPROVED,
        "price": Decimal("49.00"),
        "short_description": f"{title} workflow",
        "setup_guide": "Step 1: import the workflow. Step 2: connect credentials.",
    }
    values.update(fields)
    agent = Agent(seller_id=seller.id, category_id=category.id, title=title, **values)
    db.add(agent)
    await db.commit()
    return agent


async def create_purchase(db, buyer, agent, purchased_at=None, status=PurchaseStatus.COMPLETED) -> Purchase:
    purchase = Purchase(
        buyer_id=buyer.id,
        agent_id=agent.id,
        agent_version=agent.version,
        amount_paid=agent.price,
        status=status,
        purchased_at=purchased_at or datetime.now(timezone.utc),
    )
    db.add(purchase)
    await db.commit()
    return purchase
