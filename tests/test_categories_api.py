# =============================================================================
# tests/test_categories_api.py - /api/categories Route Tests
# =============================================================================

import json
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.exc import SQLAlchemyError

from marketplace.api.categories import CATEGORIES_CACHE_KEY, CATEGORY_STATS_CACHE_KEY
from marketplace.db.models import AgentStatus
from marketplace.db.session import get_db
from tests.conftest import create_agent, create_category, create_user


async def test_categories_sorted_by_name(client, db):
    await create_category(db, "Sales & Marketing", "sales-marketing", display_order=1)
    await create_category(db, "Customer Support", "customer-support", display_order=2)

    response = await client.get("/api/categories")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert [c["slug"] for c in body["data"]] == ["customer-support", "sales-marketing"]
    assert set(body["data"][0]) == {"id", "name", "slug"}
    assert response.headers["cache-control"] == "public, s-maxage=300, stale-while-revalidate=600"


async def test_categories_served_from_cache(client, fake_redis):
    cached = [{"id": "c1", "name": "Cached", "slug": "cached"}]
    fake_redis.store[CATEGORIES_CACHE_KEY] = json.dumps(cached)

    response = await client.get("/api/categories")

    assert response.json() == {"success": True, "data": cached}


async def test_categories_populate_cache(client, db, fake_redis):
    await create_category(db, "Productivity")
    await client.get("/api/categories")
    assert json.loads(fake_redis.store[CATEGORIES_CACHE_KEY])[0]["slug"] == "productivity"


async def test_categories_failure(app, client):
    async def broken_db():
        session = MagicMock()
        session.execute = AsyncMock(side_effect=SQLAlchemyError("database unavailable"))
        yield session

    app.dependency_overrides[get_db] = broken_db

    response = await client.get("/api/categories")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to fetch categories"}


async def test_category_stats_counts_only_approved_latest(client, db, fake_redis):
    seller = await create_user(db, "seller@example.com")
    support = await create_category(db, "Customer Support", "customer-support", display_order=1)
    await create_category(db, "Sales", "sales", display_order=2)
    await create_agent(db, seller, support, "Ticket Triage")
    await create_agent(db, seller, support, "Refund Bot", status=AgentStatus.DRAFT)
    await create_agent(db, seller, support, "Old Triage", is_latest_version=False)

    response = await client.get("/api/categories/stats")

    assert response.status_code == 200
    assert response.json() == {"success": True, "counts": {"customer-support": 1, "sales": 0}}
    assert response.headers["cache-control"] == "public, s-maxage=60, stale-while-revalidate=120"
    assert CATEGORY_STATS_CACHE_KEY in fake_redis.store


async def test_category_stats_failure(app, client):
    async def broken_db():
        session = MagicMock()
        session.execute = AsyncMock(side_effect=SQLAlchemyError("database unavailable"))
        yield session

    app.dependency_overrides[get_db] = broken_db

    response = await client.get("/api/categories/stats")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to fetch category statistics",
        "counts": {},
    }
