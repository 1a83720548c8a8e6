# =============================================================================
# tests/test_reviews.py - Review Eligibility Tests
# =============================================================================

from datetime import datetime, timedelta, timezone

from marketplace.db.models import PurchaseStatus, Review
from marketplace.services.reviews import check_review_eligibility
from tests.conftest import create_agent, create_category, create_purchase, create_user

NOW = datetime(2026, 5, 20, 12, 0, tzinfo=timezone.utc)


async def _setup(db):
    seller = await create_user(db, "seller@example.com")
    buyer = await create_user(db, "buyer@example.com")
    agent = await create_agent(db, seller, await create_category(db))
    return buyer, agent


async def test_no_purchase(db):
    buyer, agent = await _setup(db)
    result = await check_review_eligibility(db, buyer.id, agent.id, now=NOW)
    assert result.eligible is False
    assert result.reason == "NO_PURCHASE"


async def test_pending_purchase_does_not_count(db):
    buyer, agent = await _setup(db)
    await create_purchase(db, buyer, agent, purchased_at=NOW - timedelta(days=30), status=PurchaseStatus.PENDING)
    result = await check_review_eligibility(db, buyer.id, agent.id, now=NOW)
    assert result.reason == "NO_PURCHASE"


async def test_too_soon(db):
    buyer, agent = await _setup(db)
    await create_purchase(db, buyer, agent, purchased_at=NOW - timedelta(days=3, hours=1))

    result = await check_review_eligibility(db, buyer.id, agent.id, now=NOW)

    assert result.eligible is False
    assert result.reason == "TOO_SOON"
    assert result.days_remaining == 11
    assert result.eligibility_date == NOW - timedelta(days=3, hours=1) + timedelta(days=14)


async def test_eligible_after_window(db):
    buyer, agent = await _setup(db)
    purchase = await create_purchase(db, buyer, agent, purchased_at=NOW - timedelta(days=14))

    result = await check_review_eligibility(db, buyer.id, agent.id, now=NOW)

    assert result.eligible is True
    body = result.to_response()
    assert body["purchaseId"] == purchase.id
    assert body["agentVersion"] == "1.0.0"


async def test_already_reviewed(db):
    buyer, agent = await _setup(db)
    await create_purchase(db, buyer, agent, purchased_at=NOW - timedelta(days=20))
    db.add(Review(buyer_id=buyer.id, agent_id=agent.id, agent_version="1.0.0", rating=5))
    await db.commit()

    result = await check_review_eligibility(db, buyer.id, agent.id, now=NOW)

    assert result.reason == "ALREADY_REVIEWED"


async def test_custom_window(db):
    buyer, agent = await _setup(db)
    await create_purchase(db, buyer, agent, purchased_at=NOW - timedelta(days=3))
    result = await check_review_eligibility(db, buyer.id, agent.id, eligibility_days=2, now=NOW)
    assert result.eligible is True


class TestEligibilityRoute:
    async def test_missing_params(self, client):
        response = await client.get("/api/reviews/eligibility", params={"userId": "u1"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing userId or agentId"}

    async def test_no_purchase(self, client, db):
        buyer, agent = await _setup(db)
        response = await client.get(
            "/api/reviews/eligibility",
            params={"userId": buyer.id, "agentId": agent.id},
        )
        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["eligible"] is False
        assert body["reason"] == "NO_PURCHASE"
