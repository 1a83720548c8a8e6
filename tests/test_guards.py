# =============================================================================
# tests/test_guards.py - Page Access Policy Tests
# =============================================================================

import pytest
from sqlalchemy import select

from marketplace.db.models import Agent, AgentStatus, User, UserRole
from marketplace.utils.auth.guards import (
    ALLOW,
    Authenticated,
    Redirect,
    RoleRequired,
    evaluate,
    login_redirect,
)
from tests.conftest import auth_headers, create_category, create_user

SELLER_POLICIES = (
    Authenticated(),
    RoleRequired(UserRole.SELLER, UserRole.ADMIN, fallback="/become-seller"),
)


class TestPolicies:
    def test_anonymous_is_sent_to_login(self):
        assert evaluate(SELLER_POLICIES, None, "/submit-agent") == Redirect("/login?next=/submit-agent")

    def test_buyer_is_sent_to_become_seller(self):
        buyer = User(email="b@example.com", role=UserRole.BUYER)
        assert evaluate(SELLER_POLICIES, buyer, "/submit-agent") == Redirect("/become-seller")

    @pytest.mark.parametrize("role", [UserRole.SELLER, UserRole.ADMIN])
    def test_sellers_and_admins_allowed(self, role):
        user = User(email="s@example.com", role=role)
        assert evaluate(SELLER_POLICIES, user, "/submit-agent") == ALLOW

    def test_admin_only(self):
        policy = RoleRequired(UserRole.ADMIN)
        seller = User(email="s@example.com", role=UserRole.SELLER)
        assert policy.can_access(seller, "/admin") == Redirect("/403")

    def test_login_redirect_quotes_resource(self):
        assert login_redirect("/agents/a b") == "/login?next=/agents/a%20b"


class TestSubmitAgentPages:
    async def test_anonymous_redirected_to_login(self, client):
        response = await client.get("/submit-agent")
        assert response.status_code == 303
        assert response.headers["location"] == "/login?next=/submit-agent"

    async def test_buyer_redirected_to_become_seller(self, client, db):
        buyer = await create_user(db)
        response = await client.get("/submit-agent", headers=auth_headers(buyer))
        assert response.status_code == 303
        assert response.headers["location"] == "/become-seller"

    async def test_seller_sees_form_with_categories(self, client, db):
        seller = await create_user(db, "seller@example.com", role=UserRole.SELLER)
        await create_category(db, "Productivity")
        await create_category(db, "Data Analysis")

        response = await client.get("/submit-agent", headers=auth_headers(seller))

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert response.text.index("Data Analysis") < response.text.index("Productivity")

    async def test_seller_creates_draft(self, client, db):
        seller = await create_user(db, "seller@example.com", role=UserRole.SELLER)
        category = await create_category(db, "Productivity")

        response = await client.post(
            "/submit-agent",
            headers=auth_headers(seller),
            data={
                "title": "Inbox Zero",
                "category_id": category.id,
                "price": "19.99",
                "setup_guide": "Import the workflow and connect Gmail.",
            },
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard?success=created"
        agent = await db.scalar(select(Agent).where(Agent.title == "Inbox Zero"))
        assert agent.status == AgentStatus.DRAFT
        assert agent.seller_id == seller.id

    async def test_invalid_submission_rerenders_form(self, client, db):
        seller = await create_user(db, "seller@example.com", role=UserRole.SELLER)
        category = await create_category(db, "Productivity")

        response = await client.post(
            "/submit-agent",
            headers=auth_headers(seller),
            data={"title": "ab", "category_id": category.id, "price": "5", "setup_guide": "long enough guide"},
        )

        assert response.status_code == 400
        assert "Title must be at least 3 characters" in response.text


class TestOtherGatedPages:
    async def test_admin_page_rejects_seller(self, client, db):
        seller = await create_user(db, "seller@example.com", role=UserRole.SELLER)
        response = await client.get("/admin", headers=auth_headers(seller))
        assert response.status_code == 303
        assert response.headers["location"] == "/403"

    async def test_library_requires_login(self, client):
        response = await client.get("/library")
        assert response.headers["location"] == "/login?next=/library"

    async def test_login_redirect_keeps_query_string(self, client):
        response = await client.get("/library", params={"subscribed": "true"})
        assert response.headers["location"] == "/login?next=/library%3Fsubscribed%3Dtrue"

    async def test_library_welcome_banner(self, client, db):
        buyer = await create_user(db)
        response = await client.get("/library", params={"subscribed": "true"}, headers=auth_headers(buyer))
        assert response.status_code == 200
        assert 'id="welcome-banner"' in response.text
        assert "history.replaceState" in response.text

    async def test_library_without_flag(self, client, db):
        buyer = await create_user(db)
        response = await client.get("/library", headers=auth_headers(buyer))
        assert 'id="welcome-banner"' not in response.text

    async def test_invalid_token_treated_as_anonymous(self, client):
        response = await client.get("/dashboard", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.headers["location"] == "/login?next=/dashboard"
