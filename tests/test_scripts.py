# =============================================================================
# tests/test_scripts.py - Maintenance Script Tests
# =============================================================================

import json
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy import func, select

from marketplace.core.errors import IdentityProviderError
from marketplace.db.models import Agent, Category, Subscription, SubscriptionStatus, UserRole
from marketplace.services.identity import IdentityClient, IdentityUser
from marketplace.services.subscriptions import create_legacy_grace_subscription
from scripts import migrate_legacy_users
from scripts.check_user_role import check_role
from scripts.manage_agent_status import change_status
from scripts.migrate_legacy_users import migrate
from scripts.seed_categories import DEFAULT_CATEGORIES, seed
from scripts.reset_password import reset_password
from scripts.rls import toggle_rls
from scripts.set_user_role import parse_role, set_role
from scripts.update_agent_thumbnails import load_mapping, update_thumbnails
from tests.conftest import create_agent, create_category, create_purchase, create_user


class TestSetUserRole:
    def test_parse_role(self):
        assert parse_role("seller") == UserRole.SELLER
        assert parse_role("OWNER") is None

    async def test_invalid_role_exits_with_error(self, db, capsys):
        await create_user(db)
        assert await set_role(db, "buyer@example.com", "superuser") == 1
        assert "Invalid role" in capsys.readouterr().out

    async def test_missing_user(self, db, capsys):
        assert await set_role(db, "ghost@example.com", "ADMIN") == 1
        assert "User not found" in capsys.readouterr().out

    async def test_updates_role(self, db):
        user = await create_user(db)
        assert await set_role(db, user.email, "admin") == 0
        await db.refresh(user)
        assert user.role == UserRole.ADMIN


async def test_check_user_role_reports_admin(db, capsys):
    await create_user(db, "admin@example.com", role=UserRole.ADMIN)
    assert await check_role(db, "admin@example.com") == 0
    assert "User is an ADMIN" in capsys.readouterr().out


class TestThumbnails:
    async def test_loop_continues_past_failures(self, capsys):
        agent = Agent(slug="first", title="First")
        db = MagicMock()
        db.scalar = AsyncMock(side_effect=[agent, RuntimeError("boom"), None])
        db.commit = AsyncMock()
        db.rollback = AsyncMock()

        report = await update_thumbnails(
            db,
            {"first": "https://cdn/1.png", "second": "https://cdn/2.png", "third": "https://cdn/3.png"},
        )

        assert report.updated == ["first"]
        assert report.failed == ["second"]
        assert report.missing == ["third"]
        assert agent.thumbnail_url == "https://cdn/1.png"
        db.rollback.assert_awaited_once()

    async def test_updates_real_rows(self, db):
        seller = await create_user(db, "seller@example.com")
        agent = await create_agent(db, seller, await create_category(db))

        report = await update_thumbnails(db, {agent.slug: "https://cdn/thumb.png"})

        assert report.updated == [agent.slug]
        await db.refresh(agent)
        assert agent.thumbnail_url == "https://cdn/thumb.png"

    def test_load_mapping(self, tmp_path):
        path = tmp_path / "thumbs.json"
        path.write_text(json.dumps({"a": "https://cdn/a.png"}))
        assert load_mapping(path) == {"a": "https://cdn/a.png"}


class TestManageAgentStatus:
    async def test_rejection_needs_reason(self, db, capsys):
        seller = await create_user(db, "seller@example.com")
        agent = await create_agent(db, seller, await create_category(db))
        assert await change_status(db, agent.id, "REJECTED", None) == 1
        assert "Rejection reason required" in capsys.readouterr().out

    async def test_invalid_status(self, db):
        assert await change_status(db, "any", "PUBLISHED", None) == 1


class TestResetPassword:
    async def test_updates_found_user(self):
        identity = MagicMock(spec=IdentityClient)
        identity.admin_find_user_by_email.return_value = IdentityUser(id="u1", email="a@example.com")

        assert await reset_password(identity, "a@example.com", "new-password-1") == 0
        identity.admin_update_password.assert_awaited_once_with("u1", "new-password-1")

    async def test_unknown_user(self):
        identity = MagicMock(spec=IdentityClient)
        identity.admin_find_user_by_email.return_value = None
        assert await reset_password(identity, "a@example.com", None) == 1

    async def test_provider_failure(self):
        identity = MagicMock(spec=IdentityClient)
        identity.admin_find_user_by_email.return_value = IdentityUser(id="u1", email="a@example.com")
        identity.admin_update_password.side_effect = IdentityProviderError("forbidden")
        assert await reset_password(identity, "a@example.com", "new-password-1") == 1


async def test_seed_categories_is_idempotent(db):
    await seed(db)
    await seed(db)
    count = await db.scalar(select(func.count(Category.id)))
    assert count == len(DEFAULT_CATEGORIES)


class TestMigrateLegacyUsers:
    async def _buyers_with_purchases(self, db, count):
        seller = await create_user(db, "seller@example.com", role=UserRole.SELLER)
        agent = await create_agent(db, seller, await create_category(db))
        buyers = []
        for i in range(count):
            buyer = await create_user(db, f"buyer{i}@example.com")
            await create_purchase(db, buyer, agent)
            buyers.append(buyer)
        return buyers

    async def test_creates_and_skips(self, db, capsys):
        first, second = await self._buyers_with_purchases(db, 2)
        await create_legacy_grace_subscription(db, first.id, 30)

        assert await migrate(db, grace_days=30) == 0

        out = capsys.readouterr().out
        assert "Created: 1" in out
        assert "Skipped: 1" in out
        sub = await db.scalar(select(Subscription).where(Subscription.user_id == second.id))
        assert sub.status == SubscriptionStatus.LEGACY_GRACE

    async def test_failed_user_is_rolled_back_and_loop_continues(self, db, monkeypatch, capsys):
        failing, healthy = await self._buyers_with_purchases(db, 2)
        real_create = migrate_legacy_users.create_legacy_grace_subscription

        async def flaky(session, user_id, grace_days):
            if user_id == failing.id:
                raise RuntimeError("connection reset")
            return await real_create(session, user_id, grace_days)

        monkeypatch.setattr(migrate_legacy_users, "create_legacy_grace_subscription", flaky)
        rollback = AsyncMock(wraps=db.rollback)
        monkeypatch.setattr(db, "rollback", rollback)

        assert await migrate(db, grace_days=30) == 1

        rollback.assert_awaited_once()
        out = capsys.readouterr().out
        assert "Created: 1" in out
        assert "Errors:  1" in out
        assert await db.scalar(select(Subscription).where(Subscription.user_id == healthy.id)) is not None


async def test_rls_toggle_continues_past_failed_table(capsys):
    db = MagicMock()
    db.execute = AsyncMock(side_effect=[None, RuntimeError("permission denied"), None])
    db.commit = AsyncMock()
    db.rollback = AsyncMock()

    assert await toggle_rls(db, enable=True, tables=("users", "agents", "reviews")) == 1

    assert db.execute.await_count == 3
    assert db.commit.await_count == 2
    db.rollback.assert_awaited_once()
    out = capsys.readouterr().out
    assert "❌ agents: permission denied" in out
    assert "✅ reviews" in out
