# =============================================================================
# tests/test_identity.py - Identity Provider Client Tests
# =============================================================================

import asyncio
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from marketplace.core.config import get_settings
from marketplace.core.errors import IdentityProviderError
from marketplace.services.identity import IdentityClient


def _user(user_id, email):
    return SimpleNamespace(id=user_id, email=email, user_metadata={"name": "Ana"}, email_confirmed_at=None)


def _client(admin):
    return IdentityClient(get_settings(), admin_client=admin)


async def test_provider_calls_do_not_block_the_event_loop():
    admin = MagicMock()

    def slow_list_users(page, per_page):
        time.sleep(0.5)
        return []

    admin.auth.admin.list_users.side_effect = slow_list_users
    client = _client(admin)

    started = time.perf_counter()
    found = await asyncio.gather(
        client.admin_find_user_by_email("a@example.com"),
        client.admin_find_user_by_email("b@example.com"),
        asyncio.sleep(0.5),
    )
    elapsed = time.perf_counter() - started

    assert found == [None, None, None]
    assert elapsed < 0.9


async def test_find_user_walks_pages():
    admin = MagicMock()
    admin.auth.admin.list_users.side_effect = [
        [_user("1", "x@example.com"), _user("2", "y@example.com")],
        [_user("3", "Target@Example.com")],
    ]

    user = await _client(admin).admin_find_user_by_email("target@example.com", per_page=2)

    assert user.id == "3"
    assert user.name == "Ana"
    assert admin.auth.admin.list_users.call_count == 2


async def test_provider_errors_are_wrapped():
    admin = MagicMock()
    admin.auth.admin.update_user_by_id.side_effect = RuntimeError("User not allowed")

    with pytest.raises(IdentityProviderError, match="User not allowed"):
        await _client(admin).admin_update_password("u1", "new-password-1")
