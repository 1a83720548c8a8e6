# =============================================================================
# tests/test_auth.py - /auth Route Tests
# =============================================================================
# The identity provider is a MagicMock(spec=IdentityClient); its async
# methods are AsyncMocks.
# =============================================================================

import pytest
from sqlalchemy import select

from marketplace.core.errors import IdentityProviderError
from marketplace.db.models import User, UserRole
from marketplace.services.identity import AuthSession, IdentityUser
from tests.conftest import create_user


def _session(user_id="id-123", email="new@example.com", name=None) -> AuthSession:
    return AuthSession(
        access_token="access-token",
        refresh_token="refresh-token",
        user=IdentityUser(id=user_id, email=email, user_metadata={"name": name} if name else {}),
    )


class TestCallback:
    async def test_exchanges_code_and_redirects_to_next(self, client, identity, db):
        identity.exchange_code_for_session.return_value = _session(name="New Buyer")

        response = await client.get("/auth/callback", params={"code": "abc", "next": "/library"})

        assert response.status_code == 303
        assert response.headers["location"] == "/library"
        assert "sb-access-token=access-token" in response.headers.get("set-cookie", "")
        identity.exchange_code_for_session.assert_awaited_once_with("abc")

        user = await db.scalar(select(User).where(User.id == "id-123"))
        assert user.role == UserRole.BUYER
        assert user.name == "New Buyer"

    async def test_defaults_to_dashboard(self, client, identity):
        identity.exchange_code_for_session.return_value = _session()
        response = await client.get("/auth/callback", params={"code": "abc"})
        assert response.headers["location"] == "/dashboard"

    @pytest.mark.parametrize("next_path", ["https://evil.example", "//evil.example", "library"])
    async def test_ignores_offsite_next(self, client, identity, next_path):
        identity.exchange_code_for_session.return_value = _session()
        response = await client.get("/auth/callback", params={"code": "abc", "next": next_path})
        assert response.headers["location"] == "/dashboard"

    async def test_without_code(self, client, identity):
        response = await client.get("/auth/callback", params={"next": "/agents"})
        assert response.status_code == 303
        assert response.headers["location"] == "/agents"
        identity.exchange_code_for_session.assert_not_called()

    async def test_exchange_failure(self, client, identity):
        identity.exchange_code_for_session.side_effect = IdentityProviderError("bad code")
        response = await client.get("/auth/callback", params={"code": "abc"})
        assert response.status_code == 303
        assert response.headers["location"] == "/login?error=auth_callback_failed"


class TestLogin:
    @pytest.mark.parametrize(
        "role, redirect",
        [
            (UserRole.ADMIN, "/admin"),
            (UserRole.SELLER, "/dashboard"),
            (UserRole.BUYER, "/agents"),
        ],
    )
    async def test_role_based_redirect(self, client, identity, db, role, redirect):
        user = await create_user(db, f"{role.value.lower()}@example.com", role=role)
        identity.sign_in_with_password.return_value = _session(user.id, user.email)

        response = await client.post("/auth/login", json={"email": user.email, "password": "secret123"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "redirectUrl": redirect, "role": role.value}
        assert "sb-access-token=access-token" in response.headers.get("set-cookie", "")

    async def test_next_overrides_role_redirect(self, client, identity, db):
        user = await create_user(db)
        identity.sign_in_with_password.return_value = _session(user.id, user.email)

        response = await client.post(
            "/auth/login",
            json={"email": user.email, "password": "secret123", "next": "/submit-agent"},
        )

        assert response.json()["redirectUrl"] == "/submit-agent"

    async def test_bad_credentials(self, client, identity):
        identity.sign_in_with_password.side_effect = IdentityProviderError("Invalid login credentials")

        response = await client.post("/auth/login", json={"email": "x@example.com", "password": "wrong"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid email or password"}

    async def test_form_login_redirects(self, client, identity, db):
        user = await create_user(db, "seller@example.com", role=UserRole.SELLER)
        identity.sign_in_with_password.return_value = _session(user.id, user.email)

        response = await client.post("/auth/login", data={"email": user.email, "password": "secret123"})

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

    async def test_missing_fields(self, client):
        response = await client.post("/auth/login", json={"email": "x@example.com"})
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestSignup:
    async def test_signup_requiring_confirmation(self, client, identity, db):
        identity.sign_up.return_value = (IdentityUser(id="id-9", email="new@example.com"), None)

        response = await client.post(
            "/auth/signup",
            json={"email": "new@example.com", "password": "password123", "name": "New"},
        )

        body = response.json()
        assert body["success"] is True
        assert body["requiresEmailConfirmation"] is True
        assert body["redirectUrl"] == "/login?message=check_email"
        assert (await db.get(User, "id-9")).role == UserRole.BUYER

    async def test_short_password_rejected(self, client, identity):
        response = await client.post("/auth/signup", json={"email": "new@example.com", "password": "short"})
        assert response.status_code == 400
        identity.sign_up.assert_not_called()


async def test_logout_clears_cookies(client, identity):
    client.cookies.set("sb-access-token", "access-token")

    response = await client.post("/auth/logout")

    assert response.json() == {"success": True}
    identity.sign_out.assert_awaited_once_with("access-token")
    assert 'sb-access-token=""' in response.headers.get("set-cookie", "")


async def test_forgot_password_never_reveals_failures(client, identity):
    identity.send_password_reset.side_effect = IdentityProviderError("user not found")

    response = await client.post("/auth/forgot-password", json={"email": "ghost@example.com"})

    assert response.status_code == 200
    assert response.json()["success"] is True
