"""
Client for the hosted identity provider (Supabase Auth).

Two underlying clients are used:
- a fresh anon-key client per session-bearing call (sign in, code exchange),
  so no user session is ever held in a process-wide object
- one service-role client for admin operations (password resets, lookups)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from supabase import Client, ClientOptions, create_client

from marketplace.core.config import Settings
from marketplace.core.errors import IdentityProviderError

log = logging.getLogger(__name__)


@dataclass
class IdentityUser:
    id: str
    email: str | None
    user_metadata: dict[str, Any] = field(default_factory=dict)
    confirmed: bool = False

    @property
    def name(self) -> str | None:
        return self.user_metadata.get("name") or self.user_metadata.get("full_name")

    @property
    def avatar_url(self) -> str | None:
        return self.user_metadata.get("avatar_url")


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    user: IdentityUser


def _to_identity_user(user: Any) -> IdentityUser:
    confirmed_at = getattr(user, "email_confirmed_at", None) or getattr(user, "confirmed_at", None)
    return IdentityUser(
        id=str(user.id),
        email=user.email,
        user_metadata=dict(user.user_metadata or {}),
        confirmed=confirmed_at is not None,
    )


def _to_session(response: Any) -> AuthSession | None:
    session = getattr(response, "session", None)
    user = getattr(response, "user", None) or getattr(session, "user", None)
    if session is None or user is None:
        return None
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=_to_identity_user(user),
    )


async def _run_sync(func, *args, **kwargs):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))


class IdentityClient:
    """
    The Supabase SDK is synchronous; every call runs in the default
    executor.
    """

    def __init__(self, settings: Settings, admin_client: Client | None = None):
        self._url = settings.SUPABASE_URL
        self._anon_key = settings.SUPABASE_ANON_KEY
        self._admin = admin_client or create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )

    def _anon(self) -> Client:
        return create_client(
            self._url,
            self._anon_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )

    async def exchange_code_for_session(
        self, code: str, code_verifier: str | None = None
    ) -> AuthSession:
        params: dict[str, str] = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier

        def _exchange():
            return self._anon().auth.exchange_code_for_session(params)

        try:
            response = await _run_sync(_exchange)
        except Exception as e:
            log.warning("Auth code exchange failed: %s", e)
            raise IdentityProviderError(str(e)) from e

        session = _to_session(response)
        if session is None:
            raise IdentityProviderError("Code exchange returned no session")
        return session

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        def _sign_in():
            return self._anon().auth.sign_in_with_password({"email": email, "password": password})

        try:
            response = await _run_sync(_sign_in)
        except Exception as e:
            raise IdentityProviderError(str(e)) from e

        session = _to_session(response)
        if session is None:
            raise IdentityProviderError("Login failed")
        return session

    async def sign_up(
        self,
        email: str,
        password: str,
        name: str | None,
        redirect_to: str,
    ) -> tuple[IdentityUser, AuthSession | None]:
        """
        Returns the created identity user and, when email confirmation is
        disabled, an immediately usable session.
        """
        def _sign_up():
            return self._anon().auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {
                        "data": {"name": name},
                        "email_redirect_to": redirect_to,
                    },
                }
            )

        try:
            response = await _run_sync(_sign_up)
        except Exception as e:
            raise IdentityProviderError(str(e)) from e

        if response.user is None:
            raise IdentityProviderError("Signup failed")
        return _to_identity_user(response.user), _to_session(response)

    async def sign_out(self, access_token: str) -> None:
        try:
            await _run_sync(self._admin.auth.admin.sign_out, access_token)
        except Exception as e:
            raise IdentityProviderError(str(e)) from e

    async def send_password_reset(self, email: str, redirect_to: str) -> None:
        def _send():
            return self._anon().auth.reset_password_for_email(email, {"redirect_to": redirect_to})

        try:
            await _run_sync(_send)
        except Exception as e:
            raise IdentityProviderError(str(e)) from e

    async def admin_find_user_by_email(self, email: str, per_page: int = 200) -> IdentityUser | None:
        wanted = email.strip().lower()
        page = 1
        while True:
            try:
                users = await _run_sync(self._admin.auth.admin.list_users, page=page, per_page=per_page)
            except Exception as e:
                raise IdentityProviderError(str(e)) from e
            for user in users:
                if (user.email or "").lower() == wanted:
                    return _to_identity_user(user)
            if len(users) < per_page:
                return None
            page += 1

    async def admin_update_password(self, user_id: str, password: str) -> IdentityUser:
        try:
            response = await _run_sync(
                self._admin.auth.admin.update_user_by_id, user_id, {"password": password}
            )
        except Exception as e:
            raise IdentityProviderError(str(e)) from e
        return _to_identity_user(response.user)
