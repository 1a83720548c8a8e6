"""
Page access policies.

A policy answers ``can_access(user, resource)`` with either ``ALLOW`` or a
``Redirect`` to send the browser elsewhere. ``require_access`` turns a chain
of policies into a FastAPI dependency for page routes.
"""

from dataclasses import dataclass
from urllib.parse import quote

from fastapi import Depends, Request

from marketplace.core.errors import RedirectRequired
from marketplace.db.models import User, UserRole
from marketplace.utils.auth.dependencies import get_optional_user


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    target: str


ALLOW = Allow()
Decision = Allow | Redirect


def login_redirect(resource: str) -> str:
    return f"/login?next={quote(resource, safe='/')}"


class AccessPolicy:
    def can_access(self, user: User | None, resource: str) -> Decision:
        raise NotImplementedError


class Authenticated(AccessPolicy):
    def can_access(self, user: User | None, resource: str) -> Decision:
        if user is None:
            return Redirect(login_redirect(resource))
        return ALLOW


class RoleRequired(AccessPolicy):
    def __init__(self, *roles: UserRole, fallback: str = "/403"):
        self.roles = frozenset(roles)
        self.fallback = fallback

    def can_access(self, user: User | None, resource: str) -> Decision:
        if user is None:
            return Redirect(login_redirect(resource))
        if user.role in self.roles:
            return ALLOW
        return Redirect(self.fallback)


def evaluate(policies: tuple[AccessPolicy, ...], user: User | None, resource: str) -> Decision:
    for policy in policies:
        decision = policy.can_access(user, resource)
        if isinstance(decision, Redirect):
            return decision
    return ALLOW


def require_access(*policies: AccessPolicy):
    async def dependency(
        request: Request,
        user: User | None = Depends(get_optional_user),
    ) -> User:
        resource = request.url.path
        if request.url.query:
            resource = f"{resource}?{request.url.query}"
        decision = evaluate(policies, user, resource)
        if isinstance(decision, Redirect):
            raise RedirectRequired(decision.target)
        return user

    return dependency


require_login = require_access(Authenticated())
require_seller = require_access(
    Authenticated(),
    RoleRequired(UserRole.SELLER, UserRole.ADMIN, fallback="/become-seller"),
)
require_admin = require_access(Authenticated(), RoleRequired(UserRole.ADMIN, fallback="/403"))
