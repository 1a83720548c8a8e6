"""Authentication utilities."""

from .tokens import decode_access_token
from .dependencies import get_current_user, get_identity_user, get_optional_user
from .guards import require_access, require_admin, require_login, require_seller

__all__ = [
    "decode_access_token",
    "get_current_user",
    "get_identity_user",
    "get_optional_user",
    "require_access",
    "require_admin",
    "require_login",
    "require_seller",
]
