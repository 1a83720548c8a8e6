from jose import JWTError, jwt

from marketplace.core.config import Settings
from marketplace.core.errors import InvalidTokenError
from marketplace.services.identity import IdentityUser

ALGORITHM = "HS256"


def decode_access_token(token: str, settings: Settings) -> IdentityUser:
    """Verify an identity-provider access token and return its user claims."""
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Token has no subject")

    return IdentityUser(
        id=str(user_id),
        email=payload.get("email"),
        user_metadata=payload.get("user_metadata") or {},
        confirmed=True,
    )
