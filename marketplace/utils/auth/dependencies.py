import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.core.errors import InvalidTokenError
from marketplace.db.models import User
from marketplace.db.session import get_db
from marketplace.services.identity import IdentityUser
from marketplace.services.users import sync_user
from marketplace.utils.auth.tokens import decode_access_token

log = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> IdentityUser | None:
    """Signed-in identity from the bearer header or session cookie, else None."""
    settings = get_settings()
    token = credentials.credentials if credentials else None
    token = token or request.cookies.get(settings.ACCESS_TOKEN_COOKIE_NAME)
    if not token:
        return None
    try:
        return decode_access_token(token, settings)
    except InvalidTokenError as e:
        log.debug("Rejected access token: %s", e)
        return None


async def get_optional_user(
    identity: IdentityUser | None = Depends(get_identity_user),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    if identity is None:
        return None
    return await sync_user(db, identity)


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
