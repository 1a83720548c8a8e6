from fastapi import Response

from marketplace.core.config import Settings
from marketplace.services.identity import AuthSession


def _cookie_options(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": settings.COOKIE_SAMESITE,
        "domain": settings.COOKIE_DOMAIN,
        "path": "/",
    }


def set_session_cookies(response: Response, session: AuthSession, settings: Settings) -> None:
    options = _cookie_options(settings)
    response.set_cookie(
        settings.ACCESS_TOKEN_COOKIE_NAME, session.access_token,
        max_age=settings.ACCESS_TOKEN_MAX_AGE, **options,
    )
    response.set_cookie(
        settings.REFRESH_TOKEN_COOKIE_NAME, session.refresh_token,
        max_age=settings.REFRESH_TOKEN_MAX_AGE, **options,
    )


def clear_session_cookies(response: Response, settings: Settings) -> None:
    options = _cookie_options(settings)
    for name in (settings.ACCESS_TOKEN_COOKIE_NAME, settings.REFRESH_TOKEN_COOKIE_NAME):
        response.set_cookie(name, "", max_age=0, **options)
