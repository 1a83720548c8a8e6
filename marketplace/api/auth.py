import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.core.errors import IdentityProviderError
from marketplace.db.models import UserRole
from marketplace.db.session import get_db
from marketplace.schemas.auth import LoginRequest, PasswordResetRequest, SignupRequest
from marketplace.services.identity import IdentityClient
from marketplace.services.users import sync_user
from marketplace.utils.auth.cookies import clear_session_cookies, set_session_cookies
from marketplace.utils.deps import get_identity, safe_next_path
from marketplace.utils.rate_limiter import PRESETS, rate_limit

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

DEFAULT_CALLBACK_REDIRECT = "/dashboard"

ROLE_HOME = {
    UserRole.ADMIN: "/admin",
    UserRole.SELLER: "/dashboard",
    UserRole.BUYER: "/agents",
}


async def _read_payload(request: Request) -> tuple[dict, bool]:
    """Body as a dict plus whether it came from an HTML form."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return {k: v for k, v in form.items() if v != ""}, True
    try:
        body = await request.json()
    except ValueError:
        body = {}
    return body if isinstance(body, dict) else {}, False


@router.get("/callback")
async def auth_callback(
    request: Request,
    code: str | None = None,
    next: str | None = None,
    db: AsyncSession = Depends(get_db),
    identity: IdentityClient = Depends(get_identity),
):
    settings = get_settings()
    target = safe_next_path(next, DEFAULT_CALLBACK_REDIRECT)
    response = RedirectResponse(target, status_code=303)

    if not code:
        return response

    try:
        session = await identity.exchange_code_for_session(code)
    except IdentityProviderError as e:
        log.error("Auth callback failed: %s", e)
        return RedirectResponse("/login?error=auth_callback_failed", status_code=303)

    await sync_user(db, session.user)
    set_session_cookies(response, session, settings)
    log.info("Auth callback completed user=%s next=%s", session.user.id, target)
    return response


@router.post("/login")
async def login(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity: IdentityClient = Depends(get_identity),
):
    settings = get_settings()
    payload, from_form = await _read_payload(request)
    try:
        data = LoginRequest(**payload)
    except ValidationError:
        if from_form:
            return RedirectResponse("/login?error=invalid_credentials", status_code=303)
        return JSONResponse(
            {"success": False, "error": "Email and password are required"},
            status_code=400,
        )

    try:
        session = await identity.sign_in_with_password(data.email, data.password)
    except IdentityProviderError as e:
        log.info("Login failed for %s: %s", data.email, e)
        if from_form:
            return RedirectResponse("/login?error=invalid_credentials", status_code=303)
        return JSONResponse({"success": False, "error": "Invalid email or password"}, status_code=401)

    user = await sync_user(db, session.user)
    redirect_url = safe_next_path(data.next, ROLE_HOME.get(user.role, "/agents"))

    if from_form:
        response = RedirectResponse(redirect_url, status_code=303)
    else:
        response = JSONResponse(
            {"success": True, "redirectUrl": redirect_url, "role": user.role.value}
        )
    set_session_cookies(response, session, settings)
    return response


@router.post("/signup")
@rate_limit(PRESETS["mutation"], scope="signup")
async def signup(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity: IdentityClient = Depends(get_identity),
):
    settings = get_settings()
    payload, from_form = await _read_payload(request)
    try:
        data = SignupRequest(**payload)
    except ValidationError:
        if from_form:
            return RedirectResponse("/signup?error=invalid_signup", status_code=303)
        return JSONResponse(
            {"success": False, "error": "A valid email and a password of at least 8 characters are required"},
            status_code=400,
        )

    try:
        identity_user, session = await identity.sign_up(
            data.email,
            data.password,
            data.name,
            redirect_to=f"{settings.SITE_URL.rstrip('/')}/auth/callback",
        )
    except IdentityProviderError as e:
        log.warning("Signup failed for %s: %s", data.email, e)
        if from_form:
            return RedirectResponse("/signup?error=signup_failed", status_code=303)
        return JSONResponse({"success": False, "error": str(e)}, status_code=400)

    await sync_user(db, identity_user)

    requires_confirmation = session is None
    redirect_url = "/login?message=check_email" if requires_confirmation else "/agents"
    message = (
        "Check your email to confirm your account."
        if requires_confirmation
        else "Account created."
    )

    if from_form:
        response = RedirectResponse(redirect_url, status_code=303)
    else:
        response = JSONResponse(
            {
                "success": True,
                "message": message,
                "redirectUrl": redirect_url,
                "requiresEmailConfirmation": requires_confirmation,
            }
        )
    if session is not None:
        set_session_cookies(response, session, settings)
    return response


@router.post("/logout")
async def logout(
    request: Request,
    identity: IdentityClient = Depends(get_identity),
):
    settings = get_settings()
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE_NAME)
    if token:
        try:
            await identity.sign_out(token)
        except IdentityProviderError as e:
            log.warning("Sign out at identity provider failed: %s", e)

    response = JSONResponse({"success": True})
    clear_session_cookies(response, settings)
    return response


@router.post("/forgot-password")
@rate_limit(PRESETS["strict"], scope="forgot-password")
async def forgot_password(
    request: Request,
    data: PasswordResetRequest,
    identity: IdentityClient = Depends(get_identity),
):
    settings = get_settings()
    try:
        await identity.send_password_reset(
            data.email,
            redirect_to=f"{settings.SITE_URL.rstrip('/')}/auth/callback?next=/reset-password",
        )
    except IdentityProviderError as e:
        log.error("Password reset email failed for %s: %s", data.email, e)

    return {"success": True, "message": "If an account exists, we've sent a reset link."}
