import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.api import agents, auth, categories, health, reviews, user
from marketplace.core.config import get_settings
from marketplace.core.errors import RedirectRequired
from marketplace.core.logging import setup_logging
from marketplace.db.session import create_engine_from_settings, create_sessionmaker
from marketplace.pages import routes as pages
from marketplace.services.identity import IdentityClient
from marketplace.utils.redis_pool import close_redis, create_redis

log = logging.getLogger("marketplace")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    engine = create_engine_from_settings(settings)
    app.state.engine = engine
    app.state.sessionmaker = create_sessionmaker(engine)
    app.state.redis = create_redis(settings)
    app.state.identity = IdentityClient(settings)
    log.info("Marketplace started (environment=%s)", settings.ENVIRONMENT)

    try:
        yield
    finally:
        await close_redis(app.state.redis)
        await engine.dispose()
        log.info("Marketplace stopped")


async def redirect_required_handler(request: Request, exc: RedirectRequired):
    return RedirectResponse(exc.target, status_code=303)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # dict details are already response bodies ({"success": false, "error": ...})
    body = exc.detail if isinstance(exc.detail, dict) else {"detail": exc.detail}
    return JSONResponse(body, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"success": False, "error": "Internal server error"}, status_code=500)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(title="Agent Marketplace", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RedirectRequired, redirect_required_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(categories.router)
    app.include_router(user.router)
    app.include_router(agents.router)
    app.include_router(reviews.router)
    app.include_router(pages.router)

    return app
