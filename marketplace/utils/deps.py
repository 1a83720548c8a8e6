from fastapi import Request

from marketplace.services.identity import IdentityClient


def get_identity(request: Request) -> IdentityClient:
    return request.app.state.identity


def safe_next_path(next_path: str | None, default: str) -> str:
    """Only same-site absolute paths are honoured as post-login targets."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return default
    return next_path
