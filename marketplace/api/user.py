import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.session import get_db
from marketplace.services.subscriptions import get_subscription_state
from marketplace.services.users import get_user_with_role

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/role")
async def get_user_role(
    user_id: str | None = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
):
    if not user_id:
        return JSONResponse({"error": "User ID required"}, status_code=400)

    try:
        user = await get_user_with_role(db, user_id)
    except Exception:
        log.error("Error fetching user role", exc_info=True)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    if not user:
        return JSONResponse({"error": "User not found"}, status_code=404)

    return {"role": user.role.value}


@router.get("/subscription")
async def get_user_subscription(
    user_id: str | None = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
):
    if not user_id:
        return JSONResponse({"error": "userId is required"}, status_code=400)

    state = await get_subscription_state(db, user_id)
    return state.to_response()
