import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.db.session import get_db
from marketplace.services.reviews import check_review_eligibility

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("/eligibility")
async def review_eligibility(
    user_id: str | None = Query(None, alias="userId"),
    agent_id: str | None = Query(None, alias="agentId"),
    db: AsyncSession = Depends(get_db),
):
    if not user_id or not agent_id:
        return JSONResponse(
            {"success": False, "error": "Missing userId or agentId"},
            status_code=400,
        )

    try:
        result = await check_review_eligibility(
            db,
            user_id,
            agent_id,
            eligibility_days=get_settings().REVIEW_ELIGIBILITY_DAYS,
        )
    except Exception:
        log.error("Review eligibility check failed", exc_info=True)
        return JSONResponse(
            {"success": False, "error": "Failed to check review eligibility"},
            status_code=500,
        )

    return JSONResponse(
        {"success": True, **result.to_response()},
        headers={"Cache-Control": "no-store"},
    )
