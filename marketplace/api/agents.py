import logging
import math

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.session import get_db
from marketplace.schemas.agent import AgentListItem
from marketplace.services.agents import list_public_agents
from marketplace.utils.rate_limiter import PRESETS, rate_limit

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agents", tags=["agents"])


@router.get("")
@rate_limit(PRESETS["search"], scope="agents")
async def list_agents(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    search: str = "",
    category_id: str = Query("", alias="categoryId"),
    featured: bool = False,
    db: AsyncSession = Depends(get_db),
):
    try:
        agents, total = await list_public_agents(
            db,
            page=page,
            limit=limit,
            search=search or None,
            category_id=category_id or None,
            featured=featured,
        )
    except Exception:
        log.error("Error fetching agents", exc_info=True)
        return JSONResponse({"success": False, "error": "Failed to fetch agents"}, status_code=500)

    return JSONResponse(
        {
            "success": True,
            "data": [
                AgentListItem.from_agent(a).model_dump(mode="json", by_alias=True) for a in agents
            ],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit),
            },
        }
    )
