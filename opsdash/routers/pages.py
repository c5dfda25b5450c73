"""
Dashboard page routers: System Health, Call Activity, Subscriptions and
Pipeline.

Each page runs its own load for the requested period and returns KPIs,
chart series and the page's panels in the command center response shape.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from opsdash.auth.dependencies import get_current_user
from opsdash.config import get_settings
from opsdash.connectors.backend_client import EntityDataSource, get_backend_client
from opsdash.engine.command_center import CommandCenterService
from opsdash.models.derived import DateRange
from opsdash.routers.command_center import get_date_range
from opsdash.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


async def _page_response(
    page: str,
    user: str,
    source: EntityDataSource,
    date_range: DateRange,
    filters: Optional[dict] = None,
) -> dict:
    logger.info(
        "page_request",
        page=page,
        user=user,
        start=date_range.start,
        end=date_range.end,
        preset=date_range.preset,
    )
    service = CommandCenterService(source=source, settings=get_settings())
    snapshot = await service.load_page(page, date_range, filters=filters)
    return {
        "success": not snapshot.degraded,
        "data": snapshot.model_dump(mode="json", by_alias=True),
    }


@router.get("/system-health")
async def get_system_health(
    user: str = Depends(get_current_user),
    source: EntityDataSource = Depends(get_backend_client),
    date_range: DateRange = Depends(get_date_range),
):
    """Operation volume, error rate, token usage, AI cost and the activity feed."""
    return await _page_response("system-health", user, source, date_range)


@router.get("/call-activity")
async def get_call_activity(
    user: str = Depends(get_current_user),
    source: EntityDataSource = Depends(get_backend_client),
    date_range: DateRange = Depends(get_date_range),
):
    """Call volume, success rate, durations and sentiment."""
    return await _page_response("call-activity", user, source, date_range)


@router.get("/subscriptions")
async def get_subscriptions(
    user: str = Depends(get_current_user),
    source: EntityDataSource = Depends(get_backend_client),
    date_range: DateRange = Depends(get_date_range),
):
    """
    Recurring burn and expirations of tracked services.

    Expenses are not date-filtered; the period only labels the response.
    """
    return await _page_response("subscriptions", user, source, date_range)


@router.get("/pipeline")
async def get_pipeline(
    user: str = Depends(get_current_user),
    source: EntityDataSource = Depends(get_backend_client),
    date_range: DateRange = Depends(get_date_range),
    status_filter: Optional[str] = Query(None, alias="status", description="Only contacts with this status"),
):
    """Contact totals, status breakdown and new contacts per month."""
    filters = {"status": status_filter} if status_filter else None
    return await _page_response("pipeline", user, source, date_range, filters)
