"""
Command Center router: the landing dashboard.

GET /api/v1/command-center runs one load cycle for the requested period and
returns KPIs, chart series, alerts, the activity feed and appointments.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from opsdash.auth.dependencies import get_current_user
from opsdash.config import get_settings
from opsdash.connectors.backend_client import EntityDataSource, get_backend_client
from opsdash.engine.command_center import CommandCenterService
from opsdash.engine.date_range import PRESETS, UnknownPresetError, resolve_range
from opsdash.models.derived import DateRange
from opsdash.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_date_range(
    preset: Optional[str] = Query(None, description=f"One of {', '.join(PRESETS)}"),
    start_date: Optional[str] = Query(None, description="Period start (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Period end (YYYY-MM-DD)"),
) -> DateRange:
    """Resolve the requested period. Explicit start/end dates take precedence over ``preset``."""
    try:
        return resolve_range(
            preset=preset,
            start_date=start_date,
            end_date=end_date,
            default_preset=get_settings().default_range_preset,
        )
    except UnknownPresetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("")
async def get_command_center(
    user: str = Depends(get_current_user),
    source: EntityDataSource = Depends(get_backend_client),
    date_range: DateRange = Depends(get_date_range),
):
    """
    Build the command center snapshot.

    Entities that fail to load are listed in ``failedEntities`` and rendered empty.
    """
    settings = get_settings()

    logger.info(
        "command_center_request",
        user=user,
        start=date_range.start,
        end=date_range.end,
        preset=date_range.preset,
    )

    service = CommandCenterService(source=source, settings=settings)
    snapshot = await service.load(date_range)

    return {
        "success": not snapshot.degraded,
        "data": snapshot.model_dump(mode="json", by_alias=True),
    }
