"""
CRUD proxy router.

Forwards ``{"endpoint": ..., ...payload}`` to the automation backend so the
webhook base URL never reaches the browser. Only allowlisted endpoints pass.
Backend error responses are relayed with their status and JSON body.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from opsdash.auth.dependencies import get_current_user
from opsdash.connectors.backend_client import (
    ALLOWED_ENDPOINTS,
    BackendClient,
    BackendError,
    get_backend_client,
)
from opsdash.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.post("")
async def proxy_crud(
    body: dict[str, Any] = Body(...),
    user: str = Depends(get_current_user),
    client: BackendClient = Depends(get_backend_client),
):
    """Forward one CRUD request to the backend and relay its JSON response."""
    payload = dict(body)
    endpoint = payload.pop("endpoint", None)

    if not endpoint or endpoint not in ALLOWED_ENDPOINTS:
        logger.warning("crud_endpoint_rejected", endpoint=endpoint, user=user)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid endpoint: {endpoint}",
        )

    try:
        result = await client.crud(endpoint, payload)
    except BackendError as e:
        logger.error("crud_proxy_failed", endpoint=endpoint, status_code=e.status_code, error=str(e))
        if 400 <= e.status_code < 600:
            return JSONResponse(status_code=e.status_code, content=e.data or {"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to reach backend: {e}",
        )

    logger.info("crud_proxied", endpoint=endpoint, user=user)
    return result
