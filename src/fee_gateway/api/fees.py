"""Fee quoting endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Query, Request

from fee_gateway.domain.fees import (
    LimitsQuery,
    LimitsResponse,
    SuggestedFeesQuery,
    SuggestedFeesResponse,
)

if TYPE_CHECKING:
    from fee_gateway.containers import AppContainer

router = APIRouter(prefix="/api", tags=["Fees"])


@router.get(
    "/suggested-fees",
    response_model=SuggestedFeesResponse,
    response_model_exclude_none=True,
    summary="Get suggested fees for a bridge transaction",
)
async def suggested_fees(
    query: Annotated[SuggestedFeesQuery, Query()], request: Request
) -> SuggestedFeesResponse:
    """Calculate fees for bridging tokens between chains."""
    container: AppContainer = request.app.state.container
    return await container.fees_service.get_suggested_fees(query)


@router.get(
    "/limits",
    response_model=LimitsResponse,
    summary="Get deposit limits",
)
async def limits(
    query: Annotated[LimitsQuery, Query()], request: Request
) -> LimitsResponse:
    """Get minimum and maximum deposit limits for a route."""
    container: AppContainer = request.app.state.container
    return await container.fees_service.get_limits(query)
