"""
Token endpoints - /v1/tokens
Read-only listings served from the published market cap report.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from cardano_token_api.api.v1.deps import get_services
from cardano_token_api.api.v1.schemas.responses import (
    StructuredError,
    TokenDetail,
    TokenListItem,
    TokenStats,
)
from cardano_token_api.core.enums import ErrorCode
from cardano_token_api.core.models import VolumeEntry
from cardano_token_api.services.container import ServiceContainer

router = APIRouter()


def _not_found(token_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=StructuredError(
            code=ErrorCode.NOT_FOUND,
            message=f"Token {token_id} not found"
        ).model_dump(mode="json")
    )


@router.get("/tokens", response_model=List[TokenListItem])
async def list_tokens(services: ServiceContainer = Depends(get_services)):
    """All listed tokens, market-cap ranked tokens first."""
    return await services.token_service.list_tokens()


@router.get("/tokens/stats", response_model=TokenStats)
async def token_stats(services: ServiceContainer = Depends(get_services)):
    """Counts plus market cap, liquidity and volume distributions."""
    return await services.token_service.stats()


@router.get("/tokens/top", response_model=List[TokenListItem])
async def top_tokens(
    limit: int = Query(50, ge=1, le=500),
    services: ServiceContainer = Depends(get_services)
):
    """Top N tokens by market cap (valid ranking only)."""
    return await services.token_service.top_by_market_cap(limit)


@router.get("/tokens/top-tvl", response_model=List[TokenListItem])
async def top_tokens_by_tvl(
    limit: int = Query(50, ge=1, le=500),
    services: ServiceContainer = Depends(get_services)
):
    """Top N tokens by TVL (2x ADA-side liquidity)."""
    return await services.token_service.top_by_tvl(limit)


@router.get("/tokens/top-volume", response_model=List[TokenListItem])
async def top_tokens_by_volume(
    limit: int = Query(50, ge=1, le=500),
    services: ServiceContainer = Depends(get_services)
):
    """Top N tokens by 24h ADA volume."""
    return await services.token_service.top_by_volume(limit)


@router.get("/tokens/search", response_model=List[TokenListItem])
async def search_tokens(
    q: str = Query(..., min_length=1),
    services: ServiceContainer = Depends(get_services)
):
    """Case-insensitive substring search on ticker and name."""
    return await services.token_service.search(q)


@router.get("/tokens/{token_id}", response_model=TokenDetail)
async def get_token(token_id: str, services: ServiceContainer = Depends(get_services)):
    token = await services.token_service.get_token(token_id)
    if token is None:
        raise _not_found(token_id)
    return token


@router.get("/tokens/{token_id}/volume", response_model=VolumeEntry)
async def get_token_volume(token_id: str, services: ServiceContainer = Depends(get_services)):
    return await services.volume_service.get_token_volume(token_id)
