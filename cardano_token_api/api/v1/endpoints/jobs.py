"""
Job endpoints - /v1/refresh, /v1/refresh/volume, /v1/status
Trigger enrichment and volume passes and report their state.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from cardano_token_api.api.v1.deps import get_services
from cardano_token_api.api.v1.schemas.responses import (
    RefreshResponse,
    StatusResponse,
    StructuredError,
    VolumeRefreshResponse,
)
from cardano_token_api.core.enums import ErrorCode
from cardano_token_api.core.errors import PassAlreadyRunning, TokenApiError
from cardano_token_api.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, error: TokenApiError) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=StructuredError(
            code=error.code,
            message=error.message,
            source=error.source,
            retryable=error.retryable
        ).model_dump(mode="json")
    )


def _check_token(services: ServiceContainer, token: Optional[str]) -> None:
    expected = services.config.refresh_token
    if expected and token != expected:
        raise HTTPException(
            status_code=401,
            detail=StructuredError(
                code=ErrorCode.UNAUTHORIZED,
                message="Missing or invalid refresh token"
            ).model_dump(mode="json")
        )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_tokens(
    x_refresh_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
    services: ServiceContainer = Depends(get_services)
):
    """
    Run one enrichment pass now.
    On failure the previously published report stays in place.
    """
    _check_token(services, x_refresh_token or token)
    logger.info("Token refresh requested")

    try:
        report = await services.orchestrator.run_pass()
    except PassAlreadyRunning as e:
        raise _error(409, e)
    except TokenApiError as e:
        raise _error(502 if e.retryable else 500, e)

    services.token_service.clear_cache()
    return RefreshResponse(
        success=True,
        message="Token data refreshed",
        total_tokens=report.total_tokens,
        valid_tokens=report.tokens_with_valid_market_caps,
        failed_tokens=report.failed_tokens,
        generated_at=report.generated_at
    )


@router.post("/refresh/volume", response_model=VolumeRefreshResponse)
async def refresh_volume(
    x_refresh_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
    services: ServiceContainer = Depends(get_services)
):
    """Rebuild the 24h volume snapshot."""
    _check_token(services, x_refresh_token or token)

    try:
        snapshot = await services.volume_service.refresh()
    except PassAlreadyRunning as e:
        raise _error(409, e)
    except TokenApiError as e:
        raise _error(500, e)

    services.token_service.clear_cache()
    return VolumeRefreshResponse(
        success=True,
        total_tokens=snapshot.total_tokens,
        window_from=snapshot.window_from,
        window_to=snapshot.window_to
    )


@router.get("/status", response_model=StatusResponse)
async def status(services: ServiceContainer = Depends(get_services)):
    summary = services.orchestrator.last_summary
    report = await services.store.load_report()

    return StatusResponse(
        pass_in_progress=services.orchestrator.is_running,
        last_pass_started_at=summary.started_at if summary else None,
        last_pass_finished_at=summary.finished_at if summary else None,
        last_pass_succeeded=summary.succeeded if summary else None,
        last_pass_error=summary.error if summary else None,
        report_generated_at=report.generated_at if report else None,
        listing_cache_age_seconds=services.token_service.cache.age_seconds,
        refresh_interval_minutes=services.config.refresh_interval_minutes,
        volume_refresh_in_progress=services.volume_service.is_running,
        volume_refresh_interval_minutes=services.config.volume_refresh_interval_minutes,
        storage_backend=services.config.storage_backend.value
    )
