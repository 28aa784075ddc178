"""
Exception hierarchy for the token metrics service.
"""
from typing import Optional

from cardano_token_api.core.enums import ErrorCode


class TokenApiError(Exception):
    """Base class for all service errors."""
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source


class UpstreamError(TokenApiError):
    """DexHunter (or another price source) failed or returned garbage."""
    code = ErrorCode.UPSTREAM_ERROR
    retryable = True


class StoreError(TokenApiError):
    """Persistence failed; aborts the enrichment pass."""
    code = ErrorCode.STORE_ERROR


class PassAlreadyRunning(TokenApiError):
    """An enrichment or volume refresh is already in progress."""
    code = ErrorCode.PASS_IN_PROGRESS
    retryable = True


class ConfigurationError(TokenApiError):
    """Invalid or missing configuration data."""
