"""
Core enums for the token metrics service.
Defines trust classification, storage backends and API error codes.
"""
from enum import Enum


class TrustLevel(str, Enum):
    """Trust bucket derived from the final trust score."""
    VERY_LOW = "Very Low"   # score < 20, always a honeypot
    LOW = "Low"             # score < 40, honeypot when liquidity is also low
    MODERATE = "Moderate"
    GOOD = "Good"
    HIGH = "High"


class StorageBackend(str, Enum):
    """Supported token store implementations."""
    FILE = "file"
    SUPABASE = "supabase"


class ErrorCode(str, Enum):
    """Standardized error codes."""
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    STORE_ERROR = "STORE_ERROR"
    PASS_IN_PROGRESS = "PASS_IN_PROGRESS"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
