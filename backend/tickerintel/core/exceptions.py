"""
Exception hierarchy with HTTP status mapping.

Distinguishes three families so logs and responses stay readable:
- Client errors (400-level): caller sent bad data
- Server errors (500-level): our infrastructure failed
- External errors (503): an upstream provider failed

Usage:
    from tickerintel.core.exceptions import NotFoundError, ExternalServiceError

    raise NotFoundError("Pending mapping not found", pending_id=pending_id)
    raise ExternalServiceError("Polygon timeout", service="polygon")
"""

from typing import Any


class AppError(Exception):
    """
    Base application error with HTTP status mapping.

    All custom exceptions inherit from this to enable consistent error handling.
    """

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, **context: Any):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional key-value pairs for logging (e.g., symbol, key)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON response and structured logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }


# ===== 400-level: Client Errors =====


class ValidationError(AppError):
    """Caller provided invalid input (e.g., blank symbol)."""

    status_code = 400
    error_type = "validation_error"


class NotFoundError(AppError):
    """Requested resource does not exist."""

    status_code = 404
    error_type = "not_found_error"


# ===== 500-level: Server Errors =====


class DatabaseError(AppError):
    """
    Database operation failed (connection, query, schema issues).

    Maps to 500 Internal Server Error (our infrastructure problem).
    """

    status_code = 500
    error_type = "database_error"


class CacheError(AppError):
    """Redis cache or lock operation failed."""

    status_code = 500
    error_type = "cache_error"


class ConfigurationError(AppError):
    """
    Application misconfigured (e.g., malformed MONGODB_URL).

    Should be caught during startup, not during request handling.
    """

    status_code = 500
    error_type = "configuration_error"


# ===== 503: External Service Errors =====


class ExternalServiceError(AppError):
    """
    Upstream provider unavailable or returned an error.

    Examples:
        - Polygon reference API timeout
        - CoinGecko rate limit (HTTP 429)
        - News feed returned malformed JSON

    Maps to 503 Service Unavailable (third-party problem, retry may help).
    """

    status_code = 503
    error_type = "external_service_error"

    def __init__(self, message: str, service: str, **context: Any):
        """
        Initialize with service name for easier debugging.

        Args:
            message: Error description
            service: Service identifier (e.g., "polygon", "coingecko")
            **context: Additional context (e.g., symbol, upstream_status)
        """
        super().__init__(message, service=service, **context)
