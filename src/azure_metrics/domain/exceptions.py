"""Exception hierarchy for Azure metrics client failures."""

from __future__ import annotations

from typing import Any, Mapping, Optional


class AzureMetricsError(Exception):
    """Base class for all errors raised by the metrics client."""

    default_message = "Azure metrics client error occurred"

    def __init__(
        self, message: str | None = None, *, context: Mapping[str, Any] | None = None
    ):
        self.message = message or self.default_message
        self.context: Mapping[str, Any] = dict(context or {})
        formatted = self._format_message()
        super().__init__(formatted)

    def _format_message(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class ConfigurationError(AzureMetricsError, ValueError):
    """Invalid window, target or credential configuration."""

    default_message = "Invalid configuration"


class AuthError(AzureMetricsError):
    """Token acquisition or refresh against the token endpoint failed."""

    default_message = "Authentication against Azure failed"


class NetworkError(AzureMetricsError):
    """Transport-level failure (connect, read, timeout)."""

    default_message = "Network error talking to Azure"


class APICallError(AzureMetricsError):
    """Non-2xx response at call or batch-outer level."""

    default_message = "Azure API call failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int,
        context: Mapping[str, Any] | None = None,
    ):
        self.status_code = status_code
        merged = {"status_code": status_code, **dict(context or {})}
        super().__init__(message, context=merged)


class DecodeError(AzureMetricsError):
    """Payload was not valid JSON or did not have the expected shape."""

    default_message = "Unable to decode Azure response"


class BatchTooLargeError(AzureMetricsError):
    """More URLs than one batch call accepts while splitting is disabled."""

    default_message = "Batch exceeds the maximum number of sub-requests"

    def __init__(
        self,
        message: str | None = None,
        *,
        size: int,
        limit: int,
        context: Mapping[str, Any] | None = None,
    ):
        self.size = size
        self.limit = limit
        merged = {"size": size, "limit": limit, **dict(context or {})}
        super().__init__(message, context=merged)


class DiscoveryError(AzureMetricsError):
    """Fetching metric definitions failed for at least one target."""

    default_message = "Metric definition discovery failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        resource: Optional[str] = None,
        context: Mapping[str, Any] | None = None,
    ):
        self.resource = resource
        merged = dict(context or {})
        if resource is not None:
            merged.setdefault("resource", resource)
        super().__init__(message, context=merged)
