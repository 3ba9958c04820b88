"""Shared request plumbing for calls that need the bearer token."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from azure_metrics.domain.exceptions import NetworkError

from .credentials import CredentialManager
from .decoder import ResponseDecoder

DEFAULT_MANAGEMENT_ENDPOINT = "https://management.azure.com"


class BaseApiClient:
    """Template for management-API callers: auth, timeouts and logging.

    Every call goes through :meth:`_send`, which asks the credential manager
    for a token immediately before the request and maps transport failures
    to :class:`NetworkError`. Status handling is left to subclasses.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        credentials: CredentialManager,
        *,
        management_endpoint: str = DEFAULT_MANAGEMENT_ENDPOINT,
        timeout: Optional[float] = None,
        decoder: Optional[ResponseDecoder] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._http = http_client
        self._credentials = credentials
        self._base_url = management_endpoint.rstrip("/")
        self._timeout = timeout
        self._decoder = decoder or ResponseDecoder()
        self.logger = logger or logging.getLogger(
            f"{__name__}.{self.__class__.__name__}"
        )

    def _url(self, relative: str) -> str:
        return f"{self._base_url}/{relative.lstrip('/')}"

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        headers.update(self._credentials.authorization_header())
        self.log_request(method, url)
        try:
            response = self._http.request(
                method, url, headers=headers, timeout=self._request_timeout(), **kwargs
            )
        except httpx.TimeoutException as exc:
            raise NetworkError(
                "Request to Azure timed out",
                context={"method": method, "url": url, "timeout": self._timeout},
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(
                "Request to Azure failed",
                context={"method": method, "url": url, "reason": str(exc)},
            ) from exc
        self.log_response(method, url, response)
        return response

    def _request_timeout(self) -> Any:
        if self._timeout is None:
            return httpx.USE_CLIENT_DEFAULT
        return self._timeout

    def log_request(self, method: str, url: str) -> None:
        self.logger.debug(
            "api_request",
            extra={"method": method, "url": url, "client": self.__class__.__name__},
        )

    def log_response(self, method: str, url: str, response: httpx.Response) -> None:
        self.logger.debug(
            "api_response",
            extra={
                "method": method,
                "url": url,
                "status_code": response.status_code,
                "client": self.__class__.__name__,
            },
        )
