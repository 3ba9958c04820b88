"""OAuth2 client-credentials token management."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import httpx

from azure_metrics.domain.exceptions import AuthError
from azure_metrics.domain.models import Credential, CredentialState
from azure_metrics.utils.timestamps import from_epoch_seconds, utc_now

DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"
MANAGEMENT_RESOURCE = "https://management.azure.com/"
REFRESH_MARGIN = timedelta(minutes=10)


class CredentialManager:
    """Owns the bearer token and refreshes it ahead of expiry.

    ``ensure_valid`` must be called right before every request that needs
    the token; the returned value is meant for that single request only.
    Refreshes are serialised by a lock so concurrent callers that see an
    expired token share one token request.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        *,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        resource: str = MANAGEMENT_RESOURCE,
        authority_host: str = DEFAULT_AUTHORITY_HOST,
        timeout: Optional[float] = None,
        refresh_margin: timedelta = REFRESH_MARGIN,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._http = http_client
        self._client_id = client_id
        self._client_secret = client_secret
        self._resource = resource
        self._timeout = timeout
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._endpoint = f"{authority_host.rstrip('/')}/{tenant_id}/oauth2/token"
        self._credential: Optional[Credential] = None
        self._lock = threading.Lock()
        self.logger = logger or logging.getLogger(
            f"{__name__}.{self.__class__.__name__}"
        )

    @property
    def state(self) -> CredentialState:
        if self._credential is None:
            return CredentialState.UNAUTHENTICATED
        return CredentialState.AUTHENTICATED

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._credential.expires_at if self._credential else None

    def ensure_valid(self) -> str:
        """Return a usable bearer token, refreshing it first if needed."""

        with self._lock:
            credential = self._credential
            if credential is None or not credential.is_usable(
                self._clock(), self._refresh_margin
            ):
                credential = self._refresh()
                self._credential = credential
            return credential.token

    def authorization_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.ensure_valid()}"}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _refresh(self) -> Credential:
        form = {
            "grant_type": "client_credentials",
            "resource": self._resource,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }
        self.logger.info(
            "token_refresh",
            extra={"endpoint": self._endpoint, "client_id": self._client_id},
        )
        try:
            response = self._http.post(
                self._endpoint,
                data=form,
                timeout=(
                    httpx.USE_CLIENT_DEFAULT if self._timeout is None else self._timeout
                ),
            )
        except httpx.HTTPError as exc:
            self.logger.error("Token request failed", exc_info=exc)
            raise AuthError(
                "Error authenticating against Azure API",
                context={"endpoint": self._endpoint, "reason": str(exc)},
            ) from exc

        if response.status_code != 200:
            raise AuthError(
                f"Token endpoint returned status {response.status_code}",
                context={
                    "endpoint": self._endpoint,
                    "status_code": response.status_code,
                },
            )

        credential = self._parse_token(response)
        self.logger.info(
            "token_refreshed", extra={"expires_at": credential.expires_at.isoformat()}
        )
        return credential

    def _parse_token(self, response: httpx.Response) -> Credential:
        try:
            data: Any = response.json()
            token = data["access_token"]
            expires_on = data["expires_on"]
            if not isinstance(token, str):
                raise TypeError("access_token must be a string")
            if not isinstance(expires_on, (str, int)) or isinstance(expires_on, bool):
                raise TypeError("expires_on must be a string or integer epoch")
            return Credential(token=token, expires_at=from_epoch_seconds(expires_on))
        except (ValueError, KeyError, TypeError, OverflowError) as exc:
            raise AuthError(
                "Malformed token response",
                context={"endpoint": self._endpoint, "reason": str(exc)},
            ) from exc
