"""Per-target metric definition discovery."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import httpx

from azure_metrics.domain.exceptions import (
    APICallError,
    AzureMetricsError,
    DiscoveryError,
)
from azure_metrics.domain.models import MetricDefinition, Target

from .base import DEFAULT_MANAGEMENT_ENDPOINT, BaseApiClient
from .credentials import CredentialManager
from .decoder import ResponseDecoder
from .query import QueryBuilder


class DefinitionFetcher(BaseApiClient):
    """Fetches metric definitions with one direct GET per target.

    Discovery is all-or-nothing: the first failing target aborts the whole
    operation with :class:`DiscoveryError` and nothing is returned.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        credentials: CredentialManager,
        query_builder: QueryBuilder,
        *,
        management_endpoint: str = DEFAULT_MANAGEMENT_ENDPOINT,
        timeout: Optional[float] = None,
        decoder: Optional[ResponseDecoder] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(
            http_client,
            credentials,
            management_endpoint=management_endpoint,
            timeout=timeout,
            decoder=decoder,
            logger=logger,
        )
        self._query_builder = query_builder

    def fetch_definitions(
        self, targets: Iterable[Target]
    ) -> Dict[str, List[MetricDefinition]]:
        definitions: Dict[str, List[MetricDefinition]] = {}
        for target in targets:
            try:
                definitions[target.resource] = self._fetch_one(target)
            except AzureMetricsError as exc:
                self.logger.error(
                    "Metric definition discovery failed",
                    extra={"resource": target.resource},
                    exc_info=exc,
                )
                raise DiscoveryError(
                    f"Failed to fetch metric definitions: {exc.message}",
                    resource=target.resource,
                ) from exc
        return definitions

    def _fetch_one(self, target: Target) -> List[MetricDefinition]:
        url = self._url(self._query_builder.build_definitions_path(target))
        response = self._send("GET", url)
        if response.status_code != 200:
            raise APICallError(
                "Metric definitions request failed",
                status_code=response.status_code,
                context={"body": response.text[:500]},
            )
        return self._decoder.decode_definitions(
            response.content, context={"resource": target.resource}
        )
