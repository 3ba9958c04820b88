"""Facade that drives one scrape cycle against Azure Monitor."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import httpx

from azure_metrics.client.base import BaseApiClient
from azure_metrics.client.batch import BatchDispatcher
from azure_metrics.client.credentials import CredentialManager
from azure_metrics.client.definitions import DefinitionFetcher
from azure_metrics.client.query import QueryBuilder
from azure_metrics.client.window import TimeWindowResolver
from azure_metrics.core.config import ClientConfig
from azure_metrics.domain.exceptions import APICallError
from azure_metrics.domain.models import (
    MetricDefinition,
    MetricQuery,
    MetricQueryResult,
    MetricValueResponse,
    Target,
    TimeWindow,
)
from azure_metrics.utils.timestamps import utc_now


class MetricsClient(BaseApiClient):
    """High-level API the exporter calls each discovery and scrape cycle."""

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.Client,
        credentials: CredentialManager,
        query_builder: QueryBuilder,
        dispatcher: BatchDispatcher,
        fetcher: DefinitionFetcher,
        resolver: TimeWindowResolver,
        *,
        owns_http_client: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(
            http_client,
            credentials,
            management_endpoint=config.management_endpoint,
            timeout=config.timeout,
            logger=logger,
        )
        self._config = config
        self._query_builder = query_builder
        self._dispatcher = dispatcher
        self._fetcher = fetcher
        self._resolver = resolver
        self._owns_http_client = owns_http_client

    @property
    def config(self) -> ClientConfig:
        return self._config

    def get_metric_definitions(
        self, targets: Optional[Iterable[Target]] = None
    ) -> Dict[str, List[MetricDefinition]]:
        return self._fetcher.fetch_definitions(
            self._config.targets if targets is None else targets
        )

    def build_queries(
        self, targets: Iterable[Target], window: TimeWindow
    ) -> List[MetricQuery]:
        """One query per target and per group of metric names."""

        queries: List[MetricQuery] = []
        size = self._config.max_metrics_per_query
        for target in targets:
            groups = [
                target.metrics[start : start + size]
                for start in range(0, len(target.metrics), size)
            ] or [()]
            for names in groups:
                queries.append(
                    MetricQuery(
                        target=target,
                        metric_names=names,
                        url=self._query_builder.build_query_url(target, names, window),
                    )
                )
        return queries

    def collect(
        self,
        targets: Optional[Iterable[Target]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> List[MetricQueryResult]:
        """Fetch metric values for all targets in as few batch calls as allowed.

        Results come back in query order. Items that failed remotely are kept
        so the caller can skip just those targets for this cycle.
        """

        window = self._resolver.resolve(now or utc_now())
        queries = self.build_queries(
            self._config.targets if targets is None else targets, window
        )
        items = self._dispatcher.dispatch([query.url for query in queries])
        results = [
            MetricQueryResult(query=query, item=item)
            for query, item in zip(queries, items)
        ]
        failed = sum(1 for result in results if not result.ok)
        self.logger.info(
            "collect_complete",
            extra={
                "queries": len(results),
                "failed": failed,
                "timespan": window.timespan,
            },
        )
        return results

    def get_metric_value(
        self,
        target: Target,
        metric_names: Sequence[str] | str = (),
        *,
        now: Optional[datetime] = None,
    ) -> MetricValueResponse:
        """Query one target directly, bypassing the batch endpoint."""

        window = self._resolver.resolve(now or utc_now())
        url = self._url(self._query_builder.build_query_url(target, metric_names, window))
        response = self._send("GET", url)
        if response.status_code != 200:
            raise APICallError(
                f"Unable to query metrics API with status code: {response.status_code}",
                status_code=response.status_code,
                context={"resource": target.resource},
            )
        return self._decoder.decode_metric_values(
            response.content, context={"resource": target.resource}
        )

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> "MetricsClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
