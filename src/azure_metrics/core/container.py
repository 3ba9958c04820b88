"""Dependency injection container for building fully-wired MetricsClient instances."""

from __future__ import annotations

from typing import Optional

import httpx

from azure_metrics.client.batch import BatchDispatcher
from azure_metrics.client.credentials import CredentialManager
from azure_metrics.client.decoder import ResponseDecoder
from azure_metrics.client.definitions import DefinitionFetcher
from azure_metrics.client.query import QueryBuilder
from azure_metrics.client.window import TimeWindowResolver
from azure_metrics.core.client import MetricsClient
from azure_metrics.core.config import ClientConfig


class DIContainer:
    """Factory helpers that assemble a MetricsClient with default wiring."""

    @staticmethod
    def create_client(
        config: Optional[ClientConfig] = None,
        *,
        http_client: Optional[httpx.Client] = None,
    ) -> MetricsClient:
        cfg = config or ClientConfig.from_env()
        cfg.require_credentials()

        owns_http_client = http_client is None
        http = http_client or DIContainer._build_http_client(cfg)
        decoder = ResponseDecoder()

        credentials = CredentialManager(
            http,
            tenant_id=cfg.tenant_id,
            client_id=cfg.client_id,
            client_secret=cfg.client_secret,
            authority_host=cfg.authority_host,
            resource=DIContainer._management_resource(cfg),
            timeout=cfg.timeout,
        )
        query_builder = QueryBuilder(cfg.subscription_id)
        dispatcher = BatchDispatcher(
            http,
            credentials,
            max_batch_size=cfg.max_batch_size,
            split_batches=cfg.split_batches,
            management_endpoint=cfg.management_endpoint,
            timeout=cfg.timeout,
            decoder=decoder,
        )
        fetcher = DefinitionFetcher(
            http,
            credentials,
            query_builder,
            management_endpoint=cfg.management_endpoint,
            timeout=cfg.timeout,
            decoder=decoder,
        )
        resolver = TimeWindowResolver(cfg.window_width, cfg.window_lag)

        return MetricsClient(
            cfg,
            http,
            credentials,
            query_builder,
            dispatcher,
            fetcher,
            resolver,
            owns_http_client=owns_http_client,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _build_http_client(config: ClientConfig) -> httpx.Client:
        return httpx.Client(timeout=config.timeout)

    @staticmethod
    def _management_resource(config: ClientConfig) -> str:
        # token audience is the management endpoint with a trailing slash
        return f"{config.management_endpoint.rstrip('/')}/"
