"""Metric-values query URL construction."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlencode

from azure_metrics.domain.models import Target, TimeWindow
from azure_metrics.utils.validators import DEFAULT_AGGREGATIONS

METRICS_API_VERSION = "2018-01-01"
METRICS_PROVIDER_PATH = "providers/microsoft.insights"


class QueryBuilder:
    """Builds relative metric-values URLs for batch or direct calls.

    Pure: no I/O and no state beyond the subscription and API version, so
    identical arguments always yield byte-identical URLs. Query keys are
    sorted and values form-encoded.
    """

    def __init__(self, subscription_id: str, api_version: str = METRICS_API_VERSION):
        self.subscription_id = subscription_id
        self.api_version = api_version

    def resource_path(self, target: Target) -> str:
        return f"/subscriptions/{self.subscription_id}{target.resource}"

    def build_definitions_path(self, target: Target) -> str:
        query = urlencode({"api-version": self.api_version})
        return (
            f"{self.resource_path(target)}/{METRICS_PROVIDER_PATH}/metricDefinitions"
            f"?{query}"
        )

    def build_query_url(
        self,
        target: Target,
        metric_names: Sequence[str] | str,
        window: TimeWindow,
    ) -> str:
        """Relative metrics URL for ``target`` over ``window``.

        ``metric_names`` may be empty (all metrics), a sequence of names, or
        an already comma-joined string.
        """

        if isinstance(metric_names, str):
            joined = metric_names
        else:
            joined = ",".join(metric_names)
        aggregations = target.aggregations or DEFAULT_AGGREGATIONS

        params = {
            "aggregation": ",".join(aggregations),
            "api-version": self.api_version,
            "timespan": window.timespan,
        }
        if joined:
            params["metricnames"] = joined

        query = urlencode(sorted(params.items()))
        return f"{self.resource_path(target)}/{METRICS_PROVIDER_PATH}/metrics?{query}"
