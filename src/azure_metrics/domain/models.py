"""Domain value objects for targets, credentials and Azure Monitor payloads."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from azure_metrics.utils.timestamps import ensure_utc, format_timestamp
from azure_metrics.utils.validators import (
    normalize_aggregations,
    normalize_metric_names,
    validate_resource_path,
)


class CredentialState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class Credential(BaseModel):
    """Bearer token plus its absolute expiry."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1, repr=False)
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def is_usable(self, now: datetime, margin: timedelta) -> bool:
        return ensure_utc(now) < self.expires_at - margin


class Target(BaseModel):
    """A monitored resource and the aggregations/metrics requested for it."""

    model_config = ConfigDict(frozen=True)

    resource: str
    aggregations: Tuple[str, ...] = Field(default_factory=tuple)
    metrics: Tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("resource")
    @classmethod
    def validate_resource(cls, value: str) -> str:
        return validate_resource_path(value)

    @field_validator("aggregations", mode="before")
    @classmethod
    def validate_aggregations(cls, value: Sequence[str]) -> Tuple[str, ...]:
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        return normalize_aggregations(value or ())

    @field_validator("metrics", mode="before")
    @classmethod
    def validate_metrics(cls, value: Sequence[Any]) -> Tuple[str, ...]:
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        # config files list metrics as {"name": ...} mappings
        names = [
            item.get("name", "") if isinstance(item, dict) else item
            for item in value or ()
        ]
        return normalize_metric_names(names)


class TimeWindow(BaseModel):
    """Half-open ``[start, end)`` query interval in UTC."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def normalize_timezone(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def validate_order(self) -> "TimeWindow":
        if self.end <= self.start:
            raise ValueError("window end must be after start")
        return self

    @property
    def width(self) -> timedelta:
        return self.end - self.start

    @property
    def timespan(self) -> str:
        return f"{format_timestamp(self.start)}/{format_timestamp(self.end)}"


# ----------------------------------------------------------------------
# Azure Monitor payloads
# ----------------------------------------------------------------------
class _ApiModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class LocalizedName(_ApiModel):
    value: str
    localized_value: Optional[str] = Field(default=None, alias="localizedValue")

    @property
    def display(self) -> str:
        return self.localized_value or self.value


class MetricAvailability(_ApiModel):
    retention: Optional[str] = None
    time_grain: Optional[str] = Field(default=None, alias="timeGrain")


class MetricDefinition(_ApiModel):
    """One metric a resource exposes, as returned by metricDefinitions."""

    id: str
    name: LocalizedName
    resource_id: Optional[str] = Field(default=None, alias="resourceId")
    unit: Optional[str] = None
    primary_aggregation_type: Optional[str] = Field(
        default=None, alias="primaryAggregationType"
    )
    supported_aggregation_types: Tuple[str, ...] = Field(
        default_factory=tuple, alias="supportedAggregationTypes"
    )
    is_dimension_required: bool = Field(default=False, alias="isDimensionRequired")
    dimensions: Tuple[LocalizedName, ...] = Field(default_factory=tuple)
    metric_availabilities: Tuple[MetricAvailability, ...] = Field(
        default_factory=tuple, alias="metricAvailabilities"
    )


class MetricDefinitionList(_ApiModel):
    value: Tuple[MetricDefinition, ...]


class MetricSample(_ApiModel):
    time_stamp: datetime = Field(alias="timeStamp")
    total: Optional[float] = None
    average: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    count: Optional[float] = None


class MetricTimeSeries(_ApiModel):
    data: Tuple[MetricSample, ...] = Field(default_factory=tuple)


class MetricValueSeries(_ApiModel):
    """Samples of one metric for one resource over the queried timespan."""

    id: str
    name: LocalizedName
    type: Optional[str] = None
    unit: Optional[str] = None
    timeseries: Tuple[MetricTimeSeries, ...] = Field(default_factory=tuple)

    @property
    def samples(self) -> Tuple[MetricSample, ...]:
        return tuple(sample for series in self.timeseries for sample in series.data)


class APIError(_ApiModel):
    code: str = ""
    message: str = ""


class MetricValueResponse(_ApiModel):
    value: Tuple[MetricValueSeries, ...] = Field(default_factory=tuple)
    error: Optional[APIError] = None
    timespan: Optional[str] = None
    interval: Optional[str] = None


class BatchRequestItem(_ApiModel):
    name: str
    relative_url: str = Field(alias="relativeUrl")
    http_method: str = Field(default="GET", alias="httpMethod")


class BatchEnvelope(_ApiModel):
    """Request body of one batch call; built per call and then discarded."""

    requests: Tuple[BatchRequestItem, ...]

    @classmethod
    def from_urls(cls, urls: Sequence[str], method: str = "GET") -> "BatchEnvelope":
        return cls(
            requests=tuple(
                BatchRequestItem(name=str(index), relative_url=url, http_method=method)
                for index, url in enumerate(urls)
            )
        )

    def to_json(self) -> str:
        # pydantic never HTML-escapes, so '&' stays literal in relativeUrl
        return self.model_dump_json(by_alias=True)


class RawBatchResponseItem(_ApiModel):
    name: Optional[str] = None
    http_status_code: int = Field(alias="httpStatusCode")
    headers: Dict[str, Any] = Field(default_factory=dict)
    content: Any = None
    content_length: Optional[int] = Field(default=None, alias="contentLength")

    @field_validator("headers", mode="before")
    @classmethod
    def default_headers(cls, value: Any) -> Any:
        # a null headers map decodes as empty, like an absent one
        return {} if value is None else value


class BatchResponse(_ApiModel):
    responses: Tuple[RawBatchResponseItem, ...]


class BatchResponseItem(BaseModel):
    """Decoded outcome of one batched query, aligned with its request."""

    model_config = ConfigDict(frozen=True)

    relative_url: str
    status_code: int
    headers: Dict[str, Any] = Field(default_factory=dict)
    content: Optional[MetricValueResponse] = None
    content_length: Optional[int] = None
    decode_error: Optional[str] = None

    @property
    def error(self) -> Optional[APIError]:
        return self.content.error if self.content else None

    @property
    def ok(self) -> bool:
        return (
            200 <= self.status_code < 300
            and self.content is not None
            and self.error is None
        )


class MetricQuery(BaseModel):
    """One metric-values URL built for a target and a group of metric names."""

    model_config = ConfigDict(frozen=True)

    target: Target
    metric_names: Tuple[str, ...] = Field(default_factory=tuple)
    url: str


class MetricQueryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: MetricQuery
    item: BatchResponseItem

    @property
    def ok(self) -> bool:
        return self.item.ok
