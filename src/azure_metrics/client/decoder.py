"""Typed decoding of metric definition, metric value and batch payloads."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from azure_metrics.domain.exceptions import DecodeError
from azure_metrics.domain.models import (
    BatchResponse,
    MetricDefinition,
    MetricDefinitionList,
    MetricValueResponse,
)

M = TypeVar("M", bound=BaseModel)


class ResponseDecoder:
    """Turns raw JSON (bytes, text or parsed) into domain records.

    Unknown fields are ignored by the models themselves; missing or mistyped
    required fields surface as :class:`DecodeError` with the payload kind,
    the caller-supplied context and the offending field locations.
    """

    def decode_definitions(
        self, payload: Any, *, context: Optional[Mapping[str, Any]] = None
    ) -> list[MetricDefinition]:
        decoded = self._decode(MetricDefinitionList, payload, "metric_definitions", context)
        return list(decoded.value)

    def decode_metric_values(
        self, payload: Any, *, context: Optional[Mapping[str, Any]] = None
    ) -> MetricValueResponse:
        return self._decode(MetricValueResponse, payload, "metric_values", context)

    def decode_batch(
        self, payload: Any, *, context: Optional[Mapping[str, Any]] = None
    ) -> BatchResponse:
        return self._decode(BatchResponse, payload, "batch", context)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _decode(
        self,
        model: Type[M],
        payload: Any,
        kind: str,
        context: Optional[Mapping[str, Any]],
    ) -> M:
        data = self._load(payload, kind, context)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(
                f"Unexpected {kind} payload shape",
                context={
                    "kind": kind,
                    **dict(context or {}),
                    "errors": self._summarize(exc),
                },
            ) from exc

    @staticmethod
    def _load(payload: Any, kind: str, context: Optional[Mapping[str, Any]]) -> Any:
        if not isinstance(payload, (bytes, bytearray, str)):
            return payload
        try:
            return json.loads(payload)
        except ValueError as exc:
            raise DecodeError(
                f"Invalid JSON in {kind} payload",
                context={"kind": kind, **dict(context or {}), "reason": str(exc)},
            ) from exc

    @staticmethod
    def _summarize(exc: ValidationError) -> list[str]:
        return [
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        ]
