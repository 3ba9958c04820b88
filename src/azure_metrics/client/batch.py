"""Batch dispatch of metric-value queries through the management batch API."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import httpx

from azure_metrics.domain.exceptions import (
    APICallError,
    BatchTooLargeError,
    ConfigurationError,
    DecodeError,
)
from azure_metrics.domain.models import (
    BatchEnvelope,
    BatchResponse,
    BatchResponseItem,
    RawBatchResponseItem,
)

from .base import DEFAULT_MANAGEMENT_ENDPOINT, BaseApiClient
from .credentials import CredentialManager
from .decoder import ResponseDecoder

BATCH_API_VERSION = "2017-03-01"
DEFAULT_MAX_BATCH_SIZE = 20


class BatchDispatcher(BaseApiClient):
    """Sends relative GET URLs as batch calls and returns per-URL results.

    The i-th returned item always answers the i-th URL. Lists longer than
    ``max_batch_size`` are split into sequential calls unless
    ``split_batches`` is off, in which case they are rejected up front.
    Per-item failures are returned as data; only failures of the batch call
    itself raise.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        credentials: CredentialManager,
        *,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        split_batches: bool = True,
        management_endpoint: str = DEFAULT_MANAGEMENT_ENDPOINT,
        timeout: Optional[float] = None,
        decoder: Optional[ResponseDecoder] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if max_batch_size <= 0:
            raise ConfigurationError(
                "max_batch_size must be greater than zero",
                context={"max_batch_size": max_batch_size},
            )
        super().__init__(
            http_client,
            credentials,
            management_endpoint=management_endpoint,
            timeout=timeout,
            decoder=decoder,
            logger=logger,
        )
        self.max_batch_size = max_batch_size
        self.split_batches = split_batches
        self._endpoint = self._url(f"batch?api-version={BATCH_API_VERSION}")

    def dispatch(self, urls: Sequence[str]) -> List[BatchResponseItem]:
        urls = list(urls)
        if not urls:
            return []
        if len(urls) > self.max_batch_size and not self.split_batches:
            raise BatchTooLargeError(size=len(urls), limit=self.max_batch_size)

        results: List[BatchResponseItem] = []
        for offset in range(0, len(urls), self.max_batch_size):
            chunk = urls[offset : offset + self.max_batch_size]
            results.extend(self._dispatch_chunk(chunk, offset))
        return results

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _dispatch_chunk(
        self, urls: List[str], offset: int
    ) -> List[BatchResponseItem]:
        envelope = BatchEnvelope.from_urls(urls)
        self.logger.debug(
            "batch_request", extra={"size": len(urls), "offset": offset}
        )
        response = self._send(
            "POST",
            self._endpoint,
            content=envelope.to_json().encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        if response.status_code != 200:
            raise APICallError(
                f"Unable to query metrics API with status code: {response.status_code}",
                status_code=response.status_code,
                context={"batch_offset": offset, "batch_size": len(urls)},
            )

        batch = self._decoder.decode_batch(
            response.content, context={"batch_offset": offset}
        )
        ordered = self._align(envelope, batch, offset)
        return [
            self._build_item(url, raw, offset + index)
            for index, (url, raw) in enumerate(zip(urls, ordered))
        ]

    @staticmethod
    def _align(
        envelope: BatchEnvelope, batch: BatchResponse, offset: int
    ) -> List[RawBatchResponseItem]:
        """Order responses like the requests, by name when names echo back."""

        responses = list(batch.responses)
        if len(responses) != len(envelope.requests):
            raise DecodeError(
                "Batch response count does not match request count",
                context={
                    "batch_offset": offset,
                    "requested": len(envelope.requests),
                    "received": len(responses),
                },
            )
        by_name = {item.name: item for item in responses if item.name is not None}
        names = [request.name for request in envelope.requests]
        if len(by_name) == len(responses) and set(by_name) == set(names):
            return [by_name[name] for name in names]
        return responses

    def _build_item(
        self, url: str, raw: RawBatchResponseItem, position: int
    ) -> BatchResponseItem:
        content = None
        decode_error = None
        if raw.content is not None:
            try:
                content = self._decoder.decode_metric_values(
                    raw.content, context={"position": position, "relative_url": url}
                )
            except DecodeError as exc:
                decode_error = str(exc)

        item = BatchResponseItem(
            relative_url=url,
            status_code=raw.http_status_code,
            headers=raw.headers,
            content=content,
            content_length=raw.content_length,
            decode_error=decode_error,
        )
        if not item.ok:
            self.logger.warning(
                "batch_item_failed",
                extra={
                    "position": position,
                    "status_code": item.status_code,
                    "error_code": item.error.code if item.error else None,
                    "error_message": item.error.message if item.error else decode_error,
                },
            )
        return item
