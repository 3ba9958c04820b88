"""Client configuration management helpers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import ValidationError

from azure_metrics.client.base import DEFAULT_MANAGEMENT_ENDPOINT
from azure_metrics.client.credentials import DEFAULT_AUTHORITY_HOST
from azure_metrics.domain.exceptions import ConfigurationError
from azure_metrics.domain.models import Target


def _str_to_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _str_to_int(value: str | None, default: Optional[int]) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer value: {value}") from exc


def _coerce_int(name: str, value: Any) -> Any:
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid integer value for {name}: {value}",
                context={"field": name},
            ) from exc
    return value


def _coerce_bool(name: str, value: Any) -> Any:
    if isinstance(value, str):
        coerced = _str_to_bool(value, None)  # type: ignore[arg-type]
        if coerced is None:
            raise ConfigurationError(
                f"Invalid boolean value for {name}: {value}",
                context={"field": name},
            )
        return coerced
    return value


@dataclass(frozen=True)
class ClientConfig:
    """Immutable configuration object loaded from env or files."""

    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    subscription_id: str = ""
    targets: Tuple[Target, ...] = ()
    scrape_interval_seconds: int = 60
    window_width_seconds: int = 300
    window_lag_seconds: int = 300
    request_timeout_seconds: Optional[int] = None
    max_batch_size: int = 20
    split_batches: bool = True
    max_metrics_per_query: int = 20
    management_endpoint: str = DEFAULT_MANAGEMENT_ENDPOINT
    authority_host: str = DEFAULT_AUTHORITY_HOST

    _CREDENTIAL_FIELDS = ("tenant_id", "client_id", "client_secret", "subscription_id")
    _INT_FIELDS = (
        "scrape_interval_seconds",
        "window_width_seconds",
        "window_lag_seconds",
        "request_timeout_seconds",
        "max_batch_size",
        "max_metrics_per_query",
    )
    _BOOL_FIELDS = ("split_batches",)
    _STR_FIELDS = ("management_endpoint", "authority_host")

    def __post_init__(self) -> None:
        self.validate()

    @property
    def window_width(self) -> timedelta:
        return timedelta(seconds=self.window_width_seconds)

    @property
    def window_lag(self) -> timedelta:
        return timedelta(seconds=self.window_lag_seconds)

    @property
    def timeout(self) -> float:
        """Per-call timeout; defaults to the scrape interval."""

        if self.request_timeout_seconds is None:
            return float(self.scrape_interval_seconds)
        return float(self.request_timeout_seconds)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        defaults = cls()
        targets_raw = os.getenv("AZURE_METRICS_TARGETS")
        targets = (
            cls._build_targets(cls._parse_json(targets_raw, "AZURE_METRICS_TARGETS"))
            if targets_raw
            else defaults.targets
        )
        return cls(
            tenant_id=os.getenv("AZURE_TENANT_ID", defaults.tenant_id),
            client_id=os.getenv("AZURE_CLIENT_ID", defaults.client_id),
            client_secret=os.getenv("AZURE_CLIENT_SECRET", defaults.client_secret),
            subscription_id=os.getenv(
                "AZURE_SUBSCRIPTION_ID", defaults.subscription_id
            ),
            targets=targets,
            scrape_interval_seconds=_str_to_int(
                os.getenv("AZURE_METRICS_SCRAPE_INTERVAL_SECONDS"),
                defaults.scrape_interval_seconds,
            ),
            window_width_seconds=_str_to_int(
                os.getenv("AZURE_METRICS_WINDOW_WIDTH_SECONDS"),
                defaults.window_width_seconds,
            ),
            window_lag_seconds=_str_to_int(
                os.getenv("AZURE_METRICS_WINDOW_LAG_SECONDS"),
                defaults.window_lag_seconds,
            ),
            request_timeout_seconds=_str_to_int(
                os.getenv("AZURE_METRICS_REQUEST_TIMEOUT_SECONDS"),
                defaults.request_timeout_seconds,
            ),
            max_batch_size=_str_to_int(
                os.getenv("AZURE_METRICS_MAX_BATCH_SIZE"), defaults.max_batch_size
            ),
            split_batches=_str_to_bool(
                os.getenv("AZURE_METRICS_SPLIT_BATCHES"), defaults.split_batches
            ),
            max_metrics_per_query=_str_to_int(
                os.getenv("AZURE_METRICS_MAX_METRICS_PER_QUERY"),
                defaults.max_metrics_per_query,
            ),
            management_endpoint=os.getenv(
                "AZURE_MANAGEMENT_ENDPOINT", defaults.management_endpoint
            ),
            authority_host=os.getenv("AZURE_AUTHORITY_HOST", defaults.authority_host),
        )

    @classmethod
    def from_file(cls, path: str) -> "ClientConfig":
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        raw = file_path.read_text()
        data: Dict[str, Any]
        suffix = file_path.suffix.lower()
        if suffix == ".json":
            data = cls._parse_json(raw, path)
        elif suffix in {".yaml", ".yml"}:
            data = cls._load_yaml(raw)
        else:
            raise ConfigurationError("Unsupported config format. Use JSON or YAML.")
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping", context={"path": path}
            )
        return cls(**cls._merge_with_defaults(data))

    def validate(self) -> None:
        if not isinstance(self.targets, (list, tuple)):
            raise ConfigurationError("targets must be a list")
        for target in self.targets:
            if not isinstance(target, Target):
                raise ConfigurationError(
                    "targets must contain Target instances",
                    context={"target": repr(target)},
                )
        for name in self._INT_FIELDS:
            value = getattr(self, name)
            if value is None and name == "request_timeout_seconds":
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(
                    f"{name} must be an integer", context={"value": repr(value)}
                )
        for name in self._BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(
                    f"{name} must be a boolean",
                    context={"value": repr(getattr(self, name))},
                )
        if self.scrape_interval_seconds <= 0:
            raise ConfigurationError("scrape_interval_seconds must be greater than zero")
        if self.window_width_seconds <= 0:
            raise ConfigurationError("window_width_seconds must be greater than zero")
        if self.window_lag_seconds < 0:
            raise ConfigurationError("window_lag_seconds must be non-negative")
        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0:
            raise ConfigurationError("request_timeout_seconds must be greater than zero")
        if self.max_batch_size <= 0:
            raise ConfigurationError("max_batch_size must be greater than zero")
        if self.max_metrics_per_query <= 0:
            raise ConfigurationError("max_metrics_per_query must be greater than zero")

    def require_credentials(self) -> None:
        """Fail fast when any credential needed to talk to Azure is missing."""

        missing = [name for name in self._CREDENTIAL_FIELDS if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                "Missing Azure credentials", context={"missing": missing}
            )

    @classmethod
    def _merge_with_defaults(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        defaults = cls()
        credentials = data.get("credentials") or {}
        if not isinstance(credentials, dict):
            raise ConfigurationError("credentials must be a mapping")
        merged: Dict[str, Any] = {
            name: credentials.get(name, data.get(name, getattr(defaults, name)))
            for name in cls._CREDENTIAL_FIELDS
        }
        merged["targets"] = cls._build_targets(data.get("targets") or [])
        for name in cls._INT_FIELDS:
            merged[name] = _coerce_int(name, data.get(name, getattr(defaults, name)))
        for name in cls._BOOL_FIELDS:
            merged[name] = _coerce_bool(name, data.get(name, getattr(defaults, name)))
        for name in cls._STR_FIELDS:
            merged[name] = data.get(name, getattr(defaults, name))
        return merged

    @staticmethod
    def _build_targets(raw: Iterable[Any]) -> Tuple[Target, ...]:
        if not isinstance(raw, list):
            raise ConfigurationError("targets must be a list")
        try:
            return tuple(
                item if isinstance(item, Target) else Target.model_validate(item)
                for item in raw
            )
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid target configuration", context={"reason": str(exc)}
            ) from exc

    @staticmethod
    def _parse_json(raw: str, source: str) -> Any:
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise ConfigurationError(
                "Invalid JSON configuration", context={"source": source}
            ) from exc

    @staticmethod
    def _load_yaml(raw: str) -> Dict[str, Any]:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to parse YAML config files") from exc
        return yaml.safe_load(raw) or {}
