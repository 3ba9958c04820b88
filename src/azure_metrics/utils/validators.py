"""Input validation helpers used for targets and configuration."""

from __future__ import annotations

from typing import Iterable, Tuple

DEFAULT_AGGREGATIONS: Tuple[str, ...] = ("Total", "Average", "Minimum", "Maximum")
KNOWN_AGGREGATIONS: Tuple[str, ...] = DEFAULT_AGGREGATIONS + ("Count",)

_CANONICAL = {name.lower(): name for name in KNOWN_AGGREGATIONS}


def validate_resource_path(path: str) -> str:
    if not path or not path.strip():
        raise ValueError("resource path must be non-empty")
    path = path.strip().rstrip("/")
    if not path.startswith("/"):
        raise ValueError(f"resource path must start with '/': {path!r}")
    return path


def normalize_aggregations(values: Iterable[str]) -> Tuple[str, ...]:
    """Canonicalise aggregation names, keeping first-seen order."""

    normalized: list[str] = []
    for raw in values:
        name = _CANONICAL.get(str(getattr(raw, "value", raw)).strip().lower())
        if name is None:
            raise ValueError(
                f"unknown aggregation {raw!r}; expected one of {list(KNOWN_AGGREGATIONS)}"
            )
        if name not in normalized:
            normalized.append(name)
    return tuple(normalized)


def normalize_metric_names(values: Iterable[str]) -> Tuple[str, ...]:
    names: list[str] = []
    for raw in values:
        name = str(raw).strip()
        if not name:
            raise ValueError("metric names must be non-empty")
        if name not in names:
            names.append(name)
    return tuple(names)
