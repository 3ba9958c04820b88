"""Azure Monitor metrics client: credentials, query building, batching and decoding."""

from .core.client import MetricsClient
from .core.config import ClientConfig
from .core.container import DIContainer

__all__ = [
    "MetricsClient",
    "ClientConfig",
    "DIContainer",
    "domain",
    "client",
    "core",
    "utils",
]
