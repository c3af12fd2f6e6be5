"""Built-in default configuration values for relay runtimes.

These defaults are the final fallback in the configuration cascade:
CLI params > ENV vars > config file > built-in defaults.
"""

from __future__ import annotations

from typing import Any

BUILTIN_DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "json_output": True,
        "service": "relay",
        "environment": "dev",
    },
    "observability": {
        "exchange": {
            "metrics_enabled": True,
            "otel": {
                "meter_name": "relay.exchange",
                "metric_exchanges_total": "relay_exchanges_total",
                "metric_exchange_duration_ms": "relay_exchange_duration_ms",
                "metric_exchange_errors_total": "relay_exchange_errors_total",
            },
        }
    },
    "components": {
        "substrate": {
            "qdrant": {
                "url": "http://localhost:6333",
                "grpc_port": 6334,
                "prefer_grpc": False,
                "request_timeout_seconds": 10.0,
            }
        }
    },
}
