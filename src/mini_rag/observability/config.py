"""
Tracing settings, read once from the environment.

    TRACING_ENABLED              export spans (default: off)
    TRACING_SERVICE_NAME         service.name resource attribute (default: mini-rag)
    OTEL_EXPORTER_OTLP_ENDPOINT  OTLP/HTTP traces endpoint (default: exporter's own)
    TRACING_SAMPLE_RATIO         share of root spans kept, 0.0 to 1.0 (default: 1.0)
    TRACING_CAPTURE_CONTENT      put customer questions and answers on spans

Questions and generated answers only reach the collector with
TRACING_CAPTURE_CONTENT set. Leave it off wherever traces leave the machine.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

_TRUTHY = ("true", "1", "yes")


def _flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class TracingConfig:
    enabled: bool = False
    service_name: str = "mini-rag"
    collector_endpoint: str | None = None
    sample_ratio: float = 1.0
    capture_content: bool = False

    @classmethod
    def from_env(cls) -> "TracingConfig":
        ratio = float(os.environ.get("TRACING_SAMPLE_RATIO") or "1.0")
        return cls(
            enabled=_flag("TRACING_ENABLED"),
            service_name=os.environ.get("TRACING_SERVICE_NAME") or "mini-rag",
            collector_endpoint=os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
            sample_ratio=min(max(ratio, 0.0), 1.0),
            capture_content=_flag("TRACING_CAPTURE_CONTENT"),
        )


@lru_cache(maxsize=1)
def get_config() -> TracingConfig:
    """Process-wide tracing config, read on first use."""
    return TracingConfig.from_env()


def reset_config() -> None:
    """Drop the cached config; the next get_config() re-reads the environment."""
    get_config.cache_clear()
