"""Infrastructure layer - cross-cutting concerns."""

from db_launcher.infrastructure.config import Config, get_config
from db_launcher.infrastructure.logging import setup_logging, get_logger
from db_launcher.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from db_launcher.infrastructure.tracing import setup_tracing, get_tracer, flush_tracing

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "flush_tracing",
]
