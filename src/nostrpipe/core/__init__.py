"""Core layer: serialization boundary, stage contract, and ambient services.

Sits between [nostrpipe.models][nostrpipe.models] and
[nostrpipe.stages][nostrpipe.stages]; depends only on the models layer.

Attributes:
    EventBuffer: Typed event collection paired with its memoized canonical
        byte encoding. See [EventBuffer][nostrpipe.core.buffer.EventBuffer].
    Stage: Abstract base class with declared input/output payload types.
        See [Stage][nostrpipe.core.base_stage.Stage].
    PipelineContext: Immutable per-run context threaded through every stage.
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][nostrpipe.core.logger.Logger].
    MetricsConfig: Prometheus textfile configuration for one-shot runs.
        See [write_metrics()][nostrpipe.core.metrics.write_metrics].
    load_yaml: Safe YAML loading with ``yaml.safe_load``.
"""

from .base_stage import Connector, PipelineContext, Stage
from .buffer import EventBuffer, decode_events, encode_events
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    PIPELINE_COUNTER,
    STAGE_DURATION_SECONDS,
    MetricsConfig,
    write_metrics,
)
from .yaml import load_yaml


__all__ = [
    "PIPELINE_COUNTER",
    "STAGE_DURATION_SECONDS",
    "Connector",
    "EventBuffer",
    "Logger",
    "MetricsConfig",
    "PipelineContext",
    "Stage",
    "StructuredFormatter",
    "decode_events",
    "encode_events",
    "format_kv_pairs",
    "load_yaml",
    "write_metrics",
]
