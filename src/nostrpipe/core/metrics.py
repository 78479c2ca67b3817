"""
Prometheus metrics for pipeline runs.

Defines module-level metric objects (singletons, thread-safe) recorded by
[Pipeline.run()][nostrpipe.stages.pipeline.Pipeline.run] and the stages.
A pipeline run is a one-shot batch job, so instead of an HTTP scrape
endpoint the registry is dumped to a file in the Prometheus text format
with [write_metrics()][nostrpipe.core.metrics.write_metrics], ready for the
node-exporter textfile collector.

Architecture:
    STAGE_DURATION_SECONDS:  Histogram of per-stage wall time.
    PIPELINE_COUNTER:        Cumulative totals (runs, fetched/published events).
"""

from __future__ import annotations

from pathlib import Path

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, write_to_textfile
from pydantic import BaseModel, Field, model_validator


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for the metrics textfile written at the end of a run.

    The file is only written when ``enabled`` is True, in which case
    ``textfile`` is required.
    """

    enabled: bool = Field(default=False, description="Write metrics after each run")
    textfile: Path | None = Field(default=None, description="Prometheus textfile path")

    @model_validator(mode="after")
    def _require_textfile(self) -> MetricsConfig:
        if self.enabled and self.textfile is None:
            raise ValueError("metrics.textfile is required when metrics are enabled")
        return self


# ---------------------------------------------------------------------------
# Pipeline Metrics
#
# Counter names (label "name"):
#   runs_success, runs_failed, events_fetched, events_published
# ---------------------------------------------------------------------------

STAGE_DURATION_SECONDS = Histogram(
    "nostrpipe_stage_duration_seconds",
    "Duration of a pipeline stage in seconds",
    ["stage"],
    buckets=(0.001, 0.01, 0.1, 0.5, 1, 2.5, 5, 10, 30, 60),
)

PIPELINE_COUNTER = Counter(
    "nostrpipe_counter",
    "Pipeline counter values (cumulative totals)",
    ["name"],
)


def write_metrics(config: MetricsConfig, registry: CollectorRegistry = REGISTRY) -> bool:
    """Write *registry* to ``config.textfile`` if metrics are enabled.

    The write is atomic (temporary file plus rename), as implemented by
    ``prometheus_client.write_to_textfile``.

    Returns:
        True if the file was written, False if metrics are disabled.

    Raises:
        OSError: If the file cannot be written.
    """
    if not config.enabled or config.textfile is None:
        return False
    write_to_textfile(str(config.textfile), registry)
    return True
