"""
Pipeline Chain: compose stages into one fluent, type-checked call sequence.

A [Pipeline][nostrpipe.stages.pipeline.Pipeline] is an immutable value: a
[PipelineContext][nostrpipe.core.base_stage.PipelineContext] plus a tuple
of stages. Every builder method returns a new pipeline, and
[then()][nostrpipe.stages.pipeline.Pipeline.then] rejects a stage that
cannot consume the previous stage's output, so a mis-wired chain fails when
it is built rather than halfway through a run.

Running a pipeline executes the stages strictly one after another. Each
stage consumes the previous payload and produces its own; any error aborts
the run and propagates to the caller. [write()][nostrpipe.stages.pipeline.Pipeline.write]
renders the final payload only after every stage succeeded, so a failed run
leaves the output sink untouched.

Examples:
    ```python
    async with await connect_relay("wss://relay.damus.io") as connection:
        pipeline = Pipeline(PipelineContext(connection=connection))
        await pipeline.author(npub).query().tags().sort_by_count().write()
        # [{"key":"rust","count":1},{"key":"go","count":2}]
    ```
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from nostrpipe.core.base_stage import PipelineContext, Stage
from nostrpipe.core.buffer import EventBuffer
from nostrpipe.core.logger import Logger
from nostrpipe.core.metrics import PIPELINE_COUNTER, STAGE_DURATION_SECONDS
from nostrpipe.exceptions import ConfigurationError, RelayTimeoutError
from nostrpipe.models import (
    TOPIC_TAG,
    EventCollection,
    EventKind,
    Filter,
    FrequencyMap,
    PublishReport,
    SortedEntry,
)
from nostrpipe.utils.keys import decode_public_key, encode_address

from .aggregate import CountTags
from .extract import AddressEncoder, Identifiers, Titles
from .publish import Publisher, Republish
from .query import FilterSource, Query
from .sort import SortByCount, SortByName


# Seed filter used by the fluent author()/kinds()/limit() methods
DEFAULT_FILTER = Filter(kinds=frozenset({EventKind.LONG_FORM_ARTICLE}))

_logger = Logger("pipeline")


@dataclass(frozen=True, slots=True)
class Pipeline:
    """Immutable chain of stages sharing one context.

    Attributes:
        context: Per-run context handed to every stage.
        stages: Stages in execution order; the first is a source stage.
    """

    context: PipelineContext = field(default_factory=PipelineContext)
    stages: tuple[Stage, ...] = ()

    @property
    def output_type(self) -> type | None:
        """Payload type produced by the last stage, or ``None`` when empty."""
        return self.stages[-1].OUTPUT if self.stages else None

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    def then(self, stage: Stage) -> Pipeline:
        """Return a pipeline with *stage* appended.

        Raises:
            ConfigurationError: If *stage* cannot consume the current output
                type, or a source stage is appended to a non-empty pipeline
                (or a non-source stage to an empty one).
        """
        current = self.output_type
        if current is None:
            if not stage.is_source():
                raise ConfigurationError(
                    f"pipeline must start with a source stage, got {stage.NAME!s}"
                )
        elif stage.is_source():
            raise ConfigurationError(f"source stage {stage.NAME!s} can only start a pipeline")
        elif not stage.accepts(current):
            raise ConfigurationError(
                f"stage {stage.NAME!s} cannot consume {current.__name__} "
                f"produced by {self.stages[-1].NAME!s}"
            )
        return replace(self, stages=(*self.stages, stage))

    def with_context(self, context: PipelineContext) -> Pipeline:
        """Return the same stages bound to another context."""
        return replace(self, context=context)

    def _update_filter(self, update: Callable[[Filter], Filter]) -> Pipeline:
        if not self.stages:
            return self.then(FilterSource(update(DEFAULT_FILTER)))
        if len(self.stages) == 1 and isinstance(self.stages[0], FilterSource):
            return replace(self, stages=(FilterSource(update(self.stages[0].filter)),))
        raise ConfigurationError("filter criteria must be set before query()")

    def filter(self, event_filter: Filter) -> Pipeline:
        """Start (or restart) the pipeline from *event_filter*."""
        return self._update_filter(lambda _: event_filter)

    def author(self, key: str) -> Pipeline:
        """Restrict the query to one author (``npub1...`` or hex).

        Raises:
            EncodingError: If *key* is not a valid public key.
        """
        return self.authors([key])

    def authors(self, keys: Iterable[str]) -> Pipeline:
        """Restrict the query to *keys* (``npub1...`` or hex)."""
        decoded = [decode_public_key(key) for key in keys]
        return self._update_filter(lambda f: f.with_authors(decoded))

    def kinds(self, *kinds: int) -> Pipeline:
        """Restrict the query to *kinds* (replaces the default long-form kind)."""
        return self._update_filter(lambda f: f.with_kinds(kinds))

    def limit(self, n: int) -> Pipeline:
        """Bound the query to *n* events."""
        return self._update_filter(lambda f: f.with_limit(n))

    def query(self) -> Pipeline:
        return self.then(Query())

    def tags(self, key: str = TOPIC_TAG) -> Pipeline:
        return self.then(CountTags(key))

    def sort_by_count(self) -> Pipeline:
        return self.then(SortByCount())

    def sort_by_name(self) -> Pipeline:
        return self.then(SortByName())

    def titles(self) -> Pipeline:
        return self.then(Titles())

    def identifiers(self, encoder: AddressEncoder = encode_address) -> Pipeline:
        return self.then(Identifiers(encoder))

    def publish(self, publisher: Publisher, relay: str | None = None) -> Pipeline:
        return self.then(Republish(publisher, relay))

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def run(self, *, deadline: float | None = None) -> Any:
        """Run every stage in order and return the final payload.

        Args:
            deadline: Optional limit in seconds for the whole run.

        Raises:
            ConfigurationError: If the pipeline has no stages.
            RelayTimeoutError: If *deadline* elapsed.
            NostrPipeError: Any stage failure, propagated unchanged.
        """
        if not self.stages:
            raise ConfigurationError("pipeline has no stages")

        started = time.perf_counter()
        timeout = asyncio.timeout(deadline)
        try:
            async with timeout:
                payload = await self._run_stages()
        except TimeoutError as e:
            if timeout.expired():
                PIPELINE_COUNTER.labels(name="runs_failed").inc()
                _logger.error("pipeline_timeout", deadline=deadline)
                raise RelayTimeoutError(f"pipeline exceeded its deadline of {deadline}s") from e
            raise

        PIPELINE_COUNTER.labels(name="runs_success").inc()
        _logger.info(
            "pipeline_completed",
            stages=len(self.stages),
            duration=round(time.perf_counter() - started, 3),
        )
        return payload

    async def _run_stages(self) -> Any:
        payload: Any = None
        for stage in self.stages:
            start = time.perf_counter()
            _logger.debug("stage_started", stage=stage.NAME)
            try:
                payload = await stage.run(self.context, payload)
            except Exception as e:
                PIPELINE_COUNTER.labels(name="runs_failed").inc()
                _logger.error(
                    "stage_failed", stage=stage.NAME, error_type=type(e).__name__, error=str(e)
                )
                raise
            duration = time.perf_counter() - start
            STAGE_DURATION_SECONDS.labels(stage=stage.NAME).observe(duration)
            _logger.info(
                "stage_completed",
                stage=stage.NAME,
                duration=round(duration, 3),
                items=_size(payload),
            )
        return payload

    async def string(self, *, deadline: float | None = None) -> str:
        """Run the pipeline and return the rendered result as text."""
        return render(await self.run(deadline=deadline)).decode("utf-8")

    async def write(self, *, deadline: float | None = None) -> Any:
        """Run the pipeline and write the rendered result to the output sink.

        The sink receives a single write after every stage has succeeded,
        followed by a newline. Empty results (an empty event buffer) write
        nothing.

        Returns:
            The final payload.
        """
        payload = await self.run(deadline=deadline)
        data = render(payload)
        if data:
            self.context.output.write(data + b"\n")
            self.context.output.flush()
        return payload


def _size(payload: Any) -> int:
    if isinstance(payload, PublishReport):
        return payload.count
    if isinstance(payload, Filter):
        return payload.limit
    return len(payload)


def render(payload: Any) -> bytes:
    """Render a stage payload as canonical compact UTF-8 JSON.

    * [EventBuffer][nostrpipe.core.buffer.EventBuffer] and
      [EventCollection][nostrpipe.models.EventCollection]: the buffer
      encoding (``b""`` when empty).
    * [FrequencyMap][nostrpipe.models.FrequencyMap]: an object with sorted keys.
    * Lists of [SortedEntry][nostrpipe.models.SortedEntry]:
      ``[{"key": ..., "count": ...}]`` in list order.
    * Lists of strings (titles, identifiers): a JSON array.
    * [Filter][nostrpipe.models.Filter] and
      [PublishReport][nostrpipe.models.PublishReport]: their ``to_dict()``.

    Raises:
        ConfigurationError: For any other payload type.
    """
    if isinstance(payload, EventBuffer):
        return payload.encode()
    if isinstance(payload, EventCollection):
        return EventBuffer.from_events(payload).encode()

    data: Any
    if isinstance(payload, FrequencyMap):
        data = dict(sorted(payload.items()))
    elif isinstance(payload, Filter | PublishReport):
        data = payload.to_dict()
    elif isinstance(payload, list):
        data = [
            {"key": item.key, "count": item.count} if isinstance(item, SortedEntry) else item
            for item in payload
        ]
    else:
        raise ConfigurationError(f"cannot render payload of type {type(payload).__name__}")
    return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
