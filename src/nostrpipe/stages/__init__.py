"""Pipeline stages and the chain that composes them.

Each stage is a subclass of [Stage][nostrpipe.core.base_stage.Stage] with a
declared input and output payload type:

```text
FilterSource  ->  Filter
Query         Filter                        ->  EventBuffer
CountTags     EventBuffer | EventCollection ->  FrequencyMap
SortByCount   FrequencyMap                  ->  list[SortedEntry]
SortByName    FrequencyMap                  ->  list[SortedEntry]
Titles        EventBuffer | EventCollection ->  list[str]
Identifiers   EventBuffer | EventCollection ->  list[str]
Republish     EventBuffer | EventCollection ->  PublishReport
```

Attributes:
    Pipeline: Immutable, type-checked chain of stages.
        See [Pipeline][nostrpipe.stages.pipeline.Pipeline].
    PipelineConfig: Pydantic configuration for a CLI run.
        See [PipelineConfig][nostrpipe.stages.config.PipelineConfig].
"""

from .aggregate import CountTags, count_by_key
from .config import PipelineConfig, PublishConfig, QueryConfig
from .extract import Identifiers, Titles, extract_identifiers, extract_titles
from .pipeline import DEFAULT_FILTER, Pipeline, render
from .publish import Publisher, Republish
from .query import FilterSource, Query, QueryExecutor
from .sort import SortByCount, SortByName, sort_by_count, sort_by_name


__all__ = [
    "DEFAULT_FILTER",
    "CountTags",
    "FilterSource",
    "Identifiers",
    "Pipeline",
    "PipelineConfig",
    "PublishConfig",
    "Publisher",
    "Query",
    "QueryConfig",
    "QueryExecutor",
    "Republish",
    "SortByCount",
    "SortByName",
    "Titles",
    "count_by_key",
    "extract_identifiers",
    "extract_titles",
    "render",
    "sort_by_count",
    "sort_by_name",
]
