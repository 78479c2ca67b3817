r"""nostrpipe -- Composable stage pipelines over Nostr relay events.

Fetches a bounded collection of events from one relay and transforms it
through a chain of stateless stages: filtering, buffering, tag-frequency
aggregation, sorting, title and identifier extraction, and republishing.

Architecture follows a layered dependency structure where imports flow
strictly downward:

```text
              stages           Pipeline chain and concrete stages
             /      \
          core      utils      Buffer, logging, metrics | relay client, keys
             \      /
              models           Pure frozen dataclasses (zero I/O)
                |
            exceptions         Error taxonomy
```

Note:
    For lightweight usage, import directly from subpackages::

        from nostrpipe.models import Filter
        from nostrpipe.stages import Pipeline

    Top-level imports (``from nostrpipe import Pipeline``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("nostrpipe")

__all__ = [
    "Event",
    "EventBuffer",
    "EventCollection",
    "Filter",
    "FrequencyMap",
    "Logger",
    "NostrPipeError",
    "Pipeline",
    "PipelineConfig",
    "PipelineContext",
    "PublishReport",
    "Publisher",
    "SortedEntry",
    "Tag",
    "connect_relay",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "NostrPipeError": ("nostrpipe.exceptions", "NostrPipeError"),
    "Event": ("nostrpipe.models", "Event"),
    "EventCollection": ("nostrpipe.models", "EventCollection"),
    "Filter": ("nostrpipe.models", "Filter"),
    "FrequencyMap": ("nostrpipe.models", "FrequencyMap"),
    "PublishReport": ("nostrpipe.models", "PublishReport"),
    "SortedEntry": ("nostrpipe.models", "SortedEntry"),
    "Tag": ("nostrpipe.models", "Tag"),
    "EventBuffer": ("nostrpipe.core", "EventBuffer"),
    "Logger": ("nostrpipe.core", "Logger"),
    "PipelineContext": ("nostrpipe.core", "PipelineContext"),
    "connect_relay": ("nostrpipe.utils.protocol", "connect_relay"),
    "Pipeline": ("nostrpipe.stages", "Pipeline"),
    "PipelineConfig": ("nostrpipe.stages", "PipelineConfig"),
    "Publisher": ("nostrpipe.stages", "Publisher"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'nostrpipe' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
