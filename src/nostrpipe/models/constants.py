"""Shared constants for the models layer.

Defines enumerations and default values used by several model and stage
modules. Placing them here avoids circular imports between the models,
utils, and stages layers.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class EventKind(IntEnum):
    """Well-known Nostr event kinds handled by the pipeline.

    Attributes:
        TEXT_NOTE: Kind 1 -- short text note (NIP-01).
        LONG_FORM_ARTICLE: Kind 30023 -- long-form content (NIP-23).
            Default kind of the author query.
    """

    TEXT_NOTE = 1
    LONG_FORM_ARTICLE = 30_023


class StageName(StrEnum):
    """Canonical stage identifiers used in logging and the ``stage`` metric label."""

    FILTER = "filter"
    QUERY = "query"
    TAGS = "tags"
    SORT_BY_COUNT = "sort_by_count"
    SORT_BY_NAME = "sort_by_name"
    TITLES = "titles"
    IDENTIFIERS = "identifiers"
    PUBLISH = "publish"


EVENT_KIND_MAX = 65_535

# Query bound applied when the caller does not choose one
DEFAULT_LIMIT = 10

TOPIC_TAG = "t"
TITLE_TAG = "title"
