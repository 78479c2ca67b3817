"""
Pydantic configuration for a pipeline run.

Loaded from YAML with [from_yaml()][nostrpipe.stages.config.PipelineConfig.from_yaml]
and then overridden by command-line flags. Validation failures surface as
[ConfigurationError][nostrpipe.exceptions.ConfigurationError] so the CLI
reports them like any other pipeline error.

Examples:
    ```yaml
    relay: wss://relay.damus.io
    timeout: 10.0
    query:
      authors: [npub1...]
      kinds: [30023]
      limit: 20
    tag_key: t
    sort: count
    publish:
      relay: wss://nos.lol
      keys_env: PRIVATE_KEY
    metrics:
      enabled: true
      textfile: /var/lib/node_exporter/nostrpipe.prom
    ```
"""

from __future__ import annotations

from typing import Any, Literal, Self

from pydantic import BaseModel, Field, ValidationError

from nostrpipe.core.metrics import MetricsConfig
from nostrpipe.core.yaml import load_yaml
from nostrpipe.exceptions import ConfigurationError
from nostrpipe.models import DEFAULT_LIMIT, TOPIC_TAG, EventKind, Filter
from nostrpipe.utils.keys import ENV_PRIVATE_KEY, decode_public_key
from nostrpipe.utils.protocol import DEFAULT_TIMEOUT


DEFAULT_RELAY = "wss://relay.damus.io"


class QueryConfig(BaseModel):
    """Criteria for the query stage."""

    authors: list[str] = Field(
        default_factory=list,
        description="Author public keys (npub1... or hex); empty = any author",
    )
    kinds: list[int] = Field(
        default_factory=lambda: [int(EventKind.LONG_FORM_ARTICLE)],
        min_length=1,
        description="Event kinds to fetch",
    )
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, description="Maximum events to fetch")

    def to_filter(self) -> Filter:
        """Build the [Filter][nostrpipe.models.Filter] described by this config.

        Raises:
            EncodingError: If an author is not a valid public key.
            ConfigurationError: If a kind is out of range.
        """
        event_filter = Filter().with_kinds(self.kinds).with_limit(self.limit)
        if self.authors:
            event_filter = event_filter.with_authors(
                decode_public_key(author) for author in self.authors
            )
        return event_filter


class PublishConfig(BaseModel):
    """Target and signing key for the ``republish`` command."""

    relay: str | None = Field(
        default=None,
        description="Target relay; defaults to the relay queried",
    )
    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable holding the private key",
    )


class PipelineConfig(BaseModel):
    """Top-level configuration for one pipeline run."""

    relay: str = Field(default=DEFAULT_RELAY, min_length=1, description="Relay to query")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT,
        gt=0.0,
        description="Seconds allowed for each relay operation",
    )
    deadline: float | None = Field(
        default=None,
        gt=0.0,
        description="Seconds allowed for the whole run (None = no deadline)",
    )
    query: QueryConfig = Field(default_factory=QueryConfig)
    tag_key: str = Field(default=TOPIC_TAG, min_length=1, description="Tag key to aggregate")
    sort: Literal["count", "name"] = Field(default="count", description="Tag sort order")
    publish: PublishConfig = Field(default_factory=PublishConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @classmethod
    def from_yaml(cls, config_path: str, **overrides: Any) -> Self:
        """Load a configuration file, then apply *overrides*.

        See Also:
            [from_dict()][nostrpipe.stages.config.PipelineConfig.from_dict]:
                Construct from a pre-parsed dictionary.
        """
        return cls.from_dict(load_yaml(config_path), **overrides)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **overrides: Any) -> Self:
        """Validate *data* merged with *overrides*.

        Nested sections in *overrides* (``query``, ``publish``, ``metrics``)
        are merged key by key into the matching section of *data*.

        Raises:
            ConfigurationError: If the merged configuration is invalid.
        """
        merged = dict(data)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        try:
            return cls(**merged)
        except ValidationError as e:
            raise ConfigurationError(f"invalid configuration: {e}") from e
