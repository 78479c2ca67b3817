"""nostrpipe exception hierarchy.

Provides typed exceptions for every failure category of a pipeline run so
callers can distinguish bad input from transport failures and decode errors
without resorting to bare ``except Exception``. ``asyncio.CancelledError``
is never wrapped and always propagates untouched.

Exception hierarchy:

```text
NostrPipeError (base -- never raised directly)
├── ConfigurationError        -- bad filter/build input, config, missing secret
├── TransportError            -- relay connect/query/publish failures
│   ├── RelayConnectionError  -- connection refused or relay unreachable
│   ├── RelayProtocolError    -- protocol or SDK-level failure
│   ├── RelayTimeoutError     -- deadline or SDK timeout elapsed
│   └── PublishingError       -- relay rejected a published event
├── DecodeError               -- malformed event buffer contents
├── EncodingError             -- bad key or identifier material (NIP-19)
└── SigningError              -- invalid signing key or signing failure
```

This module sits below [nostrpipe.models][nostrpipe.models] so that model
constructors (the filter builder in particular) can raise
[ConfigurationError][nostrpipe.exceptions.ConfigurationError] directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from nostrpipe.models.report import PublishReport


class NostrPipeError(Exception):
    """Base exception for all nostrpipe errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(NostrPipeError):
    """Invalid pipeline input: filter values, YAML config, CLI flags, env vars.

    Raised by the [Filter][nostrpipe.models.filter.Filter] builder and by
    [Pipeline.then()][nostrpipe.stages.pipeline.Pipeline.then] when two
    stages cannot be chained.
    """


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TransportError(NostrPipeError):
    """Base for all relay transport failures.

    The pipeline never retries: a transport error aborts the whole run.
    """


class RelayConnectionError(TransportError):
    """Connection refused, DNS failure, or relay otherwise unreachable."""


class RelayProtocolError(TransportError):
    """The relay or the Nostr SDK reported a protocol-level failure."""


class RelayTimeoutError(TransportError):
    """Connecting, querying, or publishing exceeded its deadline."""


class PublishingError(TransportError):
    """A relay rejected a published event.

    Attributes:
        event_id: ID of the rejected (already signed) event.
        report: Events published before the failure, so callers can tell
            which part of the run already reached the relay.
    """

    def __init__(
        self,
        message: str,
        *,
        event_id: str | None = None,
        report: PublishReport | None = None,
    ) -> None:
        super().__init__(message)
        self.event_id = event_id
        self.report = report


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class DecodeError(NostrPipeError):
    """Malformed [EventBuffer][nostrpipe.core.buffer.EventBuffer] contents.

    Attributes:
        offset: Byte offset into the encoded buffer where decoding failed.
        index: Position of the offending element in the ``events`` array,
            when the failure is tied to a single event.
    """

    def __init__(self, message: str, *, offset: int, index: int | None = None) -> None:
        super().__init__(f"{message} (at byte {offset})")
        self.offset = offset
        self.index = index


class EncodingError(NostrPipeError):
    """Malformed public key, private key, or addressable identifier input."""


class SigningError(NostrPipeError):
    """Invalid signing key material, or the SDK failed to sign an event."""
