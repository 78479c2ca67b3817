"""Nostr relay client operations for nostrpipe.

Wraps ``nostr_sdk.Client`` in a [RelayConnection][nostrpipe.utils.protocol.RelayConnection]
exposing exactly the three operations the pipeline needs from a relay:
connect, one-shot query (request/response until EOSE), and publish. SDK and
network failures are translated into the
[TransportError][nostrpipe.exceptions.TransportError] family; nothing here
retries or backs off.

Attributes:
    create_client: Client factory with an optional signer.
    connect_relay: Open a connection to a single relay.
    RelayConnection: Query and publish over an open connection.
    to_nostr_filter: Convert a model filter into ``nostr_sdk.Filter``.

Note:
    Only one relay is used per connection. Pulling the same query from
    several relays would return duplicates, and deduplicating across
    sources is out of scope.

Examples:
    ```python
    async with await connect_relay("wss://relay.damus.io", timeout=10.0) as conn:
        events = await conn.query(Filter().with_authors({pubkey}))
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta
from types import TracebackType
from typing import TYPE_CHECKING, Self

from nostr_sdk import Client, ClientBuilder, Kind, NostrSdkError, NostrSigner, PublicKey, RelayUrl
from nostr_sdk import Filter as NostrFilter

from nostrpipe.exceptions import (
    ConfigurationError,
    PublishingError,
    RelayConnectionError,
    RelayProtocolError,
    RelayTimeoutError,
)
from nostrpipe.models import Event, Filter


if TYPE_CHECKING:
    from nostr_sdk import Keys


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 10.0


def to_nostr_filter(event_filter: Filter) -> NostrFilter:
    """Convert a [Filter][nostrpipe.models.Filter] into a ``nostr_sdk.Filter``.

    Authors and kinds are passed in sorted order so the resulting REQ is
    deterministic.
    """
    nostr_filter = NostrFilter().limit(event_filter.limit)
    if event_filter.authors:
        nostr_filter = nostr_filter.authors(
            [PublicKey.parse(author) for author in sorted(event_filter.authors)]
        )
    if event_filter.kinds:
        nostr_filter = nostr_filter.kinds([Kind(kind) for kind in sorted(event_filter.kinds)])
    return nostr_filter


async def create_client(keys: Keys | None = None) -> Client:
    """Create a Nostr client, optionally with a signer.

    Args:
        keys: Optional signing keys (``None`` = read-only client). The
            pipeline signs events itself, so relay connections are normally
            created without a signer.

    Returns:
        Configured ``Client`` instance (call ``add_relay()`` before use).
    """
    builder = ClientBuilder()
    if keys is not None:
        builder = builder.signer(NostrSigner.keys(keys))
    return builder.build()


async def connect_relay(url: str, timeout: float = DEFAULT_TIMEOUT) -> RelayConnection:  # noqa: ASYNC109
    """Open a connection to the relay at *url*.

    Args:
        url: Relay WebSocket URL (``wss://...``).
        timeout: Connection timeout in seconds, also used for every later
            query and publish on the returned connection.

    Returns:
        An open [RelayConnection][nostrpipe.utils.protocol.RelayConnection].

    Raises:
        ConfigurationError: If *url* is not a valid relay URL.
        RelayTimeoutError: If the connection attempt timed out.
        RelayConnectionError: If the relay refused or could not be reached.
    """
    try:
        relay_url = RelayUrl.parse(url)
    except (NostrSdkError, ValueError) as e:
        raise ConfigurationError(f"invalid relay url {url!r}: {e}") from e

    logger.debug("relay_connecting relay=%s timeout_s=%s", url, timeout)

    client = await create_client()
    await client.add_relay(relay_url)
    try:
        output = await client.try_connect(timedelta(seconds=timeout))
    except NostrSdkError as e:
        await _shutdown(client)
        raise RelayConnectionError(f"Connection failed: {url} ({e})") from e

    if relay_url not in output.success:
        error_message = output.failed.get(relay_url, "Unknown error")
        await _shutdown(client)
        logger.debug("relay_connect_failed relay=%s error=%s", url, error_message)
        if "timeout" in str(error_message).lower():
            raise RelayTimeoutError(f"Connection timeout: {url}")
        raise RelayConnectionError(f"Connection failed: {url} ({error_message})")

    logger.debug("relay_connected relay=%s", url)
    return RelayConnection(client, relay_url, url=url, timeout=timeout)


async def _shutdown(client: Client) -> None:
    # nostr-sdk Rust FFI can raise arbitrary exception types during shutdown.
    with contextlib.suppress(Exception):
        await client.shutdown()


class RelayConnection:
    """An open connection to a single relay.

    Created by [connect_relay()][nostrpipe.utils.protocol.connect_relay].
    Usable as an async context manager that closes the connection on exit.

    Attributes:
        url: The relay URL as given by the caller.
        timeout: Seconds allowed for each query or publish.
    """

    def __init__(
        self,
        client: Client,
        relay_url: RelayUrl,
        *,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._client = client
        self._relay_url = relay_url
        self.url = url
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"RelayConnection(url={self.url!r})"

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def query(self, event_filter: Filter) -> list[Event]:
        """Fetch the events matching *event_filter* and wait for EOSE.

        Events whose signature does not verify, or that fail model
        validation, are dropped and logged. Order is the order returned by
        the SDK.

        Raises:
            RelayTimeoutError: If the request timed out.
            RelayProtocolError: If the relay or SDK reported an error.
        """
        nostr_filter = to_nostr_filter(event_filter)
        try:
            fetched = await self._client.fetch_events(
                nostr_filter, timedelta(seconds=self.timeout)
            )
        except TimeoutError as e:
            raise RelayTimeoutError(f"Query timeout: {self.url}") from e
        except (NostrSdkError, OSError) as e:
            raise RelayProtocolError(f"Query failed: {self.url} ({e})") from e

        events: list[Event] = []
        for evt in fetched.to_vec():
            try:
                if not evt.verify():
                    logger.warning("event_invalid_signature relay=%s", self.url)
                    continue
                events.append(Event.from_nostr(evt))
            except (ValueError, TypeError, KeyError, OverflowError) as e:
                logger.warning("event_rejected relay=%s error=%s", self.url, e)
        logger.debug("relay_query_completed relay=%s events=%s", self.url, len(events))
        return events

    async def publish(self, event: Event) -> str:
        """Send a signed event and wait for the relay's acknowledgement.

        Returns:
            The ID of the accepted event.

        Raises:
            PublishingError: If the relay rejected the event.
            RelayTimeoutError: If no acknowledgement arrived in time.
            RelayProtocolError: If the relay or SDK reported an error.
        """
        try:
            output = await asyncio.wait_for(
                self._client.send_event(event.to_nostr()), timeout=self.timeout
            )
        except TimeoutError as e:
            raise RelayTimeoutError(f"Publish timeout: {self.url}") from e
        except (NostrSdkError, OSError, ValueError) as e:
            raise RelayProtocolError(f"Publish failed: {self.url} ({e})") from e

        if self._relay_url in output.failed:
            reason = output.failed.get(self._relay_url) or "unknown"
            raise PublishingError(
                f"Relay rejected event {event.id}: {reason}", event_id=event.id
            )
        if self._relay_url not in output.success:
            raise PublishingError(f"No response from {self.url}", event_id=event.id)

        logger.debug("relay_event_published relay=%s event_id=%s", self.url, event.id)
        return event.id

    async def close(self) -> None:
        """Disconnect from the relay. Safe to call more than once."""
        await _shutdown(self._client)
