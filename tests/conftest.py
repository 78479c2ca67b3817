"""
Pytest configuration and shared fixtures for nostrpipe tests.

Provides:
- Signing keys derived from a fixed test secret
- An event factory producing valid events with chosen tags
- A mock relay connection recording queries and publishes
"""

import io
import logging
from collections.abc import Callable, Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest
from nostr_sdk import Keys

from nostrpipe.models import Event, EventCollection, EventKind, Tag


# Valid secp256k1 test key (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)

RELAY_URL = "wss://relay.example.com"


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Keys
# ============================================================================


@pytest.fixture
def keys() -> Keys:
    """Signing keys parsed from the fixed test secret."""
    return Keys.parse(VALID_HEX_KEY)


@pytest.fixture
def pubkey(keys: Keys) -> str:
    """Hex public key matching ``keys``."""
    return keys.public_key().to_hex()


@pytest.fixture
def npub(keys: Keys) -> str:
    """Bech32 public key matching ``keys``."""
    return keys.public_key().to_bech32()


# ============================================================================
# Events
# ============================================================================


EventFactory = Callable[..., Event]


@pytest.fixture
def make_event(pubkey: str) -> EventFactory:
    """Factory building a valid event; ``index`` makes the ID unique."""

    def _make(
        index: int = 0,
        *,
        tags: Sequence[Sequence[str]] = (),
        kind: int = EventKind.LONG_FORM_ARTICLE,
        content: str = "",
        author: str | None = None,
        created_at: int = 1_700_000_000,
    ) -> Event:
        return Event(
            id=f"{index + 1:064x}",
            pubkey=author or pubkey,
            created_at=created_at + index,
            kind=int(kind),
            tags=tuple(Tag.parse(list(tag)) for tag in tags),
            content=content,
            sig="f" * 128,
        )

    return _make


@pytest.fixture
def topic_events(make_event: EventFactory) -> EventCollection:
    """Three events tagged go, rust, go."""
    return EventCollection(
        [
            make_event(0, tags=[["t", "go"]]),
            make_event(1, tags=[["t", "rust"]]),
            make_event(2, tags=[["t", "go"]]),
        ]
    )


# ============================================================================
# Relay Connection
# ============================================================================


def _echo_id(event: Event) -> str:
    return event.id


@pytest.fixture
def mock_connection() -> MagicMock:
    """Mock RelayConnection: ``query`` returns no events, ``publish`` accepts."""
    conn = MagicMock()
    conn.url = RELAY_URL
    conn.timeout = 10.0
    conn.query = AsyncMock(return_value=[])
    conn.publish = AsyncMock(side_effect=_echo_id)
    conn.close = AsyncMock()
    return conn


@pytest.fixture
def output() -> io.BytesIO:
    """In-memory output sink."""
    return io.BytesIO()

