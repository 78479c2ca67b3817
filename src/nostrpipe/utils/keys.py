"""Nostr key, identifier, and signing utilities.

Thin wrappers around ``nostr_sdk`` that translate SDK failures into the
nostrpipe error taxonomy:

* Public keys (``npub1...`` or hex) decode to 64-char hex, raising
  [EncodingError][nostrpipe.exceptions.EncodingError].
* Private keys (``nsec1...`` or hex) parse into ``nostr_sdk.Keys``,
  raising [SigningError][nostrpipe.exceptions.SigningError].
* ``(author, kind, identifier)`` coordinates encode to NIP-19 ``naddr1...``
  addressable identifiers.
* New events are built and Schnorr-signed with
  [sign_event()][nostrpipe.utils.keys.sign_event].

Warning:
    Private keys must **never** be stored in configuration files, source
    code, or logged. The CLI reads the key from an environment variable once
    at startup and passes the resulting ``Keys`` to the
    [Publisher][nostrpipe.stages.publish.Publisher] explicitly.

Examples:
    ```python
    decode_public_key("npub1...")          # "a1b2..." (64 hex chars)
    encode_address(pubkey_hex, 30023, "Intro")  # "naddr1..."
    keys = load_keys_from_env("PRIVATE_KEY")
    ```
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from typing import Any

from nostr_sdk import (
    Coordinate,
    EventBuilder,
    Keys,
    Kind,
    Nip19Coordinate,
    NostrSdkError,
    PublicKey,
    Timestamp,
)
from nostr_sdk import Tag as NostrTag
from pydantic import BaseModel, Field, model_validator

from nostrpipe.exceptions import ConfigurationError, EncodingError, SigningError
from nostrpipe.models import EVENT_KIND_MAX, Event, Tag


ENV_PRIVATE_KEY = "PRIVATE_KEY"  # pragma: allowlist secret  # Default env var name


# =============================================================================
# Public keys and addressable identifiers
# =============================================================================


def decode_public_key(value: str) -> str:
    """Decode an ``npub1...`` or hex public key into 64-char lowercase hex.

    Raises:
        EncodingError: If *value* is not a valid public key.
    """
    if not isinstance(value, str) or not value.strip():
        raise EncodingError(f"public key must be a non-empty string, got {value!r}")
    try:
        return PublicKey.parse(value.strip()).to_hex()
    except (NostrSdkError, ValueError) as e:
        raise EncodingError(f"invalid public key {value!r}: {e}") from e


def encode_address(pubkey: str, kind: int, identifier: str) -> str:
    """Encode an ``(author, kind, identifier)`` coordinate as a NIP-19 ``naddr``.

    Args:
        pubkey: Author public key (hex or ``npub1...``).
        kind: Event kind.
        identifier: Identifier component; may be empty.

    Returns:
        Bech32 ``naddr1...`` string without relay hints.

    Raises:
        EncodingError: If any component cannot be encoded.
    """
    if isinstance(kind, bool) or not isinstance(kind, int) or not 0 <= kind <= EVENT_KIND_MAX:
        raise EncodingError(f"kind must be between 0 and {EVENT_KIND_MAX}, got {kind!r}")
    try:
        coordinate = Coordinate(Kind(kind), PublicKey.parse(pubkey), identifier)
        return Nip19Coordinate(coordinate, []).to_bech32()
    except (NostrSdkError, ValueError) as e:
        raise EncodingError(f"cannot encode address for {pubkey!r}: {e}") from e


# =============================================================================
# Private keys
# =============================================================================


def parse_keys(value: str) -> Keys:
    """Parse an ``nsec1...`` or 64-char hex private key.

    Raises:
        SigningError: If the key material is invalid. The key itself is
            never included in the message.
    """
    if not isinstance(value, str):
        raise SigningError(f"private key must be a string, got {type(value).__name__}")
    try:
        return Keys.parse(value.strip())
    except (NostrSdkError, ValueError) as e:
        raise SigningError("invalid private key material") from e


def load_keys_from_env(env_var: str) -> Keys:
    """Load Nostr keys from an environment variable.

    Raises:
        ConfigurationError: If the environment variable is not set or empty.
        SigningError: If the value is not a valid private key.
    """
    value = os.getenv(env_var)

    if not value:
        raise ConfigurationError(
            f"{env_var} environment variable is required. Generate one with: openssl rand -hex 32"
        )

    return parse_keys(value)


class KeysConfig(BaseModel):
    """Pydantic model that auto-loads Nostr keys from an environment variable.

    The ``keys`` field is populated during validation from the variable
    named by ``keys_env``, so a missing key fails when the configuration is
    built, before any pipeline stage runs.

    Warning:
        The ``keys`` field contains a live private key. Do not serialize
        this model to logs, JSON, or any persistent storage.
    """

    model_config = {"arbitrary_types_allowed": True}

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable name for private key",
    )
    keys: Keys = Field(description="Keys loaded from keys_env (required)")

    @model_validator(mode="before")
    @classmethod
    def _load_keys_from_env(cls, data: Any) -> Any:
        """Auto-populate the ``keys`` field from the environment variable."""
        if isinstance(data, dict) and "keys" not in data:
            env_var = data.get("keys_env", ENV_PRIVATE_KEY)
            data = {**data, "keys": load_keys_from_env(env_var)}
        return data


# =============================================================================
# Signing
# =============================================================================


def sign_event(
    keys: Keys,
    *,
    kind: int,
    content: str,
    tags: Iterable[Tag] = (),
    created_at: int,
) -> Event:
    """Build and sign a new event.

    Args:
        keys: Signing keys; the event author is their public key.
        kind: Event kind.
        content: Event content.
        tags: Tags copied onto the new event. Empty tags are dropped.
        created_at: Unix timestamp assigned to the new event.

    Returns:
        The signed [Event][nostrpipe.models.Event].

    Raises:
        SigningError: If *keys* is not a ``nostr_sdk.Keys`` or the SDK fails
            to build or sign the event.
    """
    if not isinstance(keys, Keys):
        raise SigningError(f"keys must be nostr_sdk.Keys, got {type(keys).__name__}")
    try:
        builder = (
            EventBuilder(Kind(kind), content)
            .tags([NostrTag.parse(tag.to_list()) for tag in tags if tag.values])
            .custom_created_at(Timestamp.from_secs(created_at))
        )
        signed = builder.sign_with_keys(keys)
    except (NostrSdkError, OverflowError, ValueError) as e:
        raise SigningError(f"failed to sign kind {kind} event: {e}") from e
    return Event.from_nostr(signed)
