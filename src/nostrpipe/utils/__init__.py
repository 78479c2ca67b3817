"""Relay transport, key handling, and signing utilities.

The utils layer depends only on [nostrpipe.models][nostrpipe.models] and
[nostrpipe.exceptions][nostrpipe.exceptions]. It is the only place that
talks to ``nostr_sdk`` for network I/O, NIP-19 encoding, and signing.

Attributes:
    keys: Public key decoding, ``naddr`` encoding, private key loading from
        the environment, and event signing.
    protocol: Relay connection with one-shot query and publish.

Note:
    The utils layer has **zero** imports from ``nostrpipe.core`` or
    ``nostrpipe.stages``.

Examples:
    ```python
    from nostrpipe.utils.keys import KeysConfig, decode_public_key
    from nostrpipe.utils.protocol import connect_relay
    ```
"""
