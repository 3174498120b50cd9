"""Nostr key helpers.

Attributes:
    keys: Key pair loading from environment variables (nsec1 bech32 or hex)
        with Pydantic validation, and bech32 ``npub`` encoding of public keys.

Note:
    The utils layer has **zero** imports from ``ravensync.core`` or
    ``ravensync.sync``.
"""
