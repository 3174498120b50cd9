"""Nostr key management utilities for ravensync.

Loads the local user's key pair from an environment variable and encodes
hex public keys to their bech32 ``npub`` form for display.

The sync core only needs the local *public* key (to single out the user's
own profile in profile batches), but keys are loaded as a full
``nostr_sdk.Keys`` pair because the relay client that ravensync drives needs
the same pair for signing.

Warning:
    Private keys must **never** be stored in configuration files, source code,
    or logged to any output. Always use environment variables or a secure
    secret management system.

Examples:
    ```python
    import os

    os.environ["PRIVATE_KEY"] = "nsec1..."  # pragma: allowlist secret
    keys = load_keys_from_env("PRIVATE_KEY")
    encode_npub(keys.public_key().to_hex())  # 'npub1...'
    ```
"""

from __future__ import annotations

import os
from typing import Any

from nostr_sdk import Keys, PublicKey
from pydantic import BaseModel, Field, model_validator


ENV_PRIVATE_KEY = "PRIVATE_KEY"  # pragma: allowlist secret


def load_keys_from_env(env_var: str) -> Keys:
    """Load the local user's key pair from *env_var*.

    Args:
        env_var: Name of the environment variable containing the private key
            (nsec1 bech32 or 64-char hex).

    Returns:
        A ``nostr_sdk.Keys`` instance.

    Raises:
        ValueError: If the environment variable is not set or is empty.
        nostr_sdk.NostrError: If the key value is malformed or invalid.
    """
    value = os.getenv(env_var)

    if not value:
        raise ValueError(
            f"{env_var} is not set: ravensync needs the local key to recognise its own profile"
        )

    return Keys.parse(value)


def encode_npub(pubkey: str) -> str:
    """Encode a hex public key as a bech32 ``npub1...`` string (NIP-19).

    Raises:
        nostr_sdk.NostrError: If *pubkey* is not a valid public key.
    """
    return PublicKey.parse(pubkey).to_bech32()


class KeysConfig(BaseModel):
    """Local identity for [SyncOrchestrator][ravensync.sync.orchestrator.SyncOrchestrator].

    Attributes:
        keys_env: Environment variable name for the private key.
        keys: Loaded ``nostr_sdk.Keys`` instance (private + derived public key).

    Warning:
        The ``keys`` field contains a live private key. Do not serialize
        this model to logs or persistent storage.
    """

    model_config = {"arbitrary_types_allowed": True}

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable holding the nsec or hex private key",
    )
    keys: Keys = Field(description="Keys loaded from keys_env (required)")

    @model_validator(mode="before")
    @classmethod
    def _load_keys_from_env(cls, data: Any) -> Any:
        """Fill ``keys`` from ``keys_env`` unless given explicitly."""
        if isinstance(data, dict) and "keys" not in data:
            env_var = data.get("keys_env", ENV_PRIVATE_KEY)
            data = {**data, "keys": load_keys_from_env(env_var)}
        return data

    @property
    def pubkey(self) -> str:
        """Hex-encoded public key of the loaded pair."""
        return self.keys.public_key().to_hex()
