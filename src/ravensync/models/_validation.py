"""Field checks shared by the entity dataclasses.

Private module, not part of the public API. Entities call these from
``__post_init__`` so that a record with a blank identity, a null byte or a
negative timestamp never reaches a collection, where it would poison the
per-key dedup.
"""

from __future__ import annotations

import re
from typing import Any


_PUBKEY_HEX = re.compile(r"[0-9a-f]{64}")


def _type_name(value: Any) -> str:
    return type(value).__name__


def check_text(value: Any, field: str) -> None:
    """Raise if *value* is not a ``str`` or embeds a null byte. Empty is fine."""
    if not isinstance(value, str):
        raise TypeError(f"{field} must be a str, got {_type_name(value)}")
    if "\x00" in value:
        raise ValueError(f"{field} contains null bytes")


def check_identity(value: Any, field: str) -> None:
    """Raise unless *value* can serve as a collection key: non-empty text."""
    check_text(value, field)
    if not value:
        raise ValueError(f"{field} must not be empty")


def check_created_at(value: Any, field: str = "created_at") -> None:
    """Raise unless *value* is a Unix timestamp in seconds (``bool`` rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{field} must be an int, got {_type_name(value)}")
    if value < 0:
        raise ValueError(f"{field} must be non-negative")


def check_pubkey(value: Any, field: str) -> None:
    """Raise unless *value* is a 64-char lowercase hex public key."""
    check_identity(value, field)
    if not _PUBKEY_HEX.fullmatch(value):
        raise ValueError(f"{field} must be a 64-char lowercase hex public key, got {value!r}")
