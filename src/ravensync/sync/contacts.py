"""Direct-message contact derivation."""

from __future__ import annotations

from collections.abc import Iterable

from ravensync.models.entities import Contact, DirectMessage
from ravensync.utils.keys import encode_npub


def derive_contacts(messages: Iterable[DirectMessage]) -> tuple[Contact, ...]:
    """Project the distinct ``peer`` values of *messages* into contacts.

    Contacts come out in the order their peer first appears. The result is
    always recomputed from the whole collection, never patched.
    """
    peers = dict.fromkeys(message.peer for message in messages)
    return tuple(Contact(pub=peer, npub=encode_npub(peer)) for peer in peers)
