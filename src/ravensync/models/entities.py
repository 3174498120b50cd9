"""
Immutable entity records for the six synchronized event streams.

Every record is a ``@dataclass(frozen=True, slots=True)`` exposing its
identity through a ``key`` property, so the merge functions in
[ravensync.sync.merger][] stay generic over entity kind. Collections of
these records are stored as tuples and replaced wholesale on every merge;
records themselves are never mutated.

Identity fields are validated at construction time (non-empty, no null
bytes). Display fields are free-form and left as received.

See Also:
    [ravensync.sync.merger][]: Append-only and replace-by-identity merges
        over collections of these records.
    [ravensync.sync.contacts][]: Derives
        [Contact][ravensync.models.entities.Contact] records from
        [DirectMessage][ravensync.models.entities.DirectMessage] collections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ._validation import check_created_at, check_identity, check_pubkey, check_text


class Keyed(Protocol):
    """Structural type of any record that can be deduplicated by identity."""

    @property
    def key(self) -> str: ...


@dataclass(frozen=True, slots=True)
class Profile:
    """User profile metadata (kind 0), unique per ``creator``.

    A newer profile for the same ``creator`` replaces the older one; see
    [merge_replace()][ravensync.sync.merger.merge_replace].

    Attributes:
        creator: Author public key (hex).
        name: Display name.
        about: Free-form biography.
        picture: Avatar URL.
        nip05: NIP-05 internet identifier.
        created_at: Unix timestamp (seconds) of the metadata event.
    """

    creator: str
    name: str = ""
    about: str = ""
    picture: str = ""
    nip05: str = ""
    created_at: int = 0

    def __post_init__(self) -> None:
        check_identity(self.creator, "creator")
        check_created_at(self.created_at)

    @property
    def key(self) -> str:
        return self.creator


@dataclass(frozen=True, slots=True)
class Channel:
    """Public chat channel (kind 40), append-only by ``id``."""

    id: str
    name: str = ""
    about: str = ""
    picture: str = ""
    creator: str = ""
    created_at: int = 0

    def __post_init__(self) -> None:
        check_identity(self.id, "id")
        check_created_at(self.created_at)

    @property
    def key(self) -> str:
        return self.id


@dataclass(frozen=True, slots=True)
class ChannelUpdate:
    """Channel metadata update (kind 41), append-only by its own ``id``.

    ``id`` is the update event's identity, distinct from the ``channel_id``
    of the channel it modifies.
    """

    id: str
    channel_id: str = ""
    name: str = ""
    about: str = ""
    picture: str = ""
    creator: str = ""
    created_at: int = 0

    def __post_init__(self) -> None:
        check_identity(self.id, "id")
        check_text(self.channel_id, "channel_id")
        check_created_at(self.created_at)

    @property
    def key(self) -> str:
        return self.id


@dataclass(frozen=True, slots=True)
class EventDeletion:
    """Deletion request (kind 5) for ``event_id``; never retracted once recorded."""

    event_id: str
    id: str = ""
    creator: str = ""

    def __post_init__(self) -> None:
        check_identity(self.event_id, "event_id")

    @property
    def key(self) -> str:
        return self.event_id


@dataclass(frozen=True, slots=True)
class PublicMessage:
    """Channel message (kind 42) authored by ``creator``.

    Attributes:
        id: Event id.
        root: Id of the channel the message was posted to.
        content: Message text.
        creator: Author public key (hex).
        created_at: Unix timestamp (seconds).
        mentions: Public keys tagged in the message.
        reply_to: Id of the message this one replies to, if any.
    """

    id: str
    root: str = ""
    content: str = ""
    creator: str = ""
    created_at: int = 0
    mentions: tuple[str, ...] = ()
    reply_to: str | None = None

    def __post_init__(self) -> None:
        check_identity(self.id, "id")
        check_text(self.creator, "creator")
        check_created_at(self.created_at)

    @property
    def key(self) -> str:
        return self.id


@dataclass(frozen=True, slots=True)
class DirectMessage:
    """Encrypted direct message (kind 4) exchanged with ``peer``.

    ``peer`` is always the counterparty, regardless of which side sent
    the message; ``creator`` is the actual author. ``peer`` must be a
    64-char hex public key: every contact is encoded from it as an ``npub``.
    """

    id: str
    peer: str
    content: str = ""
    creator: str = ""
    created_at: int = 0
    decrypted: bool = False

    def __post_init__(self) -> None:
        check_identity(self.id, "id")
        check_pubkey(self.peer, "peer")
        check_created_at(self.created_at)

    @property
    def key(self) -> str:
        return self.id


@dataclass(frozen=True, slots=True)
class Contact:
    """Direct-message counterparty, derived from the DM collection.

    Attributes:
        pub: Public key (hex).
        npub: Bech32 ``npub1...`` encoding of ``pub``.
    """

    pub: str
    npub: str

    @property
    def key(self) -> str:
        return self.pub
