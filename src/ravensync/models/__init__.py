"""Pure frozen dataclasses with zero I/O for the synchronized entity streams.

The models layer is the foundation of the package. It has **no dependencies**
on any other ravensync package -- only the Python standard library. Every
entity uses ``@dataclass(frozen=True, slots=True)`` and exposes its identity
through a ``key`` property.

Attributes:
    Profile: User metadata, unique per ``creator`` (last write wins).
    Channel: Public channel, append-only by ``id``.
    ChannelUpdate: Channel metadata update, append-only by ``id``.
    EventDeletion: Deletion request, append-only by ``event_id``.
    PublicMessage: Channel message, append-only by ``id``.
    DirectMessage: Encrypted direct message, append-only by ``id``.
    Contact: Derived ``{pub, npub}`` pair for a direct-message peer.
    RavenEvent: The seven relay-client event kinds.
    EventKind: Nostr kind numbers behind the entity streams.
"""

from .constants import EVENT_KINDS, EventKind, RavenEvent
from .entities import (
    Channel,
    ChannelUpdate,
    Contact,
    DirectMessage,
    EventDeletion,
    Keyed,
    Profile,
    PublicMessage,
)


__all__ = [
    "EVENT_KINDS",
    "Channel",
    "ChannelUpdate",
    "Contact",
    "DirectMessage",
    "EventDeletion",
    "EventKind",
    "Keyed",
    "Profile",
    "PublicMessage",
    "RavenEvent",
]
