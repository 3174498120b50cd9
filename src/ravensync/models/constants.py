"""Shared constants for the models layer.

Defines the closed set of relay-client event kinds and the Nostr event kind
numbers behind them. Placing them here avoids circular dependencies between
the models and sync layers.

See Also:
    [ravensync.sync.registry][]: Keys listener subscriptions by
        [RavenEvent][ravensync.models.constants.RavenEvent].
    [ravensync.models.entities][]: Entity records delivered as payloads of
        these events.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class RavenEvent(StrEnum):
    """Event kinds emitted by the relay client's event-emission interface.

    Each member except ``READY`` carries a sequence of the corresponding
    entity as payload. ``READY`` carries no payload and fires once per
    relay-client instance when its initial handshake completes.

    Attributes:
        READY: Initial handshake finished; polling may start.
        PROFILE_UPDATE: Batch of [Profile][ravensync.models.entities.Profile].
        CHANNEL_CREATION: Batch of [Channel][ravensync.models.entities.Channel].
        CHANNEL_UPDATE: Batch of
            [ChannelUpdate][ravensync.models.entities.ChannelUpdate].
        EVENT_DELETION: Batch of
            [EventDeletion][ravensync.models.entities.EventDeletion].
        PUBLIC_MESSAGE: Batch of
            [PublicMessage][ravensync.models.entities.PublicMessage].
        DIRECT_MESSAGE: Batch of
            [DirectMessage][ravensync.models.entities.DirectMessage].

    See Also:
        [ListenerRegistry][ravensync.sync.registry.ListenerRegistry]: Holds
            at most one active handler per member.
    """

    READY = "ready"
    PROFILE_UPDATE = "profile_update"
    CHANNEL_CREATION = "channel_creation"
    CHANNEL_UPDATE = "channel_update"
    EVENT_DELETION = "event_deletion"
    PUBLIC_MESSAGE = "public_message"
    DIRECT_MESSAGE = "direct_message"


class EventKind(IntEnum):
    """Nostr event kinds that back the synchronized entity streams.

    Attributes:
        SET_METADATA: Kind 0 -- user profile metadata (NIP-01).
        ENCRYPTED_DIRECT_MESSAGE: Kind 4 -- encrypted direct message (NIP-04).
        EVENT_DELETION: Kind 5 -- deletion request (NIP-09).
        CHANNEL_CREATION: Kind 40 -- public chat channel creation (NIP-28).
        CHANNEL_METADATA: Kind 41 -- channel metadata update (NIP-28).
        CHANNEL_MESSAGE: Kind 42 -- public chat message (NIP-28).
    """

    SET_METADATA = 0
    ENCRYPTED_DIRECT_MESSAGE = 4
    EVENT_DELETION = 5
    CHANNEL_CREATION = 40
    CHANNEL_METADATA = 41
    CHANNEL_MESSAGE = 42


EVENT_KINDS: dict[RavenEvent, EventKind] = {
    RavenEvent.PROFILE_UPDATE: EventKind.SET_METADATA,
    RavenEvent.CHANNEL_CREATION: EventKind.CHANNEL_CREATION,
    RavenEvent.CHANNEL_UPDATE: EventKind.CHANNEL_METADATA,
    RavenEvent.EVENT_DELETION: EventKind.EVENT_DELETION,
    RavenEvent.PUBLIC_MESSAGE: EventKind.CHANNEL_MESSAGE,
    RavenEvent.DIRECT_MESSAGE: EventKind.ENCRYPTED_DIRECT_MESSAGE,
}
