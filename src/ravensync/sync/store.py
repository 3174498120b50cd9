"""
Explicit state container for the synchronized collections.

[SyncStore][ravensync.sync.store.SyncStore] owns one
[Slot][ravensync.sync.store.Slot] per piece of shared state: the six entity
collections, the derived contacts, the current user's profile, the relay
client instance and its readiness flag.

A slot is a single-writer cell: readers call ``get()``, the writer calls
``publish()`` with a complete new value, and watchers are notified
synchronously after every publish. Collection slots only accept tuples so a
published collection can never change under a reader.

Exceptions raised by watchers propagate out of ``publish()``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from ravensync.core.exceptions import StoreError
from ravensync.models.constants import RavenEvent
from ravensync.models.entities import (
    Channel,
    ChannelUpdate,
    Contact,
    DirectMessage,
    EventDeletion,
    Profile,
    PublicMessage,
)

from .relay import RelayClient


V = TypeVar("V")

Watcher = Callable[[Any], None]


class Slot(Generic[V]):
    """Named single-value cell with publish notifications."""

    def __init__(self, name: str, initial: V, *, collection: bool = False) -> None:
        self.name = name
        self._value = initial
        self._collection = collection
        self._watchers: list[Callable[[V], None]] = []

    def get(self) -> V:
        return self._value

    def publish(self, value: V) -> None:
        """Replace the value and notify watchers in registration order.

        Raises:
            StoreError: If this is a collection slot and *value* is not a tuple.
        """
        if self._collection and not isinstance(value, tuple):
            raise StoreError(f"{self.name} must be published as a tuple, got {type(value).__name__}")
        self._value = value
        for watcher in list(self._watchers):
            watcher(value)

    def watch(self, watcher: Callable[[V], None]) -> Callable[[], None]:
        """Register *watcher*; returns a callable that unregisters it."""
        self._watchers.append(watcher)

        def unwatch() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch

    def __repr__(self) -> str:
        return f"Slot(name={self.name!r}, value={self._value!r})"


class SyncStore:
    """All state read and written by the sync core."""

    def __init__(self) -> None:
        self.profiles: Slot[tuple[Profile, ...]] = Slot("profiles", (), collection=True)
        self.channels: Slot[tuple[Channel, ...]] = Slot("channels", (), collection=True)
        self.channel_updates: Slot[tuple[ChannelUpdate, ...]] = Slot(
            "channel_updates", (), collection=True
        )
        self.event_deletions: Slot[tuple[EventDeletion, ...]] = Slot(
            "event_deletions", (), collection=True
        )
        self.public_messages: Slot[tuple[PublicMessage, ...]] = Slot(
            "public_messages", (), collection=True
        )
        self.direct_messages: Slot[tuple[DirectMessage, ...]] = Slot(
            "direct_messages", (), collection=True
        )
        self.contacts: Slot[tuple[Contact, ...]] = Slot("contacts", (), collection=True)
        self.profile: Slot[Profile | None] = Slot("profile", None)
        self.client: Slot[RelayClient | None] = Slot("client", None)
        self.ready: Slot[bool] = Slot("ready", False)

    def collection(self, kind: RavenEvent) -> Slot[Any]:
        """Return the collection slot fed by events of *kind*.

        Raises:
            KeyError: For ``RavenEvent.READY``, which carries no collection.
        """
        return {
            RavenEvent.PROFILE_UPDATE: self.profiles,
            RavenEvent.CHANNEL_CREATION: self.channels,
            RavenEvent.CHANNEL_UPDATE: self.channel_updates,
            RavenEvent.EVENT_DELETION: self.event_deletions,
            RavenEvent.PUBLIC_MESSAGE: self.public_messages,
            RavenEvent.DIRECT_MESSAGE: self.direct_messages,
        }[kind]
