"""
Relay-client capability consumed by the sync core.

The relay client (connection management, signing, fetching) lives outside
this package. ravensync only needs four operations from it, captured by the
[RelayClient][ravensync.sync.relay.RelayClient] protocol:

* ``listen(channel_ids, since)`` -- pull events newer than ``since``
  (Unix seconds) for the given channels plus the user's own streams.
* ``load_profiles(pubkeys)`` -- request profile metadata; results arrive
  later as a ``PROFILE_UPDATE`` event.
* ``add_listener(kind, handler)`` / ``remove_listener(kind, handler)`` --
  the event-emission interface, keyed by
  [RavenEvent][ravensync.models.constants.RavenEvent].

[RelayEmitter][ravensync.sync.relay.RelayEmitter] implements the emission
half so concrete clients only need to provide ``listen`` and
``load_profiles`` and call ``emit()`` when batches arrive.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from ravensync.models.constants import RavenEvent


Handler = Callable[..., None]


@runtime_checkable
class RelayClient(Protocol):
    """Structural type of the relay client driven by the orchestrator."""

    def listen(self, channel_ids: Sequence[str], since: int) -> None: ...

    def load_profiles(self, pubkeys: Sequence[str]) -> None: ...

    def add_listener(self, kind: RavenEvent, handler: Handler) -> None: ...

    def remove_listener(self, kind: RavenEvent, handler: Handler) -> None: ...


class RelayEmitter:
    """Per-kind listener lists with Node-style add/remove/emit semantics.

    Adding a handler that is already registered for a kind is a no-op, and
    removing one that is not registered is silently ignored. ``emit`` iterates
    over a snapshot, so handlers may subscribe or unsubscribe while an event
    is being delivered.
    """

    def __init__(self) -> None:
        self._listeners: dict[RavenEvent, list[Handler]] = {}

    def add_listener(self, kind: RavenEvent, handler: Handler) -> None:
        handlers = self._listeners.setdefault(kind, [])
        if handler not in handlers:
            handlers.append(handler)

    def remove_listener(self, kind: RavenEvent, handler: Handler) -> None:
        handlers = self._listeners.get(kind)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listener_count(self, kind: RavenEvent) -> int:
        return len(self._listeners.get(kind, ()))

    def emit(self, kind: RavenEvent, *args: Any) -> bool:
        """Deliver *args* to every handler of *kind*. Returns whether any ran."""
        handlers = list(self._listeners.get(kind, ()))
        for handler in handlers:
            handler(*args)
        return bool(handlers)
