"""
Idempotent listener registration against a relay client.

[ListenerRegistry][ravensync.sync.registry.ListenerRegistry] keeps at most
one active handler per [RavenEvent][ravensync.models.constants.RavenEvent].
Subscribing a kind always closes the previous subscription for that kind
first, so repeated subscribes replace handlers instead of accumulating them
and an outdated closure can never receive events.

Each registration is represented by a
[Subscription][ravensync.sync.registry.Subscription] token that remembers the
client it was made against. Teardown therefore reaches the right client even
after the store's client slot has been cleared or reassigned.
"""

from __future__ import annotations

from ravensync.models.constants import RavenEvent

from .relay import Handler, RelayClient


class Subscription:
    """Token for one handler registered on one relay client.

    ``close()`` removes the handler and is idempotent.
    """

    __slots__ = ("_client", "handler", "kind")

    def __init__(self, client: RelayClient, kind: RavenEvent, handler: Handler) -> None:
        self._client: RelayClient | None = client
        self.kind = kind
        self.handler = handler

    @property
    def active(self) -> bool:
        return self._client is not None

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.remove_listener(self.kind, self.handler)

    def __repr__(self) -> str:
        return f"Subscription(kind={self.kind.value!r}, active={self.active})"


class ListenerRegistry:
    """Subscribe/unsubscribe wrapper bound to one relay client (or none).

    A registry bound to ``None`` accepts every call and does nothing, which
    covers callbacks racing with teardown.
    """

    def __init__(self, client: RelayClient | None) -> None:
        self._client = client
        self._subscriptions: dict[RavenEvent, Subscription] = {}

    @property
    def client(self) -> RelayClient | None:
        return self._client

    @property
    def active_kinds(self) -> frozenset[RavenEvent]:
        return frozenset(self._subscriptions)

    def handler(self, kind: RavenEvent) -> Handler | None:
        """Return the handler currently registered for *kind*, if any."""
        subscription = self._subscriptions.get(kind)
        return subscription.handler if subscription is not None else None

    def subscribe(self, kind: RavenEvent, handler: Handler) -> Subscription | None:
        """Register *handler* for *kind*, replacing any previous handler.

        Returns:
            The new [Subscription][ravensync.sync.registry.Subscription], or
            ``None`` when the registry has no client.
        """
        self.unsubscribe(kind)
        if self._client is None:
            return None
        # remove first so a handler the client already holds is not doubled
        self._client.remove_listener(kind, handler)
        self._client.add_listener(kind, handler)
        subscription = Subscription(self._client, kind, handler)
        self._subscriptions[kind] = subscription
        return subscription

    def unsubscribe(self, kind: RavenEvent, handler: Handler | None = None) -> bool:
        """Remove the handler for *kind*. Returns whether one was removed.

        When *handler* is given, nothing happens unless it is the handler
        currently registered for *kind*, so a caller holding an outdated
        handler cannot tear down its replacement.
        """
        subscription = self._subscriptions.get(kind)
        if subscription is None:
            return False
        if handler is not None and subscription.handler is not handler:
            return False
        del self._subscriptions[kind]
        subscription.close()
        return True

    def close(self) -> None:
        """Unsubscribe every registered kind."""
        for kind in list(self._subscriptions):
            self.unsubscribe(kind)
