"""Sync orchestrator for ravensync.

Wires a live relay client to the entity collections in a
[SyncStore][ravensync.sync.store.SyncStore]:

1. [attach()][ravensync.sync.orchestrator.SyncOrchestrator.attach] tears
   down the previous client's handlers, creates a fresh
   [ReadinessGate][ravensync.sync.readiness.ReadinessGate] and registers one
   handler per [RavenEvent][ravensync.models.constants.RavenEvent] through a
   [ListenerRegistry][ravensync.sync.registry.ListenerRegistry].
2. ``READY`` opens the gate and arms the
   [PollScheduler][ravensync.sync.scheduler.PollScheduler].
3. Every entity batch is merged into the latest published collection
   ([merge_append()][ravensync.sync.merger.merge_append] or, for profiles,
   [merge_replace()][ravensync.sync.merger.merge_replace]) and the result is
   published back to the store.
4. New public and direct messages trigger ``load_profiles`` for the authors
   and peers of the newly appended messages only.
5. Every publish of the direct-message collection re-derives the contacts;
   every publish of the channel collection updates the scheduler's channel
   ids.

Handlers never block: each is a synchronous reducer over the store.

Examples:
    ```python
    from ravensync.core import setup_logging
    from ravensync.sync import SyncOrchestrator

    setup_logging("INFO")  # renders the key=value fields of every Logger
    sync = SyncOrchestrator.from_yaml("config/ravensync.yaml")

    async with sync:
        sync.attach(relay_client)
        await sync.run_forever()
    ```
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from types import TracebackType
from typing import Any, Self

from ravensync.core.exceptions import ConfigurationError
from ravensync.core.logger import Logger
from ravensync.core.metrics import (
    EVENTS_APPENDED,
    EVENTS_RECEIVED,
    PROFILE_REQUESTS,
    MetricsServer,
)
from ravensync.core.timer import TimerLoop
from ravensync.core.yaml import load_yaml
from ravensync.models.constants import EVENT_KINDS, RavenEvent
from ravensync.models.entities import (
    Channel,
    ChannelUpdate,
    DirectMessage,
    EventDeletion,
    Profile,
    PublicMessage,
)

from .configs import SyncConfig
from .contacts import derive_contacts
from .merger import merge_append, merge_replace
from .readiness import ReadinessGate
from .registry import ListenerRegistry
from .relay import Handler, RelayClient
from .scheduler import PollScheduler, now_ms
from .store import SyncStore


class SyncOrchestrator:
    """Top-level coordinator between one relay client and the store.

    Args:
        config: Scheduler, logging and metrics configuration.
        pubkey: Hex public key of the local user. Defaults to the public key
            of ``config.keys``.
        store: State container to read from and publish to. A new empty one
            is created when omitted.
        loop: Timer loop passed to the scheduler (defaults to the running
            asyncio loop).
        clock: Millisecond clock passed to the scheduler.

    Raises:
        ConfigurationError: If no public key is given and ``config.keys`` is
            not set.
    """

    def __init__(
        self,
        config: SyncConfig | None = None,
        *,
        pubkey: str | None = None,
        store: SyncStore | None = None,
        loop: TimerLoop | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._config = config or SyncConfig()
        if pubkey is None:
            if self._config.keys is None:
                raise ConfigurationError("local public key required: pass pubkey or set keys")
            pubkey = self._config.keys.pubkey
        self._pubkey = pubkey
        self._store = store or SyncStore()

        log_config = self._config.logging
        self._logger = Logger(
            "orchestrator",
            json_output=log_config.json_output,
            max_value_length=log_config.max_value_length,
        )
        self._metrics_enabled = self._config.metrics.enabled
        self._metrics_server = MetricsServer(self._config.metrics)
        self._scheduler = PollScheduler(
            self._config.scheduler,
            loop=loop,
            clock=clock,
            logger=Logger(
                "scheduler",
                json_output=log_config.json_output,
                max_value_length=log_config.max_value_length,
            ),
            metrics_enabled=self._metrics_enabled,
        )
        self._registry = ListenerRegistry(None)
        self._gate = ReadinessGate()
        self._shutdown_event = asyncio.Event()

        self._store.direct_messages.watch(self._on_direct_messages)
        self._store.channels.watch(self._on_channels)
        self._on_direct_messages(self._store.direct_messages.get())
        self._on_channels(self._store.channels.get())

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def store(self) -> SyncStore:
        return self._store

    @property
    def scheduler(self) -> PollScheduler:
        return self._scheduler

    @property
    def registry(self) -> ListenerRegistry:
        return self._registry

    @property
    def pubkey(self) -> str:
        return self._pubkey

    # -------------------------------------------------------------------------
    # Client Lifecycle
    # -------------------------------------------------------------------------

    def attach(self, client: RelayClient) -> None:
        """Make *client* the live relay client.

        Handlers of the previous client are removed before the new ones are
        registered. Attaching the client that is already live is a no-op.
        """
        if client is self._store.client.get():
            return
        self.detach()

        self._gate = ReadinessGate()
        self._registry = ListenerRegistry(client)
        self._store.client.publish(client)

        for kind, handler in self._handlers().items():
            self._registry.subscribe(kind, handler)
        self._scheduler.bind(client, self._gate)
        self._logger.info("client_attached", handlers=len(self._registry.active_kinds))

    def detach(self) -> None:
        """Unsubscribe all handlers, stop polling and clear the client slot.

        Safe to call when no client is attached.
        """
        had_client = self._registry.client is not None
        self._registry.close()
        self._registry = ListenerRegistry(None)
        self._gate = ReadinessGate()
        self._scheduler.bind(None, self._gate)

        if self._store.client.get() is not None:
            self._store.client.publish(None)
        if self._store.ready.get():
            self._store.ready.publish(False)
        if had_client:
            self._logger.info("client_detached")

    def close(self) -> None:
        """Detach the client and cancel any pending poll."""
        self.detach()
        self._scheduler.stop()

    def _handlers(self) -> dict[RavenEvent, Handler]:
        return {
            RavenEvent.READY: self._handle_ready,
            RavenEvent.PROFILE_UPDATE: self._handle_profile_update,
            RavenEvent.CHANNEL_CREATION: self._handle_channel_creation,
            RavenEvent.CHANNEL_UPDATE: self._handle_channel_update,
            RavenEvent.EVENT_DELETION: self._handle_event_deletion,
            RavenEvent.PUBLIC_MESSAGE: self._handle_public_message,
            RavenEvent.DIRECT_MESSAGE: self._handle_direct_message,
        }

    # -------------------------------------------------------------------------
    # Event Handlers
    # -------------------------------------------------------------------------

    def _handle_ready(self) -> None:
        self._logger.info("ready_received")
        if not self._gate.mark_ready():
            return
        self._store.ready.publish(True)
        self._scheduler.notify_ready()

    def _handle_profile_update(self, data: Sequence[Profile]) -> None:
        self._received(RavenEvent.PROFILE_UPDATE, data)
        if not data:
            return
        profiles = self._store.collection(RavenEvent.PROFILE_UPDATE)
        result = merge_replace(profiles.get(), data, own_key=self._pubkey)
        profiles.publish(result.items)
        # a creator repeated within one batch is stored once
        self._count_appended(RavenEvent.PROFILE_UPDATE, len({profile.key for profile in data}))
        if result.mine is not None:
            self._store.profile.publish(result.mine)

    def _handle_channel_creation(self, data: Sequence[Channel]) -> None:
        self._append(RavenEvent.CHANNEL_CREATION, data)

    def _handle_channel_update(self, data: Sequence[ChannelUpdate]) -> None:
        self._append(RavenEvent.CHANNEL_UPDATE, data)

    def _handle_event_deletion(self, data: Sequence[EventDeletion]) -> None:
        self._append(RavenEvent.EVENT_DELETION, data)

    def _handle_public_message(self, data: Sequence[PublicMessage]) -> None:
        new = self._append(RavenEvent.PUBLIC_MESSAGE, data)
        self._load_profiles(message.creator for message in new)

    def _handle_direct_message(self, data: Sequence[DirectMessage]) -> None:
        new = self._append(RavenEvent.DIRECT_MESSAGE, data)
        self._load_profiles(message.peer for message in new)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _received(self, kind: RavenEvent, data: Sequence[Any]) -> None:
        self._logger.info(
            f"{kind.value}_received", nostr_kind=int(EVENT_KINDS[kind]), count=len(data)
        )
        if self._metrics_enabled:
            EVENTS_RECEIVED.labels(kind=kind.value).inc(len(data))

    def _count_appended(self, kind: RavenEvent, count: int) -> None:
        if self._metrics_enabled and count:
            EVENTS_APPENDED.labels(kind=kind.value).inc(count)

    def _append(self, kind: RavenEvent, data: Sequence[Any]) -> tuple[Any, ...]:
        """Append-only merge of *data* into the collection of *kind*; returns the appended records."""
        self._received(kind, data)
        slot = self._store.collection(kind)
        current = slot.get()
        merged = merge_append(current, data)
        new = merged[len(current):]
        if new:
            slot.publish(merged)
            self._count_appended(kind, len(new))
        else:
            self._logger.debug(f"{kind.value}_duplicates_dropped", count=len(data))
        return new

    def _load_profiles(self, pubkeys: Iterable[str]) -> None:
        wanted = [pubkey for pubkey in dict.fromkeys(pubkeys) if pubkey]
        if not wanted:
            return
        client = self._store.client.get()
        if client is None:
            return
        client.load_profiles(wanted)
        self._logger.debug("profiles_requested", count=len(wanted))
        if self._metrics_enabled:
            PROFILE_REQUESTS.inc(len(wanted))

    def _on_direct_messages(self, messages: tuple[DirectMessage, ...]) -> None:
        self._store.contacts.publish(derive_contacts(messages))

    def _on_channels(self, channels: tuple[Channel, ...]) -> None:
        self._scheduler.set_channel_ids(channel.id for channel in channels)

    # -------------------------------------------------------------------------
    # Service Lifecycle
    # -------------------------------------------------------------------------

    def request_shutdown(self) -> None:
        """Request a graceful shutdown; wakes up [run_forever()][ravensync.sync.orchestrator.SyncOrchestrator.run_forever]."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        """Whether shutdown has not been requested yet."""
        return not self._shutdown_event.is_set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Wait for a shutdown request or *timeout* seconds.

        Returns ``True`` if shutdown was requested during the wait, ``False``
        if the timeout expired.
        """
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False

    async def run_forever(self) -> None:
        """Keep the event loop serving relay events until shutdown is requested."""
        self._logger.info("run_forever_started")
        await self._shutdown_event.wait()
        self._logger.info("run_forever_stopped")

    async def __aenter__(self) -> Self:
        """Mark the orchestrator as running and start the metrics endpoint."""
        self._shutdown_event.clear()
        await self._metrics_server.start()
        self._logger.info("sync_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        """Detach the client, stop polling and the metrics endpoint."""
        self._shutdown_event.set()
        self.close()
        await self._metrics_server.stop()
        self._logger.info("sync_stopped")

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, **kwargs: Any) -> Self:
        """Create an orchestrator from a YAML configuration file.

        Args:
            config_path: Path to the YAML file.
            **kwargs: Passed to the constructor (``pubkey``, ``store``, ...).

        Raises:
            ConfigurationError: If the file is missing or not valid YAML.
        """
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Create an orchestrator from a configuration dictionary."""
        return cls(config=SyncConfig(**data), **kwargs)
