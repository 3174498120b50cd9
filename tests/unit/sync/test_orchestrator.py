"""
Unit tests for sync.orchestrator module.

Tests:
- attach() / detach() handler lifecycle and client replacement
- READY gating of the poll scheduler
- Per-kind merge handlers and store publishing
- Selective load_profiles for new messages only
- Contact derivation from the direct-message collection
- Metrics recording when enabled
- Async context manager, shutdown and factory methods
"""

import asyncio
import logging
from pathlib import Path

import pytest
from prometheus_client import REGISTRY

from ravensync.core.exceptions import ConfigurationError
from ravensync.models import (
    Channel,
    ChannelUpdate,
    Contact,
    DirectMessage,
    EventDeletion,
    Profile,
    PublicMessage,
    RavenEvent,
)
from ravensync.sync import SchedulerConfig, SyncConfig, SyncOrchestrator, SyncStore
from tests.conftest import (
    NIP19_HEX,
    NIP19_HEX_2,
    NIP19_NPUB,
    NIP19_NPUB_2,
    START_MS,
    VALID_HEX_KEY,
    FakeRelay,
)


A = "a" * 64
B = "b" * 64


# ============================================================================
# Client Lifecycle
# ============================================================================


class TestAttach:
    def test_registers_seven_handlers(self, orchestrator, relay, store):
        orchestrator.attach(relay)

        for kind in RavenEvent:
            assert relay.listener_count(kind) == 1
        assert store.client.get() is relay
        assert store.ready.get() is False

    def test_attach_same_client_is_noop(self, orchestrator, relay):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.READY)

        orchestrator.attach(relay)

        assert relay.total_listeners() == 7
        assert orchestrator.store.ready.get() is True

    def test_replacing_client_tears_down_previous(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.READY)

        other = FakeRelay()
        orchestrator.attach(other)

        assert relay.total_listeners() == 0
        assert other.total_listeners() == 7
        assert store.client.get() is other
        assert store.ready.get() is False

    def test_old_client_events_ignored(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        orchestrator.attach(FakeRelay())

        relay.deliver(RavenEvent.CHANNEL_CREATION, [Channel(id="c1")])

        assert store.channels.get() == ()

    def test_detach(self, orchestrator, relay, store, loop):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.READY)

        orchestrator.detach()

        assert relay.total_listeners() == 0
        assert store.client.get() is None
        assert store.ready.get() is False
        assert loop.pending == []

    def test_detach_without_client(self, orchestrator):
        orchestrator.detach()
        orchestrator.close()

    def test_teardown_survives_cleared_client_slot(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        store.client.publish(None)

        orchestrator.detach()

        assert relay.total_listeners() == 0


# ============================================================================
# Readiness and Polling
# ============================================================================


class TestPolling:
    def test_no_polling_before_ready(self, orchestrator, relay, loop):
        orchestrator.attach(relay)
        loop.advance(30.0)
        relay.listen.assert_not_called()

    def test_ready_arms_scheduler(self, orchestrator, relay, store, loop):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.READY)

        assert store.ready.get() is True
        loop.advance(0.5)
        relay.listen.assert_called_once_with([], (START_MS + 500) // 1000)

        loop.advance(10.0)
        assert relay.listen.call_count == 2
        assert relay.listen.call_args.args[1] == (START_MS + 500) // 1000

    def test_repeated_ready_is_harmless(self, orchestrator, relay, loop):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.READY)
        loop.advance(0.3)
        relay.deliver(RavenEvent.READY)

        loop.advance(0.2)
        relay.listen.assert_called_once()

    def test_new_channels_reschedule_with_full_list(self, orchestrator, relay, loop):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.CHANNEL_CREATION, [Channel(id="c1")])
        relay.deliver(RavenEvent.READY)
        loop.advance(0.3)

        relay.deliver(RavenEvent.CHANNEL_CREATION, [Channel(id="c2")])
        loop.advance(0.3)
        relay.listen.assert_not_called()

        loop.advance(0.2)
        relay.listen.assert_called_once()
        assert relay.listen.call_args.args[0] == ["c1", "c2"]

    def test_preloaded_channels_are_polled(self, sync_config, pubkey, loop, clock, relay):
        store = SyncStore()
        store.channels.publish((Channel(id="c9"),))
        orchestrator = SyncOrchestrator(
            sync_config, pubkey=pubkey, store=store, loop=loop, clock=clock
        )
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.READY)

        loop.advance(0.5)

        assert relay.listen.call_args.args[0] == ["c9"]


# ============================================================================
# Entity Handlers
# ============================================================================


class TestProfileHandler:
    def test_replace_by_creator(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.PROFILE_UPDATE, [Profile(creator=A, name="x")])
        relay.deliver(RavenEvent.PROFILE_UPDATE, [Profile(creator=A, name="y")])

        assert store.profiles.get() == (Profile(creator=A, name="y"),)

    def test_own_profile_published(self, orchestrator, relay, store, pubkey):
        orchestrator.attach(relay)
        mine = Profile(creator=pubkey, name="me")

        relay.deliver(RavenEvent.PROFILE_UPDATE, [Profile(creator=A), mine])

        assert store.profile.get() == mine

    def test_other_profiles_leave_own_untouched(self, orchestrator, relay, store, pubkey):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.PROFILE_UPDATE, [Profile(creator=pubkey, name="me")])
        relay.deliver(RavenEvent.PROFILE_UPDATE, [Profile(creator=A, name="other")])

        assert store.profile.get() == Profile(creator=pubkey, name="me")

    def test_empty_batch(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.PROFILE_UPDATE, [])
        assert store.profiles.get() == ()


class TestAppendHandlers:
    @pytest.mark.parametrize(
        ("kind", "slot_name", "first", "duplicate", "fresh"),
        [
            (
                RavenEvent.CHANNEL_CREATION,
                "channels",
                Channel(id="c1", name="one"),
                Channel(id="c1", name="renamed"),
                Channel(id="c2"),
            ),
            (
                RavenEvent.CHANNEL_UPDATE,
                "channel_updates",
                ChannelUpdate(id="u1", channel_id="c1", name="a"),
                ChannelUpdate(id="u1", channel_id="c1", name="b"),
                ChannelUpdate(id="u2", channel_id="c1"),
            ),
            (
                RavenEvent.EVENT_DELETION,
                "event_deletions",
                EventDeletion(event_id="e1", id="d1"),
                EventDeletion(event_id="e1", id="d2"),
                EventDeletion(event_id="e2", id="d3"),
            ),
        ],
    )
    def test_first_write_wins(self, orchestrator, relay, store, kind, slot_name, first, duplicate, fresh):
        orchestrator.attach(relay)
        relay.deliver(kind, [first])
        relay.deliver(kind, [duplicate, fresh])

        assert getattr(store, slot_name).get() == (first, fresh)

    def test_received_log_carries_nostr_kind(self, orchestrator, relay, caplog):
        orchestrator.attach(relay)
        with caplog.at_level(logging.INFO, logger="orchestrator"):
            relay.deliver(RavenEvent.CHANNEL_UPDATE, [ChannelUpdate(id="u1")])

        record = next(r for r in caplog.records if r.getMessage() == "channel_update_received")
        assert record.structured_kv == {"nostr_kind": 41, "count": 1}

    def test_duplicate_only_batch_does_not_publish(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.CHANNEL_CREATION, [Channel(id="c1")])
        before = store.channels.get()

        relay.deliver(RavenEvent.CHANNEL_CREATION, [Channel(id="c1")])

        assert store.channels.get() is before

    def test_merges_from_latest_published_value(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        store.event_deletions.publish((EventDeletion(event_id="external"),))

        relay.deliver(RavenEvent.EVENT_DELETION, [EventDeletion(event_id="e1")])

        assert [d.event_id for d in store.event_deletions.get()] == ["external", "e1"]


class TestMessageHandlers:
    def test_public_messages_load_new_authors_only(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.PUBLIC_MESSAGE, [PublicMessage(id="m1", creator=A)])
        relay.load_profiles.reset_mock()

        relay.deliver(
            RavenEvent.PUBLIC_MESSAGE,
            [PublicMessage(id="m1", creator=A), PublicMessage(id="m2", creator=B)],
        )

        relay.load_profiles.assert_called_once_with([B])
        assert [m.id for m in store.public_messages.get()] == ["m1", "m2"]

    def test_public_messages_dedupe_authors(self, orchestrator, relay):
        orchestrator.attach(relay)
        relay.deliver(
            RavenEvent.PUBLIC_MESSAGE,
            [
                PublicMessage(id="m1", creator=A),
                PublicMessage(id="m2", creator=B),
                PublicMessage(id="m3", creator=A),
            ],
        )
        relay.load_profiles.assert_called_once_with([A, B])

    def test_no_load_when_nothing_new(self, orchestrator, relay):
        orchestrator.attach(relay)
        relay.deliver(RavenEvent.PUBLIC_MESSAGE, [PublicMessage(id="m1", creator=A)])
        relay.load_profiles.reset_mock()

        relay.deliver(RavenEvent.PUBLIC_MESSAGE, [PublicMessage(id="m1", creator=A)])

        relay.load_profiles.assert_not_called()

    def test_direct_messages_load_peers(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        relay.deliver(
            RavenEvent.DIRECT_MESSAGE,
            [DirectMessage(id="1", peer=NIP19_HEX), DirectMessage(id="2", peer=NIP19_HEX_2)],
        )

        relay.load_profiles.assert_called_once_with([NIP19_HEX, NIP19_HEX_2])
        assert len(store.direct_messages.get()) == 2

    def test_contacts_follow_direct_messages(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        relay.deliver(
            RavenEvent.DIRECT_MESSAGE,
            [
                DirectMessage(id="1", peer=NIP19_HEX),
                DirectMessage(id="2", peer=NIP19_HEX_2),
                DirectMessage(id="3", peer=NIP19_HEX),
            ],
        )

        assert store.contacts.get() == (
            Contact(pub=NIP19_HEX, npub=NIP19_NPUB),
            Contact(pub=NIP19_HEX_2, npub=NIP19_NPUB_2),
        )

    def test_malformed_peer_never_reaches_the_store(self, orchestrator, relay, store):
        orchestrator.attach(relay)
        with pytest.raises(ValueError, match="peer"):
            relay.deliver(RavenEvent.DIRECT_MESSAGE, [DirectMessage(id="1", peer="p1")])

        relay.deliver(RavenEvent.DIRECT_MESSAGE, [DirectMessage(id="2", peer=NIP19_HEX)])

        assert [m.id for m in store.direct_messages.get()] == ["2"]
        assert store.contacts.get() == (Contact(pub=NIP19_HEX, npub=NIP19_NPUB),)
        relay.load_profiles.assert_called_once_with([NIP19_HEX])

    def test_contacts_follow_external_dm_writes(self, orchestrator, store):
        store.direct_messages.publish((DirectMessage(id="1", peer=NIP19_HEX_2),))
        assert [c.pub for c in store.contacts.get()] == [NIP19_HEX_2]

        store.direct_messages.publish(())
        assert store.contacts.get() == ()

    def test_contacts_derived_from_preloaded_store(self, sync_config, pubkey, loop, clock):
        store = SyncStore()
        store.direct_messages.publish((DirectMessage(id="1", peer=NIP19_HEX),))

        SyncOrchestrator(sync_config, pubkey=pubkey, store=store, loop=loop, clock=clock)

        assert store.contacts.get() == (Contact(pub=NIP19_HEX, npub=NIP19_NPUB),)


# ============================================================================
# Metrics
# ============================================================================


class TestMetrics:
    def _sample(self, name: str, labels: dict[str, str] | None = None) -> float:
        return REGISTRY.get_sample_value(name, labels or {}) or 0.0

    def test_counts_received_and_appended(self, pubkey, loop, clock, relay):
        config = SyncConfig(metrics={"enabled": True})
        orchestrator = SyncOrchestrator(config, pubkey=pubkey, loop=loop, clock=clock)
        labels = {"kind": "public_message"}
        received = self._sample("ravensync_events_received_total", labels)
        appended = self._sample("ravensync_events_appended_total", labels)
        requested = self._sample("ravensync_profile_requests_total")

        orchestrator.attach(relay)
        relay.deliver(
            RavenEvent.PUBLIC_MESSAGE,
            [PublicMessage(id="m1", creator=A), PublicMessage(id="m1", creator=A)],
        )

        assert self._sample("ravensync_events_received_total", labels) == received + 2
        assert self._sample("ravensync_events_appended_total", labels) == appended + 1
        assert self._sample("ravensync_profile_requests_total") == requested + 1

    def test_repeated_creator_counted_once(self, pubkey, loop, clock, relay):
        config = SyncConfig(metrics={"enabled": True})
        orchestrator = SyncOrchestrator(config, pubkey=pubkey, loop=loop, clock=clock)
        labels = {"kind": "profile_update"}
        appended = self._sample("ravensync_events_appended_total", labels)

        orchestrator.attach(relay)
        relay.deliver(
            RavenEvent.PROFILE_UPDATE,
            [Profile(creator=A, name="x"), Profile(creator=A, name="y"), Profile(creator=B)],
        )

        assert len(orchestrator.store.profiles.get()) == 2
        assert self._sample("ravensync_events_appended_total", labels) == appended + 2

    def test_disabled_records_nothing(self, orchestrator, relay):
        labels = {"kind": "channel_creation"}
        before = self._sample("ravensync_events_received_total", labels)

        orchestrator.attach(relay)
        relay.deliver(RavenEvent.CHANNEL_CREATION, [Channel(id="c1")])

        assert self._sample("ravensync_events_received_total", labels) == before


# ============================================================================
# Service Lifecycle
# ============================================================================


class TestLifecycle:
    async def test_context_manager_detaches_on_exit(self, orchestrator, relay, store):
        async with orchestrator as sync:
            assert sync is orchestrator
            assert sync.is_running
            sync.attach(relay)

        assert not orchestrator.is_running
        assert relay.total_listeners() == 0
        assert store.client.get() is None

    async def test_wait_returns_true_on_shutdown(self, orchestrator):
        async with orchestrator:
            orchestrator.request_shutdown()
            assert await orchestrator.wait(1.0) is True

    async def test_wait_returns_false_on_timeout(self, orchestrator):
        async with orchestrator:
            assert await orchestrator.wait(0.01) is False

    async def test_run_forever_stops_on_shutdown(self, orchestrator):
        async with orchestrator:
            task = asyncio.create_task(orchestrator.run_forever())
            await asyncio.sleep(0)
            assert not task.done()

            orchestrator.request_shutdown()
            await asyncio.wait_for(task, timeout=1.0)


class TestFactories:
    def test_requires_pubkey(self):
        with pytest.raises(ConfigurationError, match="local public key required"):
            SyncOrchestrator(SyncConfig())

    def test_pubkey_from_keys_config(self, monkeypatch: pytest.MonkeyPatch, pubkey: str):
        monkeypatch.setenv("PRIVATE_KEY", VALID_HEX_KEY)
        orchestrator = SyncOrchestrator.from_dict({"keys": {}})
        assert orchestrator.pubkey == pubkey

    def test_from_dict(self, pubkey: str):
        orchestrator = SyncOrchestrator.from_dict(
            {"scheduler": {"initial_delay": 0.2, "steady_delay": 3}}, pubkey=pubkey
        )
        assert orchestrator.config.scheduler == SchedulerConfig(initial_delay=0.2, steady_delay=3)
        assert orchestrator.pubkey == pubkey

    def test_from_yaml(self, tmp_path: Path, pubkey: str):
        config_file = tmp_path / "ravensync.yaml"
        config_file.write_text("scheduler:\n  steady_delay: 20\nlogging:\n  json_output: true\n")

        orchestrator = SyncOrchestrator.from_yaml(str(config_file), pubkey=pubkey)

        assert orchestrator.config.scheduler.steady_delay == 20
        assert orchestrator.config.logging.json_output is True

    def test_from_yaml_missing(self, tmp_path: Path, pubkey: str):
        with pytest.raises(ConfigurationError):
            SyncOrchestrator.from_yaml(str(tmp_path / "missing.yaml"), pubkey=pubkey)

    def test_shared_store(self, pubkey: str, store: SyncStore):
        orchestrator = SyncOrchestrator(pubkey=pubkey, store=store)
        assert orchestrator.store is store
