"""
Pytest configuration and shared fixtures for ravensync tests.

Provides:
- Deterministic millisecond clock and timer loop for the poll scheduler
- A recording relay client built on RelayEmitter
- Test keys and entity factories
- A wired SyncOrchestrator
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any
from unittest.mock import MagicMock

import pytest
from nostr_sdk import Keys

from ravensync.models import RavenEvent
from ravensync.sync import RelayEmitter, SchedulerConfig, SyncConfig, SyncOrchestrator, SyncStore


# Valid secp256k1 test key (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)

# NIP-19 test vectors
NIP19_HEX = "7e7e9c42a91bfef19fa929e5fda1b72e0ebc1a4c1141673e2794234d86addf4e"
NIP19_NPUB = "npub10elfcs4fr0l0r8af98jlmgdh9c8tcxjvz9qkw038js35mp4dma8qzvjptg"
NIP19_HEX_2 = "3bf0c63fcb93463407af97a5e5ee64fa883d107ef9e558472c4eb9aaaefa459d"
NIP19_NPUB_2 = "npub180cvv07tjdrrgpa0j7j7tmnyl2yr6yr7l8j4s3evf6u64th6gkwsyjh6w6"

START_MS = 1_700_000_000_000


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Deterministic Time
# ============================================================================


class FakeClock:
    """Millisecond wall clock that only moves when told to."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeHandle:
    def __init__(self, when: int, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """``call_later`` implementation driven by a FakeClock.

    ``advance(seconds)`` moves the clock forward, running every callback that
    becomes due in order, including ones scheduled by earlier callbacks.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.clock.now + round(delay * 1000), callback, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float) -> None:
        target = self.clock.now + round(seconds * 1000)
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.clock.now = max(self.clock.now, handle.when)
            handle.fired = True
            handle.callback(*handle.args)
        self.clock.now = target


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def loop(clock: FakeClock) -> FakeLoop:
    return FakeLoop(clock)


# ============================================================================
# Relay Client
# ============================================================================


class FakeRelay(RelayEmitter):
    """Relay client double: real listener bookkeeping, recorded calls."""

    def __init__(self) -> None:
        super().__init__()
        self.listen = MagicMock(name="listen")
        self.load_profiles = MagicMock(name="load_profiles")

    def total_listeners(self) -> int:
        return sum(self.listener_count(kind) for kind in RavenEvent)

    def deliver(self, kind: RavenEvent, data: Sequence[Any] | None = None) -> bool:
        if kind is RavenEvent.READY:
            return self.emit(kind)
        return self.emit(kind, list(data or ()))


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay()


# ============================================================================
# Keys
# ============================================================================


@pytest.fixture
def keys() -> Keys:
    return Keys.parse(VALID_HEX_KEY)


@pytest.fixture
def pubkey(keys: Keys) -> str:
    return keys.public_key().to_hex()


@pytest.fixture
def random_pubkey() -> Callable[[], str]:
    return lambda: Keys.generate().public_key().to_hex()


# ============================================================================
# Orchestrator
# ============================================================================


@pytest.fixture
def store() -> SyncStore:
    return SyncStore()


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(scheduler=SchedulerConfig(initial_delay=0.5, steady_delay=10.0))


@pytest.fixture
def orchestrator(
    sync_config: SyncConfig,
    pubkey: str,
    store: SyncStore,
    loop: FakeLoop,
    clock: FakeClock,
) -> SyncOrchestrator:
    return SyncOrchestrator(sync_config, pubkey=pubkey, store=store, loop=loop, clock=clock)
