"""Synchronization core: merging, listener lifecycle, polling and orchestration.

Attributes:
    SyncOrchestrator: Top-level coordinator between a relay client and the
        store. See [SyncOrchestrator][ravensync.sync.orchestrator.SyncOrchestrator].
    SyncStore: Explicit state container of the synchronized collections.
    PollScheduler: Cursor-driven ``listen`` cadence (500 ms, then 10 s).
    ListenerRegistry: Idempotent per-kind handler registration.
    ReadinessGate: One-shot readiness flag per relay client.
    merge_append / merge_replace: Pure identity-keyed merges.
    derive_contacts: Distinct direct-message peers as contacts.
"""

from .configs import LoggingConfig, SchedulerConfig, SyncConfig
from .contacts import derive_contacts
from .merger import ReplaceMerge, appended, merge_append, merge_replace
from .orchestrator import SyncOrchestrator
from .readiness import ReadinessGate
from .registry import ListenerRegistry, Subscription
from .relay import Handler, RelayClient, RelayEmitter
from .scheduler import PollScheduler, SchedulerState, now_ms
from .store import Slot, SyncStore


__all__ = [
    "Handler",
    "ListenerRegistry",
    "LoggingConfig",
    "PollScheduler",
    "ReadinessGate",
    "RelayClient",
    "RelayEmitter",
    "ReplaceMerge",
    "SchedulerConfig",
    "SchedulerState",
    "Slot",
    "Subscription",
    "SyncConfig",
    "SyncOrchestrator",
    "SyncStore",
    "appended",
    "derive_contacts",
    "merge_append",
    "merge_replace",
    "now_ms",
]
