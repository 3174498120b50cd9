r"""ravensync -- synchronization core for a Nostr chat client.

Keeps a local view of profiles, channels, channel updates, deletions, public
messages and direct messages consistent with a remote relay, using an
incremental cursor-based ``listen`` protocol and per-kind reconciliation.

Imports flow strictly downward:

```text
                 sync          Orchestration, scheduling, merging
                /    \
             core    utils     Logging, metrics, timers / Nostr keys
                \    /
                models         Pure frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from ravensync import SyncOrchestrator``) use lazy
    loading and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("ravensync")

__all__ = [
    "Channel",
    "ChannelUpdate",
    "Contact",
    "DirectMessage",
    "EventDeletion",
    "Logger",
    "PollScheduler",
    "Profile",
    "PublicMessage",
    "RavenEvent",
    "RelayClient",
    "RelayEmitter",
    "SyncConfig",
    "SyncOrchestrator",
    "SyncStore",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Logger": ("ravensync.core", "Logger"),
    "Channel": ("ravensync.models", "Channel"),
    "ChannelUpdate": ("ravensync.models", "ChannelUpdate"),
    "Contact": ("ravensync.models", "Contact"),
    "DirectMessage": ("ravensync.models", "DirectMessage"),
    "EventDeletion": ("ravensync.models", "EventDeletion"),
    "Profile": ("ravensync.models", "Profile"),
    "PublicMessage": ("ravensync.models", "PublicMessage"),
    "RavenEvent": ("ravensync.models", "RavenEvent"),
    "PollScheduler": ("ravensync.sync", "PollScheduler"),
    "RelayClient": ("ravensync.sync", "RelayClient"),
    "RelayEmitter": ("ravensync.sync", "RelayEmitter"),
    "SyncConfig": ("ravensync.sync", "SyncConfig"),
    "SyncOrchestrator": ("ravensync.sync", "SyncOrchestrator"),
    "SyncStore": ("ravensync.sync", "SyncStore"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'ravensync' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
