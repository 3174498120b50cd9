"""ravensync exception hierarchy.

The sync core itself has almost no failure paths: merges are total and
scheduling is always reschedulable, so an absent relay client or a duplicate
event is a no-op rather than an error. What remains is configuration loading
and misuse of the state container.

Exception hierarchy:

```text
RavenSyncError (base -- never raised directly)
├── ConfigurationError   -- missing config file, bad YAML, invalid values
└── StoreError           -- a collection published with the wrong shape
```

Any other exception raised while publishing (e.g. by a watcher registered on
a [Slot][ravensync.sync.store.Slot]) propagates unchanged.
"""

from __future__ import annotations


class RavenSyncError(Exception):
    """Base exception for all ravensync errors.

    Never raised directly -- always use a specific subclass.
    """


class ConfigurationError(RavenSyncError):
    """Invalid or missing configuration (YAML file, config values).

    See Also:
        [load_yaml()][ravensync.core.yaml.load_yaml]: Raises this for a
            missing file or unparsable YAML.
    """


class StoreError(RavenSyncError):
    """A value published to a [Slot][ravensync.sync.store.Slot] has the wrong shape.

    Collections are published as tuples so that a published value can never
    be mutated in place behind a reader's back.
    """
