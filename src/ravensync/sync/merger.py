"""Pure merge functions for identity-keyed entity collections.

Collections are tuples in insertion order. Merging never mutates its inputs:
it returns a new tuple that the caller publishes in place of the old one.

Two policies exist:

* **append-only** ([merge_append()][ravensync.sync.merger.merge_append]):
  Channel, ChannelUpdate, EventDeletion, PublicMessage and DirectMessage.
  The first record seen for a key wins; later ones are dropped silently.
* **replace-by-identity** ([merge_replace()][ravensync.sync.merger.merge_replace]):
  Profile. The last record seen for a key wins and moves to the end.

Both are total and idempotent: merging the same batch twice yields the same
collection as merging it once.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Generic, NamedTuple, TypeVar

from ravensync.models.entities import Keyed


T = TypeVar("T", bound=Keyed)


class ReplaceMerge(NamedTuple, Generic[T]):
    """Result of [merge_replace()][ravensync.sync.merger.merge_replace].

    Attributes:
        items: The merged collection.
        mine: The batch record whose key is the local identity, if present.
    """

    items: tuple[T, ...]
    mine: T | None


def appended(current: Sequence[T], batch: Iterable[T]) -> tuple[T, ...]:
    """Return the records of *batch* whose key is not yet in *current*.

    Keys repeated within *batch* are kept only once (first occurrence).
    """
    seen = {item.key for item in current}
    new: list[T] = []
    for item in batch:
        if item.key in seen:
            continue
        seen.add(item.key)
        new.append(item)
    return tuple(new)


def merge_append(current: Sequence[T], batch: Iterable[T]) -> tuple[T, ...]:
    """Append the genuinely new records of *batch* to *current* (first write wins)."""
    return (*current, *appended(current, batch))


def merge_replace(
    current: Sequence[T],
    batch: Iterable[T],
    own_key: str | None = None,
) -> ReplaceMerge[T]:
    """Replace records of *current* by the records of *batch* sharing their key.

    Every key present in *batch* is removed from *current*, then the batch
    records are appended. A record is replaced even when the incoming one is
    identical, so the collection always holds the most recently received
    version.

    Args:
        current: Existing collection.
        batch: Incoming records. When a key repeats, the last occurrence wins
            and takes the position of the first.
        own_key: Key of the local user. The matching batch record, if any, is
            surfaced as ``mine``.

    Returns:
        [ReplaceMerge][ravensync.sync.merger.ReplaceMerge] with the new
        collection and the local user's record.
    """
    latest: dict[str, T] = {}
    for item in batch:
        latest[item.key] = item

    kept = tuple(item for item in current if item.key not in latest)
    mine = latest.get(own_key) if own_key is not None else None
    return ReplaceMerge((*kept, *latest.values()), mine)
