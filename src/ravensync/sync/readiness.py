"""Readiness flag for one relay-client instance."""

from __future__ import annotations


class ReadinessGate:
    """Tracks whether a relay client has completed its initial handshake.

    Starts closed and opens exactly once, on the client's ``READY`` event.
    There is no way back: a replaced relay client gets a fresh gate.
    """

    __slots__ = ("_ready",)

    def __init__(self) -> None:
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def mark_ready(self) -> bool:
        """Open the gate. Returns ``True`` only on the call that opened it."""
        if self._ready:
            return False
        self._ready = True
        return True

    def __repr__(self) -> str:
        return f"ReadinessGate(ready={self._ready})"
