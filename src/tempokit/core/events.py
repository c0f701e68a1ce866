"""Typed publish/subscribe channel.

Listeners subscribe to members of an Enum and are invoked synchronously,
in registration order, when the matching kind is emitted.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Tuple, TypeVar

E = TypeVar("E", bound=Enum)

Listener = Callable[..., Any]


class EventEmitter(Generic[E]):
    def __init__(self) -> None:
        # kind -> [(listener, once)]
        self._listeners: Dict[E, List[Tuple[Listener, bool]]] = {}

    def on(self, kind: E, listener: Listener) -> Listener:
        self._listeners.setdefault(kind, []).append((listener, False))
        return listener

    def once(self, kind: E, listener: Listener) -> Listener:
        self._listeners.setdefault(kind, []).append((listener, True))
        return listener

    def off(self, kind: E, listener: Listener) -> None:
        entries = self._listeners.get(kind)
        if not entries:
            return
        for i, (fn, _) in enumerate(entries):
            if fn is listener:
                del entries[i]
                break

    def listener_count(self, kind: E) -> int:
        return len(self._listeners.get(kind, ()))

    def emit(self, kind: E, *args: Any) -> bool:
        entries = self._listeners.get(kind)
        if not entries:
            return False

        # Snapshot so listeners may subscribe/unsubscribe while we dispatch
        snapshot = list(entries)
        entries[:] = [entry for entry in entries if not entry[1]]
        for listener, _ in snapshot:
            listener(*args)
        return True
