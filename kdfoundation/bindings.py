"""Signals, properties, deferred invocation and destruction-tracking helpers."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


class ConnectionHandle:
    """Identifies one connection between a signal and a slot."""

    def __init__(self, signal: "Signal", connection_id: int) -> None:
        self._signal = signal
        self._id = connection_id

    @property
    def connection_id(self) -> int:
        return self._id

    def belongs_to(self, signal: "Signal") -> bool:
        return self._signal is signal

    def disconnect(self) -> None:
        """Disconnect the slot; does nothing if already disconnected."""
        self._signal.disconnect(self)

    def is_active(self) -> bool:
        return self._signal._has_connection(self._id)

    def __repr__(self) -> str:
        state = "active" if self.is_active() else "inactive"
        return f"ConnectionHandle(id={self._id}, {state})"


@dataclass
class _Connection:
    slot: Callable[..., Any]
    evaluator: Optional["ConnectionEvaluator"] = None


class Signal:
    """A list of slots that are called, in connection order, on emit()."""

    def __init__(self) -> None:
        self._connections: dict[int, _Connection] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def connect(self, slot: Callable[..., Any]) -> ConnectionHandle:
        """Connect a slot to be called immediately on each emission."""
        return self._add(_Connection(slot))

    def connect_deferred(
        self, evaluator: "ConnectionEvaluator", slot: Callable[..., Any]
    ) -> ConnectionHandle:
        """Connect a slot whose calls are queued on an evaluator."""
        return self._add(_Connection(slot, evaluator))

    def _add(self, connection: _Connection) -> ConnectionHandle:
        with self._lock:
            connection_id = next(self._ids)
            self._connections[connection_id] = connection
        return ConnectionHandle(self, connection_id)

    def _has_connection(self, connection_id: int) -> bool:
        with self._lock:
            return connection_id in self._connections

    def disconnect(self, handle: Optional[ConnectionHandle]) -> None:
        """Remove the connection; handles of other signals are ignored."""
        if handle is None or not handle.belongs_to(self):
            return
        with self._lock:
            self._connections.pop(handle.connection_id, None)

    def disconnect_all(self) -> None:
        with self._lock:
            self._connections.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def emit(self, *args: Any) -> None:
        """Call every connected slot with the given arguments."""
        with self._lock:
            snapshot = list(self._connections.items())
        for connection_id, connection in snapshot:
            if not self._has_connection(connection_id):
                continue
            if connection.evaluator is None:
                connection.slot(*args)
            else:
                slot = connection.slot
                connection.evaluator.enqueue(
                    ConnectionHandle(self, connection_id),
                    lambda slot=slot, args=args: slot(*args),
                )


class Property:
    """A value that announces its changes through signals."""

    def __init__(self, value: Any = None) -> None:
        self._value = value
        self.value_about_to_change = Signal()
        self.value_changed = Signal()

    def get(self) -> Any:
        return self._value

    def set(self, value: Any) -> None:
        """Store a new value; signals fire only if the value differs."""
        old = self._value
        if old is value or old == value:
            return
        self.value_about_to_change.emit(old, value)
        self._value = value
        self.value_changed.emit(value)

    def __call__(self) -> Any:
        return self._value

    def __repr__(self) -> str:
        return f"Property({self._value!r})"


class ConnectionEvaluator:
    """Queue of deferred slot calls, run by evaluate_deferred_connections().

    An optional notify callable is called each time an invocation is queued.
    """

    def __init__(self, notify: Optional[Callable[[], Any]] = None) -> None:
        self._pending: list[tuple[ConnectionHandle, Callable[[], Any]]] = []
        self._lock = threading.Lock()
        self._notify = notify

    def enqueue(self, handle: ConnectionHandle, call: Callable[[], Any]) -> None:
        with self._lock:
            self._pending.append((handle, call))
        self.on_invocation_added()

    def evaluate_deferred_connections(self) -> None:
        """Run queued calls whose connection is still active."""
        with self._lock:
            pending, self._pending = self._pending, []
        for handle, call in pending:
            if handle.is_active():
                call()

    def on_invocation_added(self) -> None:
        """Called after each queued invocation; runs the notify callable if set."""
        notify = getattr(self, "_notify", None)
        if notify is not None:
            notify()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


@dataclass
class _Entry:
    first: Any
    second: Any
    handle: ConnectionHandle


@dataclass
class DestructionHelperManager:
    """Tracks connections to 'destroyed' signals between containers and dependencies."""

    _cont_to_dep: dict[tuple[int, int], _Entry] = field(default_factory=dict)
    _dep_to_cont: dict[tuple[int, int], _Entry] = field(default_factory=dict)

    @staticmethod
    def _key(a: Any, b: Any) -> tuple[int, int]:
        return (id(a), id(b))

    def cont_to_dep_connection(self, container, dependency) -> Optional[ConnectionHandle]:
        entry = self._cont_to_dep.get(self._key(container, dependency))
        return entry.handle if entry else None

    def dep_to_cont_connection(self, dependency, container) -> Optional[ConnectionHandle]:
        entry = self._dep_to_cont.get(self._key(dependency, container))
        return entry.handle if entry else None

    def add_cont_to_dep_connection(self, container, dependency, handle) -> None:
        self._cont_to_dep[self._key(container, dependency)] = _Entry(container, dependency, handle)

    def add_dep_to_cont_connection(self, dependency, container, handle) -> None:
        self._dep_to_cont[self._key(dependency, container)] = _Entry(dependency, container, handle)

    def del_cont_to_dep_connection(self, container, dependency) -> None:
        entry = self._cont_to_dep.pop(self._key(container, dependency), None)
        if entry is not None:
            entry.first.destroyed.disconnect(entry.handle)

    def del_dep_to_cont_connection(self, dependency, container) -> None:
        entry = self._dep_to_cont.pop(self._key(dependency, container), None)
        if entry is not None:
            entry.first.destroyed.disconnect(entry.handle)

    def clear_dep_to_cont_connections(self) -> None:
        for entry in self._dep_to_cont.values():
            entry.first.destroyed.disconnect(entry.handle)
        self._dep_to_cont.clear()


def register_property_destruction_helper(prop: Property, owner=None) -> None:
    """Reset prop to None when the object it holds emits 'destroyed'."""
    handle: Optional[ConnectionHandle] = None

    def about_to_change(old, _new):
        if old is not None:
            old.destroyed.disconnect(handle)

    def changed(new):
        nonlocal handle
        if new is not None:
            handle = new.destroyed.connect(lambda *_: prop.set(None))

    prop.value_about_to_change.connect(about_to_change)
    prop.value_changed.connect(changed)

    if owner is not None:
        def owner_destroyed(*_):
            current = prop.get()
            if current is not None and handle is not None and handle.is_active():
                current.destroyed.disconnect(handle)

        owner.destroyed.connect(owner_destroyed)


def register_destruction_helper(container, dependency, manager: DestructionHelperManager,
                                cleanup: Callable[[], Any]) -> None:
    """Run cleanup when dependency is destroyed; drop tracking when container is."""
    if dependency is not None:
        def dependency_destroyed(*_):
            cleanup()
            manager.del_dep_to_cont_connection(dependency, container)

        manager.add_dep_to_cont_connection(
            dependency, container, dependency.destroyed.connect(dependency_destroyed)
        )

    if container is not None:
        def container_destroyed(*_):
            manager.clear_dep_to_cont_connections()
            manager.del_cont_to_dep_connection(container, dependency)

        manager.add_cont_to_dep_connection(
            container, dependency, container.destroyed.connect(container_destroyed)
        )


def unregister_destruction_helper(container, dependency, manager: DestructionHelperManager) -> None:
    manager.del_dep_to_cont_connection(dependency, container)
    manager.del_cont_to_dep_connection(container, dependency)