"""Object tree with ownership signals, and the Postman that delivers events."""

from __future__ import annotations

import logging
from typing import Any, Optional

from kdfoundation.bindings import Signal
from kdfoundation.events import (
    DeferredDeleteEvent,
    Event,
    EventReceiver,
    EventType,
    TimerEvent,
)

_log = logging.getLogger(__name__)


def _current_application():
    from kdfoundation.core_application import CoreApplication

    return CoreApplication.instance()


class Object(EventReceiver):
    """An event receiver that owns child objects and announces tree changes."""

    def __init__(self) -> None:
        self._parent: Optional[Object] = None
        self._children: list[Object] = []
        self._destroyed = False
        self.object_name = ""
        self.parent_changed = Signal()
        self.child_added = Signal()
        self.child_removed = Signal()
        self.destroyed = Signal()

    @property
    def parent(self) -> Optional["Object"]:
        return self._parent

    @property
    def children(self) -> tuple["Object", ...]:
        return tuple(self._children)

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def add_child(self, child: "Object") -> "Object":
        """Take ownership of child; it must not already have a parent."""
        if child._parent is not None:
            raise ValueError("child already has a parent")
        child._parent = self
        self._children.append(child)
        child.parent_changed.emit(child, self)
        self.child_added.emit(self, child)
        return child

    def create_child(self, cls: type, *args: Any, **kwargs: Any) -> "Object":
        return self.add_child(cls(*args, **kwargs))

    def take_child(self, child: "Object") -> Optional["Object"]:
        """Release ownership of child and return it, or None if it is not ours."""
        for position, candidate in enumerate(self._children):
            if candidate is child:
                break
        else:
            return None
        child._parent = None
        child.parent_changed.emit(child, None)
        del self._children[position]
        self.child_removed.emit(self, child)
        return child

    def delete_later(self) -> None:
        """Schedule destruction through the application's event queue."""
        app = _current_application()
        if app is None:
            _log.error("No CoreApplication object to schedule deferred deletion of object with.")
            return
        if app is self:
            _log.error(
                "Object.delete_later() was called on CoreApplication. "
                "This is not supported and will be ignored."
            )
            return
        app.post_event(self, DeferredDeleteEvent())

    def destroy(self) -> None:
        """Emit destroyed, then destroy children last-added first."""
        if self._destroyed:
            return
        self._destroyed = True
        if self._parent is not None:
            self._parent.take_child(self)
        try:
            self.destroyed.emit(self)
        except Exception:
            _log.exception(
                "Exception caught in destroy(%s) during destroyed emission. Ignoring.",
                self.object_name,
            )
        while self._children:
            child = self._children[-1]
            try:
                self.child_removed.emit(self, child)
            except Exception:
                _log.exception(
                    "Exception in destroy(%s) on child_removed for child object %s. Ignoring.",
                    self.object_name,
                    child.object_name,
                )
            self._children.pop()
            child._parent = None
            child.destroy()
        app = _current_application()
        if app is not None and app is not self:
            app.remove_all_events_targeting(self)

    def event(self, target: EventReceiver, ev: Event) -> None:
        if target is not self:
            return
        if ev.type == EventType.DEFERRED_DELETE:
            self.destroy()
            return
        if ev.type == EventType.TIMER:
            self.timer_event(ev)
        elif ev.type >= EventType.USER_TYPE:
            self.user_event(ev)

    def timer_event(self, ev: TimerEvent) -> None:
        """Called for timer events addressed to this object."""

    def user_event(self, ev: Event) -> None:
        """Called for events with a user-defined type."""


class Postman:
    """Delivers events, giving registered filters the first chance."""

    def __init__(self) -> None:
        self._filters: list[Object] = []

    @property
    def filters(self) -> tuple[Object, ...]:
        return tuple(self._filters)

    def deliver_event(self, target: EventReceiver, event: Event) -> None:
        for event_filter in list(self._filters):
            event_filter.event(target, event)
            if event.accepted:
                return
        target.event(target, event)

    def add_filter(self, event_filter: Object) -> None:
        if event_filter is None:
            raise ValueError("filter must not be None")
        self._filters.append(event_filter)

    def remove_filter(self, event_filter: Object) -> None:
        for position, candidate in enumerate(self._filters):
            if candidate is event_filter:
                del self._filters[position]
                return