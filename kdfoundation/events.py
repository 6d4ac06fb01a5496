"""Event types, event receivers and the thread-safe posted-event queue."""

from __future__ import annotations

import enum
import threading
from collections import deque
from typing import Optional, Union


class EventType(enum.IntEnum):
    INVALID = 0
    TIMER = 1
    POSTED_EVENT = 2
    NOTIFIER = 3
    QUIT = 4
    RESIZE = 5
    MOUSE_PRESS = 6
    MOUSE_RELEASE = 7
    MOUSE_DOUBLE_CLICK = 8
    MOUSE_MOVE = 9
    MOUSE_WHEEL = 10
    KEY_PRESS = 11
    KEY_RELEASE = 12
    TEXT_INPUT = 13
    UPDATE = 14
    DEFERRED_DELETE = 15

    USER_TYPE = 4096


class Event:
    """Base event. Types at or above USER_TYPE are kept as plain integers."""

    def __init__(self, event_type: Union[EventType, int]) -> None:
        try:
            self.type: Union[EventType, int] = EventType(event_type)
        except ValueError:
            self.type = int(event_type)
        self.system_event = False
        self.accepted = False

    def is_manual_event(self) -> bool:
        return not self.system_event

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.type!r}, accepted={self.accepted})"


class PostedEvent(Event):
    """Wraps an event together with the receiver it is addressed to."""

    def __init__(self, target: "EventReceiver", wrapped_event: Event) -> None:
        super().__init__(EventType.POSTED_EVENT)
        self.target = target
        self.wrapped_event = wrapped_event


class TimerEvent(Event):
    def __init__(self) -> None:
        super().__init__(EventType.TIMER)


class NotifierEvent(Event):
    def __init__(self) -> None:
        super().__init__(EventType.NOTIFIER)


class QuitEvent(Event):
    def __init__(self) -> None:
        super().__init__(EventType.QUIT)


class ResizeEvent(Event):
    def __init__(self, width: int, height: int) -> None:
        super().__init__(EventType.RESIZE)
        self.width = width
        self.height = height


class UpdateEvent(Event):
    def __init__(self) -> None:
        super().__init__(EventType.UPDATE)


class DeferredDeleteEvent(Event):
    def __init__(self) -> None:
        super().__init__(EventType.DEFERRED_DELETE)


class EventReceiver:
    """Anything events can be delivered to."""

    def event(self, target: "EventReceiver", ev: Event) -> bool:
        """Handle an event and report whether it was accepted.

        The base implementation leaves the event as it is.
        """
        return ev.accepted


class EventQueue:
    """FIFO of posted events, safe to use from several threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: deque[PostedEvent] = deque()

    def push(self, target: EventReceiver, event: Event) -> None:
        """Wrap event in a PostedEvent addressed to target and enqueue it."""
        self.push_posted(PostedEvent(target, event))

    def push_posted(self, posted: PostedEvent) -> None:
        with self._lock:
            self._events.append(posted)

    def try_pop(self) -> Optional[PostedEvent]:
        """Remove and return the oldest event, or None if the queue is empty."""
        with self._lock:
            return self._events.popleft() if self._events else None

    def peek(self) -> Optional[PostedEvent]:
        with self._lock:
            return self._events[0] if self._events else None

    def remove_all_events_targeting(self, receiver: EventReceiver) -> None:
        with self._lock:
            self._events = deque(e for e in self._events if e.target is not receiver)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)