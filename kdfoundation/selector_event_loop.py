"""Portable event loop built on select(), with a socket pair for wake-ups."""

from __future__ import annotations

import logging
import select
import socket
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional, Union

from kdfoundation.events import NotifierEvent
from kdfoundation.file_descriptor_notifier import FileDescriptorNotifier, NotificationType
from kdfoundation.platform import (
    AbstractPlatformEventLoop,
    AbstractPlatformIntegration,
    AbstractPlatformTimer,
)

_log = logging.getLogger(__name__)

Interval = Union[timedelta, float, int]


def _to_seconds(interval: Interval) -> float:
    if isinstance(interval, timedelta):
        return interval.total_seconds()
    return float(interval)


@dataclass
class _NotifierSet:
    notifiers: dict = field(default_factory=dict)

    def has(self, kind: NotificationType) -> bool:
        return kind in self.notifiers

    def get(self, kind: NotificationType) -> Optional[FileDescriptorNotifier]:
        return self.notifiers.get(kind)

    def set(self, kind: NotificationType, notifier: FileDescriptorNotifier) -> None:
        self.notifiers[kind] = notifier

    def reset(self, kind: NotificationType) -> None:
        self.notifiers.pop(kind, None)

    def is_empty(self) -> bool:
        return not self.notifiers

    def kinds(self) -> set:
        return set(self.notifiers)


@dataclass
class _TimerEntry:
    deadline: float
    interval: float


class SelectorPlatformEventLoop(AbstractPlatformEventLoop):
    """Watches file descriptors and periodic timers with select()."""

    def __init__(self) -> None:
        super().__init__()
        self._notifiers: dict[int, _NotifierSet] = {}
        self._interest: dict[int, set] = {}
        self._timers: dict[Any, _TimerEntry] = {}
        self._timers_lock = threading.Lock()
        self._waiting_thread: Optional[int] = None
        self._closed = False
        # A socket pair lets other threads wake us from select().
        self._wake_reader, self._wake_writer = socket.socketpair()
        self._wake_reader.setblocking(False)
        self._wake_writer.setblocking(False)
        _log.debug("Initialised wake-up socket pair")

    def wake_up(self) -> None:
        if self._closed:
            return
        try:
            self._wake_writer.send(b"\x01")
        except BlockingIOError:
            pass  # Buffer full: a wake-up is already pending.

    def _drain_wake_up(self) -> None:
        while True:
            try:
                if not self._wake_reader.recv(4096):
                    return
            except BlockingIOError:
                return

    def register_notifier(self, notifier: Optional[FileDescriptorNotifier]) -> bool:
        if notifier is None:
            return False
        fd, kind = notifier.file_descriptor, notifier.type
        existing = self._notifiers.get(fd)
        if existing is not None and existing.has(kind):
            return False
        if not self.register_file_descriptor(fd, kind):
            return False
        self._notifiers.setdefault(fd, _NotifierSet()).set(kind, notifier)
        return True

    def unregister_notifier(self, notifier: Optional[FileDescriptorNotifier]) -> bool:
        if notifier is None:
            return False
        fd, kind = notifier.file_descriptor, notifier.type
        if not self.unregister_file_descriptor(fd, kind):
            return False
        notifier_set = self._notifiers.get(fd)
        if notifier_set is not None:
            notifier_set.reset(kind)
            if notifier_set.is_empty():
                del self._notifiers[fd]
        return True

    def register_file_descriptor(self, fd: int, kind: NotificationType) -> bool:
        """Add kind to the conditions watched on fd; False if fd cannot be watched."""
        kind = NotificationType(kind)
        try:
            select.select([fd], [], [], 0)
        except (OSError, ValueError) as exc:
            _log.error("Failed to register file descriptor %d. Error = %s", fd, exc)
            return False
        current = self._notifiers.get(fd)
        self._interest[fd] = (current.kinds() if current else set()) | {kind}
        _log.debug("Registered file descriptor %d", fd)
        return True

    def unregister_file_descriptor(self, fd: int, kind: NotificationType) -> bool:
        """Remove kind from the conditions watched on fd."""
        kind = NotificationType(kind)
        current = self._notifiers.get(fd)
        if fd not in self._interest and current is None:
            _log.error("Failed to unregister file descriptor %d: it is not registered", fd)
            return False
        if fd in self._interest:
            remaining = (current.kinds() if current else set()) - {kind}
            if remaining:
                self._interest[fd] = remaining
            else:
                del self._interest[fd]
        _log.debug("Unregistered file descriptor %d", fd)
        return True

    def registered_file_descriptor_count(self) -> int:
        return len(self._notifiers)

    def schedule_timer(self, platform_timer: Any, interval: Interval) -> None:
        """Fire platform_timer every interval; a non-positive interval cancels it."""
        seconds = _to_seconds(interval)
        if seconds <= 0:
            self.cancel_timer(platform_timer)
            return
        with self._timers_lock:
            self._timers[platform_timer] = _TimerEntry(time.monotonic() + seconds, seconds)
        waiting = self._waiting_thread
        if waiting is not None and waiting != threading.get_ident():
            self.wake_up()

    def cancel_timer(self, platform_timer: Any) -> None:
        with self._timers_lock:
            self._timers.pop(platform_timer, None)

    def _select_timeout(self, timeout: int) -> Optional[float]:
        wait = None if timeout < 0 else timeout / 1000.0
        with self._timers_lock:
            if self._timers:
                until_next = min(e.deadline for e in self._timers.values()) - time.monotonic()
                until_next = max(until_next, 0.0)
                wait = until_next if wait is None else min(wait, until_next)
        return wait

    def _drop_invalid_descriptors(self) -> None:
        for fd in list(self._interest):
            try:
                select.select([fd], [], [], 0)
            except (OSError, ValueError):
                _log.error("File descriptor %d is no longer valid; no longer watching it", fd)
                del self._interest[fd]

    def _wait_for_events_impl(self, timeout: int) -> None:
        if self._closed:
            raise RuntimeError("event loop is closed")
        wake_fd = self._wake_reader.fileno()
        read_fds = [wake_fd]
        write_fds = []
        except_fds = []
        for fd, kinds in self._interest.items():
            if NotificationType.READ in kinds:
                read_fds.append(fd)
            if NotificationType.WRITE in kinds:
                write_fds.append(fd)
            if NotificationType.EXCEPTION in kinds:
                except_fds.append(fd)

        self._waiting_thread = threading.get_ident()
        try:
            readable, writable, exceptional = select.select(
                read_fds, write_fds, except_fds, self._select_timeout(timeout)
            )
        except (OSError, ValueError) as exc:
            _log.error("select() failed: %s", exc)
            self._drop_invalid_descriptors()
            return
        finally:
            self._waiting_thread = None
        _log.debug(
            "select() returned %d events within %s msecs",
            len(readable) + len(writable) + len(exceptional),
            timeout,
        )

        if wake_fd in readable:
            self._drain_wake_up()

        if self.postman is None:
            _log.warning("No postman set. Cannot deliver events")
            return

        ready: dict[int, set] = {}
        for fds, kind in (
            (readable, NotificationType.READ),
            (writable, NotificationType.WRITE),
            (exceptional, NotificationType.EXCEPTION),
        ):
            for fd in fds:
                if fd != wake_fd:
                    ready.setdefault(fd, set()).add(kind)

        for fd, kinds in ready.items():
            for kind in NotificationType:
                if kind not in kinds:
                    continue
                notifier_set = self._notifiers.get(fd)
                notifier = notifier_set.get(kind) if notifier_set else None
                if notifier is not None:
                    self.postman.deliver_event(notifier, NotifierEvent())

        self._fire_due_timers()

    def _fire_due_timers(self) -> None:
        now = time.monotonic()
        due = []
        with self._timers_lock:
            for platform_timer, entry in self._timers.items():
                if entry.deadline <= now:
                    due.append(platform_timer)
                    entry.deadline += entry.interval
                    if entry.deadline <= now:
                        entry.deadline = now + entry.interval
        for platform_timer in due:
            platform_timer.fire()

    def _create_platform_timer_impl(self, timer: Any) -> AbstractPlatformTimer:
        from kdfoundation.timer import SelectorPlatformTimer

        return SelectorPlatformTimer(timer, self)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._wake_reader.close()
        self._wake_writer.close()
        with self._timers_lock:
            self._timers.clear()
        super().close()


class SelectorPlatformIntegration(AbstractPlatformIntegration):
    """Platform integration that uses SelectorPlatformEventLoop."""

    def _create_platform_event_loop_impl(self) -> SelectorPlatformEventLoop:
        return SelectorPlatformEventLoop()