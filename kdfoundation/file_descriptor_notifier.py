"""Notifications about activity on file descriptors."""

from __future__ import annotations

import enum
import logging
from typing import Any

from kdfoundation.bindings import Signal
from kdfoundation.events import Event, EventReceiver, EventType
from kdfoundation.object import Object

_log = logging.getLogger(__name__)


def _current_application():
    from kdfoundation.core_application import CoreApplication

    return CoreApplication.instance()


class NotificationType(enum.IntEnum):
    READ = 0
    WRITE = 1
    EXCEPTION = 2


class FileDescriptorNotifier(Object):
    """Emits `triggered(fd)` when the event loop sees activity on fd.

    The notifier registers itself with the running application's event loop
    on creation and unregisters on close().
    """

    def __init__(self, fd: int, notification_type: NotificationType) -> None:
        if fd < 0:
            raise ValueError(f"invalid file descriptor {fd}")
        super().__init__()
        self._fd = fd
        self._type = NotificationType(notification_type)
        self._closed = False
        self.triggered = Signal()

        app = _current_application()
        if app is None:
            _log.warning(
                "No application object exists yet. The notifier for fd %d will not be registered",
                self._fd,
            )
            return
        loop = app.event_loop
        if loop is not None:
            loop.register_notifier(self)

    @property
    def file_descriptor(self) -> int:
        return self._fd

    @property
    def type(self) -> NotificationType:
        return self._type

    def close(self) -> None:
        """Unregister from the application's event loop."""
        if self._closed:
            return
        self._closed = True
        app = _current_application()
        if app is None:
            _log.warning(
                "No application object exists yet we still have a notifier for fd %d alive",
                self._fd,
            )
            return
        loop = app.event_loop
        if loop is not None:
            loop.unregister_notifier(self)

    def destroy(self) -> None:
        self.close()
        super().destroy()

    def event(self, target: EventReceiver, ev: Event) -> None:
        if ev.type == EventType.NOTIFIER:
            self.triggered.emit(self._fd)
            ev.accepted = True
        super().event(target, ev)

    def __enter__(self) -> "FileDescriptorNotifier":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()