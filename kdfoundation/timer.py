"""Periodic timers driven by the application's event loop."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Optional

from kdfoundation.bindings import ConnectionHandle, Property, Signal
from kdfoundation.core_application import CoreApplication
from kdfoundation.platform import AbstractPlatformTimer


class Timer:
    """Emits `timeout` every `interval` while `running` is True.

    The interval is a timedelta, or a number of seconds.
    """

    def __init__(self) -> None:
        app = CoreApplication.instance()
        if app is None or app.event_loop is None:
            raise RuntimeError("a Timer needs a CoreApplication with an event loop")
        self.timeout = Signal()
        self.running = Property(False)
        self.interval = Property(timedelta(0))
        self._platform_timer: Optional[AbstractPlatformTimer] = (
            app.event_loop.create_platform_timer(self)
        )

    def close(self) -> None:
        """Stop the timer and release its platform resources."""
        if self._platform_timer is not None:
            self._platform_timer.close()
            self._platform_timer = None

    def __enter__(self) -> "Timer":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class SelectorPlatformTimer(AbstractPlatformTimer):
    """Arms and disarms a Timer on a SelectorPlatformEventLoop."""

    def __init__(self, timer: Timer, loop: Any) -> None:
        self._timer = timer
        self._loop = loop
        self._connections: list[tuple[Signal, ConnectionHandle]] = [
            (
                timer.running.value_changed,
                timer.running.value_changed.connect(self._on_running_changed),
            ),
            (
                timer.interval.value_changed,
                timer.interval.value_changed.connect(self._on_interval_changed),
            ),
        ]

    def _on_running_changed(self, running: bool) -> None:
        if running:
            self.arm(self._timer.interval.get())
        else:
            self.disarm()

    def _on_interval_changed(self, _interval: Any) -> None:
        if self._timer.running.get():
            self.arm(self._timer.interval.get())

    def arm(self, interval: Any) -> None:
        """Fire every interval; a zero interval disarms the timer."""
        self._loop.schedule_timer(self, interval)

    def disarm(self) -> None:
        self._loop.cancel_timer(self)

    def fire(self) -> None:
        self._timer.timeout.emit()

    def close(self) -> None:
        for signal, handle in self._connections:
            signal.disconnect(handle)
        self._connections.clear()
        self.disarm()