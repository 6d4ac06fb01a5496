"""Abstract event loop, platform integration and platform timer interfaces."""

from __future__ import annotations

import abc
from typing import Any, Optional

from kdfoundation.bindings import ConnectionEvaluator


class LoopConnectionEvaluator(ConnectionEvaluator):
    """Connection evaluator that wakes its event loop when a call is queued."""

    def __init__(self, event_loop: Optional["AbstractPlatformEventLoop"] = None) -> None:
        super().__init__()
        self.event_loop = event_loop

    def on_invocation_added(self) -> None:
        loop = self.event_loop
        if loop is not None:
            loop.wake_up()


class AbstractPlatformTimer:
    """Platform-specific backing of a Timer."""

    def close(self) -> None:
        """Release the timer's resources; the base class holds none."""


class AbstractPlatformEventLoop(abc.ABC):
    """Waits for activity and delivers it through the postman.

    Timeouts are in milliseconds: -1 waits forever, 0 only polls and a
    positive number waits for up to that long.
    """

    def __init__(self) -> None:
        self.postman: Any = None
        self.connection_evaluator = LoopConnectionEvaluator(self)

    def wait_for_events(self, timeout: int) -> None:
        """Wait for events, then run any deferred slot invocations."""
        self._wait_for_events_impl(timeout)
        # We may have been woken because a deferred invocation was queued.
        if self.connection_evaluator is not None:
            self.connection_evaluator.evaluate_deferred_connections()

    @abc.abstractmethod
    def wake_up(self) -> None:
        """Kick the loop out of waiting; safe to call from any thread."""

    @abc.abstractmethod
    def register_notifier(self, notifier: Any) -> bool:
        """Start watching the notifier's file descriptor."""

    @abc.abstractmethod
    def unregister_notifier(self, notifier: Any) -> bool:
        """Stop watching the notifier's file descriptor."""

    def create_platform_timer(self, timer: Any) -> AbstractPlatformTimer:
        return self._create_platform_timer_impl(timer)

    @abc.abstractmethod
    def _create_platform_timer_impl(self, timer: Any) -> AbstractPlatformTimer:
        ...

    @abc.abstractmethod
    def _wait_for_events_impl(self, timeout: int) -> None:
        ...

    def close(self) -> None:
        """Detach the connection evaluator so it no longer refers to this loop."""
        if self.connection_evaluator is not None:
            self.connection_evaluator.event_loop = None

    def __enter__(self) -> "AbstractPlatformEventLoop":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AbstractPlatformIntegration(abc.ABC):
    """Factory for the platform's event loop."""

    def init(self) -> None:
        """Hook run once the event loop exists; does nothing by default."""

    def create_platform_event_loop(self) -> AbstractPlatformEventLoop:
        return self._create_platform_event_loop_impl()

    @abc.abstractmethod
    def _create_platform_event_loop_impl(self) -> AbstractPlatformEventLoop:
        ...