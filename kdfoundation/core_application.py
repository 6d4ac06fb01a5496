"""The application object that owns the event queue and the event loop."""

from __future__ import annotations

import os
from typing import Any, Optional

from kdfoundation.bindings import ConnectionEvaluator, Property
from kdfoundation.events import Event, EventQueue, EventReceiver, EventType, QuitEvent
from kdfoundation.object import Object, Postman
from kdfoundation.platform import AbstractPlatformEventLoop, AbstractPlatformIntegration
from kdfoundation.selector_event_loop import SelectorPlatformIntegration
from kdfoundation.utils import create_logger


class CoreApplication(Object):
    """Single application instance that queues, delivers and waits for events."""

    _instance: Optional["CoreApplication"] = None

    def __init__(self, platform_integration: Optional[AbstractPlatformIntegration] = None) -> None:
        if CoreApplication._instance is not None:
            raise RuntimeError("a CoreApplication already exists")
        super().__init__()
        CoreApplication._instance = self

        self.application_name = Property("")
        self.default_logger = create_logger("default_log")
        self._logger = create_logger("core_application")

        # Helps with debugging setups on remote hosts.
        display = os.environ.get("DISPLAY")
        if display:
            self._logger.info("DISPLAY=%s", display)

        self._event_queue = EventQueue()
        self._quit_requested = False
        self._postman = Postman()
        self._closed = False

        if platform_integration is None:
            platform_integration = SelectorPlatformIntegration()
        self._platform_integration: Optional[AbstractPlatformIntegration] = platform_integration
        self._event_loop: Optional[AbstractPlatformEventLoop] = (
            platform_integration.create_platform_event_loop()
        )
        platform_integration.init()
        self._event_loop.postman = self._postman

    @staticmethod
    def instance() -> Optional["CoreApplication"]:
        return CoreApplication._instance

    @property
    def event_loop(self) -> Optional[AbstractPlatformEventLoop]:
        return self._event_loop

    @property
    def platform_integration(self) -> Optional[AbstractPlatformIntegration]:
        return self._platform_integration

    @property
    def postman(self) -> Postman:
        return self._postman

    def post_event(self, target: EventReceiver, event: Event) -> None:
        """Queue event for target and wake the event loop."""
        if target is None:
            raise ValueError("target must not be None")
        if event.type == EventType.INVALID:
            raise ValueError("cannot post an event of type INVALID")
        self._event_queue.push(target, event)
        if self._event_loop is not None:
            self._event_loop.wake_up()

    def remove_all_events_targeting(self, receiver: EventReceiver) -> None:
        self._event_queue.remove_all_events_targeting(receiver)

    def event_queue_size(self) -> int:
        return len(self._event_queue)

    def send_event(self, target: EventReceiver, event: Event) -> None:
        """Deliver event to target immediately."""
        self._logger.debug("send_event()")
        self._postman.deliver_event(target, event)

    def process_events(self, timeout: int = 0) -> None:
        """Deliver already-posted events, then wait up to timeout ms for more."""
        for _ in range(len(self._event_queue)):
            posted = self._event_queue.try_pop()
            if posted is None:
                break
            self._postman.deliver_event(posted.target, posted.wrapped_event)

        if self._event_loop is None:
            return
        self._event_loop.wait_for_events(timeout)

    def exec(self) -> int:
        """Run until quit() is processed; returns 0, or 1 without an event loop."""
        if self._event_loop is None:
            return 1
        while not self._quit_requested:
            self.process_events(-1)
        self._quit_requested = False
        return 0

    def quit(self) -> None:
        self.post_event(self, QuitEvent())

    def connection_evaluator(self) -> Optional[ConnectionEvaluator]:
        if self._event_loop is None:
            return None
        return self._event_loop.connection_evaluator

    def event(self, target: EventReceiver, event: Event) -> None:
        if event.type == EventType.QUIT:
            # process_events() goes back to waiting after delivering the queue,
            # so wake the loop once more for exec() to notice the flag.
            self._quit_requested = True
            if self._event_loop is not None:
                self._event_loop.wake_up()
            event.accepted = True
        super().event(target, event)

    def close(self) -> None:
        """Process pending events, then tear down the loop and the instance."""
        if self._closed:
            return
        self.process_events(0)
        self._closed = True
        if self._event_loop is not None:
            self._event_loop.close()
        self._event_loop = None
        self._platform_integration = None
        if CoreApplication._instance is self:
            CoreApplication._instance = None

    def __enter__(self) -> "CoreApplication":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()