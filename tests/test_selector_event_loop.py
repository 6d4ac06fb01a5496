import socket
import threading
import time
from datetime import timedelta

import pytest

from kdfoundation.bindings import Signal
from kdfoundation.file_descriptor_notifier import FileDescriptorNotifier, NotificationType
from kdfoundation.object import Postman
from kdfoundation.platform import AbstractPlatformTimer
from kdfoundation.selector_event_loop import SelectorPlatformEventLoop, SelectorPlatformIntegration


class CountingTimer(AbstractPlatformTimer):
    def __init__(self):
        self.fired = 0

    def fire(self):
        self.fired += 1


@pytest.fixture
def loop():
    with SelectorPlatformEventLoop() as event_loop:
        event_loop.postman = Postman()
        yield event_loop


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    a.setblocking(False)
    yield a, b
    a.close()
    b.close()


def _watch_idle(loop, sock):
    """Register a read notifier on a socket that receives nothing."""
    calls = []
    notifier = FileDescriptorNotifier(sock.fileno(), NotificationType.READ)
    notifier.triggered.connect(calls.append)
    assert loop.register_notifier(notifier) is True
    return calls


def test_can_poll_for_events(loop):
    signal = Signal()
    received = []
    signal.connect_deferred(loop.connection_evaluator, received.append)
    signal.emit("poll")
    start = time.monotonic()
    loop.wait_for_events(0)
    assert time.monotonic() - start < 1.0
    assert received == ["poll"]


def test_can_wait_for_events_with_timeout(loop, pair):
    a, _ = pair
    calls = _watch_idle(loop, a)
    start = time.monotonic()
    loop.wait_for_events(100)
    elapsed = time.monotonic() - start
    assert 0.09 <= elapsed < 5.0
    assert calls == []
    assert loop.registered_file_descriptor_count() == 1


def test_can_wake_up_from_another_thread(loop, pair):
    a, _ = pair
    calls = _watch_idle(loop, a)
    ready = threading.Event()

    def call_wake_up():
        ready.wait()
        time.sleep(0.5)
        loop.wake_up()

    thread = threading.Thread(target=call_wake_up)
    thread.start()
    ready.set()
    start = time.monotonic()
    loop.wait_for_events(10000)
    elapsed = time.monotonic() - start
    thread.join()
    assert elapsed < 10.0
    assert calls == []


def test_pending_wake_up_is_consumed(loop, pair):
    a, _ = pair
    calls = _watch_idle(loop, a)
    loop.wake_up()
    start = time.monotonic()
    loop.wait_for_events(10000)
    assert time.monotonic() - start < 5.0
    start = time.monotonic()
    loop.wait_for_events(100)
    assert time.monotonic() - start >= 0.09
    assert calls == []


def test_deferred_invocation_from_thread_runs_in_loop(loop):
    signal = Signal()
    received = []
    signal.connect_deferred(loop.connection_evaluator, received.append)
    thread = threading.Thread(target=lambda: (time.sleep(0.2), signal.emit("KDFoundation")))
    thread.start()
    loop.wait_for_events(10000)
    thread.join()
    assert received == ["KDFoundation"]


def test_can_watch_a_socket(loop, pair):
    a, b = pair
    data_to_send = b"KDFoundation"

    unregistered_calls = []
    unregistered = FileDescriptorNotifier(a.fileno(), NotificationType.READ)
    unregistered.triggered.connect(unregistered_calls.append)
    assert loop.register_notifier(unregistered) is True
    assert loop.unregister_notifier(unregistered) is True

    received = bytearray()
    read_notifier = FileDescriptorNotifier(a.fileno(), NotificationType.READ)
    read_notifier.triggered.connect(lambda fd: received.extend(a.recv(128)))
    assert loop.register_notifier(read_notifier) is True

    write_triggered = []
    write_notifier = FileDescriptorNotifier(a.fileno(), NotificationType.WRITE)
    write_notifier.triggered.connect(write_triggered.append)
    assert loop.register_notifier(write_notifier) is True

    b.sendall(data_to_send)
    for _ in range(3):
        loop.wait_for_events(1000)
        if bytes(received) == data_to_send:
            break

    assert unregistered_calls == []
    assert len(write_triggered) >= 1
    assert write_triggered[0] == a.fileno()
    assert bytes(received) == data_to_send


def test_registering_same_kind_twice_fails(loop, pair):
    a, _ = pair
    first = FileDescriptorNotifier(a.fileno(), NotificationType.READ)
    second = FileDescriptorNotifier(a.fileno(), NotificationType.READ)
    assert loop.register_notifier(first) is True
    assert loop.register_notifier(second) is False
    assert loop.registered_file_descriptor_count() == 1


def test_count_tracks_descriptors_not_notifiers(loop, pair):
    a, b = pair
    read_a = FileDescriptorNotifier(a.fileno(), NotificationType.READ)
    write_a = FileDescriptorNotifier(a.fileno(), NotificationType.WRITE)
    read_b = FileDescriptorNotifier(b.fileno(), NotificationType.READ)
    for notifier in (read_a, write_a, read_b):
        assert loop.register_notifier(notifier)
    assert loop.registered_file_descriptor_count() == 2
    assert loop.unregister_notifier(read_a)
    assert loop.registered_file_descriptor_count() == 2
    assert loop.unregister_notifier(write_a)
    assert loop.unregister_notifier(read_b)
    assert loop.registered_file_descriptor_count() == 0


def test_unregistering_unknown_notifier_fails(loop, pair):
    a, _ = pair
    notifier = FileDescriptorNotifier(a.fileno(), NotificationType.READ)
    assert loop.unregister_notifier(notifier) is False
    assert loop.unregister_notifier(None) is False
    assert loop.register_notifier(None) is False


def test_invalid_descriptor_cannot_be_registered(loop):
    notifier = FileDescriptorNotifier(999999, NotificationType.READ)
    assert loop.register_notifier(notifier) is False
    assert loop.registered_file_descriptor_count() == 0


def test_no_postman_means_no_delivery(pair):
    a, b = pair
    with SelectorPlatformEventLoop() as loop:
        calls = []
        notifier = FileDescriptorNotifier(a.fileno(), NotificationType.READ)
        notifier.triggered.connect(calls.append)
        assert loop.register_notifier(notifier)
        b.sendall(b"x")
        loop.wait_for_events(100)
        assert calls == []


def test_timer_fires_after_interval(loop):
    timer = CountingTimer()
    loop.schedule_timer(timer, 0.02)
    start = time.monotonic()
    loop.wait_for_events(1000)
    assert timer.fired == 1
    assert time.monotonic() - start < 1.0


def test_timer_is_periodic(loop):
    timer = CountingTimer()
    loop.schedule_timer(timer, timedelta(milliseconds=10))
    deadline = time.monotonic() + 5.0
    while timer.fired < 3 and time.monotonic() < deadline:
        loop.wait_for_events(1000)
    assert timer.fired >= 3


def test_cancelled_timer_does_not_fire(loop):
    timer = CountingTimer()
    loop.schedule_timer(timer, 0.02)
    loop.cancel_timer(timer)
    loop.wait_for_events(100)
    assert timer.fired == 0


def test_zero_interval_disarms(loop):
    timer = CountingTimer()
    loop.schedule_timer(timer, 0.02)
    loop.schedule_timer(timer, 0)
    loop.wait_for_events(100)
    assert timer.fired == 0


def test_wait_after_close_raises():
    loop = SelectorPlatformEventLoop()
    loop.close()
    with pytest.raises(RuntimeError):
        loop.wait_for_events(0)


def test_integration_creates_selector_loop():
    loop = SelectorPlatformIntegration().create_platform_event_loop()
    try:
        assert isinstance(loop, SelectorPlatformEventLoop)
        assert loop.registered_file_descriptor_count() == 0
    finally:
        loop.close()