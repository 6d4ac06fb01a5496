import logging

import pytest

from kdfoundation.events import (
    DeferredDeleteEvent,
    Event,
    EventType,
    QuitEvent,
    TimerEvent,
)
from kdfoundation.object import Object, Postman


class Recorder(Object):
    def __init__(self, name=""):
        super().__init__()
        self.object_name = name
        self.timer_events = []
        self.user_events = []

    def timer_event(self, ev):
        self.timer_events.append(ev)

    def user_event(self, ev):
        self.user_events.append(ev)


class AcceptingFilter(Object):
    def __init__(self, accept):
        super().__init__()
        self.accept = accept
        self.seen = []

    def event(self, target, ev):
        self.seen.append((target, ev))
        ev.accepted = self.accept


def test_add_child_sets_parent_and_emits():
    parent, child = Object(), Object()
    added, parent_changes = [], []
    parent.child_added.connect(lambda p, c: added.append((p, c)))
    child.parent_changed.connect(lambda c, p: parent_changes.append((c, p)))
    assert parent.add_child(child) is child
    assert child.parent is parent
    assert parent.children == (child,)
    assert added == [(parent, child)]
    assert parent_changes == [(child, parent)]


def test_add_child_with_parent_raises():
    a, b, child = Object(), Object(), Object()
    a.add_child(child)
    with pytest.raises(ValueError):
        b.add_child(child)


def test_create_child_constructs_and_adopts():
    parent = Object()
    child = parent.create_child(Recorder, "kid")
    assert child.object_name == "kid"
    assert child.parent is parent
    assert parent.children == (child,)


def test_take_child_releases_ownership():
    parent, child = Object(), Object()
    parent.add_child(child)
    removed = []
    parent.child_removed.connect(lambda p, c: removed.append(c))
    assert parent.take_child(child) is child
    assert child.parent is None
    assert parent.children == ()
    assert removed == [child]


def test_take_unknown_child_returns_none():
    assert Object().take_child(Object()) is None


def test_destroy_emits_and_removes_children_lifo():
    parent = Object()
    first = parent.add_child(Object())
    second = parent.add_child(Object())
    removed, destroyed = [], []
    parent.child_removed.connect(lambda p, c: removed.append(c))
    parent.destroyed.connect(lambda o: destroyed.append(o))
    first.destroyed.connect(lambda o: destroyed.append(o))
    parent.destroy()
    assert removed == [second, first]
    assert destroyed == [parent, first]
    assert parent.children == ()
    assert first.is_destroyed and second.is_destroyed


def test_destroy_swallows_slot_exceptions(caplog):
    obj = Object()

    def boom(_):
        raise RuntimeError("fail")

    obj.destroyed.connect(boom)
    with caplog.at_level(logging.ERROR):
        obj.destroy()
    assert obj.is_destroyed
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_event_dispatches_timer_and_user_events():
    obj = Recorder()
    timer = TimerEvent()
    user = Event(EventType.USER_TYPE + 3)
    obj.event(obj, timer)
    obj.event(obj, user)
    obj.event(obj, QuitEvent())
    assert obj.timer_events == [timer]
    assert obj.user_events == [user]


def test_event_for_other_target_is_ignored():
    obj = Recorder()
    obj.event(Object(), TimerEvent())
    assert obj.timer_events == []


def test_deferred_delete_event_destroys_object():
    obj = Object()
    destroyed = []
    obj.destroyed.connect(lambda o: destroyed.append(o))
    obj.event(obj, DeferredDeleteEvent())
    assert destroyed == [obj]


def test_postman_delivers_to_target():
    postman = Postman()
    target = Recorder()
    ev = TimerEvent()
    postman.deliver_event(target, ev)
    assert target.timer_events == [ev]


def test_accepting_filter_stops_delivery():
    postman = Postman()
    flt = AcceptingFilter(accept=True)
    postman.add_filter(flt)
    target = Recorder()
    ev = TimerEvent()
    postman.deliver_event(target, ev)
    assert flt.seen == [(target, ev)]
    assert target.timer_events == []


def test_non_accepting_filter_passes_event_on():
    postman = Postman()
    flt = AcceptingFilter(accept=False)
    postman.add_filter(flt)
    target = Recorder()
    ev = TimerEvent()
    postman.deliver_event(target, ev)
    assert len(flt.seen) == 1
    assert target.timer_events == [ev]


def test_add_and_remove_filter():
    postman = Postman()
    flt = AcceptingFilter(accept=True)
    postman.add_filter(flt)
    assert postman.filters == (flt,)
    postman.remove_filter(flt)
    assert postman.filters == ()
    postman.remove_filter(flt)
    assert postman.filters == ()


def test_add_none_filter_raises():
    with pytest.raises(ValueError):
        Postman().add_filter(None)