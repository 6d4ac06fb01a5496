# kdfoundation

kdfoundation is a small framework for event-driven applications. It uses only the standard library.

## What is in it

- **`kdfoundation.bindings`** contains `Signal`, `ConnectionHandle`, `Property` and `ConnectionEvaluator`.
  - `Signal.connect(slot)` calls the slot on every `emit(...)`. `Signal.connect_deferred(evaluator, slot)` does not call it directly. It queues the call on a `ConnectionEvaluator`, and the call runs when `evaluate_deferred_connections()` runs.
  - A `Property` emits `value_about_to_change(old, new)` and then `value_changed(new)`, and only when the value really changes.
  - `DestructionHelperManager`, `register_destruction_helper`, `unregister_destruction_helper` and `register_property_destruction_helper` follow the `destroyed` signals of related objects. They run cleanup code, or reset a property to `None`, when the object it depends on is destroyed.
- **`kdfoundation.events`** contains `EventType`, the base `Event` and several event classes: `PostedEvent`, `TimerEvent`, `NotifierEvent`, `QuitEvent`, `ResizeEvent`, `UpdateEvent` and `DeferredDeleteEvent`. It also has `EventReceiver` and `EventQueue`, a thread-safe FIFO. An event type at or above `EventType.USER_TYPE` is stored as a plain integer.
- **`kdfoundation.object`** contains `Object` and `Postman`.
  - `Object` owns children through `add_child`, `create_child` and `take_child`. It emits `parent_changed`, `child_added`, `child_removed` and `destroyed`.
  - `destroy()` emits `destroyed` and then destroys the children, last-added first. `delete_later()` posts a `DeferredDeleteEvent` to the running application.
  - `Postman` delivers events. Filters added with `add_filter` see each event first and can stop delivery by accepting it.
- **`kdfoundation.platform`** contains the abstract interfaces: `AbstractPlatformEventLoop`, `AbstractPlatformIntegration` and `AbstractPlatformTimer`, plus `LoopConnectionEvaluator`. That evaluator wakes its loop whenever a deferred call is queued. `wait_for_events(timeout)` takes a timeout in milliseconds: `-1` waits forever, `0` only polls. After waiting, it runs the deferred slot calls.
- **`kdfoundation.selector_event_loop`** contains `SelectorPlatformEventLoop` and `SelectorPlatformIntegration`.
  - The loop uses `select.select()`. It watches file descriptors for read, write and exception conditions, and it runs periodic timers.
  - `wake_up()` uses a socket pair, so it may be called from any thread.
- **`kdfoundation.file_descriptor_notifier`** contains `FileDescriptorNotifier` and `NotificationType`. A notifier registers with the running application's event loop when it is created. It emits `triggered(fd)` when its descriptor becomes ready, and `close()` unregisters it. A negative descriptor raises `ValueError`.
- **`kdfoundation.timer`** contains `Timer` and `SelectorPlatformTimer`. A `Timer` emits `timeout` every `interval` while `running` is `True`. The interval is a `timedelta` or a number of seconds. A `Timer` can only be created while a `CoreApplication` exists; otherwise `RuntimeError` is raised.
- **`kdfoundation.core_application`** contains `CoreApplication`, the single application object.
  - It owns the event queue, the `Postman` and the event loop. It provides `post_event`, `send_event`, `process_events`, `exec`, `quit` and `close`.
  - Creating a second instance raises `RuntimeError`.
  - The default platform integration is `SelectorPlatformIntegration`.
- **`kdfoundation.utils`** contains small helpers:
  - the records `Extent2D`, `Position2D` and `Rect2D`;
  - `LogLevel` and `create_logger`;
  - `fuzzy_compare` and `fuzzy_is_null`, with an optional single-precision mode;
  - `hash_combine`, a 64-bit mix;
  - `move_at_end`, `move_and_clear` and `index_of`;
  - the text formatters `format_vec3`, `format_vec4`, `format_quat` and `format_mat4`.
- **`kdfoundation.sorting`** contains a quicksort: `sort(items, less)`, and `quick_sort` and `partition` on index ranges.

## Installing

```
pip install .
```

Run the tests with:

```
pip install .[test]
pytest
```

## A first application

```python
from datetime import timedelta

from kdfoundation.core_application import CoreApplication
from kdfoundation.timer import Timer

app = CoreApplication()
timer = Timer()
ticks = []

def on_timeout():
    ticks.append(len(ticks))
    if len(ticks) == 3:
        app.quit()

timer.timeout.connect(on_timeout)
timer.interval.set(timedelta(milliseconds=50))
timer.running.set(True)

app.exec()
timer.close()
app.close()
```

`exec()` returns `0` once the quit event has been processed.

Only one `CoreApplication` can exist at a time, and `CoreApplication.instance()` returns it. `close()` works as follows:

1. It delivers the pending events.
2. It closes the event loop.
3. It clears the instance.

`CoreApplication` can also be used in a `with` block.

## Posting and filtering events

```python
from kdfoundation.core_application import CoreApplication
from kdfoundation.events import Event, EventType
from kdfoundation.object import Object

class Greeter(Object):
    def user_event(self, ev):
        print("got user event", ev.type)

app = CoreApplication()
greeter = Greeter()
app.post_event(greeter, Event(EventType.USER_TYPE + 1))
app.process_events(0)
app.close()
```

`post_event` rejects a `None` target and an event of type `INVALID` with `ValueError`.

## Watching a file descriptor

```python
import os

from kdfoundation.core_application import CoreApplication
from kdfoundation.file_descriptor_notifier import FileDescriptorNotifier, NotificationType

app = CoreApplication()
read_end, write_end = os.pipe()
notifier = FileDescriptorNotifier(read_end, NotificationType.READ)
notifier.triggered.connect(lambda fd: print(os.read(fd, 64)))

os.write(write_end, b"hello")
app.process_events(100)

notifier.close()
app.close()
```

## What it does not do

- It has no windows, input devices or graphics. The event types for mouse, keyboard and resize are defined, but nothing in the package produces them.
- The only event loop is the `select()`-based one. There are no loops that use native operating-system facilities.
- On platforms where `select()` accepts only sockets, you can only watch sockets there, not pipes or files.
- There is no command-line program.