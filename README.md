# mvvmstate

Reactive state containers and view models for immediate-mode user interfaces,
built on `asyncio`. The package has no dependencies outside the standard
library.

Each frame, the UI reads a *latched* snapshot of its state. Background tasks
send new values through handles. Those values appear only after the next
latch, so nothing changes under the UI while it draws.

The `test` extra installs pytest and pytest-asyncio for the test suite.

## Building blocks

### `mvvmstate.channel`

- `watch_channel(value)` returns a `WatchSender` and a `WatchReceiver` that
  share one value.
- `WatchSender` publishes values with `send`, `send_replace`, `send_modify(f)`
  and `send_if_modified(f)`. Here `f` returns `(new_value, modified)`, and
  receivers are notified only when `modified` is true. `subscribe()` returns a
  new receiver and `close()` closes the channel.
- `WatchReceiver` offers `has_changed()`, `borrow()`, `borrow_and_update()`,
  `await changed()` and `clone()`. Once the sender is closed, `has_changed()`
  raises `ChannelClosed`. `changed()` also raises it once no unseen value is
  left.
- `ChangeDetector` is the interface for anything that can be awaited until a
  change happens. `await wait_for_change()` returns `True` on a change and
  `False` once the source is closed.

### `mvvmstate.val_state`

`ValState(value)` holds state for small values that are cheap to copy.

- `.value` is the latched value.
- `latch_value()` (or `latch_state()`) takes the newest sent value into the
  snapshot.
- `latest_value()` reads the newest value without latching it.
- `send_value(v)` and `send_modify(f)` publish a value that becomes visible
  after latching.
- `set(v)` changes the latched value and publishes it. `set_untracked(v)`
  changes it without publishing, and `mark_changed()` publishes it later.
- `handle()` (or `make_model()`) returns a `ValStateHandle` for background
  tasks. The handle offers `send_value`, `send_update(f)`,
  `maybe_send_update(f)`, `set` and `latest_value`.
- `change_detector()` returns a `ValStateChangeDetector`.

### `mvvmstate.ref_state`

`RefState(value)` holds a value that is edited in place and is costly to copy.
The value is kept in a shared, locked slot.

- `with state.value_mut() as guard:` locks the value. Assign `guard.value`, or
  mutate the value in place and call `guard.mark_changed()`. The edit is
  published on exit if it was marked as changed.
- `with state.value_mut_untracked() as guard:` edits without publishing. Call
  `state.mark_changed()` afterwards to publish the latched value.
- `latch_value`, `latest_value`, `send_value`, `send_modify`, `handle` and
  `change_detector` work as they do for `ValState`.
- `RefStateHandle` offers the same sending methods as `ValStateHandle`. It
  also has a `value_mut()` context manager that changes the value latched in
  the handle without publishing it.

### `mvvmstate.task_pool`

- `TaskPool.spawn(coro)` and `TaskPool.spawn_local(coro)` run a coroutine as a
  task on the running event loop. They return a `TaskHandle`.
- `TaskHandle.abort()` cancels the task. `TaskHandle.is_finished()` tells
  whether it is done.
- `TaskPool.abort_all()` cancels every task that is still running.
- An exception raised by a task is logged. It is not re-raised.

### `mvvmstate.view_model`

- `ViewModel` is the base class for view models. Every public attribute that
  has `latch_state` and `make_model`, such as a `ValState`, a `RefState` or a
  nested view model, counts as a field.
  - `latch_state()` latches all fields.
  - `make_model()` returns a namespace with a handle for each field.
  - `change_detector()` fires when any field changes.
  - `spawn(f)` runs `f(self.make_model())` in the model's `task_pool`.
- `ViewModelHandle` gives locked access to a view model through the context
  managers `get()` and `get_mut()`.
- `ViewModels` is the registry of live view models, held weakly.
  `latch_values()` latches every live view model and drops the ones that are
  gone.
- `Memory` keeps temporary data by key (`get_temp_or_insert`) and holds the
  `ViewModels` registry (`view_models()`).
- `Ui(memory)` hands out ids with `allocate_id()`. The ids come in the same
  order on every pass, so create a fresh `Ui` for each frame.
- `fetch_model(ui, factory)` and `fetch_model_or_insert(ui, f)` return the
  view model stored at the current position. On first use they create it and
  register it.
- `await request_repaint_on_change(memory, request_repaint)` calls
  `request_repaint()` whenever a registered view model changes. It runs until
  cancelled.

### `mvvmstate.hooks`

- `hooks.state`:
  - `use_val_state(ui, default_factory)` and `use_ref_state(ui, default_factory)`
    keep per-position state. Both have `_or_insert` variants.
- `hooks.effect`:
  - `use_effect(ui, key, block)` runs `block(key)` as a task whenever `key`
    differs from the latched key. It aborts the task started for the earlier
    key.
  - `local_task_pool(ui)` returns the pool kept at the current position.
- `hooks.debounce.use_debounce(ui, value, delay)` returns `value` once it has
  stayed the same for `delay`. The delay is given in seconds or as a
  `timedelta`.

## Example

```python
import asyncio

from mvvmstate.val_state import ValState
from mvvmstate.view_model import Memory, Ui, ViewModel, fetch_model


class Counter(ViewModel):
    def __init__(self):
        self.count = ValState(0)


async def bump(model):
    model.count.send_update(lambda n: n + 1)


async def main():
    memory = Memory()

    handle = fetch_model(Ui(memory), Counter)   # frame 1
    with handle.get() as counter:
        print(counter.count.value)              # 0
        task = counter.spawn(bump)

    while not task.is_finished():
        await asyncio.sleep(0)

    memory.view_models().latch_values()         # start of frame 2
    handle = fetch_model(Ui(memory), Counter)   # same view model again
    with handle.get() as counter:
        print(counter.count.value)              # 1


asyncio.run(main())
```

## What it does not do

The package does not draw anything. `Ui` and `Memory` only hand out stable ids
and keep state between frames. They do not provide widgets, layout or a
window, so showing the state on screen is up to your UI toolkit. The package
also has no declarative syntax for defining views. A view model is an ordinary
subclass of `ViewModel` whose public attributes are states.