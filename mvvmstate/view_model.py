"""View models, the registry that latches them, and the memory/ui context they live in."""

from __future__ import annotations

import asyncio
import threading
import weakref
from contextlib import contextmanager
from itertools import count
from types import SimpleNamespace
from typing import Any, Awaitable, Callable, Generic, Hashable, Iterable, Iterator, NoReturn, TypeVar

from .channel import ChangeDetector, ChannelClosed, WatchReceiver, watch_channel
from .task_pool import TaskHandle, TaskPool

V = TypeVar("V")

_VIEW_MODELS_KEY = object()


async def _first_result(waits: Iterable[Awaitable[bool]]) -> bool:
    """Run the awaitables concurrently and return the result of the first to finish."""
    tasks = [asyncio.ensure_future(w) for w in waits]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    return next(task for task in tasks if task in done).result()


async def _never() -> bool:
    await asyncio.Event().wait()
    return True


async def _changed(rx: WatchReceiver[Any]) -> bool:
    try:
        await rx.changed()
    except ChannelClosed:
        return False
    return True


class _AnyChangeDetector(ChangeDetector):
    """Fires as soon as any of several detectors fires."""

    def __init__(self, detectors: Iterable[ChangeDetector]) -> None:
        self._detectors = list(detectors)

    async def wait_for_change(self) -> bool:
        waits = [d.wait_for_change() for d in self._detectors] or [_never()]
        return await _first_result(waits)


class ViewModel:
    """Base for view models whose public attributes are states or nested view models.

    Every public attribute offering ``latch_state`` and ``make_model`` counts as a field.
    """

    def _fields(self) -> Iterator[tuple[str, Any]]:
        for name, value in vars(self).items():
            if name.startswith("_"):
                continue
            if callable(getattr(value, "latch_state", None)) and callable(
                getattr(value, "make_model", None)
            ):
                yield name, value

    @property
    def task_pool(self) -> TaskPool:
        """The pool that tasks spawned by this view model run in."""
        pool = self.__dict__.get("_task_pool")
        if pool is None:
            pool = self.__dict__.setdefault("_task_pool", TaskPool())
        return pool

    def make_model(self) -> SimpleNamespace:
        """A namespace holding a detached handle for every field."""
        return SimpleNamespace(**{name: f.make_model() for name, f in self._fields()})

    def change_detector(self) -> ChangeDetector:
        """A detector that fires when any field changes."""
        return _AnyChangeDetector(f.change_detector() for _, f in self._fields())

    def latch_state(self) -> None:
        """Latch every field."""
        for _, f in self._fields():
            f.latch_state()

    def spawn(self, f: Callable[[Any], Awaitable[None]]) -> TaskHandle:
        """Run f(model) as a task in this view model's pool."""
        return self.task_pool.spawn(f(self.make_model()))

    def spawn_local(self, f: Callable[[Any], Awaitable[None]]) -> TaskHandle:
        """Run f(model) as a task on this thread's event loop."""
        return self.task_pool.spawn_local(f(self.make_model()))


class _Cell(Generic[V]):
    __slots__ = ("value", "lock", "__weakref__")

    def __init__(self, value: V) -> None:
        self.value = value
        self.lock = threading.RLock()


class ViewModelHandle(Generic[V]):
    """Shared, lockable ownership of one view model."""

    def __init__(self, view_model: V) -> None:
        self._cell = _Cell(view_model)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ViewModelHandle) and other._cell is self._cell

    def __hash__(self) -> int:
        return id(self._cell)

    @contextmanager
    def get(self) -> Iterator[V]:
        """Lock the view model and yield it for reading."""
        with self._cell.lock:
            yield self._cell.value

    @contextmanager
    def get_mut(self) -> Iterator[V]:
        """Lock the view model and yield it for modification."""
        with self._cell.lock:
            yield self._cell.value


class ViewModelsChangeDetector(ChangeDetector):
    """Fires when any registered view model changes or a view model is registered."""

    def __init__(self, rx: WatchReceiver[list[weakref.ref[_Cell[Any]]]]) -> None:
        self._rx = rx

    async def wait_for_change(self) -> bool:
        rx = self._rx.clone()
        detectors = []
        for ref in rx.borrow_and_update():
            cell = ref()
            if cell is None:
                continue
            with cell.lock:
                detectors.append(cell.value.change_detector())
        return await _first_result([_changed(rx), *(d.wait_for_change() for d in detectors)])


class ViewModels:
    """Registry of live view models, held weakly."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._view_models: list[weakref.ref[_Cell[Any]]] = []
        self._tx, _ = watch_channel([])

    def __len__(self) -> int:
        with self._lock:
            return len(self._view_models)

    def change_detector(self) -> ViewModelsChangeDetector:
        return ViewModelsChangeDetector(self._tx.subscribe())

    def latch_values(self) -> None:
        """Latch every live view model and forget the ones that are gone."""
        with self._lock:
            alive = []
            for ref in self._view_models:
                cell = ref()
                if cell is None:
                    continue
                with cell.lock:
                    cell.value.latch_state()
                alive.append(ref)
            self._view_models = alive

    def add(self, handle: ViewModelHandle[Any]) -> None:
        """Register a view model and notify change detectors."""
        with self._lock:
            ref = weakref.ref(handle._cell)
            self._tx.send_modify(lambda refs: [*refs, ref])
            self._view_models = list(self._tx.borrow())


class Memory:
    """Per-application storage of temporary data keyed by id."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._temp: dict[Hashable, Any] = {}

    def get_temp_or_insert(self, key: Hashable, factory: Callable[[], V]) -> V:
        """Return the value stored under key, storing factory() first if absent."""
        with self._lock:
            try:
                return self._temp[key]
            except KeyError:
                value = self._temp[key] = factory()
                return value

    def view_models(self) -> ViewModels:
        """The registry shared by every view model in this memory."""
        return self.get_temp_or_insert(_VIEW_MODELS_KEY, ViewModels)


class Ui:
    """One frame's pass over a region; hands out ids stable from frame to frame."""

    def __init__(self, memory: Memory, ui_id: Hashable = "root") -> None:
        self.memory = memory
        self.id = ui_id
        self._counter = count()

    def allocate_id(self) -> tuple[Hashable, int]:
        """The next id in this pass; the same sequence repeats in every frame."""
        return (self.id, next(self._counter))


def fetch_model_or_insert(ui: Ui, f: Callable[[], V]) -> ViewModelHandle[V]:
    """Return the view model at this position, creating and registering it with f."""
    key = ui.allocate_id()
    inserted = False

    def make() -> ViewModelHandle[V]:
        nonlocal inserted
        inserted = True
        return ViewModelHandle(f())

    handle = ui.memory.get_temp_or_insert(key, make)
    if inserted:
        ui.memory.view_models().add(handle)
    return handle


def fetch_model(ui: Ui, factory: Callable[[], V]) -> ViewModelHandle[V]:
    """Return the view model at this position, building a default one with factory."""
    return fetch_model_or_insert(ui, factory)


async def request_repaint_on_change(memory: Memory, request_repaint: Callable[[], Any]) -> NoReturn:
    """Call request_repaint whenever any registered view model changes; runs until cancelled."""
    detector = memory.view_models().change_detector()
    while True:
        if not await detector.wait_for_change():
            detector = memory.view_models().change_detector()
        request_repaint()