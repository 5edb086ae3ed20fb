"""Observable state for values that are mutated in place and costly to copy."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterator, TypeVar

from .channel import ChangeDetector, ChannelClosed, WatchReceiver, WatchSender, watch_channel

S = TypeVar("S")


@dataclass(eq=False)
class _Slot(Generic[S]):
    """A shared, lockable box around one value."""

    value: S
    lock: threading.Lock = field(default_factory=threading.Lock)


class _SlotGuard(Generic[S]):
    """Access to a locked slot; records writes when tracked."""

    def __init__(self, slot: _Slot[S], tracked: bool) -> None:
        self._slot = slot
        self.changed: bool | None = False if tracked else None

    @property
    def value(self) -> S:
        return self._slot.value

    @value.setter
    def value(self, value: S) -> None:
        self._slot.value = value
        self.mark_changed()

    def mark_changed(self) -> None:
        """Record an in-place mutation of the value."""
        if self.changed is not None:
            self.changed = True


def _updated(slot: _Slot[S], f: Callable[[S], S]) -> _Slot[S]:
    with slot.lock:
        slot.value = f(slot.value)
    return slot


def _maybe_updated(
    slot: _Slot[S], f: Callable[[S], tuple[S, bool]]
) -> tuple[_Slot[S], bool]:
    with slot.lock:
        slot.value, modified = f(slot.value)
    return slot, modified


class RefStateChangeDetector(ChangeDetector, Generic[S]):
    """Waits for new values sent to a RefState."""

    def __init__(self, rx: WatchReceiver[_Slot[S]]) -> None:
        self._rx = rx

    async def wait_for_change(self) -> bool:
        rx = self._rx.clone()
        try:
            await rx.changed()
        except ChannelClosed:
            return False
        return True


class RefStateHandle(Generic[S]):
    """A detached handle to a RefState, usable from background tasks."""

    def __init__(self, latched: _Slot[S], tx: WatchSender[_Slot[S]]) -> None:
        self._latched = latched
        self._tx = tx

    @property
    def value(self) -> S:
        """The value that was latched when the handle was created."""
        with self._latched.lock:
            return self._latched.value

    @contextmanager
    def value_mut(self) -> Iterator[_SlotGuard[S]]:
        """Lock the latched value for modification; nothing is published."""
        slot = self._latched
        with slot.lock:
            yield _SlotGuard(slot, tracked=False)

    def set(self, value: S) -> None:
        """Publish a new value."""
        self._tx.send_replace(_Slot(value))

    def latest_value(self) -> S:
        slot = self._tx.borrow()
        with slot.lock:
            return slot.value

    def send_value(self, value: S) -> None:
        self._tx.send(_Slot(value))

    def send_update(self, f: Callable[[S], S]) -> None:
        """Replace the latest value with f(latest value) and publish it."""
        self._tx.send_modify(lambda slot: _updated(slot, f))

    def maybe_send_update(self, f: Callable[[S], tuple[S, bool]]) -> bool:
        """Apply f, which returns (new value, modified); notify only if modified."""
        return self._tx.send_if_modified(lambda slot: _maybe_updated(slot, f))


class RefState(Generic[S]):
    """State whose value lives in a shared lockable slot instead of being copied.

    Reads see the latched slot; sent values become visible after latching.
    """

    def __init__(self, value: S) -> None:
        slot = _Slot(value)
        self._latched = slot
        self._tx, self._rx = watch_channel(slot)

    def __repr__(self) -> str:
        return f"RefState({self.value!r})"

    @property
    def value(self) -> S:
        """The latched value."""
        with self._latched.lock:
            return self._latched.value

    def latch_value(self) -> None:
        """Take the latest sent slot as the latched one, if it changed."""
        try:
            changed = self._rx.has_changed()
        except ChannelClosed:
            changed = True
        if changed:
            self._latched = self._rx.borrow_and_update()

    def latest_value(self) -> S:
        slot = self._tx.borrow()
        with slot.lock:
            return slot.value

    @contextmanager
    def value_mut(self) -> Iterator[_SlotGuard[S]]:
        """Lock the latched value; publish it on exit if it was changed."""
        slot = self._latched
        with slot.lock:
            guard = _SlotGuard(slot, tracked=True)
            try:
                yield guard
            finally:
                if guard.changed:
                    self._tx.send(slot)

    @contextmanager
    def value_mut_untracked(self) -> Iterator[_SlotGuard[S]]:
        """Lock the latched value for modification without publishing it."""
        slot = self._latched
        with slot.lock:
            yield _SlotGuard(slot, tracked=False)

    def send_value(self, value: S) -> None:
        self._tx.send(_Slot(value))

    def send_modify(self, f: Callable[[S], S]) -> None:
        """Replace the latest value with f(latest value) and publish it."""
        self._tx.send_modify(lambda slot: _updated(slot, f))

    def mark_changed(self) -> None:
        """Publish the latched slot."""
        self._tx.send_replace(self._latched)

    def change_detector(self) -> RefStateChangeDetector[S]:
        return RefStateChangeDetector(self._tx.subscribe())

    def handle(self) -> RefStateHandle[S]:
        return RefStateHandle(self._latched, self._tx)

    def latch_state(self) -> None:
        self.latch_value()

    def make_model(self) -> RefStateHandle[S]:
        return self.handle()