"""Observable state for small values that are cheap to copy."""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from .channel import ChangeDetector, ChannelClosed, WatchReceiver, WatchSender, watch_channel

S = TypeVar("S")


class ValStateChangeDetector(ChangeDetector, Generic[S]):
    """Waits for new values sent to a ValState."""

    def __init__(self, rx: WatchReceiver[S]) -> None:
        self._rx = rx

    async def wait_for_change(self) -> bool:
        try:
            await self._rx.clone().changed()
        except ChannelClosed:
            return False
        return True


class ValStateHandle(Generic[S]):
    """A detached handle to a ValState, usable from background tasks."""

    def __init__(self, latched: S, tx: WatchSender[S]) -> None:
        self._latched = latched
        self._tx = tx

    @property
    def value(self) -> S:
        """The value latched when the handle was created (or set locally)."""
        return self._latched

    @value.setter
    def value(self, value: S) -> None:
        self._latched = value

    def set(self, value: S) -> None:
        """Publish a new value."""
        self._tx.send_replace(value)

    def latest_value(self) -> S:
        """The most recently sent value."""
        return self._tx.borrow()

    def send_value(self, value: S) -> None:
        """Publish a new value."""
        self._tx.send(value)

    def send_update(self, f: Callable[[S], S]) -> None:
        """Publish f(latest value)."""
        self._tx.send_modify(f)

    def maybe_send_update(self, f: Callable[[S], tuple[S, bool]]) -> bool:
        """Apply f, which returns (new value, modified); notify only if modified."""
        return self._tx.send_if_modified(f)


class ValState(Generic[S]):
    """State holding a value that is treated as immutable and copied freely.

    Reads see the latched value; sent values become visible after latching.
    """

    def __init__(self, value: S) -> None:
        self._tx, self._rx = watch_channel(value)
        self._latched = value

    def __repr__(self) -> str:
        return f"ValState({self._latched!r})"

    @property
    def value(self) -> S:
        """The latched value."""
        return self._latched

    def latch_value(self) -> None:
        """Take the latest sent value as the latched value, if it changed."""
        try:
            stale = self._rx.has_changed()
        except ChannelClosed:
            stale = True
        if stale:
            self._latched = self._rx.borrow_and_update()

    def latest_value(self) -> S:
        """The most recently sent value."""
        return self._tx.borrow()

    def set(self, value: S) -> None:
        """Set the latched value and publish it."""
        self.set_untracked(value)
        self._tx.send(value)

    def set_untracked(self, value: S) -> None:
        """Set the latched value without publishing it."""
        self._latched = value

    def send_value(self, value: S) -> None:
        """Publish a new value; it becomes visible after latching."""
        self._tx.send(value)

    def send_modify(self, f: Callable[[S], S]) -> None:
        """Publish f(latest value)."""
        self._tx.send_modify(f)

    def mark_changed(self) -> None:
        """Publish the current latched value."""
        self._tx.send_replace(self._latched)

    def change_detector(self) -> ValStateChangeDetector[S]:
        return ValStateChangeDetector(self._tx.subscribe())

    def handle(self) -> ValStateHandle[S]:
        return ValStateHandle(self._latched, self._tx)

    def latch_state(self) -> None:
        """Latch the latest value, as a view model does once per frame."""
        self.latch_value()

    def make_model(self) -> ValStateHandle[S]:
        """The handle given to background tasks."""
        return self.handle()