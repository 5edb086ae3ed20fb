"""Single-value broadcast channels and the change-detector interface."""

from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised when the sending side of a watch channel has been closed."""


class ChangeDetector(ABC):
    """Something that can be awaited until a piece of state changes."""

    @abstractmethod
    async def wait_for_change(self) -> bool:
        """Wait for a change: True when one happened, False once the source is closed."""


def _wake(fut: asyncio.Future[None]) -> None:
    if not fut.done():
        fut.set_result(None)


class _Shared(Generic[T]):
    """State shared between the sender and all receivers of one channel."""

    def __init__(self, value: T) -> None:
        self.lock = threading.RLock()
        self.value = value
        self.version = 0
        self.closed = False
        self.waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]] = []

    def notify(self) -> None:
        waiters, self.waiters = self.waiters, []
        for loop, fut in waiters:
            try:
                loop.call_soon_threadsafe(_wake, fut)
            except RuntimeError:
                # The waiter's loop is already closed; nobody is left to wake.
                pass

    def bump(self) -> None:
        self.version += 1
        self.notify()

    def ensure_open(self) -> None:
        if self.closed:
            raise ChannelClosed("the watch channel is closed")


class WatchReceiver(Generic[T]):
    """Receiving end of a watch channel; remembers which version it has seen."""

    def __init__(self, shared: _Shared[T], seen: int) -> None:
        self._shared = shared
        self._seen = seen

    def has_changed(self) -> bool:
        """Whether a value newer than the last one seen is available.

        Raises ChannelClosed if the sender has been closed.
        """
        shared = self._shared
        with shared.lock:
            shared.ensure_open()
            return shared.version != self._seen

    def borrow(self) -> T:
        """Return the current value without marking it as seen."""
        with self._shared.lock:
            return self._shared.value

    def borrow_and_update(self) -> T:
        """Return the current value and mark it as seen."""
        shared = self._shared
        with shared.lock:
            self._seen = shared.version
            return shared.value

    async def changed(self) -> None:
        """Wait until a value newer than the last one seen is sent, then mark it seen.

        Raises ChannelClosed if the sender is closed with no unseen value left.
        """
        loop = asyncio.get_running_loop()
        shared = self._shared
        while True:
            with shared.lock:
                if shared.version != self._seen:
                    self._seen = shared.version
                    return
                if shared.closed:
                    raise ChannelClosed("the watch channel is closed")
                fut: asyncio.Future[None] = loop.create_future()
                entry = (loop, fut)
                shared.waiters.append(entry)
            try:
                await fut
            finally:
                with shared.lock:
                    if entry in shared.waiters:
                        shared.waiters.remove(entry)

    def clone(self) -> WatchReceiver[T]:
        """Return a new receiver that has seen the same version as this one."""
        return WatchReceiver(self._shared, self._seen)


class WatchSender(Generic[T]):
    """Sending end of a watch channel."""

    def __init__(self, shared: _Shared[T]) -> None:
        self._shared = shared

    @property
    def closed(self) -> bool:
        return self._shared.closed

    def subscribe(self) -> WatchReceiver[T]:
        """Return a receiver that has already seen the current value."""
        shared = self._shared
        with shared.lock:
            return WatchReceiver(shared, shared.version)

    def borrow(self) -> T:
        """Return the latest value sent."""
        with self._shared.lock:
            return self._shared.value

    def send(self, value: T) -> None:
        """Store a new value and notify all receivers."""
        shared = self._shared
        with shared.lock:
            shared.ensure_open()
            shared.value = value
            shared.bump()

    def send_replace(self, value: T) -> T:
        """Store a new value, notify all receivers and return the previous value."""
        shared = self._shared
        with shared.lock:
            shared.ensure_open()
            old, shared.value = shared.value, value
            shared.bump()
            return old

    def send_modify(self, f: Callable[[T], T]) -> None:
        """Replace the value with f(current value) and notify all receivers."""
        shared = self._shared
        with shared.lock:
            shared.ensure_open()
            shared.value = f(shared.value)
            shared.bump()

    def send_if_modified(self, f: Callable[[T], tuple[T, bool]]) -> bool:
        """Apply f, which returns (new value, modified).

        The new value is always stored; receivers are notified only when
        modified is true. Returns modified.
        """
        shared = self._shared
        with shared.lock:
            shared.ensure_open()
            new, modified = f(shared.value)
            shared.value = new
            if modified:
                shared.bump()
            return bool(modified)

    def close(self) -> None:
        """Close the channel, waking every waiting receiver."""
        shared = self._shared
        with shared.lock:
            shared.closed = True
            shared.notify()


def watch_channel(value: Any) -> tuple[WatchSender[Any], WatchReceiver[Any]]:
    """Create a watch channel holding ``value``; return its sender and a receiver."""
    shared: _Shared[Any] = _Shared(value)
    return WatchSender(shared), WatchReceiver(shared, shared.version)