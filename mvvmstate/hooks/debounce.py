"""Debouncing a value that changes from frame to frame."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Hashable, TypeVar

from ..view_model import Ui
from .effect import use_effect
from .state import use_val_state_or_insert

T = TypeVar("T", bound=Hashable)


def use_debounce(ui: Ui, value: T, delay: float | timedelta) -> T:
    """Return value once it has stayed the same for delay (seconds or a timedelta).

    Until then the previously settled value is returned.
    """
    seconds = delay.total_seconds() if isinstance(delay, timedelta) else float(delay)
    state = use_val_state_or_insert(ui, lambda: value)
    with state.get() as debounced:
        handle = debounced.handle()

    async def settle(key: tuple[T, float]) -> None:
        settled, wait = key
        await asyncio.sleep(wait)
        handle.send_update(lambda _: settled)

    use_effect(ui, (value, seconds), settle)

    with state.get() as debounced:
        return debounced.value