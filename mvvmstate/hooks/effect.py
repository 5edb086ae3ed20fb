"""Effects: tasks started when a key changes, cancelling the previous one."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Hashable

from ..task_pool import TaskPool
from ..val_state import ValState
from ..view_model import Ui, fetch_model_or_insert

_UNSET = object()


def local_task_pool(ui: Ui) -> TaskPool:
    """The task pool kept at this position of the ui."""
    return ui.memory.get_temp_or_insert(ui.allocate_id(), TaskPool)


def use_effect(ui: Ui, key: Hashable, block: Callable[[Any], Awaitable[None]]) -> None:
    """Run block(key) as a task when key differs from the latched key.

    A task started for an earlier key is aborted first.
    """
    state = fetch_model_or_insert(ui, lambda: ValState((_UNSET, None)))
    with state.get_mut() as effect_state:
        current_key, current_task = effect_state.value
        if current_key is not _UNSET and current_key == key:
            return
        if current_task is not None:
            current_task.abort()
        task = local_task_pool(ui).spawn(block(key))
        effect_state.send_modify(lambda _: (key, task))