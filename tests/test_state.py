import pytest

from mvvmstate.hooks.state import (
    use_ref_state,
    use_ref_state_or_insert,
    use_val_state,
    use_val_state_or_insert,
)
from mvvmstate.view_model import Memory, Ui


def _frame(memory):
    memory.view_models().latch_values()
    return Ui(memory)


def _read(handle):
    with handle.get() as state:
        return state.value


@pytest.mark.parametrize(
    ("hook", "factory", "expected"),
    [(use_val_state, int, 0), (use_ref_state, list, [])],
    ids=["val", "ref"],
)
def test_state_starts_from_default(hook, factory, expected):
    assert _read(hook(Ui(Memory()), factory)) == expected


@pytest.mark.parametrize("hook", [use_val_state_or_insert, use_ref_state_or_insert], ids=["val", "ref"])
def test_or_insert_keeps_first_value(hook):
    memory = Memory()
    first = hook(Ui(memory), lambda: "first")
    second = hook(_frame(memory), lambda: "second")
    assert first == second
    assert _read(second) == "first"


def test_val_state_updates_are_latched_between_frames():
    memory = Memory()
    handle = use_val_state_or_insert(Ui(memory), lambda: 1)
    with handle.get() as state:
        state.send_value(2)
    assert _read(use_val_state_or_insert(_frame(memory), lambda: 1)) == 2


def test_ref_state_mutation_persists_across_frames():
    memory = Memory()
    handle = use_ref_state_or_insert(Ui(memory), lambda: ["a"])
    with handle.get_mut() as state:
        with state.value_mut() as guard:
            guard.value.append("b")
            guard.mark_changed()
    assert _read(use_ref_state_or_insert(_frame(memory), lambda: [])) == ["a", "b"]


def test_states_at_different_positions_are_independent():
    memory = Memory()
    ui = Ui(memory)
    handles = [use_val_state_or_insert(ui, lambda v=v: v) for v in ("x", "y")]
    assert [_read(h) for h in handles] == ["x", "y"]
    assert len(memory.view_models()) == 2