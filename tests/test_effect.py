import asyncio

import pytest

from mvvmstate.hooks.effect import local_task_pool, use_effect
from mvvmstate.val_state import ValState
from mvvmstate.view_model import Memory, Ui


def _frames(memory):
    """Yield one Ui per frame, latching the view models in between."""
    while True:
        yield Ui(memory)
        memory.view_models().latch_values()


async def _eventually(predicate, timeout=1.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(poll(), timeout)


def _gated(gate):
    async def work():
        await gate.wait()

    return work()


@pytest.mark.asyncio
async def test_local_task_pool_is_stable_across_frames():
    memory = Memory()
    gate = asyncio.Event()
    handle = local_task_pool(Ui(memory)).spawn(_gated(gate))
    await asyncio.sleep(0)
    again = local_task_pool(Ui(memory))
    assert len(again) == 1
    gate.set()
    await _eventually(lambda: handle.is_finished() and len(again) == 0)
    assert len(again) == 0


@pytest.mark.asyncio
async def test_local_task_pools_differ_by_position():
    ui = Ui(Memory())
    first, second = local_task_pool(ui), local_task_pool(ui)
    gate = asyncio.Event()
    handle = first.spawn(_gated(gate))
    await asyncio.sleep(0)
    assert (len(first), len(second)) == (1, 0)
    gate.set()
    await _eventually(handle.is_finished)
    assert handle.is_finished() is True


def test_use_effect_needs_running_loop():
    async def block(key):
        return None

    with pytest.raises(RuntimeError):
        use_effect(Ui(Memory()), "a", block)


@pytest.mark.asyncio
async def test_use_effect_runs_block_with_key():
    seen = ValState(None).handle()

    async def block(key):
        seen.send_value(key)

    use_effect(Ui(Memory()), "a", block)
    await _eventually(lambda: seen.latest_value() is not None)
    assert seen.latest_value() == "a"


@pytest.mark.asyncio
async def test_use_effect_same_key_does_not_rerun():
    frames = _frames(Memory())
    runs = ValState(0).handle()

    async def block(key):
        runs.send_update(lambda n: n + 1)

    use_effect(next(frames), "a", block)
    await _eventually(lambda: runs.latest_value() >= 1)
    for _ in range(2):
        use_effect(next(frames), "a", block)
    await asyncio.sleep(0.01)
    assert runs.latest_value() == 1


@pytest.mark.asyncio
async def test_use_effect_new_key_aborts_previous_task():
    frames = _frames(Memory())
    log = ValState(()).handle()

    def record(event):
        log.send_update(lambda events: events + (event,))

    async def block(key):
        record(("start", key))
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            record(("cancel", key))
            raise

    use_effect(next(frames), 1, block)
    await _eventually(lambda: log.latest_value())
    assert log.latest_value() == (("start", 1),)
    use_effect(next(frames), 2, block)
    await _eventually(lambda: {("start", 2), ("cancel", 1)} <= set(log.latest_value()))
    events = set(log.latest_value())
    assert {("start", 2), ("cancel", 1)} <= events
    assert ("cancel", 2) not in events