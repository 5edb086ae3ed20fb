import asyncio

import pytest

from mvvmstate.val_state import ValState


@pytest.mark.parametrize(
    ("action", "before", "latest", "after"),
    [
        (lambda s: s.send_value(2), 1, 2, 2),
        (lambda s: s.set(2), 2, 2, 2),
        (lambda s: s.set_untracked(2), 2, 1, 2),
        (lambda s: s.send_modify(lambda v: v + 1), 1, 2, 2),
        (lambda s: s.handle().send_value(2), 1, 2, 2),
        (lambda s: s.handle().set(2), 1, 2, 2),
        (lambda s: s.handle().send_update(lambda v: v + 1), 1, 2, 2),
        (lambda s: s.handle().maybe_send_update(lambda v: (5, False)), 1, 5, 1),
        (lambda s: s.handle().maybe_send_update(lambda v: (5, True)), 1, 5, 5),
    ],
    ids=[
        "send_value",
        "set",
        "set_untracked",
        "send_modify",
        "handle_send_value",
        "handle_set",
        "handle_send_update",
        "maybe_unmodified",
        "maybe_modified",
    ],
)
def test_updates_and_latching(action, before, latest, after):
    state = ValState(1)
    action(state)
    assert (state.value, state.latest_value()) == (before, latest)
    state.latch_state()
    assert state.value == after


def test_maybe_send_update_reports_modified_flag():
    handle = ValState(1).handle()
    assert handle.maybe_send_update(lambda v: (5, False)) is False
    assert handle.maybe_send_update(lambda v: (6, True)) is True


def test_mark_changed_publishes_untracked_value():
    state = ValState("a")
    state.set_untracked("b")
    state.mark_changed()
    assert state.latest_value() == "b"


def test_handle_keeps_snapshot():
    state = ValState("x")
    handle = state.handle()
    state.send_value("y")
    state.latch_value()
    assert (handle.value, handle.latest_value()) == ("x", "y")


def test_handle_value_setter_is_local():
    state = ValState("a")
    handle = state.handle()
    handle.value = "local"
    assert (handle.value, state.latest_value()) == ("local", "a")


def test_make_model_returns_handle_of_latched():
    state = ValState("m")
    model = state.make_model()
    model.send_value("n")
    assert (model.value, state.latest_value()) == ("m", "n")


@pytest.mark.asyncio
async def test_change_detector_wakes_on_send():
    state = ValState(0)
    waiter = asyncio.ensure_future(state.change_detector().wait_for_change())
    await asyncio.sleep(0)
    assert not waiter.done()
    state.send_value(1)
    assert await asyncio.wait_for(waiter, 1) is True


@pytest.mark.asyncio
async def test_change_detector_times_out_without_change():
    state = ValState(0)
    state.send_value(1)
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(state.change_detector().wait_for_change(), 0.05)


@pytest.mark.asyncio
async def test_change_detector_keeps_reporting_a_seen_change():
    state = ValState(0)
    detector = state.change_detector()
    state.mark_changed()
    results = [await asyncio.wait_for(detector.wait_for_change(), 1) for _ in range(2)]
    assert results == [True, True]