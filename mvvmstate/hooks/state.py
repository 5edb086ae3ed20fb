"""Hooks that keep a piece of state at a position in the ui across frames."""

from __future__ import annotations

from typing import Callable, TypeVar

from ..ref_state import RefState
from ..val_state import ValState
from ..view_model import Ui, ViewModelHandle, fetch_model_or_insert

T = TypeVar("T")


def use_ref_state_or_insert(ui: Ui, f: Callable[[], T]) -> ViewModelHandle[RefState[T]]:
    """The RefState at this position, created from f() the first time."""
    return fetch_model_or_insert(ui, lambda: RefState(f()))


def use_ref_state(ui: Ui, default_factory: Callable[[], T]) -> ViewModelHandle[RefState[T]]:
    """The RefState at this position, starting from default_factory()."""
    return use_ref_state_or_insert(ui, default_factory)


def use_val_state_or_insert(ui: Ui, f: Callable[[], T]) -> ViewModelHandle[ValState[T]]:
    """The ValState at this position, created from f() the first time."""
    return fetch_model_or_insert(ui, lambda: ValState(f()))


def use_val_state(ui: Ui, default_factory: Callable[[], T]) -> ViewModelHandle[ValState[T]]:
    """The ValState at this position, starting from default_factory()."""
    return use_val_state_or_insert(ui, default_factory)