"""Transient overrides — uncommitted gesture values shadowing committed ones.

Each draggable axis holds either ``COMMITTED`` (no override) or an
``Overridden`` wrapper around the in-flight value. :func:`resolve` is the
single place where the effective value is chosen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class _Committed:
    """Marker: the axis shows its committed value."""

    _instance: _Committed | None = None

    def __new__(cls) -> _Committed:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "COMMITTED"


COMMITTED = _Committed()


@dataclass(frozen=True)
class Overridden(Generic[T]):
    value: T


OverrideSlot = Union[_Committed, Overridden[Any]]


def resolve(slot: OverrideSlot, committed: T) -> T:
    """Effective value of an axis."""
    if isinstance(slot, Overridden):
        return slot.value
    return committed


def is_overridden(slot: OverrideSlot) -> bool:
    return isinstance(slot, Overridden)
