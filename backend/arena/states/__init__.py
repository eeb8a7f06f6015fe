"""Timed phase primitives.

A phase is a ``TimedState`` holding a duration and freeze flag, paired
with a behavior object that supplies the start/tick/end hooks.
"""

from .timed_state import (
    PhaseBehavior,
    StateError,
    StateTransitionError,
    TimedState,
    UninitializedStateError,
)

__all__ = [
    'PhaseBehavior',
    'StateError',
    'StateTransitionError',
    'TimedState',
    'UninitializedStateError',
]
