"""
Typed success/failure values.

Store mutations, pattern compilation and AI dispatch return these instead of
raising, so callers branch on the outcome explicitly.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying the error that caused it."""
    error: E

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]
