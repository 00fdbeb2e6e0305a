"""Two-variant outcome type shared by every pipeline stage.

Stages return ``Ok(value)`` or ``Err(error)`` instead of raising, so the
orchestrator can branch on the variant without a ``try`` block.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage outcome carrying a value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed stage outcome carrying the reason."""

    error: E

    @property
    def is_ok(self) -> bool:
        return False


Outcome = Ok[T] | Err[E]
