"""Result types for builders that can fail and for proof obligations."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias, TypeVar, Generic

T = TypeVar("T")
E = TypeVar("E", bound=Exception)

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

Result: TypeAlias = Ok[T] | Err[E]


@dataclass(frozen=True)
class Verified:
    """The obligation holds on the data it was evaluated against."""

    obligation: str


@dataclass(frozen=True)
class Violated:
    """The obligation fails; ``witness`` is the offending element, if any."""

    obligation: str
    reason: str
    witness: Any = None


@dataclass(frozen=True)
class Undecided:
    """The obligation was not established: open, or beyond the enumeration budget."""

    obligation: str
    reason: str


Verdict: TypeAlias = Verified | Violated | Undecided


def all_verified(verdicts: Sequence[Verdict]) -> bool:
    return all(isinstance(v, Verified) for v in verdicts)
