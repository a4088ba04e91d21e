"""Exceptions raised when finite data cannot stand in for the structure it claims.

These are construction-time rejections. Proof obligations that merely fail
are reported as verdicts (see ``grotop.result``), not raised.
"""

from __future__ import annotations


class GrotopError(Exception):
    """Base class for every error raised by grotop."""


class RelationError(GrotopError):
    """A relation or subset does not live over the stated domains."""


class CategoryError(GrotopError):
    """A composition table does not describe a category."""


class SieveError(GrotopError):
    """A set of arrows is not a sieve on the stated object."""


class PresheafError(GrotopError):
    """Section sets and restriction maps do not form a presheaf."""


class NotAFixedPoint(GrotopError):
    """A subset was passed where a fixed point of a closure was required."""


class EnumerationLimitExceeded(GrotopError):
    """A universal quantification would enumerate more than the configured budget.

    Quantifications over unbounded domains are undecidable in general; this is
    where grotop stops instead of attempting them.
    """

    def __init__(self, what: str, limit: int) -> None:
        super().__init__(f"Enumerating {what} exceeds the budget of {limit} candidates")
        self.what = what
        self.limit = limit


class AmalgamationError(GrotopError):
    """A matching family has no amalgamation, or more than one."""
