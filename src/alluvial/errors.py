"""
Exception taxonomy for alluvial.

Every error raised for bad input or configuration derives from
`AlluvialError`, itself a `ValueError`, so callers that already guard
dataframe transformations with `except ValueError` keep working.

None of these errors is transient: the operations are deterministic, so
the remedy is always to fix the input table or the options.
"""

from __future__ import annotations


class AlluvialError(ValueError):
    """Base class for all alluvial input / configuration errors."""


class MalformedAlluvialData(AlluvialError):
    """The table is neither in alluvia form nor in lodes form."""


class InconsistentAxisSet(AlluvialError):
    """Entities do not share an identical set of axes."""


class AmbiguousDistillation(AlluvialError):
    """Collapsing a group to one value would lose information."""

    def __init__(self, column, n_groups: int = 1):
        self.column = column
        self.n_groups = n_groups
        super().__init__(
            f"Column {column!r} has {n_groups} non-unanimous group(s); "
            f"supply a distill policy ('most', 'first', 'last' or a callable)"
        )


class OrderingShapeMismatch(AlluvialError):
    """An explicit lode ordering does not match (entities x axes)."""


class InvalidOptions(AlluvialError):
    """Options could not be decoded or name an unknown policy."""
