"""
Distillation: collapse a group of values to one representative value.

Used when pivoting lodes form back to alluvia form (one row per entity) and
when duplicate (id, key) lodes must be merged. Unanimous groups always pass
through; non-unanimous groups need a policy:

- "most":  most frequent value, ties -> first encountered
- "first": first row in original order
- "last":  last row in original order
- a callable taking the group's values (pandas Series) and returning one value

Without a policy a non-unanimous group raises AmbiguousDistillation.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from alluvial.errors import AmbiguousDistillation, InvalidOptions


class DistillPolicy(Enum):
    MOST = "most"
    FIRST = "first"
    LAST = "last"


Distiller = Callable[[pd.Series], object]
DistillSpec = Union[None, str, DistillPolicy, Distiller]


def distill_most(values: pd.Series):
    vals = values.dropna()
    if vals.empty:
        return values.iloc[0] if len(values) else np.nan
    # factorize keeps order of first appearance, argmax keeps the first maximum
    codes, uniques = pd.factorize(vals, sort=False)
    counts = np.bincount(codes)
    return uniques[int(np.argmax(counts))]


def distill_first(values: pd.Series):
    return values.iloc[0]


def distill_last(values: pd.Series):
    return values.iloc[-1]


_POLICY_FUNCS = {
    DistillPolicy.MOST: distill_most,
    DistillPolicy.FIRST: distill_first,
    DistillPolicy.LAST: distill_last,
}


def resolve_distiller(policy: DistillSpec) -> Optional[Distiller]:
    """Map a policy name / enum / callable to a function (None stays None)."""
    if policy is None:
        return None
    if isinstance(policy, DistillPolicy):
        return _POLICY_FUNCS[policy]
    if isinstance(policy, str):
        try:
            return _POLICY_FUNCS[DistillPolicy(policy)]
        except ValueError as e:
            raise InvalidOptions(f"Unknown distill policy {policy!r}") from e
    if callable(policy):
        return policy
    raise InvalidOptions(f"distill must be None, a policy name or a callable, got {type(policy).__name__}")


def is_unanimous(values: pd.Series) -> bool:
    return values.nunique(dropna=False) <= 1


def distill_values(values: pd.Series, policy: DistillSpec = None, column=None):
    """Return exactly one value for `values`."""
    if is_unanimous(values):
        return values.iloc[0] if len(values) else np.nan
    fn = resolve_distiller(policy)
    if fn is None:
        raise AmbiguousDistillation(column if column is not None else values.name)
    return fn(values)


def distill_grouped(
    df: pd.DataFrame,
    by: List[str],
    columns: Iterable[str],
    policy: DistillSpec = None,
) -> pd.DataFrame:
    """
    Collapse `columns` of `df` to one row per `by` group.

    Groups appear in order of first appearance. Categorical columns keep
    their dtype.

    Raises
    ------
    AmbiguousDistillation
        When `policy` is None and some group of some column is not unanimous.
    """
    columns = list(columns)
    fn = resolve_distiller(policy)
    grouped = df.groupby(by, sort=False, observed=True)

    if not columns:
        return grouped.size().to_frame("_n").drop(columns="_n")

    if fn is None:
        for c in columns:
            n_distinct = grouped[c].nunique(dropna=False)
            n_bad = int((n_distinct > 1).sum())
            if n_bad:
                raise AmbiguousDistillation(c, n_bad)

    def _pick(s: pd.Series):
        if is_unanimous(s):
            return s.iloc[0]
        return fn(s)

    out = pd.DataFrame({c: grouped[c].agg(_pick) for c in columns})
    for c in columns:
        if isinstance(df[c].dtype, pd.CategoricalDtype):
            out[c] = out[c].astype(df[c].dtype)
    return out
