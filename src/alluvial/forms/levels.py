"""
Level (category) ordering helpers shared by conversion and layout.

Axes are ordered like factor levels: declared categorical order when the
column is categorical, otherwise sorted unique values. Strata without an
explicit order keep categorical order or order of first appearance, taken
axis by axis so that alluvia and lodes input agree.
"""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd


def _observed_categories(s: pd.Series) -> List:
    present = set(s.dropna().unique())
    return [c for c in s.cat.categories if c in present]


def axis_levels(s: pd.Series) -> List:
    """Distinct non-missing values of `s` in axis order."""
    if isinstance(s.dtype, pd.CategoricalDtype):
        return _observed_categories(s)
    uniq = pd.unique(s.dropna())
    try:
        return sorted(uniq)
    except TypeError:
        # mixed, unorderable labels
        return list(uniq)


def first_seen_levels(s: pd.Series) -> List:
    """Distinct non-missing values of `s`: categorical order, else first appearance."""
    if isinstance(s.dtype, pd.CategoricalDtype):
        return _observed_categories(s)
    return list(pd.unique(s.dropna()))


def level_codes(s: pd.Series, levels: List) -> pd.Series:
    """Position of each value of `s` in `levels` (-1 when absent or missing)."""
    lookup = {v: i for i, v in enumerate(levels)}
    return s.astype(object).map(lambda v: lookup.get(v, -1)).astype("int64")


def union_levels(level_lists: Iterable[List]) -> List:
    """Concatenate level lists, keeping only the first occurrence of each level."""
    levels: List = []
    seen = set()
    for lv in level_lists:
        for v in lv:
            if v not in seen:
                seen.add(v)
                levels.append(v)
    return levels
