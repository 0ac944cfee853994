"""
Missing-value policy.

- na_rm=True: entities with a missing category or weight are dropped whole,
  so every remaining entity still covers every axis.
- na_rm=False: missing categories become the sentinel category
  `config.NA_LABEL`; missing weights count as 0.
"""

from __future__ import annotations

from typing import List

import pandas as pd

from alluvial import config
from alluvial.logging_utils import log_info
from alluvial.schema import AlluvialSchema


def na_keep_column(s: pd.Series) -> pd.Series:
    """Replace missing values of a category column by the NA sentinel."""
    if not s.isna().any():
        return s
    if isinstance(s.dtype, pd.CategoricalDtype):
        if config.NA_LABEL not in s.cat.categories:
            s = s.cat.add_categories([config.NA_LABEL])
        return s.fillna(config.NA_LABEL)
    return s.astype(object).where(s.notna(), config.NA_LABEL)


def handle_missing(
    data: pd.DataFrame,
    category_cols: List[str],
    schema: AlluvialSchema,
    *,
    na_rm: bool = False,
    entity_col=None,
    logger=None,
) -> pd.DataFrame:
    """
    Apply the missing-value policy to `category_cols` (axis columns in alluvia
    form, the value column in lodes form) and the weight column.

    `entity_col` groups rows into entities (lodes form); without it every row
    is an entity.
    """
    df = data.copy()
    tracked = list(category_cols)
    has_weight = schema.weight in df.columns
    if has_weight:
        tracked.append(schema.weight)

    if na_rm:
        bad_rows = df[tracked].isna().any(axis=1)
        if entity_col is not None:
            bad_ids = df.loc[bad_rows, entity_col].unique()
            bad_rows = df[entity_col].isin(bad_ids)
            n_bad = len(bad_ids)
        else:
            n_bad = int(bad_rows.sum())
        if n_bad:
            log_info(logger, f"Dropped {n_bad} entities with missing values")
        return df.loc[~bad_rows].reset_index(drop=True)

    for c in category_cols:
        df[c] = na_keep_column(df[c])
    if has_weight and df[schema.weight].isna().any():
        log_info(logger, f"Missing {schema.weight!r} values treated as 0")
        df[schema.weight] = df[schema.weight].fillna(0)
    return df
