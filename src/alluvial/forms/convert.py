"""
Conversion between alluvia form and lodes form.

    alluvia form: [id?, covariates..., axis1, axis2, ..., axisK]
    lodes form:   [id, covariates..., key, value]

`to_lodes` emits rows axis-major (all entities at axis 1, then axis 2, ...).
`to_alluvia` pivots back, collapsing covariates to one value per entity via
a distill policy. Without distillation the two are inverse to each other on
categories and weights.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from alluvial import config
from alluvial.errors import MalformedAlluvialData
from alluvial.forms.detect import is_alluvia_form, resolve_axes, validate_lodes
from alluvial.forms.distill import DistillSpec, distill_grouped
from alluvial.forms.levels import axis_levels, first_seen_levels, union_levels
from alluvial.logging_utils import log_info
from alluvial.schema import AlluvialSchema


def _strata_levels(data: pd.DataFrame, axes: List[str]) -> List:
    """Union of the per-axis category levels, in axis order."""
    return union_levels(
        list(data[a].cat.categories) if isinstance(data[a].dtype, pd.CategoricalDtype) else first_seen_levels(data[a])
        for a in axes
    )


def to_lodes(
    data: pd.DataFrame,
    key: str = config.DEFAULT_KEY,
    value: str = config.DEFAULT_VALUE,
    id: str = config.DEFAULT_ID,
    axes: Optional[Iterable[str]] = None,
    keep: Optional[Iterable[str]] = None,
    *,
    logger=None,
) -> pd.DataFrame:
    """
    Reshape alluvia form to lodes form.

    Parameters
    ----------
    data:
        One row per entity, one column per axis.
    key, value, id:
        Output column names for axis label, category, and entity id. An
        existing `id` column is reused; otherwise ids 1..n are generated.
    axes:
        Axis columns; defaults to the `axis[0-9]*` naming convention.
    keep:
        Axis columns whose values are also copied, under their own name, to
        every lode of the entity.

    Returns
    -------
    pd.DataFrame
        len(data) * len(axes) rows, axis-major. `key` is categorical in axis
        order, `value` categorical over the union of the axes' categories.
    """
    axes = resolve_axes(data.columns, axes)
    if not is_alluvia_form(data, axes, id=id, logger=logger):
        raise MalformedAlluvialData(f"Data is not in alluvia form for axes {axes}")

    keep = list(keep or [])
    not_axes = [k for k in keep if k not in axes]
    if not_axes:
        raise MalformedAlluvialData(f"keep must name axis columns, got {not_axes}")

    others = [c for c in data.columns if c not in axes]
    clashes = [c for c in (key, value) if c in others]
    if clashes:
        raise MalformedAlluvialData(f"Output columns {clashes} already exist in data")

    df = data.copy()
    if id not in df.columns:
        df[id] = np.arange(1, len(df) + 1, dtype="int64")
        others.append(id)

    strata = _strata_levels(df, axes)
    for a in axes:
        # melt cannot stack categoricals with different categories
        df[a] = df[a].astype(object)

    lodes = df.melt(id_vars=others, value_vars=axes, var_name=key, value_name=value)
    lodes[key] = pd.Categorical(lodes[key], categories=axes)
    lodes[value] = pd.Categorical(lodes[value], categories=strata)

    for k in keep:
        lodes[k] = np.tile(data[k].to_numpy(), len(axes))

    log_info(logger, f"to_lodes: {len(df)} entities x {len(axes)} axes")
    return lodes


def to_alluvia(
    data: pd.DataFrame,
    key: str = config.DEFAULT_KEY,
    value: str = config.DEFAULT_VALUE,
    id: str = config.DEFAULT_ID,
    distill: DistillSpec = None,
    *,
    logger=None,
) -> pd.DataFrame:
    """
    Reshape lodes form to alluvia form: one row per entity (first-seen order),
    one column per axis (axis order).

    Covariates (columns other than key / value / id) must be constant within
    each entity unless `distill` says how to collapse them; duplicate
    (id, key) rows are collapsed the same way.

    Raises
    ------
    MalformedAlluvialData
        Required columns are absent.
    InconsistentAxisSet
        Some entity lacks a row at some axis.
    AmbiguousDistillation
        A group is not unanimous and no policy was given.
    """
    schema = AlluvialSchema(key=key, value=value, id=id)
    validate_lodes(data, schema)

    axes = axis_levels(data[key])
    ids = pd.unique(data[id])

    wide = distill_grouped(data, [id, key], [value], distill)[value].unstack(key)
    wide = wide.reindex(index=ids, columns=axes)
    wide.columns = list(wide.columns)
    if isinstance(data[value].dtype, pd.CategoricalDtype):
        # each axis gets the value categories it observes, in category order
        cats = data[value].cat.categories
        for a in wide.columns:
            present = set(wide[a].dropna())
            wide[a] = pd.Categorical(
                wide[a], categories=[c for c in cats if c in present], ordered=data[value].cat.ordered
            )

    covariates = [c for c in data.columns if c not in (key, value, id)]
    cov = distill_grouped(data, [id], covariates, distill).reindex(ids)

    out = pd.concat([cov, wide], axis=1)
    out.index.name = id
    out = out.reset_index()

    log_info(logger, f"to_alluvia: {len(out)} entities x {len(axes)} axes")
    return out


def distill_lodes(
    data: pd.DataFrame,
    schema: Optional[AlluvialSchema] = None,
    distill: DistillSpec = None,
) -> pd.DataFrame:
    """Collapse duplicate (id, key) lodes to one row each, keeping first-seen order."""
    schema = schema or AlluvialSchema()
    by = [schema.id, schema.key]
    if not data.duplicated(subset=by).any():
        return data.copy()

    others = [c for c in data.columns if c not in by]
    out = distill_grouped(data, by, others, distill).reset_index()
    for c in by:
        if isinstance(data[c].dtype, pd.CategoricalDtype):
            out[c] = out[c].astype(data[c].dtype)
    return out[list(data.columns)]
