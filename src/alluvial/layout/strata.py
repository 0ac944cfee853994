"""
Stratum layout: category boxes stacked along each axis.

For every axis the strata are stacked from y=0 upward in a fixed order and
each receives the contiguous interval [offset, offset + weight). The same
per-axis order is the primary sort key for lodes and flows, which is what
makes lodes partition their strata.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from alluvial import config
from alluvial.forms.levels import first_seen_levels, union_levels
from alluvial.layout.prepare import PreparedLodes, prepare_lodes
from alluvial.logging_utils import log_info
from alluvial.schema import AlluvialSchema


def order_strata(
    strata: pd.Series,
    weights: pd.Series,
    decreasing: Optional[bool] = config.DEFAULT_STRATUM_DECREASING,
    stratum_order: Optional[Sequence] = None,
    levels: Optional[Sequence] = None,
) -> List:
    """
    Bottom-to-top order of the strata observed in `strata`.

    decreasing: True -> heavier first, False -> lighter first, None ->
    base order. Ties keep the base order, which is `levels` restricted to
    the observed strata when given, else categorical order (or first
    appearance). An explicit `stratum_order` wins; unlisted strata follow in
    base order.
    """
    base = first_seen_levels(strata)
    if levels is not None:
        present = set(base)
        base = [s for s in levels if s in present]

    if stratum_order is not None:
        present = set(base)
        explicit = [s for s in stratum_order if s in present]
        listed = set(explicit)
        return explicit + [s for s in base if s not in listed]

    if decreasing is None or len(base) < 2:
        return base

    totals = (
        pd.Series(np.asarray(weights, dtype="float64"), index=strata.index)
        .groupby(strata, sort=False, observed=True)
        .sum()
        .reindex(base)
        .to_numpy()
    )
    order = np.argsort(-totals if decreasing else totals, kind="stable")
    return [base[k] for k in order]


def stratum_orders(
    prep: PreparedLodes,
    decreasing: Optional[bool] = config.DEFAULT_STRATUM_DECREASING,
    stratum_order: Optional[Sequence] = None,
) -> List[List]:
    """Per-axis stratum orders for a prepared lodes table."""
    s = prep.schema
    per_axis = [prep.lodes.loc[prep.axis_idx == a] for a in range(prep.n_axes)]
    levels = union_levels(first_seen_levels(at_axis[s.value]) for at_axis in per_axis)
    return [
        order_strata(at_axis[s.value], at_axis[s.weight], decreasing, stratum_order, levels=levels)
        for at_axis in per_axis
    ]


def stratum_rank_matrix(prep: PreparedLodes, orders: List[List]) -> np.ndarray:
    """(entities x axes) matrix of each lode's stratum position in its axis order."""
    values = prep.lodes[prep.schema.value].to_numpy()
    ranks = np.empty(len(values), dtype="int64")
    for a, order in enumerate(orders):
        lookup: Dict = {s: k for k, s in enumerate(order)}
        rows = np.flatnonzero(prep.axis_idx == a)
        ranks[rows] = [lookup[v] for v in values[rows]]
    return prep.matrix(ranks, fill=-1)


def compute_strata(
    data: pd.DataFrame,
    schema: Optional[AlluvialSchema] = None,
    *,
    decreasing: Optional[bool] = config.DEFAULT_STRATUM_DECREASING,
    stratum_order: Optional[Sequence] = None,
    na_rm: bool = False,
    distill=None,
    logger=None,
) -> pd.DataFrame:
    """
    Stratum boxes for every axis.

    Returns
    -------
    pd.DataFrame
        One row per (axis, stratum), axis by axis, bottom to top:
        ['x', key, value, weight, 'ymin', 'ymax', 'y', 'n_lodes']
        (the key label column is omitted when key is 'x').
    """
    prep = prepare_lodes(data, schema, na_rm=na_rm, distill=distill, logger=logger)
    return strata_from_prepared(prep, stratum_orders(prep, decreasing, stratum_order), logger=logger)


def strata_from_prepared(prep: PreparedLodes, orders: List[List], *, logger=None) -> pd.DataFrame:
    s = prep.schema
    df = prep.lodes
    records = []
    for a, order in enumerate(orders):
        at_axis = df.loc[prep.axis_idx == a]
        grouped = at_axis.groupby(s.value, sort=False, observed=True)[s.weight]
        totals = grouped.sum()
        counts = grouped.size()
        offset = 0.0
        for stratum in order:
            w = float(totals[stratum])
            rec = {"x": a + 1}
            if s.key != "x":
                rec[s.key] = prep.axes[a]
            rec.update(
                {
                    s.value: stratum,
                    s.weight: w,
                    "ymin": offset,
                    "ymax": offset + w,
                    "n_lodes": int(counts[stratum]),
                }
            )
            offset += w
            records.append(rec)

    cols = ["x"] + ([s.key] if s.key != "x" else []) + [s.value, s.weight, "ymin", "ymax", "n_lodes"]
    out = pd.DataFrame.from_records(records, columns=cols)
    out["y"] = (out["ymin"] + out["ymax"]) / 2
    out = out[cols[:-1] + ["y", "n_lodes"]]

    log_info(logger, f"Computed {len(out)} strata over {len(orders)} axes")
    return out
