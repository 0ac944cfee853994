"""
Lode positions.

At every axis the lodes (one per entity) are sorted, then stacked with a
running sum of weights down the whole axis. The stratum at the axis itself
is always the primary sort key, so the lodes of a stratum are contiguous
and fill exactly its box from `compute_strata`. Remaining keys come from
the lode guidance (strata at other axes), the aesthetic columns, or an
explicit ordering matrix.

Output (one row per lode):
    input columns + ['x', 'ymin', 'ymax', 'y', 'group']
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from alluvial import config
from alluvial.errors import InvalidOptions, OrderingShapeMismatch
from alluvial.layout.guidance import GuidanceSpec, guidance_sequence, resolve_guidance
from alluvial.layout.prepare import PreparedLodes, prepare_lodes, sort_codes
from alluvial.layout.strata import stratum_orders, stratum_rank_matrix
from alluvial.logging_utils import log_info
from alluvial.schema import AlluvialSchema


def check_lode_ordering(lode_ordering, n_entities: int, n_axes: int) -> np.ndarray:
    """
    Coerce an explicit lode ordering to an (entities x axes) float matrix.

    Accepts a 2-D array / DataFrame, or a list with one entry per axis, each
    a per-entity vector or None (no imposed order at that axis).
    """
    if isinstance(lode_ordering, pd.DataFrame):
        lode_ordering = lode_ordering.to_numpy()

    if isinstance(lode_ordering, (list, tuple)):
        if len(lode_ordering) != n_axes:
            raise OrderingShapeMismatch(
                f"lode_ordering has {len(lode_ordering)} entries; expected one per axis ({n_axes})"
            )
        cols = []
        for k, col in enumerate(lode_ordering):
            if col is None:
                cols.append(np.full(n_entities, np.nan))
                continue
            col = np.asarray(col)
            if col.ndim != 1 or len(col) != n_entities:
                raise OrderingShapeMismatch(
                    f"lode_ordering entry {k} has shape {col.shape}; expected ({n_entities},)"
                )
            cols.append(col)
        lode_ordering = np.column_stack(cols) if cols else np.empty((n_entities, 0))

    mat = np.asarray(lode_ordering)
    if mat.shape != (n_entities, n_axes):
        raise OrderingShapeMismatch(f"lode_ordering has shape {mat.shape}; expected {(n_entities, n_axes)}")
    try:
        return mat.astype("float64")
    except (TypeError, ValueError) as e:
        raise InvalidOptions("lode_ordering must be numeric") from e


def _axis_order(
    a: int,
    ranks: np.ndarray,
    aes_keys: List[np.ndarray],
    *,
    guidance_fn,
    ordering: Optional[np.ndarray],
    bind_by_aes: bool,
) -> np.ndarray:
    """Entity permutation (bottom to top) at axis `a`."""
    if ordering is not None:
        col = ordering[:, a]
        col = np.where(np.isnan(col), np.inf, col)
        return np.lexsort((col, ranks[:, a]))

    seq = guidance_sequence(guidance_fn, ranks.shape[1], a)
    axis_keys = [ranks[:, j] for j in seq]
    if bind_by_aes:
        keys = axis_keys[:1] + aes_keys + axis_keys[1:]
    else:
        keys = axis_keys + aes_keys
    # lexsort: last key is most significant; stable for ties
    return np.lexsort(keys[::-1])


def lodes_from_prepared(
    prep: PreparedLodes,
    orders: List[List],
    *,
    lode_guidance: GuidanceSpec = config.DEFAULT_LODE_GUIDANCE,
    lode_ordering=None,
    bind_by_aes: bool = False,
    logger=None,
) -> pd.DataFrame:
    s = prep.schema
    ordering = None
    if lode_ordering is not None:
        ordering = check_lode_ordering(lode_ordering, prep.n_entities, prep.n_axes)
    guidance_fn = resolve_guidance(lode_guidance)

    ranks = stratum_rank_matrix(prep, orders)
    weights = prep.matrix(prep.lodes[s.weight].to_numpy(dtype="float64"), fill=0.0)
    aes_mats = [prep.matrix(sort_codes(prep.lodes[c]), fill=-1) for c in prep.aes]

    ymin = np.zeros_like(weights)
    ymax = np.zeros_like(weights)
    for a in range(prep.n_axes):
        order = _axis_order(
            a,
            ranks,
            [m[:, a] for m in aes_mats],
            guidance_fn=guidance_fn,
            ordering=ordering,
            bind_by_aes=bind_by_aes,
        )
        w = weights[order, a]
        top = np.cumsum(w)
        ymax[order, a] = top
        ymin[order, a] = np.concatenate(([0.0], top[:-1]))

    out = prep.lodes.copy()
    out["ymin"] = ymin[prep.entity_idx, prep.axis_idx]
    out["ymax"] = ymax[prep.entity_idx, prep.axis_idx]
    out["y"] = (out["ymin"] + out["ymax"]) / 2

    log_info(logger, f"Computed {len(out)} lodes")
    return out


def compute_lodes(
    data: pd.DataFrame,
    schema: Optional[AlluvialSchema] = None,
    *,
    lode_guidance: GuidanceSpec = config.DEFAULT_LODE_GUIDANCE,
    lode_ordering=None,
    bind_by_aes: bool = False,
    decreasing: Optional[bool] = config.DEFAULT_STRATUM_DECREASING,
    stratum_order: Optional[Sequence] = None,
    na_rm: bool = False,
    distill=None,
    logger=None,
) -> pd.DataFrame:
    """
    Vertical positions of every lode.

    Parameters
    ----------
    data:
        Alluvia-form or lodes-form table.
    lode_guidance:
        Strategy name, `LodeGuidance` member or callable `(n_axes, i) -> axes`.
    lode_ordering:
        Explicit (entities x axes) ordering; overrides `lode_guidance`.
        Entities are in order of first appearance.
    bind_by_aes:
        Sort by aesthetics right after the axis's own stratum.
    decreasing, stratum_order:
        Stratum stacking order (see `order_strata`).

    Returns
    -------
    pd.DataFrame
        Lodes-form table with 'x' (axis position), 'ymin', 'ymax', 'y' and
        'group' (entity id as a number).

    Raises
    ------
    OrderingShapeMismatch
        `lode_ordering` does not match (entities x axes).
    """
    prep = prepare_lodes(data, schema, na_rm=na_rm, distill=distill, logger=logger)
    if lode_ordering is not None:
        check_lode_ordering(lode_ordering, prep.n_entities, prep.n_axes)
    orders = stratum_orders(prep, decreasing, stratum_order)
    return lodes_from_prepared(
        prep,
        orders,
        lode_guidance=lode_guidance,
        lode_ordering=lode_ordering,
        bind_by_aes=bind_by_aes,
        logger=logger,
    )
