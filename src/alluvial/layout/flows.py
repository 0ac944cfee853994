# src/alluvial/layout/flows.py
"""
Flow positions between adjacent axes.

Each entity contributes one flow per link (pair of adjacent axes). A flow
is stored as two half-records, one at each end, sharing a synthetic
link-entity id (`flow`); every id must occur exactly twice.

At each end the halves are stacked like lodes: by stratum at that axis
(same order as `compute_strata`), then by row order. With `decreasing` set,
weight and then the stratum at the other end come before row order.

Output (one row per flow end):
    ['link', 'flow', 'side', 'x', 'x_start', 'x_end',
     value, value_start, value_end, weight, 'ymin', 'ymax', 'y', 'group',
     (id when not aggregated), aesthetics...]
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from alluvial import config
from alluvial.errors import InvalidOptions, MalformedAlluvialData
from alluvial.layout.prepare import PreparedLodes, prepare_lodes
from alluvial.layout.strata import stratum_orders, stratum_rank_matrix
from alluvial.logging_utils import log_info
from alluvial.schema import AlluvialSchema


_SIDES = ("start", "end")


def _link_flows(prep: PreparedLodes, ranks: np.ndarray, aes_flow: str) -> pd.DataFrame:
    """One row per (entity, link): strata and ranks at both ends, weight and aesthetics."""
    s = prep.schema
    n = prep.n_entities
    rows = prep.matrix(np.arange(len(prep.lodes)), fill=-1)
    values = prep.lodes[s.value].to_numpy()
    weights = prep.lodes[s.weight].to_numpy(dtype="float64")

    parts = []
    for a in range(prep.n_axes - 1):
        src = rows[:, a] if aes_flow == "forward" else rows[:, a + 1]
        part = pd.DataFrame(
            {
                "link": np.full(n, a + 1, dtype="int64"),
                s.id: prep.entities,
                f"{s.value}_start": values[rows[:, a]],
                f"{s.value}_end": values[rows[:, a + 1]],
                "_rank_start": ranks[:, a],
                "_rank_end": ranks[:, a + 1],
                s.weight: weights[src],
            }
        )
        for c in prep.aes:
            part[c] = prep.lodes[c].to_numpy()[src]
        parts.append(part)

    if not parts:
        empty = pd.DataFrame(
            {
                "link": np.empty(0, dtype="int64"),
                s.id: prep.entities[:0],
                f"{s.value}_start": values[:0],
                f"{s.value}_end": values[:0],
                "_rank_start": np.empty(0, dtype="int64"),
                "_rank_end": np.empty(0, dtype="int64"),
                s.weight: np.empty(0, dtype="float64"),
            }
        )
        for c in prep.aes:
            empty[c] = prep.lodes[c].to_numpy()[:0]
        return empty
    return pd.concat(parts, ignore_index=True)


def aggregate_flows(flows: pd.DataFrame, schema: AlluvialSchema) -> pd.DataFrame:
    """Merge flows identical in every column but weight and id; weights are summed."""
    by = [c for c in flows.columns if c not in (schema.weight, schema.id)]
    if flows.empty:
        return flows.drop(columns=[schema.id])
    return (
        flows.groupby(by, sort=False, observed=True, dropna=False)[schema.weight]
        .sum()
        .reset_index()[by + [schema.weight]]
    )


def _split_halves(flows: pd.DataFrame, schema: AlluvialSchema) -> pd.DataFrame:
    v = schema.value
    halves = []
    for side in _SIDES:
        other = "end" if side == "start" else "start"
        h = flows.copy()
        h["side"] = side
        h["x"] = h["link"] + (0 if side == "start" else 1)
        h[v] = h[f"{v}_{side}"]
        h["_rank_own"] = h[f"_rank_{side}"]
        h["_rank_other"] = h[f"_rank_{other}"]
        halves.append(h)
    return pd.concat(halves, ignore_index=True)


def check_link_pairing(halves: pd.DataFrame) -> None:
    """Every synthetic link-entity id must appear exactly twice."""
    counts = halves["flow"].value_counts()
    bad = counts[counts != 2]
    if len(bad):
        raise MalformedAlluvialData(
            f"{len(bad)} flow id(s) do not pair up across their link (e.g. {bad.index[:5].tolist()})"
        )


def _stack(halves: pd.DataFrame, weight: str, decreasing: Optional[bool]) -> pd.DataFrame:
    side_code = (halves["side"] == "end").to_numpy().astype("int64")
    # least significant first; within a stratum, None keeps flow (row) order
    keys = [halves["flow"].to_numpy()]
    if decreasing is not None:
        w = halves[weight].to_numpy(dtype="float64")
        keys += [halves["_rank_other"].to_numpy(), -w if decreasing else w]
    keys += [halves["_rank_own"].to_numpy(), side_code, halves["link"].to_numpy()]

    order = np.lexsort(tuple(keys))
    h = halves.iloc[order].copy()
    top = h.groupby(["link", "side"], sort=False)[weight].cumsum()
    h["ymax"] = top.astype("float64")
    h["ymin"] = top.groupby([h["link"], h["side"]], sort=False).shift(1, fill_value=0.0).astype("float64")
    h["y"] = (h["ymin"] + h["ymax"]) / 2
    return h


def flows_from_prepared(
    prep: PreparedLodes,
    orders: List[List],
    *,
    aggregate_weights: bool = config.DEFAULT_AGGREGATE_WEIGHTS,
    decreasing: Optional[bool] = config.DEFAULT_FLOW_DECREASING,
    aes_flow: str = config.DEFAULT_AES_FLOW,
    logger=None,
) -> pd.DataFrame:
    s = prep.schema
    if aes_flow not in config.AES_FLOW_CHOICES:
        raise InvalidOptions(f"aes_flow must be one of {config.AES_FLOW_CHOICES}, got {aes_flow!r}")

    ranks = stratum_rank_matrix(prep, orders)
    flows = _link_flows(prep, ranks, aes_flow)
    n_links = max(prep.n_axes - 1, 0)

    if aggregate_weights:
        n_before = len(flows)
        flows = aggregate_flows(flows, s)
        log_info(logger, f"Aggregated {n_before} entity flows into {len(flows)} flows")

    flows = flows.reset_index(drop=True)
    flows.insert(1, "flow", np.arange(1, len(flows) + 1, dtype="int64"))
    flows["x_start"] = flows["link"].astype("int64")
    flows["x_end"] = flows["x_start"] + 1

    halves = _split_halves(flows, s)
    check_link_pairing(halves)
    halves = _stack(halves, s.weight, decreasing)
    halves["group"] = halves["flow"].astype("float64")

    halves["_side_code"] = (halves["side"] == "end").astype("int64")
    halves = halves.sort_values(["flow", "_side_code"], kind="mergesort").reset_index(drop=True)

    v = s.value
    cols = ["link", "flow", "side", "x", "x_start", "x_end", v, f"{v}_start", f"{v}_end", s.weight,
            "ymin", "ymax", "y", "group"]
    if not aggregate_weights:
        cols.append(s.id)
    cols += prep.aes
    out = halves[cols]

    log_info(logger, f"Computed {len(out) // 2} flows over {n_links} links")
    return out


def compute_flows(
    data: pd.DataFrame,
    schema: Optional[AlluvialSchema] = None,
    *,
    aggregate_weights: bool = config.DEFAULT_AGGREGATE_WEIGHTS,
    decreasing: Optional[bool] = config.DEFAULT_FLOW_DECREASING,
    aes_flow: str = config.DEFAULT_AES_FLOW,
    stratum_decreasing: Optional[bool] = config.DEFAULT_STRATUM_DECREASING,
    stratum_order: Optional[Sequence] = None,
    na_rm: bool = False,
    distill=None,
    logger=None,
) -> pd.DataFrame:
    """
    Vertical positions of flows between every pair of adjacent axes.

    Parameters
    ----------
    aggregate_weights:
        Merge flows identical in all non-weight columns before stacking.
    decreasing:
        True: heaviest flow of each stratum at the bottom; False: lightest;
        None: keep row order.
    aes_flow:
        "forward" takes a flow's weight and aesthetics from its start lode,
        "backward" from its end lode.
    stratum_decreasing, stratum_order:
        Stratum stacking order (see `order_strata`).

    Returns
    -------
    pd.DataFrame
        Two rows (start / end) per flow; see module docstring.
    """
    prep = prepare_lodes(data, schema, na_rm=na_rm, distill=distill, logger=logger)
    orders = stratum_orders(prep, stratum_decreasing, stratum_order)
    return flows_from_prepared(
        prep,
        orders,
        aggregate_weights=aggregate_weights,
        decreasing=decreasing,
        aes_flow=aes_flow,
        logger=logger,
    )


def spread_flows(flows: pd.DataFrame, schema: Optional[AlluvialSchema] = None) -> pd.DataFrame:
    """
    Pair the half-records of `compute_flows` into one row per flow with
    'ymin_start', 'ymax_start', 'y_start', 'ymin_end', 'ymax_end', 'y_end'.
    """
    s = schema or AlluvialSchema()
    check_link_pairing(flows)
    geom = ["ymin", "ymax", "y"]

    start = flows.loc[flows["side"] == "start"].set_index("flow")
    end = flows.loc[flows["side"] == "end"].set_index("flow")
    if set(start.index) != set(end.index):
        raise MalformedAlluvialData("Flow start and end records do not match")

    shared = [c for c in flows.columns if c not in geom + ["side", "x", s.value, "flow"]]
    out = start[shared].copy()
    for c in geom:
        out[f"{c}_start"] = start[c]
        out[f"{c}_end"] = end[c].reindex(start.index)
    return out.reset_index()
