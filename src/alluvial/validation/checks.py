# src/alluvial/validation/checks.py
"""
Integrity checks ("emergency brake") for computed alluvial layers.

These checks assert the geometric invariants of a layout:

- strata of an axis are stacked from 0 without gaps or overlaps
- lode weights are conserved per axis
- the lodes of a stratum partition its box
- every flow has exactly one start and one end record
- flow ends partition the strata they attach to

They raise AssertionError on failure and log "... checks OK" on success.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from alluvial import config
from alluvial.schema import AlluvialSchema


def _close(a, b) -> bool:
    return bool(np.isclose(a, b, rtol=0.0, atol=config.CHECK_ATOL))


def _assert_contiguous(ymin: np.ndarray, ymax: np.ndarray, what: str) -> None:
    order = np.argsort(ymin, kind="stable")
    lo, hi = ymin[order], ymax[order]
    assert np.allclose(lo[1:], hi[:-1], rtol=0.0, atol=config.CHECK_ATOL), f"{what}: gaps or overlaps"


def check_strata(logger, strata: pd.DataFrame, schema: AlluvialSchema = None) -> None:
    """
    Validate stratum boxes.
    Raises AssertionError on failure.
    """
    s = schema or AlluvialSchema()
    for c in ["x", s.value, s.weight, "ymin", "ymax", "y"]:
        assert c in strata.columns, f"strata missing column {c}"

    assert (strata[s.weight] >= 0).all(), "Negative stratum weights"
    assert np.allclose(strata["ymax"] - strata["ymin"], strata[s.weight], rtol=0.0, atol=config.CHECK_ATOL), (
        "Stratum heights differ from weights"
    )
    assert not strata.duplicated(subset=["x", s.value]).any(), "Duplicate strata at some axis"

    for x, box in strata.groupby("x", sort=True):
        assert _close(box["ymin"].min(), 0.0), f"Strata at axis {x} do not start at 0"
        _assert_contiguous(box["ymin"].to_numpy(), box["ymax"].to_numpy(), f"Strata at axis {x}")

    logger.info("Strata checks OK")


def check_lodes(logger, lodes: pd.DataFrame, strata: pd.DataFrame, schema: AlluvialSchema = None) -> None:
    """
    Validate lode positions against their strata.
    Raises AssertionError on failure.
    """
    s = schema or AlluvialSchema()
    for c in ["x", s.value, s.id, s.weight, "ymin", "ymax", "y", "group"]:
        assert c in lodes.columns, f"lodes missing column {c}"

    assert not lodes.duplicated(subset=[s.id, "x"]).any(), "Some entity has several lodes at one axis"
    n_axes = lodes["x"].nunique()
    per_entity = lodes.groupby(s.id, sort=False)["x"].nunique()
    assert (per_entity == n_axes).all(), "Some entity is missing a lode at some axis"

    lode_w = lodes.groupby("x")[s.weight].sum()
    strata_w = strata.groupby("x")[s.weight].sum()
    assert np.allclose(lode_w.sort_index(), strata_w.sort_index(), rtol=0.0, atol=config.CHECK_ATOL), (
        "Lode weights are not conserved per axis"
    )

    boxes = strata.set_index(["x", s.value])
    for (x, stratum), grp in lodes.groupby(["x", s.value], sort=True, observed=True):
        box = boxes.loc[(x, stratum)]
        assert _close(grp["ymin"].min(), box["ymin"]), f"Lodes of {stratum!r} at axis {x} do not start at its floor"
        assert _close(grp["ymax"].max(), box["ymax"]), f"Lodes of {stratum!r} at axis {x} do not reach its ceiling"
        assert _close(grp[s.weight].sum(), box[s.weight]), f"Lode weights of {stratum!r} at axis {x} differ"
        _assert_contiguous(grp["ymin"].to_numpy(), grp["ymax"].to_numpy(), f"Lodes of {stratum!r} at axis {x}")

    logger.info("Lodes checks OK")


def check_flows(logger, flows: pd.DataFrame, strata: pd.DataFrame, schema: AlluvialSchema = None) -> None:
    """
    Validate flow half-records against their strata.
    Raises AssertionError on failure.
    """
    s = schema or AlluvialSchema()
    for c in ["link", "flow", "side", "x", s.value, s.weight, "ymin", "ymax", "y", "group"]:
        assert c in flows.columns, f"flows missing column {c}"

    counts = flows["flow"].value_counts()
    assert (counts == 2).all(), "Some flows do not have exactly two ends"
    assert flows["flow"].nunique() * 2 == len(flows), "Odd number of flow records"
    sides = flows.groupby("flow")["side"].agg(lambda v: tuple(sorted(v)))
    assert (sides == ("end", "start")).all(), "Some flows lack a start or an end"

    boxes = strata.set_index(["x", s.value])
    for (link, side, stratum), grp in flows.groupby(["link", "side", s.value], sort=True, observed=True):
        x = int(grp["x"].iloc[0])
        box = boxes.loc[(x, stratum)]
        where = f"Flows of {stratum!r} at axis {x} (link {link}, {side})"
        assert _close(grp["ymin"].min(), box["ymin"]), f"{where} do not start at the stratum floor"
        assert _close(grp["ymax"].max(), box["ymax"]), f"{where} do not reach the stratum ceiling"
        _assert_contiguous(grp["ymin"].to_numpy(), grp["ymax"].to_numpy(), where)

    logger.info("Flows checks OK")


def check_alluvial_layers(
    logger,
    strata: pd.DataFrame,
    lodes: pd.DataFrame,
    flows: pd.DataFrame,
    schema: AlluvialSchema = None,
) -> None:
    """
    Run all layout checks. Intended as an emergency brake.
    """
    check_strata(logger, strata, schema)
    check_lodes(logger, lodes, strata, schema)
    check_flows(logger, flows, strata, schema)
