"""
End-to-end layout of an alluvial table.

    data (alluvia or lodes form)
      -> normalized lodes table (weights, missing values, axis positions)
      -> stratum order per axis
      -> strata, lodes, flows

All three layers are computed from one normalized table and one stratum
order, so lodes and flows line up with the stratum boxes.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import pandas as pd

from alluvial.layout.flows import flows_from_prepared
from alluvial.layout.lodes import check_lode_ordering, lodes_from_prepared
from alluvial.layout.prepare import prepare_lodes
from alluvial.layout.strata import stratum_orders, strata_from_prepared
from alluvial.schema import AlluvialSchema, LayoutOptions, load_options
from alluvial.validation.checks import check_alluvial_layers


def build_alluvial_layers(
    logger,
    data: pd.DataFrame,
    *,
    schema: Optional[AlluvialSchema] = None,
    options=None,
    lode_ordering=None,
    stratum_order: Optional[Sequence] = None,
    run_checks: bool = False,
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Compute strata, lodes and flows for `data`.

    Parameters
    ----------
    logger:
        Logger receiving progress messages (see `get_logger`).
    schema:
        Column names; defaults to `AlluvialSchema()`.
    options:
        `LayoutOptions`, a mapping, or JSON with the option names
        ('lode.guidance', 'bind.by.aes', 'aggregate.wts', 'decreasing',
        'stratum.decreasing', 'na.rm', 'distill', 'aes.flow').
    lode_ordering:
        Explicit (entities x axes) lode ordering; overrides 'lode.guidance'.
    run_checks:
        Assert the layout invariants on the result.

    Returns
    -------
    strata_df, lodes_df, flows_df
    """
    opts: LayoutOptions = load_options(options)
    schema = schema or AlluvialSchema()

    prep = prepare_lodes(data, schema, na_rm=opts.na_rm, distill=opts.distill, logger=logger)
    if lode_ordering is not None:
        check_lode_ordering(lode_ordering, prep.n_entities, prep.n_axes)
    logger.info(f"Input in {prep.form.value} form: {prep.n_entities} entities, {prep.n_axes} axes")

    orders = stratum_orders(prep, opts.stratum_decreasing, stratum_order)

    strata = strata_from_prepared(prep, orders, logger=logger)
    lodes = lodes_from_prepared(
        prep,
        orders,
        lode_guidance=opts.lode_guidance,
        lode_ordering=lode_ordering,
        bind_by_aes=opts.bind_by_aes,
        logger=logger,
    )
    flows = flows_from_prepared(
        prep,
        orders,
        aggregate_weights=opts.aggregate_weights,
        decreasing=opts.decreasing,
        aes_flow=opts.aes_flow,
        logger=logger,
    )
    logger.info("Alluvial layers computed")

    if run_checks:
        check_alluvial_layers(logger, strata, lodes, flows, schema)

    return strata, lodes, flows
