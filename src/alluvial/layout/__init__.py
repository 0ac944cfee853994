# src/alluvial/layout/__init__.py
"""
Layout of alluvial diagrams.

The functions here operate purely on pandas DataFrames and return plain
records for an external renderer:

- compute_strata: stratum boxes per axis
- compute_lodes:  lode positions per (entity, axis)
- compute_flows:  flow positions per (flow, link), as start/end half-records

Public API
----------
- compute_strata, compute_lodes, compute_flows, spread_flows
- LodeGuidance and the lode_* guidance functions
"""

from .flows import compute_flows, spread_flows
from .guidance import (
    LodeGuidance,
    lode_leftright,
    lode_leftward,
    lode_rightleft,
    lode_rightward,
    lode_zigzag,
)
from .lodes import compute_lodes
from .strata import compute_strata, order_strata

__all__ = [
    "compute_strata",
    "compute_lodes",
    "compute_flows",
    "spread_flows",
    "order_strata",
    "LodeGuidance",
    "lode_zigzag",
    "lode_rightleft",
    "lode_leftright",
    "lode_rightward",
    "lode_leftward",
]
