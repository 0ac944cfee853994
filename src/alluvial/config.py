# src/alluvial/config.py
"""
Policy-level constants for alluvial layouts.

Defaults of the option surface live here so that the layout modules and
`LayoutOptions` agree on them.

This module MUST NOT contain any computation logic.
"""

from __future__ import annotations

import re


# =============================================================================
# Column naming
# =============================================================================

# Alluvia-form axis columns: axis, axis1, axis2, ..., axis10
AXIS_PATTERN = re.compile(r"^axis[0-9]*$")

DEFAULT_KEY = "x"
DEFAULT_VALUE = "stratum"
DEFAULT_ID = "alluvium"
DEFAULT_WEIGHT = "weight"

# Columns produced by the layout; never treated as aesthetics
LAYOUT_COLUMNS = ("x", "ymin", "ymax", "y", "group", "PANEL")

# Minimum number of axes for a table to be alluvial
MIN_AXES = 2


# =============================================================================
# Missing values
# =============================================================================

# Sentinel category for missing strata when missing values are kept
NA_LABEL = "NA"


# =============================================================================
# Layout defaults
# =============================================================================

DEFAULT_LODE_GUIDANCE = "zigzag"

# Strata stacking: True -> heavier strata first (bottom), False -> lighter
# first, None -> category order
DEFAULT_STRATUM_DECREASING = True

# Flow stacking within a stratum: None keeps row order
DEFAULT_FLOW_DECREASING = None

DEFAULT_AGGREGATE_WEIGHTS = True

# Which lode a flow takes its aesthetics from
AES_FLOW_CHOICES = ("forward", "backward")
DEFAULT_AES_FLOW = "forward"

# Tolerance used by the integrity checks when comparing float sums
CHECK_ATOL = 1e-9
