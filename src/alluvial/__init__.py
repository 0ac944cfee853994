# src/alluvial/__init__.py
"""
alluvial

Reshape tabular data describing categorical flows across ordered axes and
compute the layout of alluvial diagrams (strata, lodes, flows) as pandas
DataFrames for an external renderer.

Public API:
- get_logger
- AlluvialSchema, LayoutOptions, load_options
- detect_form, to_lodes, to_alluvia
- compute_strata, compute_lodes, compute_flows, spread_flows
- build_alluvial_layers
- check_alluvial_layers
"""

from __future__ import annotations

from .logging_utils import get_logger

from .errors import (
    AlluvialError,
    AmbiguousDistillation,
    InconsistentAxisSet,
    InvalidOptions,
    MalformedAlluvialData,
    OrderingShapeMismatch,
)
from .schema import AlluvialSchema, LayoutOptions, load_options

from .forms import (
    AlluvialForm,
    DistillPolicy,
    as_alluvial_table,
    detect_form,
    is_alluvia_form,
    is_lodes_form,
    to_alluvia,
    to_lodes,
)
from .layout import LodeGuidance, compute_flows, compute_lodes, compute_strata, spread_flows
from .pipeline import build_alluvial_layers
from .validation import check_alluvial_layers

__all__ = [
    "get_logger",
    "AlluvialError",
    "MalformedAlluvialData",
    "InconsistentAxisSet",
    "AmbiguousDistillation",
    "OrderingShapeMismatch",
    "InvalidOptions",
    "AlluvialSchema",
    "LayoutOptions",
    "load_options",
    "AlluvialForm",
    "DistillPolicy",
    "LodeGuidance",
    "as_alluvial_table",
    "detect_form",
    "is_alluvia_form",
    "is_lodes_form",
    "to_lodes",
    "to_alluvia",
    "compute_strata",
    "compute_lodes",
    "compute_flows",
    "spread_flows",
    "build_alluvial_layers",
    "check_alluvial_layers",
]
