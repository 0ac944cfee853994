# src/alluvial/validation/__init__.py
"""
Validation utilities for alluvial.

Integrity checks over computed layers, intended to stop a pipeline early
when a layout violates its geometric invariants.

Public entry point:
- check_alluvial_layers
"""

from .checks import check_alluvial_layers, check_flows, check_lodes, check_strata

__all__ = ["check_alluvial_layers", "check_strata", "check_lodes", "check_flows"]
