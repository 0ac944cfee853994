# src/alluvial/forms/__init__.py
"""
Alluvial table forms: detection and conversion.

- alluvia form: one row per entity, one column per axis (wide)
- lodes form:   one row per (entity, axis) (long)

Public API
----------
- detect_form, is_alluvia_form, is_lodes_form, as_alluvial_table
- to_lodes, to_alluvia
- DistillPolicy
"""

from .convert import to_alluvia, to_lodes
from .detect import (
    AlluvialForm,
    AlluvialTable,
    as_alluvial_table,
    detect_form,
    get_axes,
    is_alluvia_form,
    is_lodes_form,
)
from .distill import DistillPolicy

__all__ = [
    "AlluvialForm",
    "AlluvialTable",
    "as_alluvial_table",
    "detect_form",
    "get_axes",
    "is_alluvia_form",
    "is_lodes_form",
    "to_lodes",
    "to_alluvia",
    "DistillPolicy",
]
