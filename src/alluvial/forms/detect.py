# src/alluvial/forms/detect.py
"""
Format detection for alluvial tables.

A table is either in

- alluvia form: one row per entity, one column per axis
  (columns named `axis1`, `axis2`, ... or an explicit list), or
- lodes form: one row per (entity, axis) with key / value / id columns.

The checks here are pure inspections. `detect_form` classifies a table
once; `as_alluvial_table` wraps the result in an `AlluvialTable` that the
conversion and layout stages pass along instead of re-inspecting the data.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

import pandas as pd

from alluvial import config
from alluvial.errors import InconsistentAxisSet, MalformedAlluvialData
from alluvial.forms.levels import axis_levels
from alluvial.logging_utils import log_info
from alluvial.schema import AlluvialSchema, resolve_columns


class AlluvialForm(Enum):
    ALLUVIA = "alluvia"
    LODES = "lodes"
    NONE = "none"


@dataclass(frozen=True)
class AlluvialTable:
    """A table together with the form it was detected in."""

    form: AlluvialForm
    data: pd.DataFrame
    schema: AlluvialSchema

    @property
    def axes(self) -> List:
        """Axis columns (alluvia form) or axis labels (lodes form), in order."""
        if self.form is AlluvialForm.ALLUVIA:
            return resolve_axes(self.data.columns, self.schema.axes)
        return axis_levels(self.data[self.schema.key])


def get_axes(columns: Iterable) -> List[str]:
    """
    Column names matching `axis[0-9]*`, ordered by numeric suffix.

    A bare `axis` column sorts last.
    """
    names = [c for c in columns if isinstance(c, str) and config.AXIS_PATTERN.match(c)]

    def _rank(name: str):
        suffix = name[len("axis"):]
        return (1, 0) if suffix == "" else (0, int(suffix))

    return sorted(names, key=_rank)


def resolve_axes(columns: Iterable, axes: Optional[Iterable[str]] = None) -> List[str]:
    if axes is not None:
        return list(axes)
    return get_axes(columns)


def _weight_ok(data: pd.DataFrame, weight: Optional[str], logger) -> bool:
    if weight is None or weight not in data.columns:
        return True
    w = data[weight]
    if not pd.api.types.is_numeric_dtype(w):
        log_info(logger, f"Weight column {weight!r} is not numeric.")
        return False
    if (w.dropna() < 0).any():
        log_info(logger, f"Weight column {weight!r} has negative values.")
        return False
    return True


def is_alluvia_form(
    data: pd.DataFrame,
    axes: Optional[Iterable[str]] = None,
    *,
    id: Optional[str] = None,
    weight: Optional[str] = None,
    logger=None,
) -> bool:
    """
    Whether `data` is in alluvia form.

    Requires at least two axis columns. When an `id` column is present its
    values must be unique; without one every row is its own entity and rows
    must be unique as a whole.
    """
    axis_cols = resolve_axes(data.columns, axes)
    absent = [a for a in axis_cols if a not in data.columns]
    if absent:
        log_info(logger, f"Axis columns not found: {absent}")
        return False
    if len(axis_cols) < config.MIN_AXES:
        log_info(logger, f"Found {len(axis_cols)} axis column(s); need at least {config.MIN_AXES}.")
        return False

    if id is not None and id in data.columns and id not in axis_cols:
        if data[id].isna().any() or data[id].duplicated().any():
            log_info(logger, f"Identifier column {id!r} is missing or duplicated for some rows.")
            return False
    elif data.duplicated().any():
        log_info(logger, "Without an identifier column, rows must be unique.")
        return False

    return _weight_ok(data, weight, logger)


def axis_coverage_consistent(data: pd.DataFrame, key: str, id: str) -> bool:
    """True when every id observes exactly the full set of axes."""
    if data.empty:
        return True
    n_axes = data[key].nunique(dropna=True)
    per_id = data.groupby(id, sort=False, observed=True)[key].nunique(dropna=True)
    return bool((per_id == n_axes).all())


def is_lodes_form(
    data: pd.DataFrame,
    key: str = config.DEFAULT_KEY,
    value: str = config.DEFAULT_VALUE,
    id: str = config.DEFAULT_ID,
    *,
    weight: Optional[str] = None,
    allow_duplicates: bool = False,
    logger=None,
) -> bool:
    """
    Whether `data` is in lodes form.

    Requires key, value and id columns; every id must observe the same set of
    axes, and (id, key) pairs must be unique unless `allow_duplicates`.
    """
    absent = [c for c in (key, value, id) if c not in data.columns]
    if absent:
        log_info(logger, f"Lodes columns not found: {absent}")
        return False
    if data[key].isna().any() or data[id].isna().any():
        log_info(logger, "Key and identifier columns must not have missing values.")
        return False
    n_axes = data[key].nunique(dropna=True)
    if n_axes < config.MIN_AXES:
        log_info(logger, f"Found {n_axes} axis value(s) in {key!r}; need at least {config.MIN_AXES}.")
        return False
    if not allow_duplicates and data.duplicated(subset=[id, key]).any():
        log_info(logger, "Some (id, key) pairs appear more than once.")
        return False
    if not axis_coverage_consistent(data, key, id):
        log_info(logger, "Entities do not share the same set of axes.")
        return False
    return _weight_ok(data, weight, logger)


def detect_form(
    data: pd.DataFrame,
    schema: Optional[AlluvialSchema] = None,
    *,
    allow_duplicates: bool = False,
    logger=None,
) -> AlluvialForm:
    """Classify `data` as alluvia form, lodes form, or neither."""
    schema = schema or AlluvialSchema()
    if is_alluvia_form(data, schema.axes, id=schema.id, weight=schema.weight, logger=logger):
        return AlluvialForm.ALLUVIA
    if is_lodes_form(
        data,
        schema.key,
        schema.value,
        schema.id,
        weight=schema.weight,
        allow_duplicates=allow_duplicates,
        logger=logger,
    ):
        return AlluvialForm.LODES
    return AlluvialForm.NONE


def validate_lodes(data: pd.DataFrame, schema: AlluvialSchema) -> None:
    """
    Raise if lodes-form columns are absent or axis coverage is inconsistent.

    Duplicate (id, key) pairs are allowed here; they are resolved by
    distillation.
    """
    resolve_columns(data, schema.lodes_columns())
    if data[schema.key].isna().any() or data[schema.id].isna().any():
        raise MalformedAlluvialData(
            f"Columns {schema.key!r} and {schema.id!r} must not have missing values"
        )
    n_axes = data[schema.key].nunique(dropna=True)
    if n_axes < config.MIN_AXES:
        raise MalformedAlluvialData(
            f"Found {n_axes} axis value(s) in {schema.key!r}; need at least {config.MIN_AXES}"
        )
    if not axis_coverage_consistent(data, schema.key, schema.id):
        raise InconsistentAxisSet(
            f"Not every {schema.id!r} has a row at every {schema.key!r} value"
        )


def as_alluvial_table(
    data: pd.DataFrame,
    schema: Optional[AlluvialSchema] = None,
    *,
    allow_duplicates: bool = False,
    logger=None,
) -> AlluvialTable:
    """
    Detect the form of `data` once and wrap it.

    Raises
    ------
    InconsistentAxisSet
        Lodes columns are present but entities disagree on their axes.
    MalformedAlluvialData
        The table is in neither form.
    """
    schema = schema or AlluvialSchema()
    form = detect_form(data, schema, allow_duplicates=allow_duplicates, logger=logger)
    if form is AlluvialForm.NONE:
        lodes_cols = {schema.key, schema.value, schema.id}
        if lodes_cols <= set(data.columns):
            validate_lodes(data, schema)
        raise MalformedAlluvialData(
            "Data is not in a recognized alluvial form: expected axis columns "
            f"({list(schema.axes) if schema.axes else 'axis1, axis2, ...'}) or lodes columns "
            f"({schema.key!r}, {schema.value!r}, {schema.id!r})"
        )
    return AlluvialTable(form=form, data=data, schema=schema)
