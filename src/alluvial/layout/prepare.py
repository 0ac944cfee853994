"""
Normalization shared by the layout stages.

Whatever form the input is in, the stages work on one lodes-form table with

- a weight column (1.0 per row when absent),
- the missing-value policy applied,
- `x` holding the 1-based axis position,
- entity / axis index arrays aligned with its rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from alluvial import config
from alluvial.errors import MalformedAlluvialData
from alluvial.forms.convert import distill_lodes, to_lodes
from alluvial.forms.detect import AlluvialForm, as_alluvial_table, validate_lodes
from alluvial.forms.distill import DistillSpec
from alluvial.forms.levels import axis_levels, level_codes
from alluvial.forms.missing import handle_missing
from alluvial.logging_utils import log_info
from alluvial.schema import AlluvialSchema


@dataclass
class PreparedLodes:
    lodes: pd.DataFrame
    schema: AlluvialSchema
    axes: List
    entities: np.ndarray
    aes: List[str]
    form: AlluvialForm
    # per-row indices into (entities, axes)
    entity_idx: np.ndarray
    axis_idx: np.ndarray

    @property
    def n_entities(self) -> int:
        return len(self.entities)

    @property
    def n_axes(self) -> int:
        return len(self.axes)

    def matrix(self, values, fill=np.nan) -> np.ndarray:
        """Arrange a per-row array into an (entities x axes) matrix."""
        values = np.asarray(values)
        dtype = values.dtype if fill is None else np.result_type(values.dtype, np.asarray(fill).dtype)
        out = np.empty((self.n_entities, self.n_axes), dtype=dtype)
        if fill is not None:
            out.fill(fill)
        out[self.entity_idx, self.axis_idx] = values
        return out


def _group_ids(ids: pd.Series) -> np.ndarray:
    """Entity ids as numbers: numeric ids as-is, others numbered by first appearance."""
    if pd.api.types.is_numeric_dtype(ids) and not pd.api.types.is_bool_dtype(ids):
        return ids.to_numpy(dtype="float64")
    codes, _ = pd.factorize(ids, sort=False)
    return (codes + 1).astype("float64")


def prepare_lodes(
    data: pd.DataFrame,
    schema: Optional[AlluvialSchema] = None,
    *,
    na_rm: bool = False,
    distill: DistillSpec = None,
    logger=None,
) -> PreparedLodes:
    """
    Bring `data` (alluvia or lodes form) into the normalized lodes table.

    Duplicate (id, key) lodes are accepted only when `distill` is given; they
    are collapsed with that policy first.
    """
    schema = schema or AlluvialSchema()
    if not isinstance(data, pd.DataFrame):
        raise MalformedAlluvialData(f"Expected a pandas DataFrame, got {type(data).__name__}")

    df = data.copy()
    if schema.weight not in df.columns:
        df[schema.weight] = 1.0

    table = as_alluvial_table(df, schema, allow_duplicates=distill is not None, logger=logger)

    if table.form is AlluvialForm.ALLUVIA:
        axis_cols = table.axes
        df = handle_missing(df, axis_cols, schema, na_rm=na_rm, logger=logger)
        df = to_lodes(df, key=schema.key, value=schema.value, id=schema.id, axes=axis_cols)
    else:
        df = distill_lodes(df, schema, distill)
        validate_lodes(df, schema)
        df = handle_missing(df, [schema.value], schema, na_rm=na_rm, entity_col=schema.id, logger=logger)

    axes = axis_levels(df[schema.key])
    axis_idx = level_codes(df[schema.key], axes).to_numpy()
    entity_idx, entities = pd.factorize(df[schema.id], sort=False)

    df["x"] = axis_idx + 1
    df["group"] = _group_ids(df[schema.id])

    reserved = {schema.key, schema.value, schema.id, schema.weight, *config.LAYOUT_COLUMNS}
    aes = [c for c in df.columns if c not in reserved]

    log_info(logger, f"Prepared {len(entities)} entities over {len(axes)} axes ({table.form.value} form)")
    return PreparedLodes(
        lodes=df,
        schema=schema,
        axes=axes,
        entities=np.asarray(entities),
        aes=aes,
        form=table.form,
        entity_idx=np.asarray(entity_idx),
        axis_idx=axis_idx,
    )


def sort_codes(s: pd.Series) -> np.ndarray:
    """Integer sort keys for an aesthetic column; missing values sort last."""
    if isinstance(s.dtype, pd.CategoricalDtype):
        codes = s.cat.codes.to_numpy().astype("int64")
    else:
        try:
            codes, _ = pd.factorize(s, sort=True)
        except TypeError:
            codes, _ = pd.factorize(s, sort=False)
        codes = np.asarray(codes, dtype="int64")
    codes = codes.copy()
    codes[codes < 0] = codes.max(initial=-1) + 1
    return codes
