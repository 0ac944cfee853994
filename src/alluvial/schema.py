# src/alluvial/schema.py
"""
Typed column schema and layout options.

`AlluvialSchema` names each logical column once so that every operation
resolves its columns at the start and fails fast when one is absent.
`LayoutOptions` is the option surface shared by strata, lodes and flows;
it decodes from plain mappings or JSON with the dotted option names
(`lode.guidance`, `bind.by.aes`, `na.rm`, ...).
"""

from __future__ import annotations

from typing import Iterable, List, Literal, Optional, Tuple

import msgspec
import pandas as pd

from alluvial import config
from alluvial.errors import InvalidOptions, MalformedAlluvialData


class AlluvialSchema(msgspec.Struct, frozen=True, kw_only=True):
    key: str = config.DEFAULT_KEY
    value: str = config.DEFAULT_VALUE
    id: str = config.DEFAULT_ID
    weight: str = config.DEFAULT_WEIGHT
    # explicit alluvia-form axis columns; None -> `axis[0-9]*` convention
    axes: Optional[Tuple[str, ...]] = None

    def lodes_columns(self) -> List[str]:
        return [self.key, self.value, self.id]


class LayoutOptions(msgspec.Struct, frozen=True, kw_only=True, forbid_unknown_fields=True):
    lode_guidance: str = msgspec.field(name="lode.guidance", default=config.DEFAULT_LODE_GUIDANCE)
    bind_by_aes: bool = msgspec.field(name="bind.by.aes", default=False)
    aggregate_weights: bool = msgspec.field(name="aggregate.wts", default=config.DEFAULT_AGGREGATE_WEIGHTS)
    decreasing: Optional[bool] = config.DEFAULT_FLOW_DECREASING
    stratum_decreasing: Optional[bool] = msgspec.field(
        name="stratum.decreasing", default=config.DEFAULT_STRATUM_DECREASING
    )
    na_rm: bool = msgspec.field(name="na.rm", default=False)
    distill: Optional[str] = None
    aes_flow: Literal["forward", "backward"] = msgspec.field(name="aes.flow", default=config.DEFAULT_AES_FLOW)


# "aes.bind" is the flow-layer spelling of "bind.by.aes"
_OPTION_ALIASES = {"aes.bind": "bind.by.aes"}


def _apply_aliases(obj: dict) -> dict:
    out = dict(obj)
    for alias, name in _OPTION_ALIASES.items():
        if alias in out:
            value = out.pop(alias)
            out.setdefault(name, value)
    return out


def _check_policy_names(opts: LayoutOptions) -> LayoutOptions:
    # local imports: both modules depend on alluvial.errors only
    from alluvial.forms.distill import DistillPolicy
    from alluvial.layout.guidance import LodeGuidance

    known = {g.value for g in LodeGuidance}
    if opts.lode_guidance not in known:
        raise InvalidOptions(f"Unknown lode.guidance {opts.lode_guidance!r}; expected one of {sorted(known)}")
    if opts.distill is not None and opts.distill not in {p.value for p in DistillPolicy}:
        raise InvalidOptions(f"Unknown distill policy {opts.distill!r}")
    return opts


def load_options(obj=None) -> LayoutOptions:
    """
    Build validated `LayoutOptions` from None, a mapping, JSON text/bytes,
    or an existing `LayoutOptions`.

    Raises
    ------
    InvalidOptions
        On malformed JSON, wrong types, unknown fields or unknown policy names.
    """
    if obj is None:
        return LayoutOptions()
    if isinstance(obj, LayoutOptions):
        return _check_policy_names(obj)

    try:
        if isinstance(obj, (str, bytes)):
            raw = msgspec.json.decode(obj)
            if not isinstance(raw, dict):
                raise InvalidOptions("Options JSON must be an object")
            obj = raw
        opts = msgspec.convert(_apply_aliases(obj), type=LayoutOptions)
    except (msgspec.ValidationError, msgspec.DecodeError) as e:
        raise InvalidOptions(str(e)) from e

    return _check_policy_names(opts)


def resolve_columns(data: pd.DataFrame, required: Iterable[str]) -> None:
    """Raise MalformedAlluvialData listing every required column absent from `data`."""
    missing = sorted(set(required) - set(data.columns))
    if missing:
        raise MalformedAlluvialData(f"data missing required columns: {missing}")
