"""
Lode guidance: which axes decide the order of lodes within a stratum.

A guidance function takes the number of axes `n` and an axis index `i`
(both 0-based) and returns axis indices, most significant first, starting
with `i` itself. Lodes at axis `i` are sorted by their stratum at each of
these axes in turn.

    zigzag      i, then neighbours alternating outward, starting toward
                the closer end (rightward on a tie)
    rightleft   i, axes to the right (nearest first), then to the left
    leftright   i, axes to the left (nearest first), then to the right
    rightward   i and its right neighbour only
    leftward    i and its left neighbour only
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Sequence, Union

from alluvial.errors import InvalidOptions


def _left(i: int) -> List[int]:
    return list(range(i - 1, -1, -1))


def _right(n: int, i: int) -> List[int]:
    return list(range(i + 1, n))


def lode_zigzag(n: int, i: int) -> List[int]:
    left, right = _left(i), _right(n, i)
    first, second = (left, right) if i < n - 1 - i else (right, left)
    seq = [i]
    for k in range(max(len(first), len(second))):
        if k < len(first):
            seq.append(first[k])
        if k < len(second):
            seq.append(second[k])
    return seq


def lode_rightleft(n: int, i: int) -> List[int]:
    return [i] + _right(n, i) + _left(i)


def lode_leftright(n: int, i: int) -> List[int]:
    return [i] + _left(i) + _right(n, i)


def lode_rightward(n: int, i: int) -> List[int]:
    return [i] + _right(n, i)[:1]


def lode_leftward(n: int, i: int) -> List[int]:
    return [i] + _left(i)[:1]


class LodeGuidance(Enum):
    ZIGZAG = "zigzag"
    RIGHTLEFT = "rightleft"
    LEFTRIGHT = "leftright"
    RIGHTWARD = "rightward"
    LEFTWARD = "leftward"


_GUIDANCE_FUNCS = {
    LodeGuidance.ZIGZAG: lode_zigzag,
    LodeGuidance.RIGHTLEFT: lode_rightleft,
    LodeGuidance.LEFTRIGHT: lode_leftright,
    LodeGuidance.RIGHTWARD: lode_rightward,
    LodeGuidance.LEFTWARD: lode_leftward,
}

GuidanceFn = Callable[[int, int], Sequence[int]]
GuidanceSpec = Union[str, LodeGuidance, GuidanceFn]


def resolve_guidance(guidance: GuidanceSpec) -> GuidanceFn:
    """Map a guidance name / enum member / callable to a guidance function."""
    if isinstance(guidance, LodeGuidance):
        return _GUIDANCE_FUNCS[guidance]
    if isinstance(guidance, str):
        try:
            return _GUIDANCE_FUNCS[LodeGuidance(guidance)]
        except ValueError as e:
            raise InvalidOptions(
                f"Unknown lode guidance {guidance!r}; expected one of {[g.value for g in LodeGuidance]}"
            ) from e
    if callable(guidance):
        return guidance
    raise InvalidOptions(f"lode guidance must be a name or a callable, got {type(guidance).__name__}")


def guidance_sequence(fn: GuidanceFn, n: int, i: int) -> List[int]:
    """Call `fn(n, i)` and validate the returned axis sequence."""
    seq = [int(j) for j in fn(n, i)]
    if not seq or seq[0] != i:
        raise InvalidOptions(f"Lode guidance for axis {i} must start with {i}, got {seq}")
    if any(j < 0 or j >= n for j in seq):
        raise InvalidOptions(f"Lode guidance for axis {i} returned indices outside 0..{n - 1}: {seq}")
    if len(set(seq)) != len(seq):
        raise InvalidOptions(f"Lode guidance for axis {i} repeats axes: {seq}")
    return seq
