"""Segment-by-segment matching of a request path against a parameterized route.

Parameters match any value for free. Literal segments are compared with edit
distance, and a single literal segment further away than the tolerance
disqualifies the whole route, however close the rest of the path is.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from typoroute.catalog import Parameter, RouteTemplate
from typoroute.distance import edit_distance
from typoroute.tree import FrozenDict


@dataclass(slots=True, frozen=True)
class SegmentMatch:
    distance: int
    params: FrozenDict[str, str]
    path: str  # template literals with bound values in parameter positions


def match_exact(
    requested: Sequence[str],
    template: RouteTemplate,
    *,
    case_sensitive: bool = False,
) -> SegmentMatch | None:
    """Match when the request only differs from the template in parameter values."""
    if len(requested) != len(template.segments):
        return None
    params: dict[str, str] = {}
    for value, seg in zip(requested, template.segments, strict=True):
        if isinstance(seg, Parameter):
            if not value:
                return None
            params[seg.name] = value
        elif _fold(value, case_sensitive) != _fold(seg.text, case_sensitive):
            return None
    return SegmentMatch(0, FrozenDict(params), _rebuild(template, params))


def match_fuzzy(
    requested: Sequence[str],
    template: RouteTemplate,
    *,
    tolerance: int,
    case_sensitive: bool = False,
) -> SegmentMatch | None:
    """Accumulate per-segment distance, or None if the template is rejected.

    Every missing or extra segment costs 1, which also bounds how far apart the
    segment counts may be before the template is skipped outright.
    """
    segments = template.segments
    if abs(len(requested) - len(segments)) > tolerance:
        return None

    distance = 0
    params: dict[str, str] = {}
    for i in range(max(len(requested), len(segments))):
        if i >= len(requested) or i >= len(segments):
            distance += 1
            continue
        seg = segments[i]
        if isinstance(seg, Parameter):
            params[seg.name] = requested[i]
            continue
        seg_distance = edit_distance(
            _fold(requested[i], case_sensitive), _fold(seg.text, case_sensitive)
        )
        if seg_distance > tolerance:
            return None
        distance += seg_distance

    for name in template.parameter_names:
        params.setdefault(name, "")  # parameter position missing from the request
    return SegmentMatch(distance, FrozenDict(params), _rebuild(template, params))


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.lower()


def _rebuild(template: RouteTemplate, params: dict[str, str]) -> str:
    path = "/" + "/".join(
        params[seg.name] if isinstance(seg, Parameter) else seg.text
        for seg in template.segments
    )
    if template.path.endswith("/") and path != "/":
        path += "/"
    return path
