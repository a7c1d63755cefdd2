"""Pick the single registered route closest to a requested path.

Resolution order, first success wins:

    1. keep the routes answering the request method (all of them with
       `apply_to_all_methods`)
    2. a parameterized route matching exactly apart from parameter values
    3. the closest static route by edit distance over the whole path
    4. only if 3 found nothing within tolerance: the closest parameterized
       route by segment distance, replacing 3 only when strictly closer
    5. the winner, if it is within tolerance

Ties go to the route that comes first in the catalog, and static routes win
ties against parameterized ones.
"""

from __future__ import annotations

from collections.abc import Sequence

from typoroute.catalog import RouteCatalog, RouteTemplate, split_path
from typoroute.config import TypoConfig
from typoroute.distance import edit_distance
from typoroute.matcher import match_exact, match_fuzzy
from typoroute.outcome import MatchOutcome


def resolve(
    requested_path: str,
    method: str,
    catalog: RouteCatalog,
    config: TypoConfig,
) -> MatchOutcome | None:
    """Returns the best route within `config.tolerance`, or None.

    None covers both "nothing close enough" and "nothing to compare against".
    Never raises on odd paths: an empty path is compared as one empty segment.
    """
    requested = split_path(requested_path) if requested_path else ("",)
    candidates = catalog.for_method(method, all_methods=config.apply_to_all_methods)
    parameterized = candidates.parameterized() if config.handle_parameters else ()

    for template in parameterized:
        match = match_exact(requested, template, case_sensitive=config.case_sensitive)
        if match is not None:
            return MatchOutcome(template, 0, match.path, match.params, requested_path)

    best: MatchOutcome | None = None
    folded_path = _fold(requested_path, config.case_sensitive)
    for template in candidates.static():
        distance = edit_distance(
            folded_path, _fold(template.path, config.case_sensitive)
        )
        if best is None or distance < best.distance:
            best = MatchOutcome(
                template, distance, template.path, requested_path=requested_path
            )

    if best is None or best.distance > config.tolerance:
        best = _closest_parameterized(
            requested, parameterized, config, best, requested_path
        )

    if best is None or best.distance > config.tolerance:
        return None
    return best


def _closest_parameterized(
    requested: tuple[str, ...],
    templates: Sequence[RouteTemplate],
    config: TypoConfig,
    best: MatchOutcome | None,
    requested_path: str,
) -> MatchOutcome | None:
    for template in templates:
        match = match_fuzzy(
            requested,
            template,
            tolerance=config.tolerance,
            case_sensitive=config.case_sensitive,
        )
        if match is None:
            continue
        if best is None or match.distance < best.distance:
            best = MatchOutcome(
                template, match.distance, match.path, match.params, requested_path
            )
    return best


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.lower()
