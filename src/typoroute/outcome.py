from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from typoroute.catalog import RouteTemplate
from typoroute.tree import FrozenDict


@dataclass(slots=True, frozen=True)
class MatchOutcome:
    """The route a mistyped request was matched to.

    `rewritten_path` is the concrete path to dispatch: the template path for
    static routes, the template with bound values substituted otherwise.
    """

    template: RouteTemplate
    distance: int
    rewritten_path: str
    params: Mapping[str, str] = field(default_factory=FrozenDict)
    requested_path: str = ""

    @property
    def path(self) -> str:
        return self.template.path

    @property
    def has_parameters(self) -> bool:
        """A redirect can't carry bound values, so such outcomes must be dispatched internally."""
        return self.template.has_parameters

    def redirect_location(self, query_string: str = "") -> str:
        if query_string:
            return f"{self.rewritten_path}?{query_string}"
        return self.rewritten_path
