from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(slots=True, frozen=True)
class TypoConfig:
    """How close a request has to be to a route to be corrected, and what to do then.

    Attributes:
        tolerance: Maximum edit distance accepted as a typo. For parameterized
            routes it is both the limit on the summed segment distance and on
            any single literal segment.
        case_sensitive: Compare paths without lower-casing them first.
        apply_to_all_methods: Consider routes regardless of the request method,
            and correct non-GET requests too.
        handle_parameters: Match against `:name` routes as well as static ones.
        redirect_to_correct: Answer with a 301 to the corrected path instead of
            dispatching internally. Ignored for parameterized matches.
        log_corrections: Log every correction at INFO level.
    """

    tolerance: int = 2
    case_sensitive: bool = False
    apply_to_all_methods: bool = False
    handle_parameters: bool = True
    redirect_to_correct: bool = False
    log_corrections: bool = False

    def __post_init__(self) -> None:
        if self.tolerance < 0:
            msg = f"tolerance must be >= 0, got {self.tolerance}"
            raise ValueError(msg)

    @classmethod
    def simple(cls, **overrides: int | bool) -> TypoConfig:
        """Static routes only, for every method."""
        return replace(
            cls(apply_to_all_methods=True, handle_parameters=False), **overrides
        )
