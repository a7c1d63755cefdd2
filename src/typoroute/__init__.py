from importlib.metadata import version

from .catalog import RouteCatalog, RouteTemplate
from .config import TypoConfig
from .correction import typo_correction, typo_tolerant
from .distance import edit_distance
from .outcome import MatchOutcome
from .resolver import resolve
from .router import Router
from .tree import http_route, path_params

__all__ = [
    "MatchOutcome",
    "RouteCatalog",
    "RouteTemplate",
    "Router",
    "TypoConfig",
    "__version__",
    "edit_distance",
    "http_route",
    "path_params",
    "resolve",
    "typo_correction",
    "typo_tolerant",
]

__version__ = version("typoroute")
