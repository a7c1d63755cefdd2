import pytest

from typoroute.catalog import RouteCatalog
from typoroute.config import TypoConfig
from typoroute.resolver import resolve


def catalog(*routes: str, method: str = "GET") -> RouteCatalog:
    return RouteCatalog.from_routes((method, path) for path in routes)


SHOP = catalog("/products", "/categories")
USERS = catalog("/users/:userId")


# --- static routes ------------------------------------------------------------
def test_static_typo() -> None:
    outcome = resolve("/produts", "get", SHOP, TypoConfig(tolerance=2))
    assert outcome is not None
    assert outcome.path == "/products"
    assert outcome.distance == 1
    assert outcome.rewritten_path == "/products"
    assert outcome.params == {}
    assert not outcome.has_parameters
    assert outcome.requested_path == "/produts"


def test_static_exact_is_distance_zero() -> None:
    outcome = resolve("/categories", "GET", SHOP, TypoConfig())
    assert outcome is not None
    assert outcome.path == "/categories"
    assert outcome.distance == 0


def test_static_exact_ignores_case() -> None:
    outcome = resolve("/PRODUCTS", "GET", SHOP, TypoConfig())
    assert outcome is not None
    assert outcome.distance == 0


def test_case_sensitive() -> None:
    outcome = resolve("/Products", "GET", SHOP, TypoConfig(case_sensitive=True))
    assert outcome is not None
    assert outcome.distance == 1
    assert resolve("/PRODUCTS", "GET", SHOP, TypoConfig(case_sensitive=True)) is None


def test_zero_tolerance() -> None:
    assert resolve("/abot", "get", catalog("/about"), TypoConfig(tolerance=0)) is None


def test_beyond_tolerance() -> None:
    assert resolve("/xyz", "GET", SHOP, TypoConfig(tolerance=2)) is None


def test_static_tie_goes_to_first_registered() -> None:
    outcome = resolve("/cat", "GET", catalog("/bat", "/car"), TypoConfig())
    assert outcome is not None
    assert outcome.path == "/bat"


# --- method filtering ---------------------------------------------------------
def test_method_filter() -> None:
    routes = RouteCatalog.from_routes([("POST", "/products")])
    assert resolve("/produts", "GET", routes, TypoConfig()) is None
    outcome = resolve("/produts", "POST", routes, TypoConfig())
    assert outcome is not None
    assert outcome.path == "/products"


def test_apply_to_all_methods() -> None:
    routes = RouteCatalog.from_routes([("POST", "/products")])
    outcome = resolve("/produts", "GET", routes, TypoConfig(apply_to_all_methods=True))
    assert outcome is not None
    assert outcome.path == "/products"


def test_any_method_route() -> None:
    routes = RouteCatalog.from_routes([("*", "/status")])
    outcome = resolve("/statsu", "DELETE", routes, TypoConfig())
    assert outcome is not None
    assert outcome.path == "/status"


# --- parameterized routes -----------------------------------------------------
def test_parameterized_typo() -> None:
    outcome = resolve("/usrs/123", "get", USERS, TypoConfig(tolerance=2))
    assert outcome is not None
    assert outcome.path == "/users/:userId"
    assert outcome.distance == 1
    assert outcome.params == {"userId": "123"}
    assert outcome.rewritten_path == "/users/123"
    assert outcome.has_parameters


def test_parameterized_exact_short_circuits() -> None:
    outcome = resolve("/users/123", "get", USERS, TypoConfig())
    assert outcome is not None
    assert outcome.distance == 0
    assert outcome.params == {"userId": "123"}
    assert outcome.rewritten_path == "/users/123"


def test_parameterized_exact_wins_over_closer_static() -> None:
    # "/users/new" is one substitution away from the request but the
    # parameterized route matches it exactly
    routes = catalog("/users/new", "/users/:userId")
    outcome = resolve("/users/neu", "GET", routes, TypoConfig())
    assert outcome is not None
    assert outcome.path == "/users/:userId"
    assert outcome.distance == 0
    assert outcome.params == {"userId": "neu"}


def test_static_preferred_when_within_tolerance() -> None:
    routes = catalog("/users/:userId/profile", "/users/me/profile")
    outcome = resolve("/users/me/profle", "GET", routes, TypoConfig())
    assert outcome is not None
    assert outcome.path == "/users/me/profile"
    assert outcome.distance == 1


def test_parameterized_only_replaces_static_when_strictly_closer() -> None:
    routes = catalog("/abcdef", "/zz/:id")
    # static: "/zzz/1" vs "/abcdef" is far; parameterized: "zzz" vs "zz" is 1
    outcome = resolve("/zzz/1", "GET", routes, TypoConfig(tolerance=1))
    assert outcome is not None
    assert outcome.path == "/zz/:id"
    assert outcome.distance == 1


def test_parameterized_tie_goes_to_first_registered() -> None:
    routes = catalog("/users/:userId", "/uses/:id")
    outcome = resolve("/usrs/1", "GET", routes, TypoConfig())
    assert outcome is not None
    assert outcome.path == "/users/:userId"


def test_handle_parameters_disabled() -> None:
    config = TypoConfig(handle_parameters=False)
    assert resolve("/users/123", "GET", USERS, config) is None
    assert resolve("/usrs/123", "GET", USERS, config) is None


def test_handle_parameters_disabled_never_returns_parameterized() -> None:
    routes = catalog("/users/:userId", "/users/me")
    outcome = resolve("/users/123", "GET", routes, TypoConfig(handle_parameters=False, tolerance=3))
    assert outcome is not None
    assert not outcome.has_parameters
    assert outcome.path == "/users/me"


def test_single_segment_far_off_disqualifies() -> None:
    routes = catalog("/api/:version/settings")
    assert resolve("/api/v1/preferences", "GET", routes, TypoConfig(tolerance=2)) is None


def test_simple_config() -> None:
    config = TypoConfig.simple()
    routes = RouteCatalog.from_routes([("POST", "/api/users"), ("GET", "/users/:id")])
    outcome = resolve("/api/usrs", "GET", routes, config)
    assert outcome is not None
    assert outcome.path == "/api/users"
    assert resolve("/users/1", "GET", routes, config) is None


# --- degenerate input ---------------------------------------------------------
def test_empty_catalog() -> None:
    assert resolve("/anything", "GET", RouteCatalog(), TypoConfig()) is None


def test_empty_path() -> None:
    assert resolve("", "GET", catalog("/"), TypoConfig()) is not None
    assert resolve("", "GET", USERS, TypoConfig()) is None


def test_root_route() -> None:
    outcome = resolve("/", "GET", catalog("/", "/about"), TypoConfig())
    assert outcome is not None
    assert outcome.path == "/"
    assert outcome.distance == 0


@pytest.mark.parametrize(
    "path", ["/produts", "/xx", "//", "/users/1/2/3/4", "", "/a b", "/пути"]
)
@pytest.mark.parametrize("tolerance", [0, 1, 2, 5])
def test_never_exceeds_tolerance(path: str, tolerance: int) -> None:
    routes = catalog("/", "/products", "/users/:userId", "/users/:userId/posts")
    outcome = resolve(path, "GET", routes, TypoConfig(tolerance=tolerance))
    assert outcome is None or outcome.distance <= tolerance
    if outcome is not None:
        assert set(outcome.params) == set(outcome.template.parameter_names)


def test_negative_tolerance_rejected() -> None:
    with pytest.raises(ValueError, match="tolerance must be >= 0"):
        TypoConfig(tolerance=-1)
