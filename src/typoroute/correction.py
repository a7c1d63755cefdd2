"""Not found handler that routes mistyped paths to the closest registered route.

Register it as the router's not found handler, so only requests the router
could not match pay for resolution:

    router.not_found(typo_tolerant(router, fallback=not_found))

A corrected request is either answered with a 301 to the corrected path, or
served by the matched route's handler with its path rewritten and the bound
parameters in `path_params`. The outcome is available to handlers and
middleware in the `typo_correction` ContextVar, which also keeps a request
from being corrected twice.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

from typoroute.config import TypoConfig
from typoroute.outcome import MatchOutcome
from typoroute.resolver import resolve
from typoroute.router import Router
from typoroute.rsgi import HTTPProtocol, HTTPScope, RSGIHTTPHandler

logger = logging.getLogger(__name__)

typo_correction: ContextVar[MatchOutcome | None] = ContextVar(
    "typo_correction", default=None
)


class _CorrectedHTTPScope:
    """Lightweight wrapper that overrides path on an HTTPScope."""

    __slots__ = ("_scope", "path")

    def __init__(self, scope: HTTPScope, path: str) -> None:
        self._scope = scope
        self.path = path

    def __getattr__(self, name: str) -> object:
        return getattr(self._scope, name)


def typo_tolerant(
    router: Router,
    *,
    fallback: RSGIHTTPHandler,
    config: TypoConfig = TypoConfig(),
) -> RSGIHTTPHandler:
    """Create a not found handler that corrects typos in request paths.

    Args:
        router: Router whose registered routes are the correction candidates,
            and which serves corrected requests.
        fallback: Handler for requests that can't be corrected, typically
            the plain 404 handler.
        config: Matching tolerance and correction behaviour.

    Returns:
        RSGI HTTP handler to pass to `Router.not_found`.

    Example:
        router = Router()
        router.get("/products", products)
        router.get("/users/:user_id", user)
        router.not_found(typo_tolerant(router, fallback=not_found))
        router.method_not_allowed(method_not_allowed)
        router.finalize()

        # GET /produts -> products, GET /usrs/42 -> user with user_id=42
    """

    async def handler(scope: HTTPScope, proto: HTTPProtocol) -> None:
        if typo_correction.get() is not None:  # already corrected once
            await fallback(scope, proto)
            return

        method = scope.method.upper()
        if method != "GET" and not config.apply_to_all_methods:
            await fallback(scope, proto)
            return

        outcome = resolve(scope.path, method, router.catalog(), config)
        # the router never binds an empty segment, so neither do corrections
        if outcome is None or "" in outcome.params.values():
            await fallback(scope, proto)
            return

        logger.log(
            logging.INFO if config.log_corrections else logging.DEBUG,
            'Typo correction: "%s" -> "%s" (distance: %d)',
            scope.path,
            outcome.path,
            outcome.distance,
        )

        if config.redirect_to_correct and not outcome.has_parameters:
            proto.response_empty(
                301, [("location", outcome.redirect_location(scope.query_string))]
            )
            return

        token = typo_correction.set(outcome)
        try:
            await router.serve_route(
                outcome.path,
                outcome.params,
                _CorrectedHTTPScope(scope, outcome.rewritten_path),  # type: ignore[arg-type]
                proto,
            )
        finally:
            typo_correction.reset(token)

    return handler
