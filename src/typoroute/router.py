"""RSGI HTTP router/multiplexer.

Inspired by go-chi/mux's Mux
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from functools import reduce

from typoroute.catalog import RouteCatalog
from typoroute.rsgi import HTTPProtocol, HTTPScope, RSGIHTTPHandler
from typoroute.tree import (
    HTTPMethod,
    LeafKey,
    Middleware,
    Node,
    add_route,
    finalize_tree,
    find_handler,
    find_route,
    http_route,
    iter_routes,
    mount_tree,
    path_params,
)


class Router:
    __slots__ = ("_catalog", "_catalog_tree", "_finalized", "_tree")
    _tree: Node[RSGIHTTPHandler]
    _finalized: bool
    _catalog: RouteCatalog
    _catalog_tree: Node[RSGIHTTPHandler] | None

    def __init__(self) -> None:
        self._tree = Node()
        self._finalized = False
        self._catalog = RouteCatalog()
        self._catalog_tree = None

    async def __rsgi__(self, scope: HTTPScope, proto: HTTPProtocol) -> None:
        handler, params, route = self._handler(
            LeafKey(scope.method.upper()), scope.path
        )
        await self._serve(handler, params, route, scope, proto)

    async def serve_route(
        self,
        route: str,
        params: Mapping[str, str],
        scope: HTTPScope,
        proto: HTTPProtocol,
    ) -> None:
        """Serves the request with the handler registered for route pattern.

        No path matching happens: the handler is looked up by its pattern (e.g.
        "/users/:id") and `path_params` is set to params as given. Methods the
        route doesn't answer get the method not allowed handler.
        """
        handler, middleware, route = find_route(
            route, LeafKey(scope.method.upper()), self._tree
        )
        wrapped_handler = reduce(lambda h, m: m(h), reversed(middleware), handler)
        await self._serve(wrapped_handler, dict(params), route, scope, proto)

    async def _serve(
        self,
        handler: RSGIHTTPHandler,
        params: dict[str, str],
        route: str,
        scope: HTTPScope,
        proto: HTTPProtocol,
    ) -> None:
        params_token = path_params.set(params)
        route_token = http_route.set(route)
        try:
            await handler(scope, proto)
        finally:
            http_route.reset(route_token)
            path_params.reset(params_token)

    def finalize(self) -> None:
        """Finalize the router tree.

        Cascades not_found_handler, method_not_allowed_handler, and middleware
        down through the routing tree. Idempotent - safe to call multiple times.
        """
        if self._finalized:
            return
        if self._tree.not_found_handler is None:
            msg = "Router does not have not_found_handler"
            raise ValueError(msg)
        if self._tree.method_not_allowed_handler is None:
            msg = "Router does not have method_not_allowed_handler"
            raise ValueError(msg)
        self._tree = finalize_tree(
            self._tree,
            self._tree.not_found_handler,
            self._tree.method_not_allowed_handler,
            (),
        )
        self._finalized = True

    def catalog(self) -> RouteCatalog:
        """Snapshot of the registered routes, rebuilt only after they change."""
        if self._catalog_tree is not self._tree:
            self._catalog = RouteCatalog.from_routes(iter_routes(self._tree))
            self._catalog_tree = self._tree
        return self._catalog

    def _handler(
        self, method: LeafKey, path: str
    ) -> tuple[RSGIHTTPHandler, dict[str, str], str]:
        """Returns the handler to use for the request."""
        # path is unescaped by the rsgi server, so we don't need to use urllib.parse.(un)quote
        handler, middleware, params, route = find_handler(path, method, self._tree)
        wrapped_handler = reduce(lambda h, m: m(h), reversed(middleware), handler)
        return wrapped_handler, params, route

    def _add(
        self,
        method: LeafKey,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...],
    ) -> None:
        self._tree = add_route(self._tree, method, path, handler, middleware)

    def handle(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        """Registers handler in tree at path for any http method, with optional middleware."""
        self._add(LeafKey.ANY_HTTP, path, handler, middleware)

    def method(
        self,
        method: HTTPMethod | None,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        """Registers handler in tree at path for method, with optional middleware."""
        self._add(
            LeafKey(method) if method is not None else LeafKey.ANY_HTTP,
            path,
            handler,
            middleware,
        )

    def connect(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.CONNECT, path, handler, middleware)

    def delete(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.DELETE, path, handler, middleware)

    def get(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.GET, path, handler, middleware)

    def head(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.HEAD, path, handler, middleware)

    def options(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.OPTIONS, path, handler, middleware)

    def patch(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.PATCH, path, handler, middleware)

    def post(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.POST, path, handler, middleware)

    def put(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.PUT, path, handler, middleware)

    def trace(
        self,
        path: str,
        handler: RSGIHTTPHandler,
        middleware: tuple[Middleware[RSGIHTTPHandler], ...] = (),
    ) -> None:
        self._add(LeafKey.TRACE, path, handler, middleware)

    def not_found(self, handler: RSGIHTTPHandler) -> None:
        """Registers http handler for paths that can't be found."""
        if self._tree.not_found_handler is not None:
            msg = "not found handler is already set"
            raise ValueError(msg)
        self._tree = replace(self._tree, not_found_handler=handler)

    def method_not_allowed(self, handler: RSGIHTTPHandler) -> None:
        """Registers http handler for paths where the method is unresolved."""
        if self._tree.method_not_allowed_handler is not None:
            msg = "method not allowed handler is already set"
            raise ValueError(msg)
        self._tree = replace(self._tree, method_not_allowed_handler=handler)

    def use(self, *middleware: Middleware[RSGIHTTPHandler]) -> None:
        """Adds middleware to tree."""
        self._tree = replace(
            self._tree, middleware=self._tree.middleware + middleware
        )

    def mount(self, path: str, router: Router) -> None:
        """Merges in another router at path."""
        if path.endswith("/") and path != "/":
            msg = "mount path cannot end in /"
            raise ValueError(msg)
        self._tree = mount_tree(path, self._tree, router._tree)
