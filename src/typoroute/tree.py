"""Immutable segment trie holding a router's handlers.

Inspired by go 1.22+ net/http's routingNode. Literal segments are dict
children, a `:name` segment is the node's single param child, and handlers sit
in leaf nodes keyed by HTTP method.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache
from typing import Literal

path_params: ContextVar[dict[str, str]] = ContextVar("path_params")
http_route: ContextVar[str] = ContextVar("http_route")

type Middleware[T] = Callable[[T], T]
type HTTPMethod = Literal[
    "CONNECT", "DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT", "TRACE"
]


class LeafKey(Enum):
    """HTTP methods a leaf can be registered for (RFC 9110, RFC 5789).

    ANY_HTTP represents any http method
    """

    CONNECT = "CONNECT"
    DELETE = "DELETE"
    GET = "GET"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"
    POST = "POST"
    PUT = "PUT"
    TRACE = "TRACE"

    ANY_HTTP = "*"

    def __repr__(self) -> str:
        return str(self.value)


class FrozenDict[K, V](Mapping[K, V]):
    """Read-only, hashable mapping, so whole trees can key the lookup cache."""

    __slots__ = ("_data", "_hash")

    def __init__(self, data: Mapping[K, V] | Iterable[tuple[K, V]] = ()) -> None:
        self._data: dict[K, V] = dict(data)
        self._hash: int | None = None

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._data.items()))
        return self._hash

    def __repr__(self) -> str:
        return f"FrozenDict({self._data!r})"


@dataclass(slots=True, frozen=True)
class Node[T]:
    """Segment-based trie node"""

    handler: T | None = field(default=None)
    middleware: tuple[Middleware[T], ...] = field(default=())
    children: FrozenDict[str | LeafKey, Node[T]] = field(default_factory=FrozenDict)
    param: ParamNode[T] | None = field(default=None)
    not_found_handler: T | None = None
    method_not_allowed_handler: T | None = None


@dataclass(slots=True, frozen=True)
class ParamNode[T]:
    """A `:name` segment, matching any single non-empty path segment."""

    name: str
    child: Node[T]


@lru_cache(maxsize=1024)
def find_handler[T](
    path: str,
    method: LeafKey,
    tree: Node[T],
) -> tuple[T, tuple[Middleware[T], ...], dict[str, str], str]:
    """Traverses the tree to find the best match handler for a request path.

    Each path segment priority is: literal match > param match, without
    backtracking. Unmatched paths get the not found handler, matched paths
    without a handler for method get the method not allowed handler.

    Returns (handler, middleware, params, route_pattern) where route_pattern
    is the matched route (e.g. "/user/:id") or "" for error handlers.
    """
    current = tree
    params = {}
    route_parts: list[str] = []
    for seg in path[1:].split("/"):  # assumes leading "/"
        child = current.children.get(seg)
        if child is not None:
            route_parts.append(seg)
        elif current.param is not None and seg:
            child = current.param.child
            params[current.param.name] = seg
            route_parts.append(":" + current.param.name)
        else:
            return _required(current.not_found_handler, "not found"), (), {}, ""
        current = child

    handler, middleware, found = _method_handler(current, method)
    if not found:
        return handler, middleware, {}, ""
    return handler, middleware, params, "/" + "/".join(route_parts)


@lru_cache(maxsize=1024)
def find_route[T](
    route: str,
    method: LeafKey,
    tree: Node[T],
) -> tuple[T, tuple[Middleware[T], ...], str]:
    """Walks a registered route pattern (e.g. "/user/:id") to its handler.

    `:name` segments always follow the param child, so literal siblings can't
    shadow the route the way they can for a request path in `find_handler`.

    Returns (handler, middleware, route_pattern), route_pattern being "" for
    error handlers.
    """
    current = tree
    for seg in route[1:].split("/"):
        if seg.startswith(":") and current.param is not None:
            child = current.param.child
        else:
            child = current.children.get(seg)
        if child is None:
            return _required(current.not_found_handler, "not found"), (), ""
        current = child

    handler, middleware, found = _method_handler(current, method)
    return handler, middleware, route if found else ""


def _method_handler[T](
    node: Node[T], method: LeafKey
) -> tuple[T, tuple[Middleware[T], ...], bool]:
    """Pick node's handler for method, falling back to its any method handler."""
    leaf = node.children.get(method)
    if leaf is None:
        leaf = node.children.get(LeafKey.ANY_HTTP)
    if leaf is not None and leaf.handler is not None:
        return leaf.handler, leaf.middleware, True
    if leaf is None and any(isinstance(k, LeafKey) for k in node.children):
        return (
            _required(node.method_not_allowed_handler, "method not allowed"),
            (),
            False,
        )
    return _required(node.not_found_handler, "not found"), (), False


def _required[T](handler: T | None, kind: str) -> T:
    if handler is None:
        msg = f"No {kind} handler set"
        raise ValueError(msg)
    return handler


def add_route[T](
    tree: Node[T],
    method: LeafKey,
    path: str,
    handler: T,
    middleware: tuple[Middleware[T], ...] = (),
) -> Node[T]:
    """add route to tree for handler on method/path with optional middleware"""
    leaf = Node(handler=handler, middleware=middleware)
    new_tree = _construct_sub_tree(path, Node(children=FrozenDict({method: leaf})))
    return _merge_trees(tree, new_tree)


def mount_tree[T](path: str, parent: Node[T], child: Node[T]) -> Node[T]:
    # child middleware has to travel with child routes, so push it to the leaves first
    if child.middleware:
        child = _cascade_middleware(child, ())
    if path == "/":
        return _merge_trees(parent, child)
    return _merge_trees(parent, _construct_sub_tree(path, child))


def finalize_tree[T](
    tree: Node[T],
    not_found_handler: T,
    method_not_allowed_handler: T,
    middleware: tuple[Middleware[T], ...],
) -> Node[T]:
    """Push error handlers and middleware down to every node.

    Error handlers set lower in the tree (by a mounted router) replace the
    inherited ones for their subtree. Middleware accumulates outermost first.
    """
    if tree.not_found_handler is not None:
        not_found_handler = tree.not_found_handler
    if tree.method_not_allowed_handler is not None:
        method_not_allowed_handler = tree.method_not_allowed_handler
    middleware += tree.middleware
    tree = replace(
        tree,
        not_found_handler=not_found_handler,
        method_not_allowed_handler=method_not_allowed_handler,
        middleware=middleware,
    )
    return _map_subtrees(
        tree,
        lambda n: finalize_tree(
            n, not_found_handler, method_not_allowed_handler, middleware
        ),
    )


def _cascade_middleware[T](
    tree: Node[T], middleware: tuple[Middleware[T], ...]
) -> Node[T]:
    """Move middleware down to the leaves, clearing it everywhere else."""
    middleware += tree.middleware
    tree = replace(tree, middleware=middleware if tree.handler is not None else ())
    return _map_subtrees(tree, lambda n: _cascade_middleware(n, middleware))


def _map_subtrees[T](node: Node[T], fn: Callable[[Node[T]], Node[T]]) -> Node[T]:
    param = node.param
    if param is not None:
        param = ParamNode(name=param.name, child=fn(param.child))
    children = FrozenDict({k: fn(child) for k, child in node.children.items()})
    return replace(node, children=children, param=param)


def _construct_sub_tree[T](path: str, child: Node[T]) -> Node[T]:
    """construct sub tree for existing node on path"""
    if not path.startswith("/"):
        msg = f"path must start with '/', provided {path=}"
        raise ValueError(msg)

    for seg in reversed(path[1:].split("/")):
        if not seg.startswith(":"):
            child = Node(children=FrozenDict({seg: child}))
            continue
        if len(seg) == 1:
            msg = f"parameter segment needs a name, provided {path=}"
            raise ValueError(msg)
        child = Node(param=ParamNode(name=seg[1:], child=child))
    return child


def iter_routes[T](tree: Node[T]) -> Iterator[tuple[str, str]]:
    """Flatten the tree into (method, path) pairs.

    At each node the method leaves come first (sorted by method), then literal
    children sorted by segment, then the param child, so the output order only
    depends on the registered routes. Methods are yielded as their LeafKey
    value ("*" for any http method).
    """
    stack: list[tuple[Node[T], tuple[str, ...]]] = [(tree, ())]
    while stack:
        node, parts = stack.pop()
        leaves = sorted(
            k.value
            for k, leaf in node.children.items()
            if isinstance(k, LeafKey) and leaf.handler is not None
        )
        path = "/" + "/".join(parts)
        for method in leaves:
            yield method, path
        pending = [
            (node.children[seg], (*parts, seg))
            for seg in sorted(k for k in node.children if isinstance(k, str))
        ]
        if node.param is not None:
            pending.append((node.param.child, (*parts, ":" + node.param.name)))
        stack.extend(reversed(pending))  # pop in visiting order


def _merge_trees[T](tree1: Node[T], tree2: Node[T]) -> Node[T]:
    """merge tree2 into tree1, error on conflict"""
    if tree2.middleware and tree1.middleware != tree2.middleware:
        msg = "node being merged in has conflicting middleware"
        raise ValueError(msg)

    param = tree1.param or tree2.param
    if tree1.param is not None and tree2.param is not None:
        if tree1.param.name != tree2.param.name:
            msg = (
                f"nodes have conflicting params: "
                f":{tree1.param.name} and :{tree2.param.name}"
            )
            raise ValueError(msg)
        param = ParamNode(
            name=tree1.param.name,
            child=_merge_trees(tree1.param.child, tree2.param.child),
        )

    children = dict(tree1.children)
    for key, child in tree2.children.items():
        children[key] = _merge_trees(children[key], child) if key in children else child

    return Node(
        handler=_merge_handler(tree1.handler, tree2.handler, "handlers"),
        middleware=tree1.middleware or tree2.middleware,
        children=FrozenDict(children),
        param=param,
        not_found_handler=_merge_handler(
            tree1.not_found_handler, tree2.not_found_handler, "not found handlers"
        ),
        method_not_allowed_handler=_merge_handler(
            tree1.method_not_allowed_handler,
            tree2.method_not_allowed_handler,
            "method not allowed handlers",
        ),
    )


def _merge_handler[T](first: T | None, second: T | None, kind: str) -> T | None:
    if first is not None and second is not None and first is not second:
        msg = f"nodes have conflicting {kind}"
        raise ValueError(msg)
    return first if first is not None else second
