"""Flat, immutable snapshot of the routes a host has registered.

A catalog is never mutated. Hosts build a fresh one whenever their route set
changes, and in-flight resolutions keep using the snapshot they were handed.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import cached_property

ANY_METHOD = "*"


@dataclass(slots=True, frozen=True)
class Literal:
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(slots=True, frozen=True)
class Parameter:
    name: str

    def __str__(self) -> str:
        return ":" + self.name


type Segment = Literal | Parameter


def split_path(path: str) -> tuple[str, ...]:
    """Split a path on "/", dropping empty segments (leading, trailing or doubled slashes)."""
    return tuple(seg for seg in path.split("/") if seg)


def parse_template(path: str) -> tuple[Segment, ...]:
    """Split a route template into segments, `:name` segments becoming parameters."""
    return tuple(
        Parameter(seg[1:]) if seg.startswith(":") and len(seg) > 1 else Literal(seg)
        for seg in split_path(path)
    )


@dataclass(frozen=True)
class RouteTemplate:
    """A registered route: absolute path template and the methods it answers.

    `path` is kept exactly as registered, since that is what the host router
    will match when a corrected request is dispatched again.
    """

    path: str
    methods: frozenset[str]
    segments: tuple[Segment, ...]

    @classmethod
    def build(cls, path: str, methods: Iterable[str]) -> RouteTemplate:
        return cls(
            path=path,
            methods=frozenset(m.upper() for m in methods),
            segments=parse_template(path),
        )

    @cached_property
    def has_parameters(self) -> bool:
        return any(isinstance(seg, Parameter) for seg in self.segments)

    @cached_property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(seg.name for seg in self.segments if isinstance(seg, Parameter))

    def accepts(self, method: str) -> bool:
        return ANY_METHOD in self.methods or method.upper() in self.methods


class RouteCatalog:
    """Ordered, read-only sequence of route templates.

    Iteration order is the order the routes were given in (for
    `Router.catalog` the sorted trie walk of `tree.iter_routes`), and it
    decides ties between equally close routes.
    """

    __slots__ = ("_templates",)
    _templates: tuple[RouteTemplate, ...]

    def __init__(self, templates: Iterable[RouteTemplate] = ()) -> None:
        self._templates = tuple(templates)

    @classmethod
    def from_routes(cls, routes: Iterable[tuple[str, str]]) -> RouteCatalog:
        """Build a catalog from (method, path) pairs.

        Methods registered for the same path are grouped into one template, in
        the order each path was first seen. Duplicate pairs are ignored.
        """
        methods: dict[str, list[str]] = {}
        for method, path in routes:
            seen = methods.setdefault(path, [])
            if method.upper() not in seen:
                seen.append(method.upper())
        return cls(RouteTemplate.build(path, ms) for path, ms in methods.items())

    def __iter__(self) -> Iterator[RouteTemplate]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def __bool__(self) -> bool:
        return bool(self._templates)

    def __repr__(self) -> str:
        return f"RouteCatalog({list(self._templates)!r})"

    def for_method(self, method: str, *, all_methods: bool = False) -> RouteCatalog:
        """Sub-catalog of the templates answering method, in the same order."""
        if all_methods:
            return self
        return RouteCatalog(t for t in self._templates if t.accepts(method))

    def static(self) -> tuple[RouteTemplate, ...]:
        return tuple(t for t in self._templates if not t.has_parameters)

    def parameterized(self) -> tuple[RouteTemplate, ...]:
        return tuple(t for t in self._templates if t.has_parameters)
