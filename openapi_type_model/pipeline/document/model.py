"""
Document model: path items, operations and the component registry.

The model is mutable only through deletion. Components are created at
parse time and removed by filtering or pruning, never recreated.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .nodes import SchemaNode

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

COMPONENT_BUCKETS = (
    "schemas",
    "parameters",
    "requestBodies",
    "responses",
    "headers",
    "examples",
    "links",
    "callbacks",
)


@dataclass(eq=False)
class MediaType:
    media_type: str
    schema: SchemaNode | None = None
    # Raw example payloads, never interpreted as references
    examples: list[Any] = field(default_factory=list)


@dataclass(eq=False)
class Header:
    source_path: str = ""
    ref: str | None = None
    schema: SchemaNode | None = None
    required: bool = False
    content: list[MediaType] = field(default_factory=list)

    @property
    def is_reference(self) -> bool:
        return self.ref is not None


@dataclass(eq=False)
class Parameter:
    source_path: str = ""
    ref: str | None = None
    name: str = ""
    location: str = ""  # "query", "path", "header", "cookie"
    required: bool = False
    schema: SchemaNode | None = None
    content: list[MediaType] = field(default_factory=list)

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.location)


@dataclass(eq=False)
class RequestBody:
    source_path: str = ""
    ref: str | None = None
    required: bool = False
    content: list[MediaType] = field(default_factory=list)

    @property
    def is_reference(self) -> bool:
        return self.ref is not None


@dataclass(eq=False)
class Response:
    source_path: str = ""
    ref: str | None = None
    description: str = ""
    headers: dict[str, Header] = field(default_factory=dict)
    content: list[MediaType] = field(default_factory=list)
    links: dict[str, Any] = field(default_factory=dict)

    @property
    def is_reference(self) -> bool:
        return self.ref is not None


@dataclass(eq=False)
class Operation:
    method: str
    path: str
    operation_id: str
    source_path: str = ""
    tags: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)
    request_body: RequestBody | None = None
    # Status code (or "default", "2XX") -> response, in declaration order
    responses: dict[str, Response] = field(default_factory=dict)
    callbacks: dict[str, Any] = field(default_factory=dict)
    # Parameters hidden by an earlier definition with the same (name, in)
    shadowed_parameters: list[Parameter] = field(default_factory=list)

    @staticmethod
    def derive_operation_id(method: str, path: str) -> str:
        """Build a deterministic operation id when the document has none."""
        words = [w for w in re.split(r"[^0-9A-Za-z]+", path) if w]
        return method.lower() + "".join(w[:1].upper() + w[1:] for w in words)


@dataclass(eq=False)
class PathItem:
    path: str
    source_path: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    operations: dict[str, Operation] = field(default_factory=dict)


class ComponentBucket:
    """Ordered name -> component mapping that only supports deletion."""

    def __init__(self, name: str, entries: dict[str, Any] | None = None):
        self.name = name
        self._entries: dict[str, Any] = dict(entries or {})

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._entries.items())

    def names(self) -> list[str]:
        return list(self._entries)

    def delete(self, key: str) -> None:
        del self._entries[key]


class ComponentRegistry:
    """The named component buckets of a document."""

    def __init__(self, buckets: dict[str, dict[str, Any]] | None = None):
        buckets = buckets or {}
        self._buckets = {name: ComponentBucket(name, buckets.get(name)) for name in COMPONENT_BUCKETS}

    def bucket(self, name: str) -> ComponentBucket:
        return self._buckets[name]

    def has_bucket(self, name: str) -> bool:
        return name in self._buckets

    @property
    def schemas(self) -> ComponentBucket:
        return self._buckets["schemas"]

    @property
    def parameters(self) -> ComponentBucket:
        return self._buckets["parameters"]

    @property
    def request_bodies(self) -> ComponentBucket:
        return self._buckets["requestBodies"]

    @property
    def responses(self) -> ComponentBucket:
        return self._buckets["responses"]

    @property
    def headers(self) -> ComponentBucket:
        return self._buckets["headers"]

    def buckets(self) -> list[ComponentBucket]:
        return [self._buckets[name] for name in COMPONENT_BUCKETS]

    def count(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())


@dataclass(eq=False)
class Document:
    openapi: str = "3.0.0"
    title: str = ""
    paths: dict[str, PathItem] = field(default_factory=dict)
    components: ComponentRegistry = field(default_factory=ComponentRegistry)
    webhooks: dict[str, Any] = field(default_factory=dict)
    security_schemes: dict[str, Any] = field(default_factory=dict)

    def operations(self) -> list[Operation]:
        """All operations in path then method order."""
        result = []
        for path_item in self.paths.values():
            for method in HTTP_METHODS:
                if method in path_item.operations:
                    result.append(path_item.operations[method])
        return result

    def effective_parameters(self, operation: Operation) -> list[Parameter]:
        """Operation parameters followed by path-level ones, deduplicated on (name, in).

        Duplicate definitions resolve to the first one seen. Reference
        parameters are keyed by their target since their name is not known
        without resolving them.
        """
        path_item = self.paths.get(operation.path)
        candidates = list(operation.parameters)
        if path_item is not None:
            candidates.extend(path_item.parameters)
        seen: set[tuple[str, str]] = set()
        result = []
        for parameter in candidates:
            key = ("$ref", parameter.ref) if parameter.is_reference else parameter.key
            if key in seen:
                continue
            seen.add(key)
            result.append(parameter)
        return result
