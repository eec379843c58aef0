"""
Reference resolver for $ref resolution.

Parses local JSON pointer references and resolves them against the
component registry, following alias chains with cycle and depth checks.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from ..document.model import Document
from ..document.nodes import SchemaNode
from ..document.parser import escape_pointer_segment
from ..errors import MalformedReferenceError, UnresolvableReferenceError

_BAD_ESCAPE = re.compile(r"~(?![01])")


@dataclass(frozen=True)
class ReferencePointer:
    """A parsed local reference such as ``#/components/schemas/Pet``."""

    raw: str
    segments: tuple[str, ...]

    @property
    def canonical(self) -> str:
        return "#/" + "/".join(escape_pointer_segment(s) for s in self.segments)

    @property
    def bucket(self) -> str | None:
        if len(self.segments) >= 3 and self.segments[0] == "components":
            return self.segments[1]
        return None

    @property
    def component(self) -> str | None:
        """Name of the component the pointer lands in (or under)."""
        if self.bucket is None:
            return None
        return self.segments[2]

    @property
    def component_ref(self) -> str | None:
        if self.bucket is None:
            return None
        return f"#/components/{self.bucket}/{escape_pointer_segment(self.segments[2])}"

    @property
    def subpath(self) -> tuple[str, ...]:
        """Segments below the component, empty for a whole-component pointer."""
        return self.segments[3:]


def parse_reference(ref: str | None, source_path: str = "") -> ReferencePointer:
    """
    Parse a local reference.

    Args:
        ref: The $ref string
        source_path: Location of the reference, for error messages

    Returns:
        ReferencePointer with unescaped segments

    Raises:
        MalformedReferenceError: if the reference is empty, external, or badly escaped
    """
    if not ref:
        raise MalformedReferenceError("empty $ref", source_path)
    if not ref.startswith("#"):
        raise MalformedReferenceError(f"external reference '{ref}' is not supported", source_path)
    fragment = ref[1:]
    if not fragment.startswith("/"):
        raise MalformedReferenceError(f"reference '{ref}' is not a JSON pointer", source_path)
    segments = []
    for raw_segment in fragment[1:].split("/"):
        segment = unquote(raw_segment)
        if _BAD_ESCAPE.search(segment):
            raise MalformedReferenceError(f"invalid '~' escape in reference '{ref}'", source_path)
        segments.append(segment.replace("~1", "/").replace("~0", "~"))
    if any(s == "" for s in segments):
        raise MalformedReferenceError(f"empty segment in reference '{ref}'", source_path)
    return ReferencePointer(raw=ref, segments=tuple(segments))


def canonical_reference(ref: str, source_path: str = "") -> str:
    return parse_reference(ref, source_path).canonical


class ReferenceResolver:
    """Resolves $ref to actual components."""

    def __init__(self, document: Document, max_depth: int = 32):
        """
        Initialize the resolver.

        Args:
            document: The document whose components are looked up
            max_depth: Maximum alias chain length
        """
        self.document = document
        self.max_depth = max_depth

    def lookup(self, ref: str, source_path: str = "") -> Any:
        """Return the entry a reference points at, without following aliases."""
        pointer = parse_reference(ref, source_path)
        if pointer.bucket is None:
            raise UnresolvableReferenceError(f"'{ref}' does not point into components", source_path)
        components = self.document.components
        if not components.has_bucket(pointer.bucket) or pointer.component not in components.bucket(pointer.bucket):
            raise UnresolvableReferenceError(f"'{ref}' does not resolve to a known component", source_path)
        entry = components.bucket(pointer.bucket)[pointer.component]
        if not pointer.subpath:
            return entry
        if not isinstance(entry, SchemaNode):
            raise UnresolvableReferenceError(f"'{ref}' points inside a non-schema component", source_path)
        return self._descend(entry, pointer, source_path)

    def resolve_schema(self, ref: str, source_path: str = "") -> tuple[SchemaNode, list[str]]:
        """
        Follow a schema reference through alias components.

        Args:
            ref: The $ref string
            source_path: Location of the reference, for error messages

        Returns:
            The first non-reference schema and the canonical refs visited on the way

        Raises:
            UnresolvableReferenceError: missing target, alias cycle or chain too deep
        """
        chain: list[str] = []
        current = ref
        while True:
            canonical = canonical_reference(current, source_path)
            if canonical in chain:
                raise UnresolvableReferenceError(f"circular alias chain {' -> '.join(chain + [canonical])}", source_path)
            chain.append(canonical)
            if len(chain) > self.max_depth:
                raise UnresolvableReferenceError(f"alias chain longer than {self.max_depth} starting at '{ref}'", source_path)
            target = self.lookup(current, source_path)
            if not isinstance(target, SchemaNode):
                raise UnresolvableReferenceError(f"'{current}' is not a schema", source_path)
            if not target.is_reference:
                return target, chain
            current = target.ref
            source_path = target.source_path

    def resolve_component(self, ref: str, source_path: str = "") -> Any:
        """Follow a non-schema component reference (parameter, response, ...) to its definition."""
        seen: list[str] = []
        entry: Any = None
        current = ref
        while current is not None:
            canonical = canonical_reference(current, source_path)
            if canonical in seen or len(seen) >= self.max_depth:
                raise UnresolvableReferenceError(f"cannot resolve '{ref}'", source_path)
            seen.append(canonical)
            entry = self.lookup(current, source_path)
            current = getattr(entry, "ref", None)
        return entry

    def _descend(self, node: SchemaNode, pointer: ReferencePointer, source_path: str) -> SchemaNode:
        segments = list(pointer.subpath)
        current: Any = node
        while segments:
            if not isinstance(current, SchemaNode):
                break
            key = segments.pop(0)
            if key == "properties" and segments:
                current = current.properties.get(segments.pop(0))
            elif key == "items":
                current = current.items
            elif key == "additionalProperties":
                current = current.additional_properties
            elif key == "not":
                current = current.not_
            elif key in ("allOf", "oneOf", "anyOf") and segments:
                branches = {"allOf": current.all_of, "oneOf": current.one_of, "anyOf": current.any_of}[key]
                index = segments.pop(0)
                current = branches[int(index)] if index.isdigit() and int(index) < len(branches) else None
            else:
                current = None
        if not isinstance(current, SchemaNode):
            raise UnresolvableReferenceError(f"'{pointer.raw}' does not resolve to a schema", source_path)
        return current
