"""
Reference collection for reachability pruning.

Walks operations and components and emits one ReferenceEdge per $ref
found. Walks are read-only, so collections for different operations can
run concurrently.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..analyzer.reference_resolver import parse_reference
from ..document.model import Document, Header, MediaType, Operation, Parameter, RequestBody, Response
from ..document.nodes import SchemaNode


@dataclass(frozen=True, order=True)
class ReferenceEdge:
    """Location ``source`` references the named component ``target``."""

    source: str
    target: str  # canonical component pointer, e.g. "#/components/schemas/Pet"

    @property
    def bucket(self) -> str:
        return parse_reference(self.target).bucket

    @property
    def name(self) -> str:
        return parse_reference(self.target).component


class ReferenceCollector:
    """Collects reference edges from a document."""

    def __init__(self, document: Document):
        self.document = document

    def _edge(self, ref: str, source_path: str) -> ReferenceEdge | None:
        pointer = parse_reference(ref, source_path)
        if pointer.component_ref is None:
            return None
        return ReferenceEdge(source=source_path, target=pointer.component_ref)

    def _add(self, edges: list[ReferenceEdge], ref: str, source_path: str) -> None:
        edge = self._edge(ref, source_path)
        if edge is not None:
            edges.append(edge)

    def collect_operation(self, operation: Operation) -> list[ReferenceEdge]:
        """References reached from one operation, path-level parameters included."""
        edges: list[ReferenceEdge] = []
        visited: set[int] = set()
        for parameter in self.document.effective_parameters(operation):
            self._walk_parameter(parameter, edges, visited)
        if operation.request_body is not None:
            self._walk_request_body(operation.request_body, edges, visited)
        for response in operation.responses.values():
            self._walk_response(response, edges, visited)
        return edges

    def collect_components(self) -> list[ReferenceEdge]:
        """References held by parameter, request body, response and header components."""
        edges: list[ReferenceEdge] = []
        visited: set[int] = set()
        components = self.document.components
        for _, parameter in components.parameters.items():
            self._walk_parameter(parameter, edges, visited)
        for _, request_body in components.request_bodies.items():
            self._walk_request_body(request_body, edges, visited)
        for _, response in components.responses.items():
            self._walk_response(response, edges, visited)
        for _, header in components.headers.items():
            self._walk_header(header, edges, visited)
        return edges

    def collect_schema_component(self, name: str) -> list[ReferenceEdge]:
        """References held by one schema component."""
        edges: list[ReferenceEdge] = []
        node = self.document.components.schemas.get(name)
        if node is not None:
            self.walk_schema(node, edges, set())
        return edges

    def _walk_parameter(self, parameter: Parameter, edges: list[ReferenceEdge], visited: set[int]) -> None:
        if parameter.is_reference:
            self._add(edges, parameter.ref, parameter.source_path)
            return
        if parameter.schema is not None:
            self.walk_schema(parameter.schema, edges, visited)
        self._walk_content(parameter.content, edges, visited)

    def _walk_request_body(self, request_body: RequestBody, edges: list[ReferenceEdge], visited: set[int]) -> None:
        if request_body.is_reference:
            self._add(edges, request_body.ref, request_body.source_path)
            return
        self._walk_content(request_body.content, edges, visited)

    def _walk_response(self, response: Response, edges: list[ReferenceEdge], visited: set[int]) -> None:
        if response.is_reference:
            self._add(edges, response.ref, response.source_path)
            return
        for header in response.headers.values():
            self._walk_header(header, edges, visited)
        self._walk_content(response.content, edges, visited)

    def _walk_header(self, header: Header, edges: list[ReferenceEdge], visited: set[int]) -> None:
        if header.is_reference:
            self._add(edges, header.ref, header.source_path)
            return
        if header.schema is not None:
            self.walk_schema(header.schema, edges, visited)
        self._walk_content(header.content, edges, visited)

    def _walk_content(self, content: list[MediaType], edges: list[ReferenceEdge], visited: set[int]) -> None:
        # media examples are payloads, "$ref" keys inside them are data
        for media in content:
            if media.schema is not None:
                self.walk_schema(media.schema, edges, visited)

    def walk_schema(self, root: SchemaNode, edges: list[ReferenceEdge], visited: set[int]) -> None:
        """Depth-first walk of a schema graph with an identity-keyed visited set."""
        stack = [root]
        while stack:
            node = stack.pop()
            if id(node) in visited:
                continue
            visited.add(id(node))
            if node.is_reference:
                self._add(edges, node.ref, node.source_path)
                continue
            if node.discriminator is not None:
                for target in node.discriminator.mapping.values():
                    if not target.startswith("#"):
                        target = f"#/components/schemas/{target}"
                    self._add(edges, target, node.source_path)
            stack.extend(reversed(node.children()))
