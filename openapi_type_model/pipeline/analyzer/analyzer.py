"""
Schema analyzer that resolves compositions and names types.

Phase 3 of the pipeline: every schema in the document is resolved first,
so structural conflicts and bad references abort before any name is
assigned. Names are then assigned in a fixed order: component schemas
are reserved first, then names derived from them, then non-schema
components, then operations in path order.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from ..document.model import Header, MediaType, Operation, Parameter, RequestBody, Response
from ..document.nodes import SchemaNode, ShapeKind, UnionMode
from ..document.parser import escape_pointer_segment
from .ir_nodes import TypeDef, TypeModel, TypeOrigin
from .name_resolver import TypeNameRegistry
from .reference_resolver import canonical_reference, parse_reference

if TYPE_CHECKING:
    from ..context import GenerationContext

_NAMED_KINDS = (ShapeKind.OBJECT, ShapeKind.UNION)


class SchemaAnalyzer:
    """Resolves all schemas of a document and builds the named type model."""

    def __init__(self, context: GenerationContext, registry: TypeNameRegistry | None = None):
        """
        Initialize the analyzer.

        Args:
            context: The generation context of this run
            registry: Name registry (a fresh one by default)
        """
        self.context = context
        self.document = context.document
        self.composition = context.composition
        self.references = context.references
        self.registry = registry or TypeNameRegistry(context.config.naming)
        self.model = TypeModel()

    def analyze(self) -> TypeModel:
        """
        Build the type model.

        Returns:
            TypeModel with one TypeDef per named node

        Raises:
            StructuralConflictError: if a composition cannot be merged
            UnresolvableReferenceError: if a reference has no target
            MalformedReferenceError: if a reference cannot be parsed
        """
        self.resolve_all()
        self._name_components()
        self._name_component_entries()
        for operation in self.document.operations():
            self._name_operation(operation)
        self.model.ref_names = {ref: self.registry.name_for_ref(ref) for ref in self._seen_refs()}
        return self.model

    # Resolution

    def resolve_all(self) -> None:
        """Resolve every schema in the document without naming anything."""
        for schema in self._document_schemas():
            self.composition.resolve(schema)

    def _document_schemas(self) -> Iterator[SchemaNode]:
        components = self.document.components
        for _, schema in components.schemas.items():
            yield schema
        for _, parameter in components.parameters.items():
            yield from self._parameter_schemas(parameter)
        for _, request_body in components.request_bodies.items():
            yield from self._request_body_schemas(request_body)
        for _, response in components.responses.items():
            yield from self._response_schemas(response)
        for _, header in components.headers.items():
            yield from self._header_schemas(header)
        for operation in self.document.operations():
            for parameter in self.document.effective_parameters(operation):
                yield from self._parameter_schemas(parameter)
            if operation.request_body is not None:
                yield from self._request_body_schemas(operation.request_body)
            for response in operation.responses.values():
                yield from self._response_schemas(response)

    def _content_schemas(self, content: list[MediaType]) -> Iterator[SchemaNode]:
        for media in content:
            if media.schema is not None:
                yield media.schema

    def _parameter_schemas(self, parameter: Parameter) -> Iterator[SchemaNode]:
        if parameter.is_reference:
            self.references.resolve_component(parameter.ref, parameter.source_path)
            return
        if parameter.schema is not None:
            yield parameter.schema
        yield from self._content_schemas(parameter.content)

    def _request_body_schemas(self, request_body: RequestBody) -> Iterator[SchemaNode]:
        if request_body.is_reference:
            self.references.resolve_component(request_body.ref, request_body.source_path)
            return
        yield from self._content_schemas(request_body.content)

    def _response_schemas(self, response: Response) -> Iterator[SchemaNode]:
        if response.is_reference:
            self.references.resolve_component(response.ref, response.source_path)
            return
        for header in response.headers.values():
            yield from self._header_schemas(header)
        yield from self._content_schemas(response.content)

    def _header_schemas(self, header: Header) -> Iterator[SchemaNode]:
        if header.is_reference:
            self.references.resolve_component(header.ref, header.source_path)
            return
        if header.schema is not None:
            yield header.schema
        yield from self._content_schemas(header.content)

    # Naming

    def _name_components(self) -> None:
        schemas = self.document.components.schemas
        refs = {}
        for name, schema in schemas.items():
            ref = f"#/components/schemas/{escape_pointer_segment(name)}"
            refs[name] = ref
            base = self.registry.override(schema) or self.registry.normalize(name)
            self.registry.reserve(ref, base)

        for name, schema in schemas.items():
            resolved = self.composition.resolve(schema)
            ref = refs[name]
            type_name = self.registry.name_for_ref(ref)
            self.registry.bind(resolved, type_name)
            type_def = TypeDef(
                name=type_name,
                node=resolved,
                origin=TypeOrigin.COMPONENT,
                source_path=schema.source_path,
                ref=ref,
                required=not resolved.nullable,
            )
            if resolved.is_reference:
                type_def.alias_of = self._name_for_ref(resolved.ref)
            self.model.add(type_def)
            self._name_children(resolved, type_name)

    def _name_component_entries(self) -> None:
        components = self.document.components
        for name, parameter in components.parameters.items():
            base = self.registry.normalize(name) + "Parameter"
            self._name_parameter(parameter, base)
        for name, request_body in components.request_bodies.items():
            self._name_request_body(request_body, self.registry.normalize(name) + "Request")
        for name, response in components.responses.items():
            self._name_response(response, self.registry.normalize(name) + "Response", self.registry.normalize(name))
        for name, header in components.headers.items():
            self._name_header(header, self.registry.normalize(name) + "Header")

    def _name_operation(self, operation: Operation) -> None:
        op_name = self.registry.normalize(operation.operation_id)
        for parameter in self.document.effective_parameters(operation):
            if not parameter.is_reference:
                self._name_parameter(parameter, self.registry.derive(op_name, parameter.name) + "Parameter")
        if operation.request_body is not None:
            self._name_request_body(operation.request_body, op_name + "Request")
        for status, response in operation.responses.items():
            prefix = self.registry.derive(op_name, status)
            self._name_response(response, prefix + "Response", prefix)

    def _name_parameter(self, parameter: Parameter, base: str) -> None:
        if parameter.is_reference:
            return
        if parameter.schema is not None:
            self._name_top_level(parameter.schema, base, TypeOrigin.PARAMETER, parameter.required)
        self._name_content(parameter.content, base, TypeOrigin.PARAMETER, parameter.required)

    def _name_request_body(self, request_body: RequestBody, base: str) -> None:
        if request_body.is_reference:
            return
        self._name_content(request_body.content, base, TypeOrigin.REQUEST_BODY, request_body.required)

    def _name_response(self, response: Response, base: str, header_prefix: str) -> None:
        if response.is_reference:
            return
        for header_name, header in response.headers.items():
            self._name_header(header, self.registry.derive(header_prefix, header_name) + "Header")
        self._name_content(response.content, base, TypeOrigin.RESPONSE, True)

    def _name_header(self, header: Header, base: str) -> None:
        if header.is_reference:
            return
        if header.schema is not None:
            self._name_top_level(header.schema, base, TypeOrigin.HEADER, header.required)
        self._name_content(header.content, base, TypeOrigin.HEADER, header.required)

    def _name_content(self, content: list[MediaType], base: str, origin: TypeOrigin, required: bool) -> None:
        for media in content:
            if media.schema is not None:
                self._name_top_level(media.schema, base, origin, required)

    def _name_top_level(self, schema: SchemaNode, base: str, origin: TypeOrigin, required: bool) -> None:
        """Name an inline schema hanging directly off a parameter, body, response or header."""
        resolved = self.composition.resolve(schema)
        if resolved.is_reference:
            self._name_for_ref(resolved.ref)
            return
        if resolved.kind in (ShapeKind.SCALAR, ShapeKind.ANY):
            return
        self._add_type(resolved, base, origin, schema.source_path, None, required and not resolved.nullable)

    def _add_type(
        self,
        node: SchemaNode,
        base: str,
        origin: TypeOrigin,
        source_path: str,
        parent: str | None,
        required: bool = True,
    ) -> str:
        existing = self.registry.name_for_node(node)
        if existing is not None:
            return existing
        name = self.registry.assign(node, self.registry.override(node) or base)
        self.model.add(
            TypeDef(
                name=name,
                node=node,
                origin=origin,
                source_path=source_path,
                parent=parent,
                required=required,
            )
        )
        self._name_children(node, name)
        return name

    def _name_children(self, node: SchemaNode, parent: str) -> None:
        """Name the inline types below a named node, depth first in declaration order."""
        if node.is_reference:
            return
        for prop_name, prop in node.properties.items():
            required = prop_name in node.required and not prop.nullable
            self._name_nested(prop, self.registry.derive(parent, prop_name), TypeOrigin.PROPERTY, parent, required)
        if node.items is not None:
            self._name_nested(node.items, parent + "Item", TypeOrigin.ARRAY_ITEM, parent)
        if node.map_values is not None:
            self._name_nested(node.map_values, parent + "Value", TypeOrigin.MAP_VALUE, parent)
        if node.union is not None:
            label = "OneOf" if node.union.mode == UnionMode.ONE_OF else "AnyOf"
            for i, branch in enumerate(node.union.branches):
                self._name_nested(branch, f"{parent}{label}{i}", TypeOrigin.UNION_BRANCH, parent)

    def _name_nested(self, node: SchemaNode, base: str, origin: TypeOrigin, parent: str, required: bool = True) -> None:
        if node.is_reference:
            self._name_for_ref(node.ref)
            return
        kind = node.kind
        if kind in _NAMED_KINDS:
            self._add_type(node, base, origin, node.source_path, parent, required)
        elif kind == ShapeKind.ARRAY and node.items is not None:
            self._name_nested(node.items, base + "Item", TypeOrigin.ARRAY_ITEM, parent)
        elif kind == ShapeKind.MAP and node.map_values is not None:
            self._name_nested(node.map_values, base + "Value", TypeOrigin.MAP_VALUE, parent)

    def _name_for_ref(self, ref: str) -> str | None:
        """Name of a reference target, following pointers below a component."""
        canonical = canonical_reference(ref)
        name = self.registry.name_for_ref(canonical)
        if name is not None:
            return name
        pointer = parse_reference(canonical)
        if pointer.bucket == "schemas" and pointer.subpath:
            resolved = self.composition.resolved(self.references.lookup(canonical))
            if resolved is not None:
                if resolved.is_reference:
                    name = self._name_for_ref(resolved.ref)
                else:
                    name = self.registry.name_for_node(resolved)
        if name is not None:
            self.registry.alias(canonical, name)
        return name

    def _seen_refs(self) -> list[str]:
        refs = []
        for type_def in self.model.types:
            stack = [type_def.node]
            visited: set[int] = set()
            while stack:
                node = stack.pop()
                if id(node) in visited:
                    continue
                visited.add(id(node))
                if node.is_reference:
                    if self._name_for_ref(node.ref) is not None and node.ref not in refs:
                        refs.append(node.ref)
                    continue
                stack.extend(node.children())
            if type_def.ref is not None and type_def.ref not in refs:
                refs.append(type_def.ref)
        return refs
