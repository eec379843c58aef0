"""
OpenAPI document parser.

Phase 1 of the pipeline: build the document model from a decoded JSON/YAML
object without resolving references or merging compositions. Reference
strings are stored as written and only parsed when they are followed.
"""

from __future__ import annotations

from typing import Any

from .model import (
    HTTP_METHODS,
    ComponentRegistry,
    Document,
    Header,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
)
from .nodes import Constraints, Discriminator, SchemaNode


def escape_pointer_segment(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")


class DocumentParser:
    """Parses an OpenAPI 3.0/3.1 document into a Document."""

    def parse(self, raw: dict[str, Any]) -> Document:
        """
        Parse a decoded OpenAPI document.

        Args:
            raw: The decoded document

        Returns:
            Document with paths, operations and component buckets
        """
        info = raw.get("info") or {}
        components = raw.get("components") or {}
        document = Document(
            openapi=str(raw.get("openapi", "3.0.0")),
            title=info.get("title", ""),
            webhooks=dict(raw.get("webhooks") or {}),
            security_schemes=dict(components.get("securitySchemes") or {}),
        )
        document.components = self._parse_components(components)

        for path, raw_item in (raw.get("paths") or {}).items():
            pointer = f"#/paths/{escape_pointer_segment(path)}"
            document.paths[path] = self._parse_path_item(path, raw_item or {}, pointer)

        for operation in document.operations():
            effective = document.effective_parameters(operation)
            path_item = document.paths[operation.path]
            operation.shadowed_parameters = [
                p for p in operation.parameters + path_item.parameters if not any(p is e for e in effective)
            ]
        return document

    def _parse_components(self, components: dict[str, Any]) -> ComponentRegistry:
        buckets: dict[str, dict[str, Any]] = {}

        def pointer(bucket: str, name: str) -> str:
            return f"#/components/{bucket}/{escape_pointer_segment(name)}"

        buckets["schemas"] = {
            name: self.parse_schema(body, pointer("schemas", name)) for name, body in (components.get("schemas") or {}).items()
        }
        buckets["parameters"] = {
            name: self._parse_parameter(body, pointer("parameters", name))
            for name, body in (components.get("parameters") or {}).items()
        }
        buckets["requestBodies"] = {
            name: self._parse_request_body(body, pointer("requestBodies", name))
            for name, body in (components.get("requestBodies") or {}).items()
        }
        buckets["responses"] = {
            name: self._parse_response(body, pointer("responses", name)) for name, body in (components.get("responses") or {}).items()
        }
        buckets["headers"] = {
            name: self._parse_header(body, pointer("headers", name)) for name, body in (components.get("headers") or {}).items()
        }
        # Opaque to this model; kept only so they can be pruned
        for bucket in ("examples", "links", "callbacks"):
            buckets[bucket] = dict(components.get(bucket) or {})
        return ComponentRegistry(buckets)

    def _parse_path_item(self, path: str, raw: dict[str, Any], pointer: str) -> PathItem:
        item = PathItem(path=path, source_path=pointer)
        item.parameters = [self._parse_parameter(p, f"{pointer}/parameters/{i}") for i, p in enumerate(raw.get("parameters") or [])]
        for method in HTTP_METHODS:
            if method in raw:
                item.operations[method] = self._parse_operation(method, path, raw[method] or {}, f"{pointer}/{method}")
        return item

    def _parse_operation(self, method: str, path: str, raw: dict[str, Any], pointer: str) -> Operation:
        operation = Operation(
            method=method,
            path=path,
            operation_id=raw.get("operationId") or Operation.derive_operation_id(method, path),
            source_path=pointer,
            tags=list(raw.get("tags") or []),
            callbacks=dict(raw.get("callbacks") or {}),
        )
        operation.parameters = [self._parse_parameter(p, f"{pointer}/parameters/{i}") for i, p in enumerate(raw.get("parameters") or [])]
        if "requestBody" in raw:
            operation.request_body = self._parse_request_body(raw["requestBody"], f"{pointer}/requestBody")
        for status, body in (raw.get("responses") or {}).items():
            status = str(status)
            operation.responses[status] = self._parse_response(body or {}, f"{pointer}/responses/{escape_pointer_segment(status)}")
        return operation

    def _parse_content(self, raw: dict[str, Any], pointer: str) -> list[MediaType]:
        result = []
        for media_type, body in (raw or {}).items():
            body = body or {}
            schema = None
            if "schema" in body:
                schema = self.parse_schema(body["schema"], f"{pointer}/{escape_pointer_segment(media_type)}/schema")
            examples = []
            if "example" in body:
                examples.append(body["example"])
            examples.extend((body.get("examples") or {}).values())
            result.append(MediaType(media_type=media_type, schema=schema, examples=examples))
        return result

    def _parse_parameter(self, raw: dict[str, Any], pointer: str) -> Parameter:
        if "$ref" in raw:
            return Parameter(source_path=pointer, ref=raw["$ref"])
        parameter = Parameter(
            source_path=pointer,
            name=raw.get("name", ""),
            location=raw.get("in", ""),
            required=bool(raw.get("required", False)),
        )
        if "schema" in raw:
            parameter.schema = self.parse_schema(raw["schema"], f"{pointer}/schema")
        parameter.content = self._parse_content(raw.get("content"), f"{pointer}/content")
        return parameter

    def _parse_request_body(self, raw: dict[str, Any], pointer: str) -> RequestBody:
        if "$ref" in raw:
            return RequestBody(source_path=pointer, ref=raw["$ref"])
        return RequestBody(
            source_path=pointer,
            required=bool(raw.get("required", False)),
            content=self._parse_content(raw.get("content"), f"{pointer}/content"),
        )

    def _parse_response(self, raw: dict[str, Any], pointer: str) -> Response:
        if "$ref" in raw:
            return Response(source_path=pointer, ref=raw["$ref"])
        response = Response(
            source_path=pointer,
            description=raw.get("description", ""),
            content=self._parse_content(raw.get("content"), f"{pointer}/content"),
            links=dict(raw.get("links") or {}),
        )
        for name, header in (raw.get("headers") or {}).items():
            response.headers[name] = self._parse_header(header or {}, f"{pointer}/headers/{escape_pointer_segment(name)}")
        return response

    def _parse_header(self, raw: dict[str, Any], pointer: str) -> Header:
        if "$ref" in raw:
            return Header(source_path=pointer, ref=raw["$ref"])
        header = Header(source_path=pointer, required=bool(raw.get("required", False)))
        if "schema" in raw:
            header.schema = self.parse_schema(raw["schema"], f"{pointer}/schema")
        header.content = self._parse_content(raw.get("content"), f"{pointer}/content")
        return header

    def parse_schema(self, schema: Any, path: str) -> SchemaNode:
        """
        Parse a schema node recursively.

        Args:
            schema: The schema dictionary (or a boolean schema)
            path: Current path in the document (for error messages)

        Returns:
            SchemaNode for the fragment
        """
        if isinstance(schema, bool) or not isinstance(schema, dict):
            return SchemaNode(source_path=path)

        node = SchemaNode(
            source_path=path,
            metadata={k: v for k, v in schema.items() if k.startswith("x-")},
            title=schema.get("title"),
            description=schema.get("description"),
        )

        if "$ref" in schema:
            # 3.0 ignores siblings of $ref; descriptions are still kept
            node.ref = schema["$ref"]
            return node

        self._parse_type(node, schema)
        node.format = schema.get("format")
        node.read_only = bool(schema.get("readOnly", False))
        node.write_only = bool(schema.get("writeOnly", False))

        if "const" in schema:
            node.enum = [schema["const"]]
        elif "enum" in schema:
            node.enum = list(schema["enum"])

        if "default" in schema:
            node.default = schema["default"]
            node.has_default = True

        if "example" in schema:
            node.examples.append(schema["example"])
        if isinstance(schema.get("examples"), list):
            node.examples.extend(schema["examples"])

        node.constraints = self._parse_constraints(schema)

        for name, prop in (schema.get("properties") or {}).items():
            node.properties[name] = self.parse_schema(prop, f"{path}/properties/{escape_pointer_segment(name)}")
        node.required = list(schema.get("required") or [])

        if "items" in schema and isinstance(schema["items"], dict):
            node.items = self.parse_schema(schema["items"], f"{path}/items")

        additional = schema.get("additionalProperties")
        if isinstance(additional, bool):
            node.additional_properties = additional
        elif isinstance(additional, dict):
            node.additional_properties = self.parse_schema(additional, f"{path}/additionalProperties")

        for keyword, target in (("allOf", node.all_of), ("oneOf", node.one_of), ("anyOf", node.any_of)):
            for i, branch in enumerate(schema.get(keyword) or []):
                target.append(self.parse_schema(branch, f"{path}/{keyword}/{i}"))
        if isinstance(schema.get("not"), dict):
            node.not_ = self.parse_schema(schema["not"], f"{path}/not")

        if isinstance(schema.get("discriminator"), dict):
            raw = schema["discriminator"]
            node.discriminator = Discriminator(
                property_name=raw.get("propertyName", ""),
                mapping=dict(raw.get("mapping") or {}),
            )
        return node

    def _parse_type(self, node: SchemaNode, schema: dict[str, Any]) -> None:
        raw_type = schema.get("type")
        node.nullable = bool(schema.get("nullable", False))
        if isinstance(raw_type, list):
            # OpenAPI 3.1: ["string", "null"]
            types = [t for t in raw_type if t != "null"]
            if len(types) != len(raw_type):
                node.nullable = True
            if not types:
                raw_type = "null"
            else:
                raw_type = types[0] if len(types) == 1 else None
        if raw_type == "null":
            node.nullable = True
        node.type_name = raw_type

    def _parse_constraints(self, schema: dict[str, Any]) -> Constraints:
        constraints = Constraints(
            min_length=schema.get("minLength"),
            max_length=schema.get("maxLength"),
            pattern=schema.get("pattern"),
            minimum=schema.get("minimum"),
            maximum=schema.get("maximum"),
            multiple_of=schema.get("multipleOf"),
            min_items=schema.get("minItems"),
            max_items=schema.get("maxItems"),
            unique_items=bool(schema.get("uniqueItems", False)),
            min_properties=schema.get("minProperties"),
            max_properties=schema.get("maxProperties"),
        )
        # 3.0 uses booleans, 3.1 uses the bound itself
        for keyword, bound, flag in (
            ("exclusiveMinimum", "minimum", "exclusive_minimum"),
            ("exclusiveMaximum", "maximum", "exclusive_maximum"),
        ):
            value = schema.get(keyword)
            if isinstance(value, bool):
                setattr(constraints, flag, value)
            elif isinstance(value, (int, float)):
                setattr(constraints, bound, value)
                setattr(constraints, flag, True)
        return constraints
