import unittest
from unittest import TestCase

from openapi_type_model.pipeline.config import FilterConfig
from openapi_type_model.pipeline.document import DocumentFilter, DocumentParser, Operation, ShapeKind


def parse_schema(schema):
    return DocumentParser().parse_schema(schema, "#/components/schemas/Test")


class TestSchemaParsing(TestCase):
    """Schema fragments to SchemaNode"""

    def test_reference_keeps_raw_string(self):
        node = parse_schema({"$ref": "#/components/schemas/Pet", "description": "the pet"})
        self.assertEqual(node.ref, "#/components/schemas/Pet")
        self.assertEqual(node.kind, ShapeKind.REFERENCE)
        self.assertEqual(node.description, "the pet")

    def test_kinds(self):
        cases = [
            ({"type": "string"}, ShapeKind.SCALAR),
            ({"enum": [1, 2]}, ShapeKind.SCALAR),
            ({"type": "array", "items": {"type": "string"}}, ShapeKind.ARRAY),
            ({"type": "object", "properties": {"a": {"type": "string"}}}, ShapeKind.OBJECT),
            ({"type": "object", "additionalProperties": False}, ShapeKind.OBJECT),
            ({"type": "object"}, ShapeKind.MAP),
            ({"additionalProperties": {"type": "integer"}}, ShapeKind.MAP),
            ({"allOf": [{"type": "object"}]}, ShapeKind.COMPOSITION),
            ({"oneOf": [{"type": "string"}]}, ShapeKind.UNION),
            ({}, ShapeKind.ANY),
        ]
        for schema, kind in cases:
            with self.subTest(schema=schema):
                self.assertEqual(parse_schema(schema).kind, kind)

    def test_openapi_31_type_list(self):
        node = parse_schema({"type": ["string", "null"]})
        self.assertEqual(node.type_name, "string")
        self.assertTrue(node.nullable)

    def test_null_type(self):
        node = parse_schema({"type": "null"})
        self.assertEqual(node.type_name, "null")
        self.assertTrue(node.nullable)

    def test_const_is_a_single_value_enum(self):
        self.assertEqual(parse_schema({"const": "cat"}).enum, ["cat"])

    def test_constraints(self):
        node = parse_schema(
            {
                "type": "integer",
                "minimum": 1,
                "exclusiveMaximum": 10,
                "multipleOf": 2,
            }
        )
        self.assertEqual(node.constraints.minimum, 1)
        self.assertEqual(node.constraints.maximum, 10)
        self.assertTrue(node.constraints.exclusive_maximum)
        self.assertFalse(node.constraints.exclusive_minimum)
        self.assertEqual(node.constraints.multiple_of, 2)

    def test_child_source_paths(self):
        node = parse_schema(
            {
                "type": "object",
                "properties": {"a/b": {"type": "array", "items": {"oneOf": [{"type": "string"}]}}},
            }
        )
        items = node.properties["a/b"].items
        self.assertEqual(items.source_path, "#/components/schemas/Test/properties/a~1b/items")
        self.assertEqual(items.one_of[0].source_path, "#/components/schemas/Test/properties/a~1b/items/oneOf/0")

    def test_extensions_and_examples(self):
        node = parse_schema({"type": "string", "x-type-name": "Code", "example": "abc", "examples": ["def"]})
        self.assertEqual(node.metadata, {"x-type-name": "Code"})
        self.assertEqual(node.examples, ["abc", "def"])

    def test_metadata_only(self):
        self.assertTrue(parse_schema({"description": "doc", "title": "T", "x-internal": True}).is_metadata_only())
        self.assertFalse(parse_schema({"type": "string"}).is_metadata_only())


class TestDocumentParsing(TestCase):
    """Paths, operations and components"""

    def setUp(self):
        self.document = DocumentParser().parse(
            {
                "openapi": "3.1.0",
                "info": {"title": "Shop"},
                "paths": {
                    "/orders/{orderId}": {
                        "parameters": [
                            {"name": "orderId", "in": "path", "required": True, "schema": {"type": "string"}},
                            {"name": "trace", "in": "header", "schema": {"type": "string"}},
                        ],
                        "get": {
                            "tags": ["orders"],
                            "parameters": [
                                {"name": "orderId", "in": "path", "required": True, "schema": {"type": "integer"}},
                                {"name": "orderId", "in": "query", "schema": {"type": "string"}},
                            ],
                            "responses": {200: {"description": "ok"}},
                        },
                        "delete": {"operationId": "cancelOrder", "tags": ["admin"], "responses": {}},
                    },
                    "/health": {"get": {"operationId": "health", "responses": {}}},
                },
                "components": {
                    "links": {"Next": {"operationId": "health"}},
                    "securitySchemes": {"key": {"type": "apiKey"}},
                },
            }
        )

    def test_operations_in_path_then_method_order(self):
        operations = self.document.operations()
        self.assertEqual([op.operation_id for op in operations], ["getOrdersOrderId", "cancelOrder", "health"])
        self.assertEqual(operations[0].source_path, "#/paths/~1orders~1{orderId}/get")
        self.assertEqual(list(operations[0].responses), ["200"])

    def test_effective_parameters_first_wins(self):
        operation = self.document.operations()[0]
        effective = self.document.effective_parameters(operation)
        self.assertEqual([p.key for p in effective], [("orderId", "path"), ("orderId", "query"), ("trace", "header")])
        self.assertEqual(effective[0].schema.type_name, "integer")
        self.assertEqual(len(operation.shadowed_parameters), 1)
        self.assertEqual(operation.shadowed_parameters[0].schema.type_name, "string")

    def test_components_and_metadata(self):
        self.assertEqual(self.document.openapi, "3.1.0")
        self.assertEqual(self.document.title, "Shop")
        self.assertIn("Next", self.document.components.bucket("links"))
        self.assertEqual(self.document.security_schemes, {"key": {"type": "apiKey"}})
        self.assertEqual(self.document.components.count(), 1)

    def test_derive_operation_id(self):
        self.assertEqual(Operation.derive_operation_id("GET", "/pets/{pet_id}/toys"), "getPetsPetIdToys")


class TestDocumentFilter(TestCase):
    def setUp(self):
        self.raw = {
            "openapi": "3.0.3",
            "paths": {
                "/orders": {
                    "get": {"operationId": "listOrders", "tags": ["orders"], "responses": {}},
                    "post": {"operationId": "createOrder", "tags": ["orders", "write"], "responses": {}},
                },
                "/admin/users": {"get": {"operationId": "listUsers", "tags": ["admin"], "responses": {}}},
            },
        }

    def remaining(self, **config):
        document = DocumentParser().parse(self.raw)
        DocumentFilter(FilterConfig(**config)).apply(document)
        return [op.operation_id for op in document.operations()]

    def test_include_tags(self):
        self.assertEqual(self.remaining(include_tags=["orders"]), ["listOrders", "createOrder"])

    def test_exclude_tags(self):
        self.assertEqual(self.remaining(exclude_tags=["write"]), ["listOrders", "listUsers"])

    def test_operation_ids(self):
        self.assertEqual(self.remaining(include_operation_ids=["listUsers"]), ["listUsers"])
        self.assertEqual(self.remaining(exclude_operation_ids=["listUsers"]), ["listOrders", "createOrder"])

    def test_path_prefixes(self):
        self.assertEqual(self.remaining(include_paths=["/admin"]), ["listUsers"])
        self.assertEqual(self.remaining(exclude_paths=["/admin"]), ["listOrders", "createOrder"])

    def test_empty_path_items_are_removed(self):
        document = DocumentParser().parse(self.raw)
        DocumentFilter(FilterConfig(exclude_tags=["admin"])).apply(document)
        self.assertEqual(list(document.paths), ["/orders"])


if __name__ == "__main__":
    unittest.main()
