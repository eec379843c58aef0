"""
Tests for type name normalization and collision handling.
"""

import unittest
from unittest import TestCase

from openapi_type_model.pipeline.analyzer import TypeNameRegistry, TypeOrigin
from openapi_type_model.pipeline.config import GeneratorConfig, NamingConfig
from openapi_type_model.pipeline.document import SchemaNode
from openapi_type_model.pipeline.errors import NamingCollisionUnresolvedError
from openapi_type_model.pipeline.generator import PipelineGenerator
from openapi_type_model.utils import schema_name_to_type_name, to_camel_case, to_camel_case_with_initialisms


def build(schemas, paths=None, **naming):
    document = {"openapi": "3.0.3", "paths": paths or {}, "components": {"schemas": schemas}}
    config = GeneratorConfig(skip_prune=True, naming=NamingConfig(**naming))
    return PipelineGenerator(document, config).generate()


class TestNameUtils(TestCase):
    """Test name normalization helpers"""

    def test_to_camel_case(self):
        self.assertEqual(to_camel_case("pet_id"), "PetId")
        self.assertEqual(to_camel_case("petId"), "PetId")
        self.assertEqual(to_camel_case("x-rate-limit"), "XRateLimit")
        self.assertEqual(to_camel_case("400"), "400")

    def test_initialisms(self):
        self.assertEqual(to_camel_case_with_initialisms("petId"), "PetID")
        self.assertEqual(to_camel_case_with_initialisms("http_url"), "HTTPURL")
        self.assertEqual(to_camel_case_with_initialisms("Identity"), "Identity")

    def test_schema_name_to_type_name(self):
        self.assertEqual(schema_name_to_type_name("pet"), "Pet")
        self.assertEqual(schema_name_to_type_name("400"), "N400")
        self.assertEqual(schema_name_to_type_name("2xx", safe_prefix="Status"), "Status2xx")
        self.assertEqual(schema_name_to_type_name("-1"), "Minus1")
        self.assertEqual(schema_name_to_type_name("$"), "DollarSign")
        self.assertEqual(schema_name_to_type_name(""), "Empty")
        self.assertEqual(schema_name_to_type_name("class"), "ClassType")

    def test_normalization_is_deterministic(self):
        registry = TypeNameRegistry()
        for name in ("pet-store", "400", "userId", "_private"):
            self.assertEqual(registry.normalize(name), registry.normalize(name))


class TestTypeNameRegistry(TestCase):
    """Test unique name assignment"""

    def test_collisions_get_incrementing_suffixes(self):
        registry = TypeNameRegistry()
        first, second, third = SchemaNode(), SchemaNode(), SchemaNode()
        self.assertEqual(registry.assign(first, "Item"), "Item")
        self.assertEqual(registry.assign(second, "Item"), "Item0")
        self.assertEqual(registry.assign(third, "Item"), "Item1")
        self.assertIs(registry.node_for_name("Item"), first)
        self.assertIs(registry.node_for_name("Item0"), second)

    def test_suffix_skips_names_already_taken(self):
        registry = TypeNameRegistry()
        registry.assign(SchemaNode(), "Item0")
        registry.assign(SchemaNode(), "Item")
        self.assertEqual(registry.assign(SchemaNode(), "Item"), "Item1")

    def test_node_keeps_its_first_name(self):
        registry = TypeNameRegistry()
        node = SchemaNode()
        self.assertEqual(registry.assign(node, "Pet"), "Pet")
        self.assertEqual(registry.assign(node, "Other"), "Pet")
        self.assertEqual(registry.names(), ["Pet"])

    def test_reserved_reference_is_reused(self):
        registry = TypeNameRegistry()
        ref = "#/components/schemas/Pet"
        self.assertEqual(registry.reserve(ref, "Pet"), "Pet")
        self.assertEqual(registry.reserve(ref, "Pet"), "Pet")
        registry.alias("#/components/schemas/Animal/properties/pet", "Pet")
        self.assertEqual(registry.name_for_ref("#/components/schemas/Animal/properties/pet"), "Pet")
        self.assertEqual(len(registry), 1)

    def test_bound_name_cannot_be_rebound(self):
        registry = TypeNameRegistry()
        registry.reserve("#/components/schemas/A", "A")
        registry.bind(SchemaNode(), "A")
        with self.assertRaises(NamingCollisionUnresolvedError):
            registry.bind(SchemaNode(), "A")

    def test_derived_names_keep_the_prefix(self):
        registry = TypeNameRegistry()
        parent = registry.normalize("400")
        self.assertEqual(parent, "N400")
        self.assertEqual(registry.derive(parent, "error_details"), "N400ErrorDetails")

    def test_type_name_extension(self):
        registry = TypeNameRegistry(NamingConfig(type_name_extension="x-go-name"))
        self.assertEqual(registry.override(SchemaNode(metadata={"x-go-name": "Custom"})), "Custom")
        self.assertIsNone(registry.override(SchemaNode(metadata={"x-type-name": "Custom"})))

    def test_type_name_extension_is_normalized(self):
        registry = TypeNameRegistry()
        self.assertEqual(registry.override(SchemaNode(metadata={"x-type-name": "1Foo"})), "N1Foo")
        self.assertEqual(registry.override(SchemaNode(metadata={"x-type-name": "pet_name"})), "PetName")
        self.assertEqual(registry.override(SchemaNode(metadata={"x-type-name": "class"})), "ClassType")


class TestModelNaming(TestCase):
    """Names assigned while building the type model"""

    def test_type_name_extension_gets_safe_prefix(self):
        model = build({"Code": {"type": "object", "x-type-name": "1Foo", "properties": {"a": {"type": "string"}}}})
        self.assertEqual([t.name for t in model.types], ["N1Foo"])
        self.assertEqual(model.name_for_ref("#/components/schemas/Code"), "N1Foo")

    def test_numeric_component_gets_safe_prefix(self):
        model = build(
            {
                "400": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "code": {"type": "integer"},
                            "issues": {
                                "type": "array",
                                "items": {"type": "object", "properties": {"path": {"type": "string"}}},
                            },
                        },
                    },
                }
            }
        )
        self.assertEqual([t.name for t in model.types], ["N400", "N400Item", "N400ItemIssuesItem"])
        self.assertEqual(model.lookup("N400Item").origin, TypeOrigin.ARRAY_ITEM)
        self.assertEqual(model.lookup("N400ItemIssuesItem").parent, "N400Item")
        for type_def in model.types:
            self.assertFalse(type_def.name[0].isdigit())

    def test_sibling_anonymous_types_with_the_same_name(self):
        model = build(
            {
                "Item": {"type": "object", "properties": {"a": {"type": "string"}}},
                "item": {"type": "object", "properties": {"b": {"type": "string"}}},
            }
        )
        self.assertEqual([t.name for t in model.types], ["Item", "Item0"])
        self.assertEqual(list(model.lookup("Item").node.properties), ["a"])
        self.assertEqual(list(model.lookup("Item0").node.properties), ["b"])
        self.assertEqual(model.name_for_ref("#/components/schemas/item"), "Item0")

    def test_nested_names_follow_declaration_order(self):
        model = build(
            {
                "Order": {
                    "type": "object",
                    "properties": {
                        "customer": {"type": "object", "properties": {"name": {"type": "string"}}},
                        "lines": {
                            "type": "array",
                            "items": {"type": "object", "properties": {"sku": {"type": "string"}}},
                        },
                        "tags": {
                            "type": "object",
                            "additionalProperties": {"type": "object", "properties": {"v": {"type": "string"}}},
                        },
                        "payment": {
                            "oneOf": [
                                {"type": "object", "properties": {"card": {"type": "string"}}},
                                {"type": "object", "properties": {"iban": {"type": "string"}}},
                            ]
                        },
                    },
                }
            }
        )
        self.assertEqual(
            [t.name for t in model.types],
            [
                "Order",
                "OrderCustomer",
                "OrderLinesItem",
                "OrderTagsValue",
                "OrderPayment",
                "OrderPaymentOneOf0",
                "OrderPaymentOneOf1",
            ],
        )

    def test_alias_reuses_target_name(self):
        model = build(
            {
                "Pet": {"type": "object", "properties": {"id": {"type": "string"}}},
                "Animal": {"$ref": "#/components/schemas/Pet"},
            }
        )
        animal = model.lookup("Animal")
        self.assertEqual(animal.alias_of, "Pet")
        self.assertEqual(model.name_for_ref("#/components/schemas/Pet"), "Pet")

    def test_pointer_into_a_component_reuses_its_name(self):
        model = build(
            {
                "Owner": {
                    "type": "object",
                    "properties": {"address": {"type": "object", "properties": {"city": {"type": "string"}}}},
                },
                "Shipment": {
                    "type": "object",
                    "properties": {"to": {"$ref": "#/components/schemas/Owner/properties/address"}},
                },
            }
        )
        self.assertEqual([t.name for t in model.types], ["Owner", "OwnerAddress", "Shipment"])
        self.assertEqual(model.name_for_ref("#/components/schemas/Owner/properties/address"), "OwnerAddress")

    def test_operation_types(self):
        paths = {
            "/pets/{petId}": {
                "get": {
                    "parameters": [
                        {
                            "name": "filter",
                            "in": "query",
                            "schema": {"type": "object", "properties": {"q": {"type": "string"}}},
                        }
                    ],
                    "responses": {
                        "200": {
                            "description": "ok",
                            "headers": {
                                "X-Page": {"schema": {"type": "array", "items": {"type": "integer"}}},
                            },
                            "content": {
                                "application/json": {
                                    "schema": {"type": "object", "properties": {"id": {"type": "string"}}}
                                }
                            },
                        },
                        "404": {
                            "description": "missing",
                            "content": {"application/json": {"schema": {"type": "string"}}},
                        },
                    },
                },
                "post": {
                    "operationId": "create_pet",
                    "requestBody": {
                        "content": {
                            "application/json": {
                                "schema": {"type": "object", "properties": {"name": {"type": "string"}}}
                            }
                        }
                    },
                    "responses": {"201": {"description": "created"}},
                },
            }
        }
        model = build({}, paths)
        self.assertEqual(
            [t.name for t in model.types],
            ["GetPetsPetIdFilterParameter", "GetPetsPetId200XPageHeader", "GetPetsPetId200Response", "CreatePetRequest"],
        )
        self.assertEqual(model.lookup("CreatePetRequest").origin, TypeOrigin.REQUEST_BODY)
        self.assertFalse(model.lookup("CreatePetRequest").required)
        self.assertFalse(model.lookup("GetPetsPetIdFilterParameter").required)

    def test_initialisms_option(self):
        model = build({"user_id": {"type": "object", "properties": {"x": {"type": "string"}}}}, use_initialisms=True)
        self.assertEqual(model.types[0].name, "UserID")

    def test_names_are_deterministic(self):
        schemas = {
            "B": {"type": "object", "properties": {"inner": {"type": "object", "properties": {"x": {"type": "string"}}}}},
            "A": {"type": "object", "properties": {"inner": {"type": "object", "properties": {"y": {"type": "string"}}}}},
            "BInner": {"type": "object", "properties": {"z": {"type": "string"}}},
        }
        first = [t.name for t in build(schemas).types]
        second = [t.name for t in build(schemas).types]
        self.assertEqual(first, second)
        self.assertEqual(first, ["B", "BInner0", "A", "AInner", "BInner"])

    def test_names_are_unique(self):
        schemas = {
            "Item": {"type": "object", "properties": {"item": {"type": "object", "properties": {"a": {"type": "string"}}}}},
            "ItemItem": {"type": "object", "properties": {"b": {"type": "string"}}},
        }
        model = build(schemas)
        names = [t.name for t in model.types]
        self.assertEqual(len(names), len(set(names)))
        self.assertEqual(names, ["Item", "ItemItem0", "ItemItem"])


if __name__ == "__main__":
    unittest.main()
