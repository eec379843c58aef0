import pytest

from openapi_type_model.pipeline.analyzer import ReferenceResolver, canonical_reference, parse_reference
from openapi_type_model.pipeline.document import DocumentParser
from openapi_type_model.pipeline.errors import MalformedReferenceError, UnresolvableReferenceError


@pytest.fixture
def resolver():
    document = DocumentParser().parse(
        {
            "openapi": "3.0.3",
            "components": {
                "schemas": {
                    "Pet": {
                        "type": "object",
                        "properties": {
                            "tags": {"type": "array", "items": {"type": "string"}},
                            "owner": {"oneOf": [{"type": "string"}, {"type": "integer"}]},
                        },
                    },
                    "Alias": {"$ref": "#/components/schemas/Pet"},
                    "Alias2": {"$ref": "#/components/schemas/Alias"},
                    "LoopA": {"$ref": "#/components/schemas/LoopB"},
                    "LoopB": {"$ref": "#/components/schemas/LoopA"},
                    "a/b": {"type": "string"},
                },
                "parameters": {
                    "Limit": {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                    "LimitAlias": {"$ref": "#/components/parameters/Limit"},
                },
            },
        }
    )
    return ReferenceResolver(document, max_depth=8)


class TestParseReference:
    """Parsing of local JSON pointer references"""

    def test_component_pointer(self):
        pointer = parse_reference("#/components/schemas/Pet")
        assert pointer.segments == ("components", "schemas", "Pet")
        assert pointer.bucket == "schemas"
        assert pointer.component == "Pet"
        assert pointer.subpath == ()

    def test_escaped_segments(self):
        pointer = parse_reference("#/components/schemas/a~1b~0c")
        assert pointer.component == "a/b~c"
        assert pointer.canonical == "#/components/schemas/a~1b~0c"

    def test_percent_encoding_is_canonicalized(self):
        assert canonical_reference("#/components/schemas/My%20Pet") == "#/components/schemas/My Pet"

    def test_subpath(self):
        pointer = parse_reference("#/components/schemas/Pet/properties/tags/items")
        assert pointer.component_ref == "#/components/schemas/Pet"
        assert pointer.subpath == ("properties", "tags", "items")

    @pytest.mark.parametrize(
        "ref",
        ["", "Pet.yaml#/Pet", "#components/schemas/Pet", "#/components/schemas/Pet~", "#/components//Pet"],
    )
    def test_malformed(self, ref):
        with pytest.raises(MalformedReferenceError):
            parse_reference(ref, "#/paths/~1pets")


class TestReferenceResolver:
    """Resolution against the component registry"""

    def test_alias_chain(self, resolver):
        node, chain = resolver.resolve_schema("#/components/schemas/Alias2")
        assert node is resolver.document.components.schemas["Pet"]
        assert chain == ["#/components/schemas/Alias2", "#/components/schemas/Alias", "#/components/schemas/Pet"]

    def test_cycle_is_unresolvable(self, resolver):
        with pytest.raises(UnresolvableReferenceError, match="circular"):
            resolver.resolve_schema("#/components/schemas/LoopA")

    def test_depth_limit(self, resolver):
        resolver.max_depth = 2
        with pytest.raises(UnresolvableReferenceError, match="longer than 2"):
            resolver.resolve_schema("#/components/schemas/Alias2")

    def test_missing_component(self, resolver):
        with pytest.raises(UnresolvableReferenceError):
            resolver.resolve_schema("#/components/schemas/Nope")

    def test_pointer_below_component(self, resolver):
        items = resolver.lookup("#/components/schemas/Pet/properties/tags/items")
        assert items.type_name == "string"
        branch = resolver.lookup("#/components/schemas/Pet/properties/owner/oneOf/1")
        assert branch.type_name == "integer"

    def test_bad_subpath(self, resolver):
        with pytest.raises(UnresolvableReferenceError):
            resolver.lookup("#/components/schemas/Pet/properties/missing")
        with pytest.raises(UnresolvableReferenceError):
            resolver.lookup("#/components/schemas/Pet/properties/owner/oneOf/7")

    def test_escaped_component_name(self, resolver):
        node, _ = resolver.resolve_schema("#/components/schemas/a~1b")
        assert node.type_name == "string"

    def test_non_schema_component(self, resolver):
        parameter = resolver.resolve_component("#/components/parameters/LimitAlias")
        assert parameter.name == "limit"
        with pytest.raises(UnresolvableReferenceError):
            resolver.resolve_schema("#/components/parameters/Limit")

    def test_pointer_outside_components(self, resolver):
        with pytest.raises(UnresolvableReferenceError):
            resolver.lookup("#/paths/~1pets")
