"""
Schema node definitions.

A SchemaNode is one schema fragment of the document. Nodes are compared
and hashed by identity so that traversals can keep identity-keyed visited
sets and memo tables over cyclic graphs.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any

SCALAR_TYPES = {"string", "integer", "number", "boolean"}


class ShapeKind(str, Enum):
    """Structural shape of a schema node."""

    SCALAR = "scalar"
    ARRAY = "array"
    OBJECT = "object"
    MAP = "map"
    REFERENCE = "reference"
    UNION = "union"
    COMPOSITION = "composition"  # unresolved allOf
    ANY = "any"


class UnionMode(str, Enum):
    ONE_OF = "oneOf"
    ANY_OF = "anyOf"


class UnionStrategy(str, Enum):
    """How a decoder picks the branch of a union."""

    WRAPPER = "wrapper"  # single branch, no tag
    EITHER = "either"  # two structurally distinct branches
    TAGGED = "tagged"  # trial in declaration order, first match wins
    DISCRIMINATED = "discriminated"  # property value selects the branch


@dataclass
class Constraints:
    """Bounds, lengths and patterns attached to a schema."""

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    multiple_of: float | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False
    min_properties: int | None = None
    max_properties: int | None = None

    def is_empty(self) -> bool:
        return self == Constraints()

    def to_dict(self) -> dict[str, Any]:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None and value is not False:
                result[f.name] = value
        return result


@dataclass
class Discriminator:
    property_name: str
    mapping: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"propertyName": self.property_name}
        if self.mapping:
            result["mapping"] = dict(self.mapping)
        return result


@dataclass(eq=False)
class UnionDescriptor:
    """Classified oneOf/anyOf group.

    Attributes:
        mode: Which keyword produced the union
        strategy: How the branch is selected when decoding
        branches: Resolved branches, null branches removed
        nullable: Whether a null branch was present
        discriminator: Discriminator property name (DISCRIMINATED only)
        mapping: Discriminator value -> branch index, in declaration order
    """

    mode: UnionMode
    strategy: UnionStrategy
    branches: list[SchemaNode] = field(default_factory=list)
    nullable: bool = False
    discriminator: str | None = None
    mapping: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "mode": self.mode.value,
            "strategy": self.strategy.value,
            "branches": [branch.to_dict() for branch in self.branches],
        }
        if self.nullable:
            result["nullable"] = True
        if self.discriminator is not None:
            result["discriminator"] = self.discriminator
            result["mapping"] = dict(self.mapping)
        return result


@dataclass(eq=False)
class SchemaNode:
    """A schema fragment, before or after composition resolution."""

    # Location in the source document (JSON pointer), used in error messages
    source_path: str = ""

    # Target of a $ref, canonicalized by the parser
    ref: str | None = None

    type_name: str | None = None  # "string", "integer", "number", "boolean", "array", "object"
    format: str | None = None

    nullable: bool = False
    read_only: bool = False
    write_only: bool = False

    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)
    items: SchemaNode | None = None
    additional_properties: bool | SchemaNode | None = None

    all_of: list[SchemaNode] = field(default_factory=list)
    one_of: list[SchemaNode] = field(default_factory=list)
    any_of: list[SchemaNode] = field(default_factory=list)
    not_: SchemaNode | None = None
    discriminator: Discriminator | None = None

    enum: list[Any] | None = None
    default: Any = None
    has_default: bool = False

    constraints: Constraints = field(default_factory=Constraints)

    # Set by composition resolution only
    union: UnionDescriptor | None = None

    # x-* extensions
    metadata: dict[str, Any] = field(default_factory=dict)

    title: str | None = None
    description: str | None = None

    # Raw example payloads, never interpreted
    examples: list[Any] = field(default_factory=list)

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    @property
    def kind(self) -> ShapeKind:
        if self.ref is not None:
            return ShapeKind.REFERENCE
        if self.all_of:
            return ShapeKind.COMPOSITION
        if self.union is not None or self.one_of or self.any_of:
            return ShapeKind.UNION
        if self.type_name == "array" or self.items is not None:
            return ShapeKind.ARRAY
        if self.properties or self.additional_properties is False:
            return ShapeKind.OBJECT
        if self.type_name == "object" or self.additional_properties is not None:
            return ShapeKind.MAP
        if self.type_name in SCALAR_TYPES or self.enum is not None:
            return ShapeKind.SCALAR
        return ShapeKind.ANY

    @property
    def is_scalar(self) -> bool:
        return self.kind == ShapeKind.SCALAR

    @property
    def map_values(self) -> SchemaNode | None:
        """Schema of map values, if additionalProperties is schema-typed."""
        if isinstance(self.additional_properties, SchemaNode):
            return self.additional_properties
        return None

    def is_required(self, name: str) -> bool:
        return name in self.required

    def is_metadata_only(self) -> bool:
        """True when the node carries documentation only and no structure."""
        return (
            self.ref is None
            and self.type_name is None
            and self.format is None
            and not self.nullable
            and not self.read_only
            and not self.write_only
            and not self.properties
            and not self.required
            and self.items is None
            and self.additional_properties is None
            and not self.all_of
            and not self.one_of
            and not self.any_of
            and self.not_ is None
            and self.discriminator is None
            and self.enum is None
            and not self.has_default
            and self.constraints.is_empty()
        )

    def children(self) -> list[SchemaNode]:
        """Direct child nodes, in a stable order."""
        result = list(self.properties.values())
        if self.items is not None:
            result.append(self.items)
        if isinstance(self.additional_properties, SchemaNode):
            result.append(self.additional_properties)
        result.extend(self.all_of)
        result.extend(self.one_of)
        result.extend(self.any_of)
        if self.not_ is not None:
            result.append(self.not_)
        if self.union is not None:
            result.extend(self.union.branches)
        return result

    def clone(self, **changes: Any) -> SchemaNode:
        """Shallow copy with fresh containers; children are shared."""
        copied = replace(
            self,
            properties=dict(self.properties),
            required=list(self.required),
            all_of=list(self.all_of),
            one_of=list(self.one_of),
            any_of=list(self.any_of),
            enum=list(self.enum) if self.enum is not None else None,
            constraints=copy.copy(self.constraints),
            metadata=dict(self.metadata),
            examples=list(self.examples),
        )
        for key, value in changes.items():
            setattr(copied, key, value)
        return copied

    def to_dict(self) -> dict[str, Any]:
        """Compact description of the node, used by reports and tests."""
        if self.ref is not None:
            return {"$ref": self.ref}
        result: dict[str, Any] = {"kind": self.kind.value}
        if self.type_name:
            result["type"] = self.type_name
        if self.format:
            result["format"] = self.format
        for flag in ("nullable", "read_only", "write_only"):
            if getattr(self, flag):
                result[flag] = True
        if self.enum is not None:
            result["enum"] = list(self.enum)
        if self.has_default:
            result["default"] = self.default
        constraints = self.constraints.to_dict()
        if constraints:
            result["constraints"] = constraints
        if self.properties:
            result["properties"] = {name: prop.to_dict() for name, prop in self.properties.items()}
        if self.required:
            result["required"] = list(self.required)
        if self.items is not None:
            result["items"] = self.items.to_dict()
        if isinstance(self.additional_properties, SchemaNode):
            result["additionalProperties"] = self.additional_properties.to_dict()
        elif self.additional_properties is not None:
            result["additionalProperties"] = self.additional_properties
        if self.all_of:
            result["allOf"] = [branch.to_dict() for branch in self.all_of]
        if self.union is not None:
            result["union"] = self.union.to_dict()
        else:
            if self.one_of:
                result["oneOf"] = [branch.to_dict() for branch in self.one_of]
            if self.any_of:
                result["anyOf"] = [branch.to_dict() for branch in self.any_of]
        if self.discriminator is not None:
            result["discriminator"] = self.discriminator.to_dict()
        return result
