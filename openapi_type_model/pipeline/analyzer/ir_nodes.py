"""
IR (Intermediate Representation) node definitions.

These nodes describe the finished type model handed to emission layers:
every generated type with its unique name, its resolved node and its
validation plan.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..document.nodes import SchemaNode

if TYPE_CHECKING:
    from ...validation_plan import ValidationPlan
    from ..pruner.pruner import PruneReport


class TypeOrigin(str, Enum):
    """Where in the document a type comes from."""

    COMPONENT = "component"  # components/schemas entry
    PROPERTY = "property"  # inline object/union under a property
    ARRAY_ITEM = "array_item"
    MAP_VALUE = "map_value"
    UNION_BRANCH = "union_branch"
    PARAMETER = "parameter"
    REQUEST_BODY = "request_body"
    RESPONSE = "response"
    HEADER = "header"


@dataclass(eq=False)
class TypeDef:
    """A named type."""

    name: str
    node: SchemaNode
    origin: TypeOrigin = TypeOrigin.COMPONENT
    source_path: str = ""

    # Canonical reference, for component schemas
    ref: str | None = None

    # Name of the aliased type when the node is a pure reference
    alias_of: str | None = None

    # Name of the enclosing type for derived types
    parent: str | None = None

    # Whether a value of this type must be present where it is used
    required: bool = True

    # Static capability flag, set during synthesis
    needs_validation: bool = False

    validation: ValidationPlan | None = None

    @property
    def kind(self) -> str:
        return self.node.kind.value

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "origin": self.origin.value,
            "kind": self.kind,
            "source_path": self.source_path,
        }
        if self.ref is not None:
            result["ref"] = self.ref
        if self.alias_of is not None:
            result["alias_of"] = self.alias_of
        if self.parent is not None:
            result["parent"] = self.parent
        result["required"] = self.required
        result["needs_validation"] = self.needs_validation
        result["schema"] = self.node.to_dict()
        if self.validation is not None:
            result["validation"] = self.validation.to_dict()
        return result


@dataclass
class TypeModel:
    """The complete, uniquely named type model of a document."""

    types: list[TypeDef] = field(default_factory=list)

    # canonical reference -> type name, for every reference seen while naming
    ref_names: dict[str, str] = field(default_factory=dict)

    prune_report: PruneReport | None = None

    _by_name: dict[str, TypeDef] = field(default_factory=dict, repr=False)
    _by_node: dict[int, TypeDef] = field(default_factory=dict, repr=False)

    def add(self, type_def: TypeDef) -> None:
        self.types.append(type_def)
        self._by_name[type_def.name] = type_def
        self._by_node[id(type_def.node)] = type_def

    def lookup(self, name: str) -> TypeDef | None:
        return self._by_name.get(name)

    def type_for_node(self, node: SchemaNode) -> TypeDef | None:
        return self._by_node.get(id(node))

    def name_for_ref(self, ref: str) -> str | None:
        return self.ref_names.get(ref)

    def type_for_ref(self, ref: str) -> TypeDef | None:
        name = self.ref_names.get(ref)
        return self._by_name.get(name) if name is not None else None

    def name_table(self) -> dict[str, SchemaNode]:
        """Name -> resolved node, in assignment order."""
        return {t.name: t.node for t in self.types}

    def plans(self) -> dict[str, ValidationPlan]:
        return {t.name: t.validation for t in self.types if t.validation is not None}

    def __len__(self) -> int:
        return len(self.types)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"types": [t.to_dict() for t in self.types]}
        if self.prune_report is not None:
            result["prune"] = self.prune_report.to_dict()
        return result
