from .composition import CompositionResolver
from .ir_nodes import TypeDef, TypeModel, TypeOrigin
from .name_resolver import TypeNameRegistry
from .reference_resolver import ReferencePointer, ReferenceResolver, canonical_reference, parse_reference

__all__ = [
    "CompositionResolver",
    "ReferencePointer",
    "ReferenceResolver",
    "TypeDef",
    "TypeModel",
    "TypeNameRegistry",
    "TypeOrigin",
    "canonical_reference",
    "parse_reference",
]
