from .filter import DocumentFilter
from .model import (
    COMPONENT_BUCKETS,
    HTTP_METHODS,
    ComponentBucket,
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
from .nodes import (
    SCALAR_TYPES,
    Constraints,
    Discriminator,
    SchemaNode,
    ShapeKind,
    UnionDescriptor,
    UnionMode,
    UnionStrategy,
)
from .parser import DocumentParser

__all__ = [
    "COMPONENT_BUCKETS",
    "HTTP_METHODS",
    "SCALAR_TYPES",
    "ComponentBucket",
    "ComponentRegistry",
    "Constraints",
    "Discriminator",
    "Document",
    "DocumentFilter",
    "DocumentParser",
    "Header",
    "MediaType",
    "Operation",
    "Parameter",
    "PathItem",
    "RequestBody",
    "Response",
    "SchemaNode",
    "ShapeKind",
    "UnionDescriptor",
    "UnionMode",
    "UnionStrategy",
]
