"""
Type model pipeline for OpenAPI documents.

1. Phase 1 (Parser): Parse the document into the document model
2. Phase 2 (Filter): Drop operations by tag, operation id or path
3. Phase 3 (Pruner): Delete unreachable components, to a fixed point
4. Phase 4 (Analyzer): Resolve allOf/oneOf/anyOf, then assign unique names
5. Phase 5 (Synthesizer): Attach a validation plan to every type
6. Phase 6 (Report): Optional text or JSON rendering of the model
"""

from __future__ import annotations

from .config import FilterConfig, GeneratorConfig, NamingConfig
from .errors import (
    ConflictingAdditionalPropertiesError,
    ConflictingDefaultsError,
    ConflictingDiscriminatorError,
    ConflictingFlagError,
    ConflictingPropertyError,
    DiscriminatorMappingError,
    IncompatibleTypesError,
    MalformedReferenceError,
    NamingCollisionUnresolvedError,
    StructuralConflictError,
    TypeModelError,
    UnresolvableReferenceError,
)
from .generator import PipelineGenerator

__all__ = [
    "PipelineGenerator",
    "GeneratorConfig",
    "FilterConfig",
    "NamingConfig",
    "TypeModelError",
    "StructuralConflictError",
    "IncompatibleTypesError",
    "ConflictingDefaultsError",
    "ConflictingFlagError",
    "ConflictingAdditionalPropertiesError",
    "ConflictingDiscriminatorError",
    "DiscriminatorMappingError",
    "ConflictingPropertyError",
    "UnresolvableReferenceError",
    "MalformedReferenceError",
    "NamingCollisionUnresolvedError",
]
