"""OpenAPI Type Model

Builds a deterministic, uniquely named type model from an OpenAPI 3.x
document: allOf/oneOf/anyOf resolution, reachability pruning, type
naming and per-type validation plans, ready for an emission layer.
"""

__version__ = "0.1.0"
__author__ = "François Lagunas"

from .pipeline import (
    FilterConfig,
    GeneratorConfig,
    NamingConfig,
    PipelineGenerator,
    StructuralConflictError,
    TypeModelError,
)

__all__ = [
    "PipelineGenerator",
    "GeneratorConfig",
    "FilterConfig",
    "NamingConfig",
    "TypeModelError",
    "StructuralConflictError",
]
