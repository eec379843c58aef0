"""
Exception taxonomy for the type model pipeline.

Structural conflicts and unresolvable references abort the whole run.
Malformed references abort pruning and resolution. Validation synthesis
never raises.
"""

from __future__ import annotations


class TypeModelError(Exception):
    """Base class for all errors raised while building a type model."""

    def __init__(self, message: str, source_path: str = ""):
        self.message = message
        self.source_path = source_path
        super().__init__(f"{source_path}: {message}" if source_path else message)


class StructuralConflictError(TypeModelError):
    """Two schema fragments cannot be combined."""


class IncompatibleTypesError(StructuralConflictError):
    """allOf branches declare different primitive types or formats."""


class ConflictingDefaultsError(StructuralConflictError):
    """Two allOf branches set different default values."""


class ConflictingFlagError(StructuralConflictError):
    """A boolean flag that must agree across allOf branches does not."""

    def __init__(self, flag: str, source_path: str = ""):
        self.flag = flag
        super().__init__(f"conflicting values for '{flag}' across allOf branches", source_path)


class ConflictingAdditionalPropertiesError(StructuralConflictError):
    """Two allOf branches carry different schema-typed additionalProperties."""


class ConflictingDiscriminatorError(StructuralConflictError):
    """A discriminator was found where only allOf may carry one."""


class DiscriminatorMappingError(StructuralConflictError):
    """A discriminated union branch has no resolvable discriminator value."""


class ConflictingPropertyError(StructuralConflictError):
    """Strict mode only: two allOf branches define the same property."""


class UnresolvableReferenceError(TypeModelError):
    """A reference points to no known component, or nests too deeply."""


class MalformedReferenceError(TypeModelError):
    """A reference string cannot be parsed as a local JSON pointer."""


class NamingCollisionUnresolvedError(TypeModelError):
    """No unique name could be produced for a node."""
